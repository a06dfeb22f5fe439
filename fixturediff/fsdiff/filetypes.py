# Copyright Red Hat
#
# fixturediff/fsdiff/filetypes.py - Fixture differ file types
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File type information support.

File type information is attached to the entry metadata handed to content
normalizers so that they can decide which files to transform. Types are
guessed from file names by default, or detected from file content with
libmagic on request.
"""
from typing import ClassVar, Dict, Optional, Tuple
from pathlib import Path
from enum import Enum
import logging
import magic

from fixturediff import FIXTUREDIFF_SUBSYSTEM_TREEWALK

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_treewalk(msg, *args, **kwargs):
    """A wrapper for treewalk subsystem debug logs."""
    _log.debug(
        msg, *args, extra={"subsystem": FIXTUREDIFF_SUBSYSTEM_TREEWALK}, **kwargs
    )


_OCTET_STREAM = "application/octet-stream"

#: MIME types keyed by lower case file extension
EXTENSION_TYPES: Dict[str, str] = {
    # Plain text and documentation
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".rst": "text/x-rst",
    ".csv": "text/csv",
    ".log": "text/x-log",
    # Manifests and configuration
    ".json": "application/json",
    ".lock": "application/json",
    ".xml": "application/xml",
    ".dist": "application/xml",
    ".yml": "application/yaml",
    ".yaml": "application/yaml",
    ".toml": "application/toml",
    ".neon": "text/x-config",
    ".ini": "text/x-ini",
    ".cfg": "text/x-config",
    ".conf": "text/x-config",
    ".env": "text/x-env",
    # Source code and templates
    ".php": "text/x-php",
    ".inc": "text/x-php",
    ".module": "text/x-php",
    ".theme": "text/x-php",
    ".py": "text/x-python",
    ".sh": "text/x-shellscript",
    ".bash": "text/x-shellscript",
    ".js": "text/javascript",
    ".mjs": "text/javascript",
    ".ts": "text/x-typescript",
    ".css": "text/css",
    ".scss": "text/x-scss",
    ".html": "text/html",
    ".twig": "text/html",
    ".c": "text/x-c",
    ".h": "text/x-c",
    ".diff": "text/x-diff",
    ".patch": "text/x-diff",
    # Binary content
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".ico": "image/vnd.microsoft.icon",
    ".svg": "image/svg+xml",
    ".pdf": "application/pdf",
    ".zip": "application/zip",
    ".gz": "application/gzip",
    ".tgz": "application/gzip",
    ".tar": "application/x-tar",
    ".phar": "application/x-php-archive",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
}

#: MIME types keyed by lower case file name, for files without a useful
#: extension
FILENAME_TYPES: Dict[str, str] = {
    "readme": "text/plain",
    "license": "text/plain",
    "changelog": "text/plain",
    "makefile": "text/x-makefile",
    "dockerfile": "text/plain",
    ".gitignore": "text/plain",
    ".gitattributes": "text/plain",
    ".editorconfig": "text/x-ini",
    ".ignorecontent": "text/plain",
}


def _guess_file(file_path: Path) -> Tuple[str, str]:
    """
    Guess the MIME type of ``file_path`` from its name.

    Exact file names take precedence over extensions. Names that match
    neither table are reported as ``application/octet-stream``.

    :param file_path: The path to the file.
    :type file_path: ``Path``
    :returns: A 2-tuple of (mime_type, description).
    :rtype: ``Tuple[str, str]``
    """
    name = file_path.name.lower()
    if name in FILENAME_TYPES:
        return FILENAME_TYPES[name], f"{name} file"

    suffix = file_path.suffix.lower()
    if suffix in EXTENSION_TYPES:
        return EXTENSION_TYPES[suffix], f"{suffix[1:]} file"

    return _OCTET_STREAM, "unknown file type"


class FileTypeCategory(Enum):
    """
    Enum for file type categories.
    """

    TEXT = "text"
    CONFIG = "config"
    LOG = "log"
    SOURCE_CODE = "source_code"
    DOCUMENT = "document"
    IMAGE = "image"
    ARCHIVE = "archive"
    BINARY = "binary"
    UNKNOWN = "unknown"


#: Categories whose content is line oriented text
_TEXT_LIKE = (
    FileTypeCategory.TEXT,
    FileTypeCategory.CONFIG,
    FileTypeCategory.LOG,
    FileTypeCategory.SOURCE_CODE,
)


class FileTypeInfo:
    """
    The detected type of a single file.
    """

    def __init__(
        self,
        mime_type: str,
        description: str,
        category: FileTypeCategory,
        encoding: Optional[str] = None,
    ):
        """
        Initialise a new ``FileTypeInfo`` object.

        :param mime_type: The detected MIME type.
        :type mime_type: ``str``
        :param description: A human readable type description.
        :type description: ``str``
        :param category: The file type category.
        :type category: ``FileTypeCategory``
        :param encoding: The content encoding, if known.
        :type encoding: ``Optional[str]``
        """
        self.mime_type = mime_type
        self.description = description
        self.category = category
        self.encoding = encoding
        #: ``True`` if line oriented text transformations are safe
        self.is_text_like = category in _TEXT_LIKE or (
            category == FileTypeCategory.DOCUMENT and mime_type.startswith("text/")
        )

    def __repr__(self):
        return (
            f"FileTypeInfo({self.mime_type!r}, {self.description!r}, "
            f"{self.category}, {self.encoding!r})"
        )

    def __str__(self):
        return (
            f"MIME type: {self.mime_type}, "
            f"Category: {self.category.value}, "
            f"Encoding: {self.encoding or 'unknown'}, "
            f"Description: {self.description}"
        )


class FileTypeDetector:
    """
    Detect file types by name or using ``magic`` from file-magic.
    """

    #: MIME type prefixes checked in order; the first match wins
    category_rules: ClassVar[Tuple[Tuple[str, FileTypeCategory], ...]] = (
        ("text/markdown", FileTypeCategory.DOCUMENT),
        ("text/x-rst", FileTypeCategory.DOCUMENT),
        ("application/pdf", FileTypeCategory.DOCUMENT),
        ("application/json", FileTypeCategory.CONFIG),
        ("application/xml", FileTypeCategory.CONFIG),
        ("text/xml", FileTypeCategory.CONFIG),
        ("application/yaml", FileTypeCategory.CONFIG),
        ("application/x-yaml", FileTypeCategory.CONFIG),
        ("application/toml", FileTypeCategory.CONFIG),
        ("text/x-ini", FileTypeCategory.CONFIG),
        ("text/x-config", FileTypeCategory.CONFIG),
        ("text/x-env", FileTypeCategory.CONFIG),
        ("text/x-log", FileTypeCategory.LOG),
        ("text/x-", FileTypeCategory.SOURCE_CODE),
        ("text/javascript", FileTypeCategory.SOURCE_CODE),
        ("application/javascript", FileTypeCategory.SOURCE_CODE),
        ("application/x-sh", FileTypeCategory.SOURCE_CODE),
        ("text/css", FileTypeCategory.SOURCE_CODE),
        ("text/html", FileTypeCategory.SOURCE_CODE),
        ("text/", FileTypeCategory.TEXT),
        ("image/", FileTypeCategory.IMAGE),
        ("application/zip", FileTypeCategory.ARCHIVE),
        ("application/gzip", FileTypeCategory.ARCHIVE),
        ("application/x-gzip", FileTypeCategory.ARCHIVE),
        ("application/x-tar", FileTypeCategory.ARCHIVE),
        ("application/x-php-archive", FileTypeCategory.ARCHIVE),
    )

    def detect_file_type(self, file_path: Path, use_magic=False) -> FileTypeInfo:
        """
        Detect file type information for ``file_path``.

        :param file_path: The path to the file to inspect.
        :type file_path: ``Path``
        :param use_magic: Inspect file content with libmagic rather than
                          guessing from the file name.
        :type use_magic: ``bool``
        :returns: File type information for ``file_path``.
        :rtype: ``FileTypeInfo``
        """
        if not use_magic:
            mime_type, description = _guess_file(file_path)
            category = self._categorize_file(mime_type)
            encoding = "utf-8" if category in _TEXT_LIKE else "binary"
            return FileTypeInfo(mime_type, description, category, encoding)

        # Older file-magic releases do not provide magic.error
        magic_errors = (OSError, ValueError)
        if hasattr(magic, "error"):
            magic_errors += (magic.error,)

        try:
            fm = magic.detect_from_filename(str(file_path))
        except magic_errors as err:
            _log_warn("Error detecting file type for %s: %s", file_path, err)
            return FileTypeInfo(_OCTET_STREAM, "unknown", FileTypeCategory.UNKNOWN)

        _log_debug_treewalk("Detected %s for '%s' using magic", fm.mime_type, file_path)
        return FileTypeInfo(
            fm.mime_type, fm.name, self._categorize_file(fm.mime_type), fm.encoding
        )

    def _categorize_file(self, mime_type: str) -> FileTypeCategory:
        """
        Categorize a file by MIME type.

        :param mime_type: Detected file MIME type.
        :type mime_type: ``str``
        :returns: The file type category. MIME types matching no rule are
                  ``FileTypeCategory.BINARY``.
        :rtype: ``FileTypeCategory``
        """
        mime_type = mime_type.lower()
        for prefix, category in self.category_rules:
            if mime_type.startswith(prefix):
                return category
        return FileTypeCategory.BINARY
