# Copyright Red Hat
#
# fixturediff/fsdiff/treewalk.py - Fixture differ tree walk
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree walking support for fsdiff.
"""
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple
from hashlib import md5, sha1, sha256, sha512
from datetime import datetime
from pathlib import Path
from enum import Enum
import logging
import stat
import os

from fixturediff import FIXTUREDIFF_SUBSYSTEM_TREEWALK, FixturediffIOError

from .filetypes import FileTypeDetector, FileTypeInfo
from .options import DiffOptions
from .rules import Classification, RuleSet, classify

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


_HASH_TYPES = {
    "md5": md5,
    "sha1": sha1,
    "sha256": sha256,
    "sha512": sha512,
}

#: Digest recorded for directories and content-ignored entries. It is not a
#: hexadecimal string so it can never collide with a computed digest.
CONTENT_IGNORED = "<content-ignored>"

_SEP = "/"


class EntryKind(Enum):
    """
    Enum for classified entry kinds.
    """

    DIRECTORY = "directory"
    FILE = "file"


class ClassifiedEntry:
    """
    A single tree entry retained for comparison.
    """

    def __init__(
        self,
        path: str,
        kind: EntryKind,
        digest: str = CONTENT_IGNORED,
        classification: Classification = Classification.COMPARE,
    ):
        """
        Initialise a new ``ClassifiedEntry`` object.

        :param path: The path relative to the tree root using ``/``
                     separators. Directory paths end with ``/``.
        :type path: ``str``
        :param kind: The entry kind.
        :type kind: ``EntryKind``
        :param digest: The content digest, or ``CONTENT_IGNORED``.
        :type digest: ``str``
        :param classification: The rule classification of this entry.
        :type classification: ``Classification``
        """
        self.path = path
        self.kind = kind
        self.digest = digest
        self.classification = classification

    def __repr__(self):
        return (
            f"ClassifiedEntry({self.path!r}, {self.kind}, {self.digest!r}, "
            f"{self.classification})"
        )

    def __str__(self):
        return f"{self.path} [{self.classification.value}] {self.digest}"

    def __eq__(self, other):
        if not isinstance(other, ClassifiedEntry):
            return NotImplemented
        return (
            self.path == other.path
            and self.kind == other.kind
            and self.digest == other.digest
            and self.classification == other.classification
        )

    def __hash__(self):
        return hash((self.path, self.kind, self.digest, self.classification))

    @property
    def is_dir(self) -> bool:
        """
        True if this ``ClassifiedEntry`` is a directory.

        :returns: ``True`` for directory entries.
        :rtype: ``bool``
        """
        return self.kind == EntryKind.DIRECTORY

    @property
    def content_ignored(self) -> bool:
        """
        True if the content of this entry takes no part in the comparison.

        :returns: ``True`` if this entry carries the ``CONTENT_IGNORED``
                  sentinel digest.
        :rtype: ``bool``
        """
        return self.digest == CONTENT_IGNORED

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``ClassifiedEntry`` into a dictionary suitable for
        encoding as JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "path": self.path,
            "kind": self.kind.value,
            "digest": self.digest,
            "classification": self.classification.value,
        }


class EntryInfo:
    """
    Metadata describing a file whose content is about to be hashed. Passed to
    content normalizers alongside the raw content.
    """

    def __init__(
        self,
        path: str,
        full_path: str,
        file_type_info: Optional[FileTypeInfo] = None,
    ):
        #: The path relative to the tree root
        self.path: str = path
        #: The basename of the entry
        self.name: str = path.rsplit(_SEP, 1)[-1]
        #: The path of the entry on disk
        self.full_path: str = full_path
        #: File type information for this entry
        self.file_type_info: Optional[FileTypeInfo] = file_type_info

    def __repr__(self):
        return f"EntryInfo({self.path!r}, {self.full_path!r})"


#: Content normalization hook: ``normalize(content, entry_info) -> content``
Normalizer = Callable[[bytes, EntryInfo], bytes]

#: Mapping of relative paths to classified entries, sorted by path
ClassifiedTree = Dict[str, ClassifiedEntry]


class TreeWalker:
    """
    Walks a directory tree and classifies every entry below it.
    """

    def __init__(self, options: Optional[DiffOptions] = None):
        """
        Initialise a new ``TreeWalker`` object.

        :param options: Options to control this ``TreeWalker`` instance.
        :type options: ``DiffOptions``
        """
        options = options or DiffOptions()
        if options.hash_algorithm not in _HASH_TYPES:
            raise ValueError(f"Unknown hash algorithm: {options.hash_algorithm}")

        self.options: DiffOptions = options
        self.hash_algorithm: str = options.hash_algorithm
        self.hasher = _HASH_TYPES[options.hash_algorithm]
        self.file_type_detector: FileTypeDetector = FileTypeDetector()

    def _stat(self, entry: os.DirEntry) -> os.stat_result:
        """
        Return stat data for ``entry`` honouring the symlink policy.

        :param entry: The directory entry to examine.
        :type entry: ``os.DirEntry``
        :returns: Stat data for the entry, or for its link target when
                  following symlinks.
        :rtype: ``os.stat_result``
        """
        try:
            if self.options.follow_symlinks:
                return os.stat(entry.path)
            return os.lstat(entry.path)
        except OSError as err:
            if entry.is_symlink():
                raise FixturediffIOError(
                    f"Dangling symbolic link '{entry.path}': {err}"
                ) from err
            raise FixturediffIOError(
                f"Failed to stat '{entry.path}': {err}"
            ) from err

    def _process_dir(
        self, rel_path: str, classification: Classification
    ) -> ClassifiedEntry:
        """
        Process a single directory at ``rel_path``.

        :param rel_path: The relative directory path ending with ``/``.
        :type rel_path: ``str``
        :param classification: The rule classification for the directory.
        :type classification: ``Classification``
        :returns: A new ``ClassifiedEntry`` representing the directory.
        :rtype: ``ClassifiedEntry``
        """
        return ClassifiedEntry(
            rel_path, EntryKind.DIRECTORY, CONTENT_IGNORED, classification
        )

    def _process_file(
        self,
        file_path: str,
        rel_path: str,
        file_stat: os.stat_result,
        classification: Classification,
        normalize: Optional[Normalizer] = None,
    ) -> ClassifiedEntry:
        """
        Process a single file at ``file_path`` with stat data ``file_stat``.

        :param file_path: The full path to the file.
        :type file_path: ``str``
        :param rel_path: The path relative to the tree root.
        :type rel_path: ``str``
        :param file_stat: Stat data for ``file_path``.
        :type file_stat: ``os.stat_result``
        :param classification: The rule classification for the file.
        :type classification: ``Classification``
        :param normalize: An optional content normalizer.
        :type normalize: ``Optional[Normalizer]``
        :returns: A new ``ClassifiedEntry`` representing the file.
        :rtype: ``ClassifiedEntry``
        """
        if classification == Classification.CONTENT_IGNORE:
            return ClassifiedEntry(
                rel_path, EntryKind.FILE, CONTENT_IGNORED, classification
            )

        if stat.S_ISLNK(file_stat.st_mode):
            try:
                content = os.readlink(file_path).encode("utf8", "surrogateescape")
            except OSError as err:
                raise FixturediffIOError(
                    f"Failed to read link '{file_path}': {err}"
                ) from err
        elif stat.S_ISREG(file_stat.st_mode):
            content = self._read_content(file_path)
        else:
            _log_debug_treewalk("Not hashing special file '%s'", file_path)
            return ClassifiedEntry(
                rel_path, EntryKind.FILE, CONTENT_IGNORED, classification
            )

        if normalize is not None:
            fti = self.file_type_detector.detect_file_type(
                Path(file_path), use_magic=self.options.use_magic_file_type
            )
            content = normalize(content, EntryInfo(rel_path, file_path, fti))

        return ClassifiedEntry(
            rel_path,
            EntryKind.FILE,
            self._calculate_content_hash(content),
            classification,
        )

    # pylint: disable=too-many-locals
    def walk(
        self,
        root: str,
        ruleset: RuleSet,
        normalize: Optional[Normalizer] = None,
    ) -> ClassifiedTree:
        """
        Walk the tree below ``root`` and return its classified entries.

        The rule file at the top of ``root`` is never part of the result.

        :param root: The directory to walk.
        :type root: ``str``
        :param ruleset: The rules used to classify entries.
        :type ruleset: ``RuleSet``
        :param normalize: An optional content normalizer applied to file
                          content before hashing.
        :type normalize: ``Optional[Normalizer]``
        :returns: A dictionary mapping relative paths to ``ClassifiedEntry``
                  objects, sorted by path.
        :rtype: ``ClassifiedTree``
        :raises FixturediffIOError: If any entry cannot be listed, examined
                                    or read.
        """
        root = os.path.abspath(root)
        try:
            root_stat = os.stat(root)
        except OSError as err:
            raise FixturediffIOError(f"Cannot access tree '{root}': {err}") from err
        if not stat.S_ISDIR(root_stat.st_mode):
            raise FixturediffIOError(f"Tree root '{root}' is not a directory")

        _log_info("Walking tree %s", root)
        start_time = datetime.now()

        tree: ClassifiedTree = {}
        excluded = 0
        skipped = 0

        # Worklist of (relative prefix, full path, identities of the
        # directories on the way down from the root).
        stack: List[Tuple[str, str, FrozenSet[Tuple[int, int]]]] = [
            ("", root, frozenset({(root_stat.st_dev, root_stat.st_ino)}))
        ]
        while stack:
            prefix, dir_path, ancestors = stack.pop()
            try:
                with os.scandir(dir_path) as it:
                    dir_entries = sorted(it, key=lambda e: e.name)
            except OSError as err:
                raise FixturediffIOError(
                    f"Failed to list directory '{dir_path}': {err}"
                ) from err

            for entry in dir_entries:
                rel_path = prefix + entry.name
                if not prefix and entry.name == self.options.rules_file:
                    continue

                entry_stat = self._stat(entry)
                is_dir = stat.S_ISDIR(entry_stat.st_mode)
                classification = classify(rel_path, is_dir, ruleset)

                if classification == Classification.EXCLUDED:
                    _log_debug_treewalk("Excluding '%s'", rel_path)
                    excluded += 1
                    continue

                if is_dir:
                    dir_rel_path = rel_path + _SEP
                    if classification == Classification.SKIP:
                        skipped += 1
                    else:
                        tree[dir_rel_path] = self._process_dir(
                            dir_rel_path, classification
                        )
                    dir_id = (entry_stat.st_dev, entry_stat.st_ino)
                    if dir_id in ancestors:
                        _log_warn(
                            "Not descending into '%s': symbolic link cycle",
                            entry.path,
                        )
                        continue
                    stack.append((dir_rel_path, entry.path, ancestors | {dir_id}))
                    continue

                if classification == Classification.SKIP:
                    skipped += 1
                    continue

                tree[rel_path] = self._process_file(
                    entry.path, rel_path, entry_stat, classification, normalize
                )

        end_time = datetime.now()
        _log_info(
            "Classified %d paths in %s (excluded %d, skipped %d)",
            len(tree),
            end_time - start_time,
            excluded,
            skipped,
        )
        return dict(sorted(tree.items()))

    def _read_content(self, file_path: str) -> bytes:
        """
        Read the whole content of ``file_path``.

        :param file_path: The path to the file to read.
        :type file_path: ``str``
        :returns: The file content.
        :rtype: ``bytes``
        """
        try:
            with open(file_path, "rb") as f:
                return f.read()
        except OSError as err:
            raise FixturediffIOError(f"Failed to read '{file_path}': {err}") from err

    def _calculate_content_hash(self, content: bytes) -> str:
        """
        Calculate content hash for file content.

        :param content: The (normalized) file content to hash.
        :type content: ``bytes``
        :returns: A string representation of the hash of the content using
                  the configured hash algorithm.
        :rtype: ``str``
        """
        hasher = self.hasher(usedforsecurity=False)
        hasher.update(content)
        return hasher.hexdigest()
