# Copyright Red Hat
#
# fixturediff/normalize.py - Fixture differ content normalizers
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Content normalization hooks for tree comparisons.

A normalizer is called as ``normalize(content, entry_info)`` for every file
whose content is hashed and returns the bytes to hash in place of
``content``. Normalizers never modify the files themselves.
"""
from typing import Any, Iterable, List, Sequence, Tuple
import logging
import json

from .fsdiff import EntryInfo, Normalizer
from .manifest import dumps_json, unset_deep

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _split_path_spec(spec: Sequence[Any]) -> Tuple[Sequence[Any], Any]:
    """
    Split a key path specification into its keys and optional value.

    A specification is either a sequence of keys, or a ``(keys, value)``
    pair whose first element is itself a sequence of keys.
    """
    if len(spec) == 2 and isinstance(spec[0], (list, tuple)):
        return spec[0], spec[1]
    return spec, None


def manifest_normalizer(name: str, paths: Iterable[Sequence[Any]]) -> Normalizer:
    """
    Return a normalizer that strips key paths from JSON manifests.

    Files whose basename is ``name`` are decoded, each key path in ``paths``
    is removed with ``unset_deep()``, and the result is re-encoded in the
    canonical manifest layout. Other files, and manifests that fail to
    decode, are returned unchanged.

    :param name: The manifest basename, for example ``"composer.json"``.
    :type name: ``str``
    :param paths: Key paths to remove. Each is a sequence of keys, or a
                  ``(keys, value)`` pair to remove only matching values.
    :type paths: ``Iterable[Sequence[Any]]``
    :returns: A content normalizer.
    :rtype: ``Normalizer``
    """
    specs: List[Tuple[Sequence[Any], Any]] = [_split_path_spec(p) for p in paths]

    def normalize(content: bytes, entry_info: EntryInfo) -> bytes:
        if entry_info.name != name:
            return content
        try:
            data = json.loads(content.decode("utf8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as err:
            _log_debug("Not normalizing undecodable manifest %s: %s", entry_info.path, err)
            return content
        if not isinstance(data, (dict, list)):
            return content
        for keys, value in specs:
            unset_deep(data, keys, value)
        return dumps_json(data).encode("utf8")

    return normalize


def line_endings_normalizer(content: bytes, entry_info: EntryInfo) -> bytes:
    """
    Fold CRLF line endings to LF for text-like files.

    :param content: The file content.
    :type content: ``bytes``
    :param entry_info: Metadata for the file being hashed.
    :type entry_info: ``EntryInfo``
    :returns: The normalized content.
    :rtype: ``bytes``
    """
    fti = entry_info.file_type_info
    if fti is None or not fti.is_text_like:
        return content
    return content.replace(b"\r\n", b"\n")


def chain(*hooks: Normalizer) -> Normalizer:
    """
    Compose normalizers, applying ``hooks`` from left to right.

    :param hooks: The normalizers to compose.
    :type hooks: ``Normalizer``
    :returns: A single normalizer.
    :rtype: ``Normalizer``
    """

    def normalize(content: bytes, entry_info: EntryInfo) -> bytes:
        for hook in hooks:
            content = hook(content, entry_info)
        return content

    return normalize
