# Copyright Red Hat
#
# fixturediff/manifest.py - Fixture differ JSON manifest helpers
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Helpers for reading, writing and pruning JSON manifest files in fixture
trees.
"""
from typing import Any, Sequence, Union
import logging
import json
import os

from fixturediff import FixturediffParseError

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: A decoded JSON container
JsonData = Union[dict, list]


def dumps_json(data: JsonData) -> str:
    """
    Encode ``data`` in the canonical manifest layout: four space indent with
    unescaped unicode and no trailing newline.

    :param data: The data to encode.
    :type data: ``Union[dict, list]``
    :returns: The encoded JSON text.
    :rtype: ``str``
    """
    return json.dumps(data, indent=4, ensure_ascii=False)


def read_json(path: str) -> JsonData:
    """
    Read and decode the JSON manifest at ``path``.

    :param path: The manifest file to read.
    :type path: ``str``
    :returns: The decoded object or array.
    :rtype: ``Union[dict, list]``
    :raises FixturediffParseError: If the file cannot be read or does not
                                   contain a JSON object or array.
    """
    name = os.path.basename(path)
    try:
        with open(path, "r", encoding="utf8") as fp:
            contents = fp.read()
    except (OSError, UnicodeDecodeError) as err:
        raise FixturediffParseError(f"Failed to read {name}") from err

    try:
        decoded = json.loads(contents)
    except json.JSONDecodeError as err:
        raise FixturediffParseError(f"Failed to decode {name}") from err

    if not isinstance(decoded, (dict, list)):
        raise FixturediffParseError(f"Failed to decode {name}")
    return decoded


def write_json(path: str, data: JsonData):
    """
    Encode ``data`` and write it to ``path``.

    :param path: The manifest file to write.
    :type path: ``str``
    :param data: The data to encode.
    :type data: ``Union[dict, list]``
    """
    _log_debug("Writing JSON manifest %s", path)
    with open(path, "w", encoding="utf8") as fp:
        fp.write(dumps_json(data))


def _is_empty(value: Any) -> bool:
    if isinstance(value, (dict, list, str)):
        return value in ({}, [], "", "0")
    return value is None or value is False or value == 0


def _has_key(data: JsonData, key: Any) -> bool:
    if isinstance(data, dict):
        return data.get(key) is not None
    if isinstance(key, int) and not isinstance(key, bool):
        return -len(data) <= key < len(data) and data[key] is not None
    return False


def _keep_item(item: Any, value: str, exact: bool) -> bool:
    if exact:
        return item != value
    return not (isinstance(item, str) and value in item)


def unset_deep(
    data: JsonData, path: Sequence[Any], value: Any = None, exact: bool = True
):
    """
    Remove a key, or matching values, at ``path`` within ``data``.

    Each element of ``path`` selects a dictionary key or a list index. When
    ``value`` is ``None`` the element at the end of ``path`` is removed.
    Otherwise items of the container at the end of ``path`` are removed when
    they equal ``value`` (or contain it when ``exact`` is ``False``) and
    lists are re-indexed. Containers left empty along ``path`` are removed
    as well. An empty ``path`` leaves ``data`` untouched.

    :param data: The decoded JSON data to modify in place.
    :type data: ``Union[dict, list]``
    :param path: The sequence of keys to follow.
    :type path: ``Sequence[Any]``
    :param value: The value to remove, or ``None`` to remove the key.
    :type value: ``Any``
    :param exact: Match ``value`` exactly rather than as a substring.
    :type exact: ``bool``
    """
    if not path:
        return

    key, rest = path[0], path[1:]
    if not _has_key(data, key):
        return

    if rest:
        if isinstance(data[key], (dict, list)):
            unset_deep(data[key], rest, value, exact)
            if _is_empty(data[key]):
                del data[key]
        return

    if value is None:
        del data[key]
        return

    target = data[key]
    if isinstance(target, list):
        target[:] = [item for item in target if _keep_item(item, value, exact)]
    elif isinstance(target, dict):
        for item_key in [k for k, v in target.items() if not _keep_item(v, value, exact)]:
            del target[item_key]

    if _is_empty(target):
        del data[key]
