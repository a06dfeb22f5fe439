# Copyright Red Hat
#
# fixturediff/fsdiff/engine.py - Fixture differ diff engine
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree diff engine
"""
from typing import Any, Dict, Tuple
import logging
import json

from fixturediff import FIXTUREDIFF_SUBSYSTEM_ENGINE

from .treewalk import ClassifiedTree

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_engine(msg, *args, **kwargs):
    """A wrapper for engine subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": FIXTUREDIFF_SUBSYSTEM_ENGINE}, **kwargs)


class DiffResult:
    """
    The differences found between two classified trees.

    All three path collections are sorted tuples. A path appears in at most
    one of them.
    """

    def __init__(
        self,
        only_in_a: Tuple[str, ...] = (),
        only_in_b: Tuple[str, ...] = (),
        differing: Tuple[str, ...] = (),
    ):
        """
        Initialise a new ``DiffResult`` object.

        :param only_in_a: Paths present only in the first tree.
        :type only_in_a: ``Tuple[str, ...]``
        :param only_in_b: Paths present only in the second tree.
        :type only_in_b: ``Tuple[str, ...]``
        :param differing: Paths present in both trees with different content.
        :type differing: ``Tuple[str, ...]``
        """
        self.only_in_a: Tuple[str, ...] = tuple(sorted(only_in_a))
        self.only_in_b: Tuple[str, ...] = tuple(sorted(only_in_b))
        self.differing: Tuple[str, ...] = tuple(sorted(differing))

    def __repr__(self):
        return (
            f"DiffResult({self.only_in_a!r}, {self.only_in_b!r}, "
            f"{self.differing!r})"
        )

    def __eq__(self, other):
        if not isinstance(other, DiffResult):
            return NotImplemented
        return (
            self.only_in_a == other.only_in_a
            and self.only_in_b == other.only_in_b
            and self.differing == other.differing
        )

    def __hash__(self):
        return hash((self.only_in_a, self.only_in_b, self.differing))

    def __bool__(self):
        """
        A ``DiffResult`` is true if any difference was found.
        """
        return bool(self.only_in_a or self.only_in_b or self.differing)

    def __len__(self):
        return len(self.only_in_a) + len(self.only_in_b) + len(self.differing)

    @property
    def is_empty(self) -> bool:
        """
        True if the compared trees are equal.

        :returns: ``True`` if no differences were found.
        :rtype: ``bool``
        """
        return not self

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert this ``DiffResult`` into a dictionary suitable for encoding as
        JSON.

        :returns: A dictionary mapping this instance's keys to values.
        :rtype: ``Dict[str, Any]``
        """
        return {
            "only_in_a": list(self.only_in_a),
            "only_in_b": list(self.only_in_b),
            "differing": list(self.differing),
        }

    def json(self, pretty=False) -> str:
        """
        Return a string representation of this ``DiffResult`` in JSON
        notation.

        :param pretty: Indent JSON to be human readable.
        :type pretty: ``bool``
        :returns: A JSON representation of this instance.
        :rtype: ``str``
        """
        return json.dumps(self.to_dict(), indent=4 if pretty else None)


class DiffEngine:
    """
    Core class for comparing classified trees.
    """

    def compute_diff(self, tree_a: ClassifiedTree, tree_b: ClassifiedTree) -> DiffResult:
        """
        Compare two classified trees.

        Entries present in both trees are only reported as differing when both
        carry a real content digest: directories and content-ignored entries
        are compared for presence only.

        :param tree_a: The classified baseline tree.
        :type tree_a: ``ClassifiedTree``
        :param tree_b: The classified actual tree.
        :type tree_b: ``ClassifiedTree``
        :returns: The differences between the two trees.
        :rtype: ``DiffResult``
        """
        paths_a = set(tree_a.keys())
        paths_b = set(tree_b.keys())

        only_in_a = paths_a - paths_b
        only_in_b = paths_b - paths_a
        differing = []

        for path in sorted(paths_a & paths_b):
            entry_a = tree_a[path]
            entry_b = tree_b[path]
            if entry_a.is_dir or entry_b.is_dir:
                continue
            if entry_a.content_ignored or entry_b.content_ignored:
                continue
            if entry_a.digest != entry_b.digest:
                _log_debug_engine(
                    "Content differs for '%s' (%s != %s)",
                    path,
                    entry_a.digest,
                    entry_b.digest,
                )
                differing.append(path)

        result = DiffResult(tuple(only_in_a), tuple(only_in_b), tuple(differing))
        _log_info(
            "Found %d differences (%d only in first, %d only in second, "
            "%d differ in content)",
            len(result),
            len(result.only_in_a),
            len(result.only_in_b),
            len(result.differing),
        )
        return result
