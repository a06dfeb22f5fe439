# Copyright Red Hat
#
# fixturediff/fsdiff/fsdiffer.py - Fixture differ top-level interface
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Top-level fsdiff interface.
"""
from typing import Optional
import logging
import os

from .engine import DiffEngine, DiffResult
from .options import DiffOptions
from .report import report_or_update
from .rules import RuleSet, parse_rules
from .treewalk import Normalizer, TreeWalker

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


class FixtureDiffer:
    """
    Top-level interface for comparing a baseline tree with an actual tree.
    """

    def __init__(self, options: Optional[DiffOptions] = None):
        """
        Initialise a new ``FixtureDiffer``.

        :param options: Options to control this ``FixtureDiffer`` instance.
        :type options: ``DiffOptions``
        """
        options = options or DiffOptions()
        self.options: DiffOptions = options
        self.tree_walker: TreeWalker = TreeWalker(options)
        self.diff_engine: DiffEngine = DiffEngine()

    def load_rules(self, tree_a: str) -> RuleSet:
        """
        Load the comparison rules from the root of the baseline tree.

        :param tree_a: The baseline tree root.
        :type tree_a: ``str``
        :returns: The parsed rules, empty if there is no rule file.
        :rtype: ``RuleSet``
        """
        return parse_rules(os.path.join(tree_a, self.options.rules_file))

    def compare(
        self,
        tree_a: str,
        tree_b: str,
        normalize: Optional[Normalizer] = None,
        update: bool = False,
    ) -> DiffResult:
        """
        Compare the baseline ``tree_a`` with the actual ``tree_b``.

        :param tree_a: The baseline (expected) tree root.
        :type tree_a: ``str``
        :param tree_b: The actual tree root.
        :type tree_b: ``str``
        :param normalize: An optional content normalizer applied before
                          hashing files in both trees.
        :type normalize: ``Optional[Normalizer]``
        :param update: Update ``tree_a`` from ``tree_b`` instead of failing
                       on differences.
        :type update: ``bool``
        :returns: The differences found. Always empty unless ``update`` is
                  set, in which case the differences that were resolved by
                  the update are returned.
        :rtype: ``DiffResult``
        :raises FixturediffMismatch: If the trees differ and ``update`` is not
                                     set.
        :raises FixturediffConfigError: If the rule file cannot be read.
        :raises FixturediffIOError: If either tree cannot be read or the
                                    baseline cannot be updated.
        """
        _log_debug("Comparing %s with %s (update=%s)", tree_a, tree_b, update)
        ruleset = self.load_rules(tree_a)

        classified_a = self.tree_walker.walk(tree_a, ruleset, normalize)
        classified_b = self.tree_walker.walk(tree_b, ruleset, normalize)

        diff = self.diff_engine.compute_diff(classified_a, classified_b)

        del classified_a

        report_or_update(
            tree_a,
            tree_b,
            diff,
            classified_b,
            update=update,
            follow_symlinks=self.options.follow_symlinks,
        )
        return diff


def compare_or_update(
    tree_a: str,
    tree_b: str,
    normalize: Optional[Normalizer] = None,
    update: bool = False,
    options: Optional[DiffOptions] = None,
) -> DiffResult:
    """
    Compare ``tree_a`` with ``tree_b`` or update ``tree_a`` from ``tree_b``.

    Convenience wrapper around ``FixtureDiffer.compare()``.

    :param tree_a: The baseline (expected) tree root.
    :type tree_a: ``str``
    :param tree_b: The actual tree root.
    :type tree_b: ``str``
    :param normalize: An optional content normalizer.
    :type normalize: ``Optional[Normalizer]``
    :param update: Regenerate the baseline instead of failing.
    :type update: ``bool``
    :param options: Comparison options.
    :type options: ``Optional[DiffOptions]``
    :returns: The differences found.
    :rtype: ``DiffResult``
    """
    return FixtureDiffer(options).compare(tree_a, tree_b, normalize, update)
