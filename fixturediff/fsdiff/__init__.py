# Copyright Red Hat
#
# fixturediff/fsdiff/__init__.py - Fixture differ fs diff package
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File system tree diff package.

Provides rule-driven comparison of a baseline directory tree with an actual
tree, including rule parsing, tree walking, diffing, reporting and baseline
updates. The main entry points are ``FixtureDiffer``, ``compare_or_update``
and ``DiffOptions``.
"""
from .engine import DiffEngine, DiffResult
from .fsdiffer import FixtureDiffer, compare_or_update
from .options import DiffOptions
from .report import format_report, report_or_update
from .rules import Classification, Rule, RuleKind, RuleSet, classify, match, parse_rules
from .treewalk import (
    CONTENT_IGNORED,
    ClassifiedEntry,
    EntryInfo,
    EntryKind,
    Normalizer,
    TreeWalker,
)

__all__ = [
    "CONTENT_IGNORED",
    "Classification",
    "ClassifiedEntry",
    "DiffEngine",
    "DiffOptions",
    "DiffResult",
    "EntryInfo",
    "EntryKind",
    "FixtureDiffer",
    "Normalizer",
    "Rule",
    "RuleKind",
    "RuleSet",
    "TreeWalker",
    "classify",
    "compare_or_update",
    "format_report",
    "match",
    "parse_rules",
    "report_or_update",
]
