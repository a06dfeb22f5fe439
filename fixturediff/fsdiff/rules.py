# Copyright Red Hat
#
# fixturediff/fsdiff/rules.py - Fixture differ comparison rules
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Comparison rule parsing and path classification.

A rule file contains one pattern per line. The first character of a line
selects the rule kind:

``#``
    Comment line, ignored.
``!``
    Include: the path is always compared, overriding skip and content-ignore
    rules. ``!^`` is accepted as an include that negates a content-ignore
    rule.
``^``
    Content-ignore: the path must exist in both trees but its content is
    not compared.

Remaining patterns without a ``/`` are global rules matched against entry
basenames anywhere in the tree: matching entries are excluded from the
comparison entirely. All other patterns are skip rules.

A trailing ``/`` selects a directory and everything below it, and a ``/*``
segment selects direct children of a directory only.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple
from fnmatch import fnmatch
from enum import Enum
import logging
import os

from fixturediff import FIXTUREDIFF_SUBSYSTEM_RULES, FixturediffConfigError

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_rules(msg, *args, **kwargs):
    """A wrapper for rules subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": FIXTUREDIFF_SUBSYSTEM_RULES}, **kwargs)


#: Rule file prefix characters
_COMMENT_PREFIX = "#"
_INCLUDE_PREFIX = "!"
_CONTENT_IGNORE_PREFIX = "^"

_SEP = "/"
_DIRECT_CHILDREN = "/*"


class RuleKind(Enum):
    """
    Enum for comparison rule kinds.
    """

    SKIP = "skip"
    CONTENT_IGNORE = "content_ignore"
    INCLUDE = "include"
    GLOBAL = "global"


class Classification(Enum):
    """
    Enum for the outcome of classifying a path against a ``RuleSet``.
    """

    #: Matched a global rule: omitted and never descended into
    EXCLUDED = "excluded"
    #: Matched an include rule: always compared
    INCLUDED = "included"
    #: Matched a skip rule: omitted from the comparison
    SKIP = "skip"
    #: Matched a content-ignore rule: presence only
    CONTENT_IGNORE = "content_ignore"
    #: No rule matched: normal comparison
    COMPARE = "compare"


@dataclass(frozen=True)
class Rule:
    """
    A single comparison rule.
    """

    pattern: str
    kind: RuleKind

    def __str__(self):
        return f"{self.kind.value}:{self.pattern}"


@dataclass(frozen=True)
class RuleSet:
    """
    An immutable set of comparison rules partitioned by kind.
    """

    skip: Tuple[Rule, ...] = ()
    content_ignore: Tuple[Rule, ...] = ()
    include: Tuple[Rule, ...] = ()
    global_: Tuple[Rule, ...] = ()

    def __len__(self):
        return (
            len(self.skip)
            + len(self.content_ignore)
            + len(self.include)
            + len(self.global_)
        )

    def __str__(self):
        """
        Return a human readable string representation of this ``RuleSet``.

        :returns: One ``bucket: pattern`` line per rule.
        :rtype: ``str``
        """
        buckets = (
            ("global", self.global_),
            ("include", self.include),
            ("skip", self.skip),
            ("content_ignore", self.content_ignore),
        )
        return "\n".join(
            f"{name}: {rule.pattern}" for name, rules in buckets for rule in rules
        )


def parse_rule_line(line: str) -> Optional[Rule]:
    """
    Parse a single rule file line.

    :param line: The line to parse.
    :type line: ``str``
    :returns: A new ``Rule`` or ``None`` for blank and comment lines.
    :rtype: ``Optional[Rule]``
    """
    line = line.strip()
    if not line or line.startswith(_COMMENT_PREFIX):
        return None

    if line.startswith(_INCLUDE_PREFIX):
        pattern = line[len(_INCLUDE_PREFIX):]
        if pattern.startswith(_CONTENT_IGNORE_PREFIX):
            pattern = pattern[len(_CONTENT_IGNORE_PREFIX):]
        kind = RuleKind.INCLUDE
    elif line.startswith(_CONTENT_IGNORE_PREFIX):
        pattern = line[len(_CONTENT_IGNORE_PREFIX):]
        kind = RuleKind.CONTENT_IGNORE
    elif _SEP not in line:
        pattern = line
        kind = RuleKind.GLOBAL
    else:
        pattern = line
        kind = RuleKind.SKIP

    if not pattern:
        _log_warn("Ignoring rule with empty pattern: '%s'", line)
        return None

    return Rule(pattern, kind)


def parse_rule_lines(lines: Iterable[str]) -> RuleSet:
    """
    Parse an iterable of rule file lines into a ``RuleSet``.

    :param lines: The lines to parse.
    :type lines: ``Iterable[str]``
    :returns: The parsed rules.
    :rtype: ``RuleSet``
    """
    buckets = {kind: [] for kind in RuleKind}
    for line in lines:
        rule = parse_rule_line(line)
        if rule is None:
            continue
        _log_debug_rules("Parsed rule %s", rule)
        buckets[rule.kind].append(rule)

    return RuleSet(
        skip=tuple(buckets[RuleKind.SKIP]),
        content_ignore=tuple(buckets[RuleKind.CONTENT_IGNORE]),
        include=tuple(buckets[RuleKind.INCLUDE]),
        global_=tuple(buckets[RuleKind.GLOBAL]),
    )


def parse_rules(path: str) -> RuleSet:
    """
    Read and parse the rule file at ``path``.

    A missing rule file is equivalent to an empty rule file.

    :param path: The path to the rule file.
    :type path: ``str``
    :returns: The parsed rules.
    :rtype: ``RuleSet``
    :raises FixturediffConfigError: If the file exists but cannot be read.
    """
    if not os.path.lexists(path):
        _log_debug_rules("No rule file found at '%s'", path)
        return RuleSet()

    try:
        with open(path, "r", encoding="utf8") as fp:
            lines = fp.readlines()
    except (OSError, UnicodeDecodeError) as err:
        raise FixturediffConfigError(
            f"Failed to read rule file '{path}': {err}"
        ) from err

    ruleset = parse_rule_lines(lines)
    _log_info("Loaded %d comparison rules from '%s'", len(ruleset), path)
    return ruleset


def match(path: str, pattern: str, is_directory: bool = False) -> bool:
    """
    Test whether the relative ``path`` matches a single rule ``pattern``.

    :param path: The relative path to test, using ``/`` separators.
    :type path: ``str``
    :param pattern: The rule pattern.
    :type pattern: ``str``
    :param is_directory: ``True`` if ``path`` names a directory.
    :type is_directory: ``bool``
    :returns: ``True`` if ``path`` matches ``pattern``.
    :rtype: ``bool``
    """
    if is_directory and not path.endswith(_SEP):
        path += _SEP

    if pattern.endswith(_SEP):
        return path.startswith(pattern)

    if _DIRECT_CHILDREN in pattern:
        parent = pattern[: pattern.index(_DIRECT_CHILDREN) + 1]
        return (
            path.startswith(parent)
            and path != parent
            and path.count(_SEP) == pattern.count(_SEP)
            and fnmatch(path, pattern)
        )

    return fnmatch(path, pattern)


def _matches_any(path: str, rules: Tuple[Rule, ...], is_directory: bool) -> bool:
    return any(match(path, rule.pattern, is_directory) for rule in rules)


def classify(path: str, is_directory: bool, ruleset: RuleSet) -> Classification:
    """
    Classify the relative ``path`` against ``ruleset``.

    Rules are evaluated in a fixed order: global, include, skip, then
    content-ignore, independent of their order in the rule file.

    :param path: The relative path to classify.
    :type path: ``str``
    :param is_directory: ``True`` if ``path`` names a directory.
    :type is_directory: ``bool``
    :param ruleset: The rules to apply.
    :type ruleset: ``RuleSet``
    :returns: The classification of ``path``.
    :rtype: ``Classification``
    """
    basename = path.rstrip(_SEP).rsplit(_SEP, 1)[-1]
    if _matches_any(basename, ruleset.global_, False):
        return Classification.EXCLUDED
    if _matches_any(path, ruleset.include, is_directory):
        return Classification.INCLUDED
    if _matches_any(path, ruleset.skip, is_directory):
        return Classification.SKIP
    if _matches_any(path, ruleset.content_ignore, is_directory):
        return Classification.CONTENT_IGNORE
    return Classification.COMPARE
