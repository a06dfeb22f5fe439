# Copyright Red Hat
#
# fixturediff/_fixturediff.py - Fixture differ global definitions
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level fixturediff package.
"""
import logging
import os

_log = logging.getLogger("fixturediff")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Fixturediff debugging subsystem mask
FIXTUREDIFF_DEBUG_RULES = 1
FIXTUREDIFF_DEBUG_TREEWALK = 2
FIXTUREDIFF_DEBUG_ENGINE = 4
FIXTUREDIFF_DEBUG_COMMAND = 8
FIXTUREDIFF_DEBUG_ALL = (
    FIXTUREDIFF_DEBUG_RULES
    | FIXTUREDIFF_DEBUG_TREEWALK
    | FIXTUREDIFF_DEBUG_ENGINE
    | FIXTUREDIFF_DEBUG_COMMAND
)

# Fixturediff debugging subsystem names
FIXTUREDIFF_SUBSYSTEM_RULES = "fixturediff.rules"
FIXTUREDIFF_SUBSYSTEM_TREEWALK = "fixturediff.treewalk"
FIXTUREDIFF_SUBSYSTEM_ENGINE = "fixturediff.engine"
FIXTUREDIFF_SUBSYSTEM_COMMAND = "fixturediff.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    FIXTUREDIFF_DEBUG_RULES: FIXTUREDIFF_SUBSYSTEM_RULES,
    FIXTUREDIFF_DEBUG_TREEWALK: FIXTUREDIFF_SUBSYSTEM_TREEWALK,
    FIXTUREDIFF_DEBUG_ENGINE: FIXTUREDIFF_SUBSYSTEM_ENGINE,
    FIXTUREDIFF_DEBUG_COMMAND: FIXTUREDIFF_SUBSYSTEM_COMMAND,
}

_debug_subsystems = set()

#: Default name of the comparison rule file at the root of the baseline tree
DEFAULT_RULES_FILE = ".ignorecontent"

#: Environment variable used by callers to request fixture regeneration
UPDATE_FIXTURES_ENV = "UPDATE_FIXTURES"

_TRUE_VALUES = ("1", "true", "yes", "on")


def update_requested(environ=None) -> bool:
    """
    Return ``True`` if the ``UPDATE_FIXTURES`` environment toggle is set to a
    true value.

    :param environ: An optional mapping to consult instead of ``os.environ``.
    :type environ: ``Optional[Mapping[str, str]]``
    :returns: ``True`` if fixture regeneration was requested.
    :rtype: ``bool``
    """
    if environ is None:
        environ = os.environ
    value = environ.get(UPDATE_FIXTURES_ENV, "")
    return value.strip().lower() in _TRUE_VALUES


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        # Always pass non-DEBUG messages.
        if record.levelno != logging.DEBUG:
            return True

        # Always pass DEBUG messages that aren't for a specific subsystem.
        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``fixturediff`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    fixturediff_log = logging.getLogger("fixturediff")

    for handler in fixturediff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``fixturediff`` package.

    :param mask: the logical OR of the ``FIXTUREDIFF_DEBUG_*``
                 values to log.
    :type mask: ``int``
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > FIXTUREDIFF_DEBUG_ALL:
        raise ValueError(f"Invalid fixturediff debug mask: {mask}")

    enabled_subsystems = []
    for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items():
        if mask & flag:
            enabled_subsystems.append(subsystem_name)

    fixturediff_log = logging.getLogger("fixturediff")
    for handler in fixturediff_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


#
# Fixturediff exception types
#


class FixturediffError(Exception):
    """
    Base class for fixture differ errors.
    """


class FixturediffConfigError(FixturediffError):
    """
    The comparison configuration (rule file) could not be loaded.
    """


class FixturediffIOError(FixturediffError):
    """
    A tree entry could not be listed, read or written.
    """


class FixturediffParseError(FixturediffError):
    """
    An error parsing a manifest or other structured input.
    """


class FixturediffArgumentError(FixturediffError):
    """
    An invalid argument was passed to a fixturediff API call.
    """


class FixturediffMismatch(AssertionError):
    """
    The compared trees are not equal under the active rules.

    This is the verdict of a comparison rather than a fault, so it derives
    from ``AssertionError`` and not from ``FixturediffError``: test runners
    report it as a failure while configuration and I/O problems surface as
    errors.
    """

    def __init__(self, diff, report: str):
        """
        Initialise a new ``FixturediffMismatch`` exception.

        :param diff: The ``DiffResult`` that caused the failure.
        :type diff: ``DiffResult``
        :param report: The human readable difference report.
        :type report: ``str``
        """
        self.diff = diff
        self.report = report
        super().__init__(report)


__all__ = [
    "DEFAULT_RULES_FILE",
    "UPDATE_FIXTURES_ENV",
    "FIXTUREDIFF_DEBUG_RULES",
    "FIXTUREDIFF_DEBUG_TREEWALK",
    "FIXTUREDIFF_DEBUG_ENGINE",
    "FIXTUREDIFF_DEBUG_COMMAND",
    "FIXTUREDIFF_DEBUG_ALL",
    "FIXTUREDIFF_SUBSYSTEM_RULES",
    "FIXTUREDIFF_SUBSYSTEM_TREEWALK",
    "FIXTUREDIFF_SUBSYSTEM_ENGINE",
    "FIXTUREDIFF_SUBSYSTEM_COMMAND",
    "SubsystemFilter",
    "get_debug_mask",
    "set_debug_mask",
    "update_requested",
    "FixturediffError",
    "FixturediffConfigError",
    "FixturediffIOError",
    "FixturediffParseError",
    "FixturediffArgumentError",
    "FixturediffMismatch",
]
