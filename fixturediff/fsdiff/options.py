# Copyright Red Hat
#
# fixturediff/fsdiff/options.py - Fixture differ comparison options
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Tree comparison options.
"""
from dataclasses import dataclass, fields
from typing import Dict, Union
from argparse import Namespace
import logging

from fixturediff import DEFAULT_RULES_FILE

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


@dataclass(frozen=True)
class DiffOptions:
    """
    Tree comparison options.
    """

    #: Name of the rule file located at the root of the baseline tree
    rules_file: str = DEFAULT_RULES_FILE
    #: Hash algorithm used to compute content digests
    hash_algorithm: str = "sha256"
    #: Follow symlinks when walking trees
    follow_symlinks: bool = True
    #: Generate file type information for normalizers using magic
    use_magic_file_type: bool = False

    def __str__(self):
        """
        Return a human readable string representation of this
        ``DiffOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """
        return "\n".join(f"{key}={val}" for key, val in self.__dict__.items())

    @classmethod
    def from_cmd_args(cls, cmd_args: Namespace) -> "DiffOptions":
        """
        Initialise DiffOptions from command line arguments.

        Construct a new ``DiffOptions`` object from the command line
        arguments in ``cmd_args``. Arguments that are absent or ``None``
        keep their default values.

        :param cmd_args: The command line selection arguments.
        :type cmd_args: ``Namespace``
        :returns: A new ``DiffOptions`` instance
        :rtype: ``DiffOptions``
        """
        field_names = {f.name for f in fields(cls)}
        kwargs: Dict[str, Union[bool, str]] = {
            name: getattr(cmd_args, name)
            for name in field_names
            if getattr(cmd_args, name, None) is not None
        }
        options = cls(**kwargs)
        _log_debug("Initialised DiffOptions from arguments: %s", repr(options))
        return options
