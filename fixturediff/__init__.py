# Copyright Red Hat
#
# fixturediff/__init__.py - Fixture differ package initialisation
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Fixturediff top-level package.
"""
from ._fixturediff import *  # noqa: F401, F403
from ._fixturediff import __all__  # noqa: F401

__version__ = "0.1.0"
