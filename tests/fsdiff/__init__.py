# Copyright Red Hat
#
# tests/fsdiff/__init__.py - Fixture differ fsdiff test package
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
