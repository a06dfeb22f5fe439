# Copyright Red Hat
#
# tests/__init__.py - Fixture differ test package
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
import logging

log = logging.getLogger()
log.setLevel(logging.DEBUG)
formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
file_handler = logging.FileHandler("test.log")
file_handler.setFormatter(formatter)
console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
log.addHandler(file_handler)
log.addHandler(console_handler)


class MockArgs(object):
    debug = None
    verbose = 0
    version = False
    json = False
    pretty = False
    update = False
    rules_file = None
    hash_algorithm = None
    follow_symlinks = True
    use_magic_file_type = False
