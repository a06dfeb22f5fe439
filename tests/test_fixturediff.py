# Copyright Red Hat
#
# tests/test_fixturediff.py - fixturediff package unit tests
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import logging

import fixturediff
import fixturediff._fixturediff

log = logging.getLogger()


class FixturediffTestsSimple(unittest.TestCase):
    """Test fixturediff module"""

    def setUp(self):
        log.debug("Preparing %s", self._testMethodName)

    def tearDown(self):
        log.debug("Tearing down (%s)", self._testMethodName)
        fixturediff.set_debug_mask(0)

    def test_set_debug_mask(self):
        fixturediff.set_debug_mask(fixturediff.FIXTUREDIFF_DEBUG_ALL)
        self.assertEqual(fixturediff.get_debug_mask(), fixturediff.FIXTUREDIFF_DEBUG_ALL)

    def test_set_debug_mask_bad_mask(self):
        with self.assertRaises(ValueError):
            fixturediff.set_debug_mask(fixturediff.FIXTUREDIFF_DEBUG_ALL + 1)
        with self.assertRaises(ValueError):
            fixturediff.set_debug_mask(-1)

    def test_get_debug_mask(self):
        fixturediff.set_debug_mask(
            fixturediff.FIXTUREDIFF_DEBUG_RULES | fixturediff.FIXTUREDIFF_DEBUG_ENGINE
        )
        self.assertEqual(
            fixturediff.get_debug_mask(),
            fixturediff.FIXTUREDIFF_DEBUG_RULES | fixturediff.FIXTUREDIFF_DEBUG_ENGINE,
        )

    def test_SubsystemFilter(self):
        # Start with no subsystems enabled
        fixturediff.set_debug_mask(0)
        sf = fixturediff.SubsystemFilter("fixturediff")
        self.assertEqual(sf.enabled_subsystems, set())
        # Enable a couple and ensure new filters initialise from cache
        fixturediff.set_debug_mask(
            fixturediff.FIXTUREDIFF_DEBUG_COMMAND | fixturediff.FIXTUREDIFF_DEBUG_TREEWALK
        )
        sf2 = fixturediff.SubsystemFilter("fixturediff")
        self.assertIn(fixturediff.FIXTUREDIFF_SUBSYSTEM_COMMAND, sf2.enabled_subsystems)
        self.assertIn(fixturediff.FIXTUREDIFF_SUBSYSTEM_TREEWALK, sf2.enabled_subsystems)

    def test_SubsystemFilter_filter(self):
        sf = fixturediff.SubsystemFilter("fixturediff")
        sf.set_debug_subsystems([fixturediff.FIXTUREDIFF_SUBSYSTEM_RULES])

        def record(level, subsystem=None):
            rec = logging.LogRecord("fixturediff", level, __file__, 1, "msg", (), None)
            if subsystem:
                rec.subsystem = subsystem
            return rec

        self.assertTrue(sf.filter(record(logging.INFO, "fixturediff.engine")))
        self.assertTrue(sf.filter(record(logging.DEBUG)))
        self.assertTrue(sf.filter(record(logging.DEBUG, "fixturediff.rules")))
        self.assertFalse(sf.filter(record(logging.DEBUG, "fixturediff.engine")))

    def test_update_requested(self):
        for value in ("1", "true", "TRUE", "yes", "on", " on "):
            self.assertTrue(fixturediff.update_requested({"UPDATE_FIXTURES": value}))
        for value in ("", "0", "false", "no", "off", "maybe"):
            self.assertFalse(fixturediff.update_requested({"UPDATE_FIXTURES": value}))
        self.assertFalse(fixturediff.update_requested({}))

    def test_exception_hierarchy(self):
        for exc in (
            fixturediff.FixturediffConfigError,
            fixturediff.FixturediffIOError,
            fixturediff.FixturediffParseError,
            fixturediff.FixturediffArgumentError,
        ):
            self.assertTrue(issubclass(exc, fixturediff.FixturediffError))
        self.assertTrue(issubclass(fixturediff.FixturediffMismatch, AssertionError))
        self.assertFalse(
            issubclass(fixturediff.FixturediffMismatch, fixturediff.FixturediffError)
        )

    def test_mismatch_attributes(self):
        mismatch = fixturediff.FixturediffMismatch("diff", "report text")
        self.assertEqual(mismatch.diff, "diff")
        self.assertEqual(mismatch.report, "report text")
        self.assertEqual(str(mismatch), "report text")
