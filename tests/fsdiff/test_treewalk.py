# Copyright Red Hat
#
# tests/fsdiff/test_treewalk.py - TreeWalker tests.
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import os

from fixturediff import FixturediffIOError
from fixturediff.fsdiff.options import DiffOptions
from fixturediff.fsdiff.rules import Classification, RuleSet, parse_rule_lines
from fixturediff.fsdiff.treewalk import (
    CONTENT_IGNORED,
    ClassifiedEntry,
    EntryInfo,
    EntryKind,
    TreeWalker,
)
from fixturediff.testing import create_file_tree

from ._util import TreeTestCase, make_entry, sha256


class TestClassifiedEntry(unittest.TestCase):
    def test_ClassifiedEntry(self):
        entry = make_entry("a/b.txt", content="hello")
        self.assertEqual(entry.path, "a/b.txt")
        self.assertEqual(entry.kind, EntryKind.FILE)
        self.assertEqual(entry.digest, sha256("hello"))
        self.assertEqual(entry.classification, Classification.COMPARE)
        self.assertFalse(entry.is_dir)
        self.assertFalse(entry.content_ignored)

    def test_ClassifiedEntry_directory(self):
        entry = make_entry("a/")
        self.assertTrue(entry.is_dir)
        self.assertTrue(entry.content_ignored)
        self.assertEqual(entry.digest, CONTENT_IGNORED)

    def test_ClassifiedEntry_eq(self):
        self.assertEqual(make_entry("a", "x"), make_entry("a", "x"))
        self.assertNotEqual(make_entry("a", "x"), make_entry("a", "y"))
        self.assertNotEqual(
            make_entry("a", "x"),
            make_entry("a", "x", classification=Classification.INCLUDED),
        )
        self.assertEqual(len({make_entry("a", "x"), make_entry("a", "x")}), 1)

    def test_ClassifiedEntry_to_dict(self):
        entry = ClassifiedEntry("f", EntryKind.FILE, "abc", Classification.INCLUDED)
        self.assertEqual(
            entry.to_dict(),
            {
                "path": "f",
                "kind": "file",
                "digest": "abc",
                "classification": "included",
            },
        )

    def test_ClassifiedEntry_str(self):
        entry = ClassifiedEntry("f", EntryKind.FILE, "abc")
        self.assertEqual(str(entry), "f [compare] abc")

    def test_EntryInfo(self):
        info = EntryInfo("a/b/c.json", "/tmp/x/a/b/c.json")
        self.assertEqual(info.name, "c.json")
        self.assertIsNone(info.file_type_info)


class TestTreeWalkerInit(unittest.TestCase):
    def test_TreeWalker(self):
        walker = TreeWalker()
        self.assertEqual(walker.hash_algorithm, "sha256")
        self.assertIsInstance(walker.options, DiffOptions)

    def test_TreeWalker_hash_algorithm(self):
        walker = TreeWalker(DiffOptions(hash_algorithm="md5"))
        self.assertEqual(walker.hash_algorithm, "md5")
        self.assertEqual(len(walker._calculate_content_hash(b"x")), 32)

    def test_TreeWalker_bad_hash_algorithm(self):
        with self.assertRaises(ValueError):
            TreeWalker(DiffOptions(hash_algorithm="crc32"))


class TestTreeWalkerWalk(TreeTestCase):
    def _walk(self, root, rules=(), normalize=None, options=None):
        walker = TreeWalker(options)
        return walker.walk(root, parse_rule_lines(rules), normalize)

    def test_walk_plain_tree(self):
        create_file_tree(
            self.dir_a, {"a.txt": "A", "sub": {"b.txt": "B", "deeper": {}}}
        )
        tree = self._walk(self.dir_a)
        self.assertEqual(
            list(tree.keys()), ["a.txt", "sub/", "sub/b.txt", "sub/deeper/"]
        )
        self.assertEqual(tree["a.txt"].digest, sha256("A"))
        self.assertEqual(tree["sub/b.txt"].digest, sha256("B"))
        self.assertTrue(tree["sub/"].is_dir)
        self.assertEqual(tree["sub/"].digest, CONTENT_IGNORED)

    def test_walk_omits_rule_file_at_root_only(self):
        create_file_tree(
            self.dir_a, {".ignorecontent": "*.log\n", "sub": {".ignorecontent": "x"}}
        )
        tree = self._walk(self.dir_a)
        self.assertEqual(list(tree.keys()), ["sub/", "sub/.ignorecontent"])

    def test_walk_omits_custom_rule_file(self):
        create_file_tree(self.dir_a, {"rules.txt": "", ".ignorecontent": ""})
        tree = self._walk(self.dir_a, options=DiffOptions(rules_file="rules.txt"))
        self.assertEqual(list(tree.keys()), [".ignorecontent"])

    def test_walk_global_excludes_subtree(self):
        create_file_tree(
            self.dir_a,
            {
                "app.log": "x",
                "node_modules": {"pkg": {"index.js": "x"}},
                "src": {"node_modules": {"a": "b"}, "main.c": "int main;"},
            },
        )
        tree = self._walk(self.dir_a, ["*.log", "node_modules", "!node_modules/pkg/"])
        self.assertEqual(list(tree.keys()), ["src/", "src/main.c"])

    def test_walk_skip_directory(self):
        create_file_tree(
            self.dir_a, {"build": {"out.o": "x", "sub": {"y": "y"}}, "keep": "k"}
        )
        tree = self._walk(self.dir_a, ["build/"])
        self.assertEqual(list(tree.keys()), ["keep"])

    def test_walk_include_rescues_skipped_child(self):
        create_file_tree(self.dir_a, {"build": {"out.o": "x", "keep.txt": "k"}})
        tree = self._walk(self.dir_a, ["build/", "!build/keep.txt"])
        self.assertEqual(list(tree.keys()), ["build/keep.txt"])
        self.assertEqual(tree["build/keep.txt"].classification, Classification.INCLUDED)
        self.assertEqual(tree["build/keep.txt"].digest, sha256("k"))

    def test_walk_content_ignore(self):
        create_file_tree(self.dir_a, {"vendor": {"lib.php": "<?php"}})
        tree = self._walk(self.dir_a, ["^vendor/"])
        self.assertEqual(list(tree.keys()), ["vendor/", "vendor/lib.php"])
        self.assertEqual(tree["vendor/lib.php"].digest, CONTENT_IGNORED)
        self.assertEqual(
            tree["vendor/lib.php"].classification, Classification.CONTENT_IGNORE
        )

    def test_walk_normalize(self):
        create_file_tree(self.dir_a, {"a.txt": "one\r\ntwo\r\n"})
        seen = []

        def normalize(content, entry_info):
            seen.append(entry_info)
            return content.replace(b"\r\n", b"\n")

        tree = self._walk(self.dir_a, normalize=normalize)
        self.assertEqual(tree["a.txt"].digest, sha256("one\ntwo\n"))
        self.assertEqual(len(seen), 1)
        self.assertEqual(seen[0].path, "a.txt")
        self.assertEqual(seen[0].full_path, os.path.join(self.dir_a, "a.txt"))
        self.assertTrue(seen[0].file_type_info.is_text_like)

    def test_walk_normalize_not_called_for_content_ignored(self):
        create_file_tree(self.dir_a, {"a.bin": "x"})

        def normalize(_content, _entry_info):
            raise AssertionError("normalizer called")

        tree = self._walk(self.dir_a, ["^a.bin"], normalize=normalize)
        self.assertEqual(tree["a.bin"].digest, CONTENT_IGNORED)

    def test_walk_idempotent(self):
        create_file_tree(self.dir_a, {"a": "1", "b": {"c": "2"}})
        self.assertEqual(self._walk(self.dir_a), self._walk(self.dir_a))

    def test_walk_missing_root(self):
        with self.assertRaises(FixturediffIOError):
            self._walk(os.path.join(self.dir_a, "missing"))

    def test_walk_root_not_directory(self):
        create_file_tree(self.dir_a, {"file": "x"})
        with self.assertRaises(FixturediffIOError):
            self._walk(os.path.join(self.dir_a, "file"))

    def test_walk_symlink_followed(self):
        create_file_tree(self.dir_a, {"target.txt": "T", "dir": {"f": "F"}})
        os.symlink("target.txt", os.path.join(self.dir_a, "link.txt"))
        os.symlink("dir", os.path.join(self.dir_a, "linkdir"))
        tree = self._walk(self.dir_a)
        self.assertEqual(tree["link.txt"].digest, sha256("T"))
        self.assertTrue(tree["linkdir/"].is_dir)
        self.assertEqual(tree["linkdir/f"].digest, sha256("F"))

    def test_walk_symlink_not_followed(self):
        create_file_tree(self.dir_a, {"target.txt": "T"})
        os.symlink("target.txt", os.path.join(self.dir_a, "link.txt"))
        tree = self._walk(self.dir_a, options=DiffOptions(follow_symlinks=False))
        self.assertEqual(tree["link.txt"].digest, sha256("target.txt"))
        self.assertFalse(tree["link.txt"].is_dir)

    def test_walk_dangling_symlink(self):
        os.symlink("nowhere", os.path.join(self.dir_a, "dangling"))
        with self.assertRaises(FixturediffIOError) as cm:
            self._walk(self.dir_a)
        self.assertIn("Dangling", str(cm.exception))

    def test_walk_dangling_symlink_not_followed(self):
        os.symlink("nowhere", os.path.join(self.dir_a, "dangling"))
        tree = self._walk(self.dir_a, options=DiffOptions(follow_symlinks=False))
        self.assertEqual(tree["dangling"].digest, sha256("nowhere"))

    def test_walk_symlink_cycle(self):
        create_file_tree(self.dir_a, {"sub": {"f": "x"}})
        os.symlink("..", os.path.join(self.dir_a, "sub", "up"))
        with self.assertLogs("fixturediff.fsdiff.treewalk", level="WARNING"):
            tree = self._walk(self.dir_a)
        self.assertEqual(list(tree.keys()), ["sub/", "sub/f", "sub/up/"])

    def test_walk_fifo_content_ignored(self):
        os.mkfifo(os.path.join(self.dir_a, "pipe"))
        tree = self._walk(self.dir_a)
        self.assertEqual(tree["pipe"].digest, CONTENT_IGNORED)

    @unittest.skipIf(os.geteuid() == 0, "root can read any file")
    def test_walk_unreadable_file(self):
        create_file_tree(self.dir_a, {"secret": "x"})
        os.chmod(os.path.join(self.dir_a, "secret"), 0)
        with self.assertRaises(FixturediffIOError):
            self._walk(self.dir_a)

    def test_walk_empty_ruleset_default(self):
        create_file_tree(self.dir_a, {"x": "y"})
        tree = TreeWalker().walk(self.dir_a, RuleSet())
        self.assertEqual(list(tree.keys()), ["x"])
