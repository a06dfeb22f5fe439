# Copyright Red Hat
#
# tests/test_normalize.py - Content normalizer tests
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
import unittest
import json

from fixturediff import FixturediffMismatch
from fixturediff.fsdiff import compare_or_update
from fixturediff.fsdiff.filetypes import FileTypeCategory, FileTypeInfo
from fixturediff.fsdiff.treewalk import EntryInfo
from fixturediff.normalize import chain, line_endings_normalizer, manifest_normalizer

from tests.fsdiff._util import TreeTestCase


def _info(path, category=FileTypeCategory.TEXT, mime_type="text/plain"):
    return EntryInfo(path, "/fixtures/" + path, FileTypeInfo(mime_type, "", category))


class TestManifestNormalizer(unittest.TestCase):
    def test_strips_key_paths(self):
        normalize = manifest_normalizer("composer.json", [("require-dev",), ("extra", "x")])
        content = json.dumps(
            {"name": "a/b", "require-dev": {"phpunit/phpunit": "^10"}, "extra": {"x": 1}}
        ).encode("utf8")
        result = normalize(content, _info("composer.json", FileTypeCategory.CONFIG))
        self.assertEqual(result, b'{\n    "name": "a/b"\n}')

    def test_strips_values(self):
        normalize = manifest_normalizer(
            "composer.json", [(("keywords",), "template")]
        )
        content = b'{"keywords": ["template", "php"]}'
        result = normalize(content, _info("sub/composer.json"))
        self.assertEqual(json.loads(result), {"keywords": ["php"]})

    def test_canonical_encoding(self):
        normalize = manifest_normalizer("composer.json", [])
        compact = normalize(b'{"a":1,"b":"c/d"}', _info("composer.json"))
        spaced = normalize(b'{ "a" : 1,\n "b" : "c\\/d" }', _info("composer.json"))
        self.assertEqual(compact, spaced)

    def test_other_files_unchanged(self):
        normalize = manifest_normalizer("composer.json", [("name",)])
        content = b'{"name": "x"}'
        self.assertIs(normalize(content, _info("package.json")), content)

    def test_undecodable_unchanged(self):
        normalize = manifest_normalizer("composer.json", [("name",)])
        content = b"{broken"
        self.assertIs(normalize(content, _info("composer.json")), content)


class TestLineEndingsNormalizer(unittest.TestCase):
    def test_text_like(self):
        self.assertEqual(
            line_endings_normalizer(b"a\r\nb\r\n", _info("a.txt")), b"a\nb\n"
        )

    def test_binary_unchanged(self):
        content = b"\x89PNG\r\n"
        info = _info("a.png", FileTypeCategory.IMAGE, "image/png")
        self.assertEqual(line_endings_normalizer(content, info), content)

    def test_no_file_type_unchanged(self):
        content = b"a\r\n"
        self.assertEqual(
            line_endings_normalizer(content, EntryInfo("a", "/fixtures/a")), content
        )


class TestChain(unittest.TestCase):
    def test_chain_order(self):
        calls = []

        def first(content, _info):
            calls.append("first")
            return content + b"1"

        def second(content, _info):
            calls.append("second")
            return content + b"2"

        self.assertEqual(chain(first, second)(b"x", _info("a")), b"x12")
        self.assertEqual(calls, ["first", "second"])

    def test_chain_empty(self):
        self.assertEqual(chain()(b"x", _info("a")), b"x")


class TestNormalizersInComparison(TreeTestCase):
    def test_manifest_and_line_endings(self):
        self.populate(
            {
                "composer.json": '{"name": "a/b", "version": "1.0"}',
                "README.txt": "hello\r\n",
            },
            {
                "composer.json": '{\n    "name": "a/b",\n    "version": "2.0"\n}',
                "README.txt": "hello\n",
            },
        )
        normalize = chain(
            manifest_normalizer("composer.json", [("version",)]),
            line_endings_normalizer,
        )
        self.assertFalse(compare_or_update(self.dir_a, self.dir_b, normalize=normalize))
        with self.assertRaises(FixturediffMismatch):
            compare_or_update(self.dir_a, self.dir_b)
