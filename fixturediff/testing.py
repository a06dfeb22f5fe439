# Copyright Red Hat
#
# fixturediff/testing.py - Fixture differ unittest integration
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Test case helpers for comparing generated trees with baseline fixtures.

``FixtureAssertMixin`` adds fixture assertions to ``unittest.TestCase``
subclasses::

    class GeneratorTests(FixtureAssertMixin, unittest.TestCase):
        def test_generate(self):
            generate(self.workdir)
            self.assertDirectoriesEqual("tests/fixtures/generate", self.workdir)

Setting ``UPDATE_FIXTURES=1`` in the environment regenerates the baseline
fixtures from the actual trees instead of failing.
"""
from typing import Dict, List, Mapping, Optional, Union
import os

from fixturediff import update_requested

from .fsdiff import DiffOptions, DiffResult, Normalizer, compare_or_update
from .fsdiff.report import DIFFER_IN_CONTENT, ONLY_IN_DIR1, ONLY_IN_DIR2

#: A nested file tree description: names map to file content or to a nested
#: structure for directories.
FileTree = Mapping[str, Union[str, bytes, "FileTree"]]

_REPORT_SECTIONS = {
    ONLY_IN_DIR1: "dir1",
    ONLY_IN_DIR2: "dir2",
    DIFFER_IN_CONTENT: "content",
}


def create_file_tree(root: str, structure: FileTree):
    """
    Create the files and directories described by ``structure`` below
    ``root``.

    :param root: The directory to populate. Created if it does not exist.
    :type root: ``str``
    :param structure: A mapping of names to file content (``str`` or
                      ``bytes``) or to nested mappings for directories.
    :type structure: ``FileTree``
    """
    os.makedirs(root, exist_ok=True)
    for name, content in structure.items():
        path = os.path.join(root, name)
        if isinstance(content, Mapping):
            create_file_tree(path, content)
        elif isinstance(content, bytes):
            with open(path, "wb") as fp:
                fp.write(content)
        else:
            with open(path, "w", encoding="utf8") as fp:
                fp.write(content)


def parse_report(report: str) -> Dict[str, List[str]]:
    """
    Split a difference report into its sections.

    :param report: A report produced by ``format_report()``.
    :type report: ``str``
    :returns: A dictionary with ``"dir1"``, ``"dir2"`` and ``"content"``
              keys mapping to the paths listed in each section.
    :rtype: ``Dict[str, List[str]]``
    """
    sections: Dict[str, List[str]] = {key: [] for key in _REPORT_SECTIONS.values()}
    current = None
    for line in report.splitlines():
        if line in _REPORT_SECTIONS:
            current = _REPORT_SECTIONS[line]
        elif line.strip() and current is not None:
            sections[current].append(line.strip())
    return sections


class FixtureAssertMixin:
    """
    Fixture tree assertions for ``unittest.TestCase`` subclasses.
    """

    def assertDirectoriesEqual(
        self,
        expected: str,
        actual: str,
        normalize: Optional[Normalizer] = None,
        options: Optional[DiffOptions] = None,
        update: Optional[bool] = None,
    ) -> DiffResult:
        """
        Assert that the ``actual`` tree matches the baseline ``expected`` tree
        under the rules found in ``expected``.

        :param expected: The baseline fixture tree.
        :type expected: ``str``
        :param actual: The tree under test.
        :type actual: ``str``
        :param normalize: An optional content normalizer.
        :type normalize: ``Optional[Normalizer]``
        :param options: Comparison options.
        :type options: ``Optional[DiffOptions]``
        :param update: Regenerate ``expected`` from ``actual``. Defaults to
                       the ``UPDATE_FIXTURES`` environment toggle.
        :type update: ``Optional[bool]``
        :returns: The differences found.
        :rtype: ``DiffResult``
        :raises FixturediffMismatch: If the trees differ.
        """
        # pylint: disable=invalid-name
        if update is None:
            update = update_requested()
        return compare_or_update(
            expected, actual, normalize=normalize, update=update, options=options
        )

    def assertFileTree(self, root: str, structure: FileTree):
        """
        Assert that the files below ``root`` match ``structure``.

        Only the entries named in ``structure`` are checked.

        :param root: The directory to check.
        :type root: ``str``
        :param structure: The expected tree, as for ``create_file_tree()``.
        :type structure: ``FileTree``
        """
        # pylint: disable=invalid-name
        for name, content in structure.items():
            path = os.path.join(root, name)
            if isinstance(content, Mapping):
                self.assertTrue(os.path.isdir(path), f"=> Directory: {name}")
                self.assertFileTree(path, content)
                continue
            self.assertTrue(os.path.isfile(path), name)
            if isinstance(content, bytes):
                with open(path, "rb") as fp:
                    self.assertEqual(fp.read(), content, f"=> File: {name}")
            else:
                with open(path, "r", encoding="utf8") as fp:
                    self.assertEqual(fp.read(), content, f"=> File: {name}")
