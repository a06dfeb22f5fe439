# Copyright Red Hat
#
# fixturediff/fsdiff/report.py - Fixture differ verdict reporting
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Verdict reporting and baseline tree updates.
"""
from typing import List, Tuple
import logging
import shutil
import stat
import os

from fixturediff import (
    FIXTUREDIFF_SUBSYSTEM_ENGINE,
    FixturediffIOError,
    FixturediffMismatch,
)

from .engine import DiffResult
from .treewalk import ClassifiedTree

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_engine(msg, *args, **kwargs):
    """A wrapper for engine subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": FIXTUREDIFF_SUBSYSTEM_ENGINE}, **kwargs)


#: Report section headings
ONLY_IN_DIR1 = "Files only in dir1:"
ONLY_IN_DIR2 = "Files only in dir2:"
DIFFER_IN_CONTENT = "Files that differ in content:"

_INDENT = 2 * " "


def format_report(diff: DiffResult) -> str:
    """
    Render ``diff`` as a human readable report.

    Each non-empty set of paths is rendered as a labelled section listing its
    paths in sorted order.

    :param diff: The differences to report.
    :type diff: ``DiffResult``
    :returns: The formatted report, or the empty string for an empty diff.
    :rtype: ``str``
    """
    sections: List[Tuple[str, Tuple[str, ...]]] = [
        (ONLY_IN_DIR1, diff.only_in_a),
        (ONLY_IN_DIR2, diff.only_in_b),
        (DIFFER_IN_CONTENT, diff.differing),
    ]
    return "\n\n".join(
        heading + "\n" + "\n".join(f"{_INDENT}{path}" for path in paths)
        for heading, paths in sections
        if paths
    )


def _full_path(root: str, rel_path: str) -> str:
    return os.path.join(root, *rel_path.rstrip("/").split("/"))


def _detach(root_a: str, rel_path: str):
    """
    Replace symbolic links to directories on the way to ``rel_path`` with
    real directories so that updates never write outside ``root_a``.

    The content of a replaced link is not carried over: entries below it are
    mirrored from the actual tree afterwards.
    """
    path = root_a
    for part in rel_path.rstrip("/").split("/"):
        if not part:
            return
        path = os.path.join(path, part)
        if os.path.islink(path) and os.path.isdir(path):
            _log_warn("Replacing baseline directory link '%s'", path)
            os.unlink(path)
            os.mkdir(path)
        elif not os.path.isdir(path):
            return


def _remove_stale(root_a: str, only_in_a: Tuple[str, ...]):
    """
    Remove compared entries that exist only in the baseline tree.

    Files are removed first. Directories are then removed deepest first and
    only when empty, so content that takes no part in the comparison is
    preserved.
    """
    dirs = [path for path in only_in_a if path.endswith("/")]
    files = [path for path in only_in_a if not path.endswith("/")]

    for rel_path in files:
        _detach(root_a, os.path.dirname(rel_path))
        file_path = _full_path(root_a, rel_path)
        if not os.path.lexists(file_path):
            continue
        _log_debug_engine("Removing '%s' from baseline", rel_path)
        os.unlink(file_path)

    for rel_path in sorted(dirs, key=lambda p: p.count("/"), reverse=True):
        _detach(root_a, os.path.dirname(rel_path.rstrip("/")))
        dir_path = _full_path(root_a, rel_path)
        if os.path.islink(dir_path):
            os.unlink(dir_path)
        elif not os.path.isdir(dir_path):
            continue
        elif not os.listdir(dir_path):
            _log_debug_engine("Removing directory '%s' from baseline", rel_path)
            os.rmdir(dir_path)
        else:
            _log_warn("Keeping non-empty baseline directory '%s'", rel_path)


def _mirror(root_a: str, root_b: str, tree_b: ClassifiedTree, follow_symlinks: bool):
    """
    Copy every entry of ``tree_b`` from ``root_b`` into ``root_a``.

    FIFOs, sockets and device nodes are recreated with ``os.mknod()`` rather
    than copied. Recreating device nodes requires ``CAP_MKNOD``.
    """
    for rel_path, entry in tree_b.items():
        dest = _full_path(root_a, rel_path)
        _detach(root_a, rel_path if entry.is_dir else os.path.dirname(rel_path))
        if entry.is_dir:
            os.makedirs(dest, exist_ok=True)
            continue
        os.makedirs(os.path.dirname(dest), exist_ok=True)

        src = _full_path(root_b, rel_path)
        src_stat = os.stat(src, follow_symlinks=follow_symlinks)
        src_mode = src_stat.st_mode
        special = not (stat.S_ISREG(src_mode) or stat.S_ISLNK(src_mode))

        # Links and special files are replaced, never written through.
        if os.path.lexists(dest):
            dest_mode = os.lstat(dest).st_mode
            replace = special or not stat.S_ISREG(dest_mode)
            if replace and not stat.S_ISDIR(dest_mode):
                os.unlink(dest)

        if special:
            _log_debug_engine("Recreating special file '%s' in baseline", rel_path)
            os.mknod(dest, src_mode, src_stat.st_rdev)
        else:
            _log_debug_engine("Updating '%s' in baseline", rel_path)
            shutil.copyfile(src, dest, follow_symlinks=follow_symlinks)


def report_or_update(
    root_a: str,
    root_b: str,
    diff: DiffResult,
    tree_b: ClassifiedTree,
    update: bool = False,
    follow_symlinks: bool = True,
):
    """
    Turn a comparison into a verdict, or update the baseline tree.

    In update mode every entry of ``tree_b`` is mirrored from ``root_b`` into
    ``root_a`` and compared entries found only in ``root_a`` are removed;
    entries that took no part in the comparison are left untouched. Update
    mode never raises a comparison failure.

    :param root_a: The baseline tree root.
    :type root_a: ``str``
    :param root_b: The actual tree root.
    :type root_b: ``str``
    :param diff: The differences between the trees.
    :type diff: ``DiffResult``
    :param tree_b: The classified actual tree.
    :type tree_b: ``ClassifiedTree``
    :param update: Update the baseline rather than reporting differences.
    :type update: ``bool``
    :param follow_symlinks: Copy symbolic link targets rather than links.
    :type follow_symlinks: ``bool``
    :raises FixturediffMismatch: If ``diff`` is not empty and ``update`` is
                                 ``False``.
    :raises FixturediffIOError: If the baseline tree could not be updated.
    """
    if update:
        _log_info(
            "Updating baseline %s from %s (%d differences)", root_a, root_b, len(diff)
        )
        try:
            _remove_stale(root_a, diff.only_in_a)
            _mirror(root_a, root_b, tree_b, follow_symlinks)
        except OSError as err:
            raise FixturediffIOError(
                f"Failed to update baseline '{root_a}': {err}"
            ) from err
        return

    if not diff:
        return

    report = format_report(diff)
    _log_debug_engine("Trees differ:\n%s", report)
    raise FixturediffMismatch(diff, report)
