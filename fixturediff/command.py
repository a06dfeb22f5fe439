# Copyright Red Hat
#
# fixturediff/command.py - Fixture differ command interface
#
# This file is part of the fixturediff project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``fixturediff.command`` module provides both the fixturediff command
line interface infrastructure, and a simple procedural interface to the
``fixturediff`` library modules.

The procedural interface is used by the ``fixturediff`` command line tool,
and may be used by application programs, or interactively in the Python
shell by users who do not require the full ``FixtureDiffer`` API.
"""
from argparse import ArgumentParser
from typing import List, Optional
from os.path import basename, join
from json import dumps
import logging
import sys

from fixturediff import (
    FIXTUREDIFF_DEBUG_RULES,
    FIXTUREDIFF_DEBUG_TREEWALK,
    FIXTUREDIFF_DEBUG_ENGINE,
    FIXTUREDIFF_DEBUG_COMMAND,
    FIXTUREDIFF_DEBUG_ALL,
    FIXTUREDIFF_SUBSYSTEM_COMMAND,
    FixturediffArgumentError,
    FixturediffMismatch,
    SubsystemFilter,
    set_debug_mask,
    update_requested,
    __version__,
)
from .fsdiff import (
    ClassifiedEntry,
    DiffOptions,
    DiffResult,
    FixtureDiffer,
    RuleSet,
    TreeWalker,
    parse_rules,
)
from .fsdiff.treewalk import _HASH_TYPES

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(
        msg, *args, extra={"subsystem": FIXTUREDIFF_SUBSYSTEM_COMMAND}, **kwargs
    )


_DEFAULT_LOG_LEVEL = logging.WARNING
_CONSOLE_HANDLER = None

#: Command names
COMPARE_CMD = "compare"
RULES_CMD = "rules"
CLASSIFY_CMD = "classify"


def compare_trees(
    tree_a: str,
    tree_b: str,
    options: Optional[DiffOptions] = None,
    update: bool = False,
) -> DiffResult:
    """
    Compare the baseline ``tree_a`` with ``tree_b``, or update ``tree_a``.

    :param tree_a: The baseline tree root.
    :param tree_b: The actual tree root.
    :param options: Comparison options.
    :param update: Update ``tree_a`` from ``tree_b`` instead of failing.
    :returns: The differences found.
    :raises FixturediffMismatch: If the trees differ and ``update`` is not
                                 set.
    """
    differ = FixtureDiffer(options)
    _log_debug_command("Comparing with options:\n%s", differ.options)
    return differ.compare(tree_a, tree_b, update=update)


def show_rules(root: str, options: Optional[DiffOptions] = None) -> RuleSet:
    """
    Load the comparison rules for the baseline tree at ``root``.

    :param root: The baseline tree root.
    :param options: Comparison options.
    :returns: The parsed rules.
    """
    options = options or DiffOptions()
    return parse_rules(join(root, options.rules_file))


def classify_tree(
    root: str, options: Optional[DiffOptions] = None
) -> List[ClassifiedEntry]:
    """
    Walk ``root`` using its own rule file and return the retained entries.

    :param root: The tree root.
    :param options: Comparison options.
    :returns: A list of classified entries sorted by path.
    """
    ruleset = show_rules(root, options)
    walker = TreeWalker(options)
    return list(walker.walk(root, ruleset).values())


def print_diff(diff: DiffResult, report: str = "", json=False, pretty=False):
    """
    Print a comparison result to stdout.

    :param diff: The comparison result to print.
    :param report: The formatted report for a failed comparison.
    :param json: Print the result as JSON.
    :param pretty: Indent JSON output.
    """
    if json:
        print(diff.json(pretty=pretty))
    elif report:
        print(report)


def _compare_cmd(cmd_args):
    """
    Compare command handler.

    Compare a baseline tree with an actual tree, or update the baseline.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    options = DiffOptions.from_cmd_args(cmd_args)
    update = cmd_args.update or update_requested()

    if cmd_args.pretty and not cmd_args.json:
        _log_error("Option --pretty only supported with --json")
        return 1

    try:
        diff = compare_trees(cmd_args.dir1, cmd_args.dir2, options, update=update)
    except FixturediffMismatch as mismatch:
        print_diff(
            mismatch.diff, mismatch.report, json=cmd_args.json, pretty=cmd_args.pretty
        )
        return 1

    if cmd_args.json:
        print_diff(diff, json=True, pretty=cmd_args.pretty)
    elif update and diff:
        print(f"Updated {cmd_args.dir1} ({len(diff)} differences)")
    return 0


def _rules_cmd(cmd_args):
    """
    Rules command handler.

    Print the parsed rule buckets for a baseline tree.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    options = DiffOptions.from_cmd_args(cmd_args)
    ruleset = show_rules(cmd_args.dir, options)
    if ruleset:
        print(ruleset)
    return 0


def _classify_cmd(cmd_args):
    """
    Classify command handler.

    Print each retained path of a tree with its classification and digest.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    options = DiffOptions.from_cmd_args(cmd_args)
    entries = classify_tree(cmd_args.dir, options)
    if cmd_args.json:
        print(
            dumps(
                [entry.to_dict() for entry in entries],
                indent=4 if cmd_args.pretty else None,
            )
        )
    else:
        for entry in entries:
            print(entry)
    return 0


def setup_logging(cmd_args):
    """
    Set up fixturediff logging.
    """
    # pylint: disable=global-statement
    global _CONSOLE_HANDLER
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    fixturediff_log = logging.getLogger("fixturediff")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    fixturediff_log.setLevel(level)
    if fixturediff_log.hasHandlers():
        fixturediff_log.handlers.clear()

    # Subsystem log filtering
    _fixturediff_subsystem_filter = SubsystemFilter("fixturediff")

    # Main console handler
    _CONSOLE_HANDLER = logging.StreamHandler()

    _CONSOLE_HANDLER.setLevel(level)
    _CONSOLE_HANDLER.setFormatter(formatter)
    _CONSOLE_HANDLER.addFilter(_fixturediff_subsystem_filter)

    fixturediff_log.addHandler(_CONSOLE_HANDLER)


def shutdown_logging():
    """
    Shut down fixturediff logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "rules": FIXTUREDIFF_DEBUG_RULES,
        "treewalk": FIXTUREDIFF_DEBUG_TREEWALK,
        "engine": FIXTUREDIFF_DEBUG_ENGINE,
        "command": FIXTUREDIFF_DEBUG_COMMAND,
        "all": FIXTUREDIFF_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise FixturediffArgumentError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_rules_file_arg(parser):
    parser.add_argument(
        "-r",
        "--rules-file",
        type=str,
        metavar="RULES_FILE",
        dest="rules_file",
        default=None,
        help="Name of the rule file at the root of the baseline tree",
    )


def _add_json_args(parser):
    """
    Add JSON output arguments.
    """
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output results in JSON notation",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Indent JSON output to be human readable",
    )


def _add_walk_args(parser):
    """
    Add tree walk arguments.
    """
    hash_types = sorted(_HASH_TYPES.keys())
    parser.add_argument(
        "-H",
        "--hash-algorithm",
        type=str,
        choices=hash_types,
        dest="hash_algorithm",
        default=None,
        help=f"Hash algorithm for content digests ({', '.join(hash_types)})",
    )
    parser.add_argument(
        "-L",
        "--no-follow-symlinks",
        dest="follow_symlinks",
        action="store_false",
        help="Compare symbolic links by their target path",
    )
    parser.add_argument(
        "-f",
        "--file-types",
        dest="use_magic_file_type",
        action="store_true",
        help="Generate file type information using libmagic",
    )


def _add_compare_subparser(cmd_subparser):
    """
    Add subparser for the 'compare' command.

    :param cmd_subparser: Command subparser
    """
    compare_parser = cmd_subparser.add_parser(
        COMPARE_CMD, help="Compare a baseline tree with an actual tree"
    )
    compare_parser.add_argument(
        "dir1",
        metavar="DIR1",
        type=str,
        help="The baseline (expected) tree",
    )
    compare_parser.add_argument(
        "dir2",
        metavar="DIR2",
        type=str,
        help="The actual tree",
    )
    _add_rules_file_arg(compare_parser)
    _add_walk_args(compare_parser)
    compare_parser.add_argument(
        "-u",
        "--update",
        action="store_true",
        help="Update DIR1 from DIR2 instead of reporting differences",
    )
    _add_json_args(compare_parser)
    compare_parser.set_defaults(func=_compare_cmd)


def _add_rules_subparser(cmd_subparser):
    """
    Add subparser for the 'rules' command.

    :param cmd_subparser: Command subparser
    """
    rules_parser = cmd_subparser.add_parser(
        RULES_CMD, help="Show the comparison rules of a baseline tree"
    )
    rules_parser.add_argument(
        "dir",
        metavar="DIR",
        type=str,
        help="The baseline tree",
    )
    _add_rules_file_arg(rules_parser)
    rules_parser.set_defaults(func=_rules_cmd)


def _add_classify_subparser(cmd_subparser):
    """
    Add subparser for the 'classify' command.

    :param cmd_subparser: Command subparser
    """
    classify_parser = cmd_subparser.add_parser(
        CLASSIFY_CMD, help="Show the classified entries of a tree"
    )
    classify_parser.add_argument(
        "dir",
        metavar="DIR",
        type=str,
        help="The tree to classify",
    )
    _add_rules_file_arg(classify_parser)
    _add_walk_args(classify_parser)
    _add_json_args(classify_parser)
    classify_parser.set_defaults(func=_classify_cmd)


def main(args):
    """
    Main entry point for fixturediff.
    """
    parser = ArgumentParser(
        description="Rule-driven directory tree comparison", prog=basename(args[0])
    )

    # Global arguments
    parser.add_argument(
        "-d",
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of fixturediff",
        version=__version__,
    )
    # Subparser for commands
    cmd_subparser = parser.add_subparsers(dest="command", help="Command")

    _add_compare_subparser(cmd_subparser)

    _add_rules_subparser(cmd_subparser)

    _add_classify_subparser(cmd_subparser)

    cmd_args = parser.parse_args(args[1:])

    status = 1

    try:
        set_debug(cmd_args.debug)
    except FixturediffArgumentError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    if "func" not in cmd_args:
        parser.print_help()
        shutdown_logging()
        return status

    if cmd_args.debug:
        status = cmd_args.func(cmd_args)
    else:
        try:
            status = cmd_args.func(cmd_args)
        # pylint: disable=broad-except
        except KeyboardInterrupt:  # pragma: no cover
            _log_info("Exiting on user cancel")
        except Exception as err:
            _log_error("Command failed: %s", err)

    shutdown_logging()
    return status


def run():
    """
    Console script entry point for fixturediff.
    """
    return main(sys.argv)


# vim: set et ts=4 sw=4 :
