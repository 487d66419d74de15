"""Argument parsing functionality for the oxc matrix harness."""

import argparse

from constants import Tools


def _add_tool_flags(parser):
    tool_group = parser.add_mutually_exclusive_group(required=True)
    tool_group.add_argument("--oxlint",
                            dest="TOOL",
                            help="Use oxlint-matrix.json",
                            action="store_const",
                            const=Tools.OXLINT.value)
    tool_group.add_argument("--oxfmt",
                            dest="TOOL",
                            help="Use oxfmt-matrix.json",
                            action="store_const",
                            const=Tools.OXFMT.value)
    parser.add_argument("--matrix",
                        dest="MATRIX_FILE",
                        help="Matrix file (default: <tool>-matrix.json)",
                        action="store",
                        type=str)
    parser.add_argument("--repos-dir",
                        dest="REPOS_DIR",
                        help="Directory holding the checkouts (default: repos)",
                        action="store",
                        type=str,
                        default="repos")


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="oxc-matrix",
        description="Run oxlint/oxfmt against a matrix of real-world repositories",
        add_help=True,
    )
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    subparsers = parser.add_subparsers(dest="action", required=True)

    install = subparsers.add_parser(
        "install-plugins",
        help="Install the oxlint jsPlugins a matrix command needs",
    )
    install.add_argument("--command",
                         dest="COMMAND",
                         help="Matrix command (default: $MATRIX_COMMAND)",
                         action="store",
                         type=str)
    install.add_argument("--cwd",
                         dest="CWD",
                         help="Checkout directory (default: current directory)",
                         action="store",
                         type=str,
                         default=".")
    install.add_argument("--dry-run",
                         dest="DRY_RUN",
                         help="Print the npm command instead of running it",
                         action="store_true")

    artifact = subparsers.add_parser(
        "install-artifact",
        help="Copy a prebuilt oxlint into node_modules",
    )
    artifact.add_argument("--cwd",
                          dest="CWD",
                          help="Checkout directory (default: current directory)",
                          action="store",
                          type=str,
                          default=".")

    clone = subparsers.add_parser("clone", help="Shallow-clone every matrix repository")
    _add_tool_flags(clone)

    test = subparsers.add_parser("test", help="Run a binary against every matrix repository")
    _add_tool_flags(test)
    test.add_argument("BINARY",
                      help="Path to the oxlint/oxfmt binary")
    test.add_argument("EXTRA_ARGS",
                      help="Extra arguments appended to every command",
                      nargs=argparse.REMAINDER)

    return parser.parse_args(argv)
