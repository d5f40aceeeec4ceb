##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Main CLI parser setup for the Strata command-line interface.
"""

import sys
from argparse import ArgumentParser, RawDescriptionHelpFormatter

from strata import VERSION
from strata.cli.commands import ALL_COMMANDS
from strata.log_formatter import LOG_LEVELS


DEFAULT_LOG_LEVEL = "INFO"

DESCRIPTION = "Inspect collections stored by Strata repositories in Redis."


class HelpParser(ArgumentParser):
    """
    This class overrides the error message of the argument parser to
    print the help message when an error happens.

    Methods:
        error: Override the error message of the `ArgumentParser` class.
    """

    def error(self, message: str):
        """
        Override the error message of the `ArgumentParser` class.

        Args:
            message: The error message to log.
        """
        sys.stderr.write(f"error: {message}\n")
        self.print_help()
        sys.exit(2)


def build_main_parser() -> ArgumentParser:
    """
    Set up the command-line argument parser for the Strata package.

    Returns:
        An `ArgumentParser` object with every command defined in Strata's CLI.
    """
    parser = HelpParser(
        prog="strata",
        description=DESCRIPTION,
        formatter_class=RawDescriptionHelpFormatter,
        epilog="See strata <command> --help for more info",
    )
    parser.add_argument("-v", "--version", action="version", version=VERSION)
    parser.add_argument(
        "-lvl",
        "--level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=DEFAULT_LOG_LEVEL,
        metavar="LEVEL",
        help=f"Set log level: {', '.join(LOG_LEVELS)} [Default: %(default)s]",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Print plain log lines without ANSI colors.",
    )
    subparsers = parser.add_subparsers(dest="subparsers", required=True)

    for command in ALL_COMMANDS:
        command.add_parser(subparsers)

    return parser
