##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Main entry point into Strata's command line interface.
"""

import logging
import sys
import traceback

from redis.exceptions import RedisError

from strata.cli.argparse_main import build_main_parser
from strata.log_formatter import setup_logging


LOG = logging.getLogger("strata")


def main():
    """
    Entry point for the Strata command-line interface (CLI) operations.

    Parses the arguments, configures the `strata` logger, and runs the
    selected command. Any error escaping the command is logged and turned
    into exit code 1.

    Returns:
        1 when no command was given. Otherwise the process exits.
    """
    parser = build_main_parser()
    if len(sys.argv) == 1:
        parser.print_help(sys.stdout)
        return 1
    args = parser.parse_args()

    setup_logging(logger=LOG, log_level=args.level, colors=not args.no_color)

    try:
        args.func(args)
    except RedisError as excpt:
        LOG.debug(traceback.format_exc())
        LOG.error(f"Redis error while running `{args.subparsers}`: {excpt}")
        sys.exit(1)
    except Exception as excpt:  # pylint: disable=broad-except
        LOG.debug(traceback.format_exc())
        LOG.error(str(excpt))
        sys.exit(1)

    sys.exit()


if __name__ == "__main__":
    main()
