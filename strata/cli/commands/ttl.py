##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
CLI module for printing how long an entity has left to live.
"""

import logging
from argparse import ArgumentParser, Namespace

from strata.cli.commands.command_entry_point import CommandEntryPoint
from strata.cli.utils import add_collection_arguments, build_repository


LOG = logging.getLogger(__name__)


class TtlCommand(CommandEntryPoint):
    """
    Handles the `ttl` CLI command.

    Methods:
        add_arguments: Adds the collection arguments.
        process_command: Prints the milliseconds left before the entity expires.
    """

    name = "ttl"
    help_text = "Print the milliseconds left before an entity expires (-1: never, -2: absent)."

    def add_arguments(self, parser: ArgumentParser):
        add_collection_arguments(parser)

    def process_command(self, args: Namespace):
        """
        CLI command to print the time to live of an entity.

        Args:
            args: Parsed CLI arguments.
        """
        with build_repository(args) as repository:
            milliseconds = repository.get_time_to_live_left(args.id)
        if milliseconds == -2:
            LOG.warning(f"Nothing is stored under id '{args.id}' in collection '{args.collection}'.")
        elif milliseconds == -1:
            LOG.info(f"Id '{args.id}' never expires.")
        print(milliseconds)
