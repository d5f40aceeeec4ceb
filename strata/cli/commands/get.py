##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
CLI module for printing the raw value stored for an entity.
"""

import logging
from argparse import ArgumentParser, Namespace

from strata.cli.commands.command_entry_point import CommandEntryPoint
from strata.cli.utils import add_collection_arguments, build_repository, format_entity


LOG = logging.getLogger(__name__)


class GetCommand(CommandEntryPoint):
    """
    Handles the `get` CLI command for printing an entity as stored.

    Methods:
        add_arguments: Adds the collection arguments.
        process_command: Prints the stored value, or warns when nothing is stored.
    """

    name = "get"
    help_text = "Print the raw value stored for an entity."

    def add_arguments(self, parser: ArgumentParser):
        add_collection_arguments(parser)

    def process_command(self, args: Namespace):
        """
        CLI command to print an entity.

        Args:
            args: Parsed CLI arguments.
        """
        with build_repository(args) as repository:
            entity = repository.get(args.id)
        if entity is None:
            LOG.warning(f"Nothing is stored under id '{args.id}' in collection '{args.collection}'.")
            return
        print(format_entity(entity))
