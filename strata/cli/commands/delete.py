##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
CLI module for deleting an entity.
"""

import logging
from argparse import ArgumentParser, Namespace

from strata.cli.commands.command_entry_point import CommandEntryPoint
from strata.cli.utils import add_collection_arguments, build_repository


LOG = logging.getLogger(__name__)


class DeleteCommand(CommandEntryPoint):
    """
    Handles the `delete` CLI command for removing an entity.

    Methods:
        add_arguments: Adds the collection arguments.
        process_command: Removes the entity. Deleting an absent id is not an error.
    """

    name = "delete"
    help_text = "Delete an entity from a collection."

    def add_arguments(self, parser: ArgumentParser):
        add_collection_arguments(parser)

    def process_command(self, args: Namespace):
        """
        CLI command to delete an entity.

        Args:
            args: Parsed CLI arguments.
        """
        with build_repository(args) as repository:
            repository.delete(args.id)
        LOG.info(f"Deleted id '{args.id}' from collection '{args.collection}'.")
