##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
CLI module for listing the ids of a collection.

Listing ids scans the key space under the value and hash strategies, which is
slow on large collections and unavailable on a cluster.
"""

import logging
from argparse import ArgumentParser, Namespace

from strata.cli.commands.command_entry_point import CommandEntryPoint
from strata.cli.utils import add_collection_arguments, build_repository


LOG = logging.getLogger(__name__)


class IdsCommand(CommandEntryPoint):
    """
    Handles the `ids` CLI command for listing the ids of a collection.

    Methods:
        add_arguments: Adds the collection arguments.
        process_command: Prints every id of the collection, one per line.
    """

    name = "ids"
    help_text = "List the ids of a collection."

    def add_arguments(self, parser: ArgumentParser):
        add_collection_arguments(parser, with_id=False)

    def process_command(self, args: Namespace):
        """
        CLI command to print the ids of a collection.

        Args:
            args: Parsed CLI arguments.
        """
        with build_repository(args) as repository:
            entity_ids = repository.get_all_ids()
        if not entity_ids:
            LOG.info(f"Collection '{args.collection}' is empty.")
            return
        for entity_id in sorted(entity_ids):
            print(entity_id)
