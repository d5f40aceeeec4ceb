##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
CLI module for displaying the resolved Strata configuration.

The password never appears in the output; the connection URL is printed with
it masked.
"""

import logging
from argparse import ArgumentParser, Namespace

from strata.cli.commands.command_entry_point import CommandEntryPoint
from strata.config.configfile import find_config_file, get_config
from strata.config.connection import get_connection_string


LOG = logging.getLogger(__name__)


class ConfigCommand(CommandEntryPoint):
    """
    Handles the `config` CLI command.

    Methods:
        add_arguments: Adds the `--config` option.
        process_command: Prints the configuration file in use and the resolved settings.
    """

    name = "config"
    help_text = "Display the resolved connection settings."

    def add_arguments(self, parser: ArgumentParser):
        parser.add_argument(
            "--config",
            type=str,
            default=None,
            help="The path to a strata.yaml file, or the directory holding it.",
        )

    def process_command(self, args: Namespace):
        """
        CLI command to print the configuration.

        Args:
            args: Parsed CLI arguments.
        """
        app_config = get_config(args.config)
        redis_settings = app_config.redis
        if getattr(redis_settings, "password", None):
            redis_settings.password = "******"

        print(f"config file: {find_config_file(args.config)}")
        print(f"connection: {get_connection_string(app_config, include_password=False)}")
        print(app_config)
