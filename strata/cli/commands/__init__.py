##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Strata CLI Commands Package.

Modules:
    command_entry_point: Defines the abstract base class `CommandEntryPoint` for all CLI commands.
    config: Implements the `config` command for displaying the resolved configuration.
    delete: Implements the `delete` command for removing an entity.
    get: Implements the `get` command for printing the raw value of an entity.
    ids: Implements the `ids` command for listing the ids of a collection.
    ttl: Implements the `ttl` command for printing the time to live of an entity.
"""

from strata.cli.commands.config import ConfigCommand
from strata.cli.commands.delete import DeleteCommand
from strata.cli.commands.get import GetCommand
from strata.cli.commands.ids import IdsCommand
from strata.cli.commands.ttl import TtlCommand


# Keep these in alphabetical order
ALL_COMMANDS = [
    ConfigCommand(),
    DeleteCommand(),
    GetCommand(),
    IdsCommand(),
    TtlCommand(),
]
