##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Tests for the `delete.py` file of the `cli/commands/` folder.
"""

from argparse import Namespace

from strata.cli.commands.delete import DeleteCommand
from tests.fixture_types import FixtureCallable


def test_delete_parser_sets_func(create_parser: FixtureCallable):
    """
    Ensure the `delete` command sets the correct default function.

    Args:
        create_parser: A helper creating a parser for a command.
    """
    command = DeleteCommand()
    args = create_parser(command).parse_args(["delete", "orders", "42"])
    assert args.func.__name__ == command.process_command.__name__


def test_delete_process_command(mock_build_repository: FixtureCallable, collection_args: Namespace):
    """
    Ensure the entity is deleted unconditionally.

    Args:
        mock_build_repository: A helper patching `build_repository`.
        collection_args: Parsed arguments naming entity 42 of "orders".
    """
    repository = mock_build_repository("delete")

    DeleteCommand().process_command(collection_args)

    repository.delete.assert_called_once_with("42")
    repository.__exit__.assert_called_once()
