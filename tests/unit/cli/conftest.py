##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Fixtures for files in this `cli/` test directory.
"""

from argparse import ArgumentParser, Namespace

import pytest
from pytest_mock import MockerFixture

from strata.cli.commands.command_entry_point import CommandEntryPoint
from tests.fixture_types import FixtureCallable


@pytest.fixture
def create_parser() -> FixtureCallable:
    """
    A fixture to help create a parser for any command.

    Returns:
        A function that creates a parser.
    """

    def _create_parser(cmd: CommandEntryPoint) -> ArgumentParser:
        """
        Returns an `ArgumentParser` configured with the `cmd` command.

        Returns:
            Parser with the `cmd` command registered.
        """
        parser = ArgumentParser()
        subparsers = parser.add_subparsers(dest="main_command")
        cmd.add_parser(subparsers)
        return parser

    return _create_parser


@pytest.fixture
def collection_args() -> Namespace:
    """
    Parsed arguments naming entity 42 of the "orders" collection.

    Returns:
        A namespace like the one produced by the collection commands.
    """
    return Namespace(collection="orders", id="42", strategy="value", config=None)


@pytest.fixture
def mock_build_repository(mocker: MockerFixture) -> FixtureCallable:
    """
    Provide a helper patching `build_repository` in a command module.

    Returns:
        A function taking the command module name and returning the mocked repository.
    """

    def _mock_build_repository(module: str):
        repository = mocker.MagicMock(name="repository")
        repository.__enter__.return_value = repository
        mocker.patch(f"strata.cli.commands.{module}.build_repository", return_value=repository)
        return repository

    return _mock_build_repository
