##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Tests for the `command_entry_point.py` file of the `cli/` folder.
"""

from argparse import ArgumentParser, Namespace

import pytest

from strata.cli.commands import ALL_COMMANDS
from strata.cli.commands.command_entry_point import CommandEntryPoint


def test_command_entry_point_is_abstract():
    """
    Test that the base class cannot be instantiated directly.
    """
    with pytest.raises(TypeError):
        CommandEntryPoint()


def test_all_commands_are_entry_points():
    """
    Test that every registered command implements the entry point interface.
    """
    assert all(isinstance(command, CommandEntryPoint) for command in ALL_COMMANDS)
    names = [type(command).__name__ for command in ALL_COMMANDS]
    assert names == sorted(names)


class EchoCommand(CommandEntryPoint):
    name = "echo"
    help_text = "Echo a word."

    def add_arguments(self, parser: ArgumentParser):
        parser.add_argument("word")

    def process_command(self, args: Namespace):
        return args.word


class NamelessCommand(CommandEntryPoint):
    def process_command(self, args: Namespace):
        return None


def test_add_parser_wires_the_command():
    """
    Test that the base class creates the sub-parser, adds the arguments, and sets the handler.
    """
    parser = ArgumentParser()
    subparsers = parser.add_subparsers(dest="command")
    command = EchoCommand()

    sub_parser = command.add_parser(subparsers)
    args = parser.parse_args(["echo", "hello"])

    assert isinstance(sub_parser, ArgumentParser)
    assert args.command == "echo"
    assert args.func(args) == "hello"


def test_command_without_a_name():
    """
    Test that a command has to name itself before it can be added to the parser.
    """
    subparsers = ArgumentParser().add_subparsers()
    with pytest.raises(NotImplementedError, match="NamelessCommand must define a command `name`"):
        NamelessCommand().add_parser(subparsers)


def test_command_names_are_unique():
    """
    Test that no two registered commands share a name.
    """
    names = [command.name for command in ALL_COMMANDS]
    assert len(names) == len(set(names))
