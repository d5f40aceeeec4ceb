##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Defines the abstract base class for Strata CLI commands.

A command names itself, describes its own arguments, and implements
`process_command`; the base class creates the sub-parser and wires the
handler to it.
"""

from abc import ABC, abstractmethod
from argparse import ArgumentParser, Namespace


class CommandEntryPoint(ABC):
    """
    Abstract base class for a Strata CLI command entry point.

    Attributes:
        name (str): The sub-command typed on the command line.
        help_text (str): The one-line description shown by `strata --help`.

    Methods:
        add_parser: Adds the parser for this command to the main `ArgumentParser`.
        add_arguments: Declares the arguments of this command.
        process_command: Executes the logic for this CLI command.
    """

    name: str = None
    help_text: str = None

    def add_parser(self, subparsers: ArgumentParser) -> ArgumentParser:
        """
        Add the parser for this command to the main `ArgumentParser`.

        Args:
            subparsers: The subparsers object of the main parser.

        Returns:
            The parser created for this command.
        """
        if not self.name:
            raise NotImplementedError(f"{type(self).__name__} must define a command `name`.")
        parser: ArgumentParser = subparsers.add_parser(self.name, help=self.help_text)
        parser.set_defaults(func=self.process_command)
        self.add_arguments(parser)
        return parser

    def add_arguments(self, parser: ArgumentParser):
        """Declare the arguments of this command. Commands without arguments keep this no-op."""

    @abstractmethod
    def process_command(self, args: Namespace):
        """Execute the logic for this CLI command."""
        raise NotImplementedError("Subclasses of `CommandEntryPoint` must implement a `process_command` method.")
