##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
The `cli` package contains the `strata` command line interface.

Modules:
    argparse_main: Builds the main argument parser.
    utils: Helpers shared by the command handlers.
    commands: One module per CLI command.
"""
