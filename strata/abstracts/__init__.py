##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
The `abstracts` package provides ABC classes that can be used throughout
Strata's codebase.

Modules:
    factory: Contains `StrataBaseFactory`, used to manage pluggable components in Strata.
"""

from strata.abstracts.factory import StrataBaseFactory


__all__ = ["StrataBaseFactory"]
