##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
This module stores constants representing file paths and environment
variables needed for Strata's configuration.
"""

import os


APP_FILENAME: str = "strata.yaml"
CONFIG_ENV_VAR: str = "STRATA_CONFIG"
USER_HOME: str = os.path.expanduser("~")
STRATA_HOME: str = os.path.join(USER_HOME, ".strata")
CONFIG_PATH_FILE: str = os.path.join(STRATA_HOME, "config_path.txt")
