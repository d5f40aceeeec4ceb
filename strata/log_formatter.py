##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Logging setup for the `strata` command line interface.

The library itself only creates loggers under the `strata` namespace and
never installs handlers; the CLI calls `setup_logging` once on the root
`strata` logger so messages from repositories and the cluster executor
reach the terminal.
"""

import logging
import sys

import coloredlogs

from strata.exceptions import InvalidArgumentError


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

LOG_FORMAT = "[%(asctime)s: %(levelname)s] %(message)s"

# At DEBUG the logger name shows which module emitted each record
DEBUG_LOG_FORMAT = "[%(asctime)s: %(levelname)s] [%(name)s:%(lineno)d] %(message)s"


def setup_logging(logger: logging.Logger, log_level: str = "INFO", colors: bool = True):
    """
    Send the records of `logger` and its children to stdout.

    Args:
        logger: The `strata` logger.
        log_level: One of `LOG_LEVELS`, in any case.
        colors: If True, let coloredlogs format the output.

    Raises:
        InvalidArgumentError: If `log_level` is not a known level.
    """
    log_level = log_level.upper()
    if log_level not in LOG_LEVELS:
        raise InvalidArgumentError(f"Unknown log level '{log_level}'. Expected one of: {', '.join(LOG_LEVELS)}")
    fmt = DEBUG_LOG_FORMAT if log_level == "DEBUG" else LOG_FORMAT

    logger.setLevel(log_level)
    logger.propagate = False

    if colors:
        coloredlogs.install(level=log_level, logger=logger, fmt=fmt, stream=sys.stdout)
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
