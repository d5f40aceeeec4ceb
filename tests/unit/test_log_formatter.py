##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Tests for the `log_formatter.py` module.
"""

import logging

import pytest
from pytest_mock import MockerFixture

from strata.exceptions import InvalidArgumentError
from strata.log_formatter import DEBUG_LOG_FORMAT, LOG_FORMAT, setup_logging


@pytest.fixture
def logger() -> logging.Logger:
    """
    A throwaway logger whose handlers are removed afterwards.

    Returns:
        A `logging.Logger` instance.
    """
    test_logger = logging.getLogger("strata.tests.log_formatter")
    yield test_logger
    test_logger.handlers.clear()
    test_logger.propagate = True
    test_logger.setLevel(logging.NOTSET)


def test_colored_output_uses_coloredlogs(mocker: MockerFixture, logger: logging.Logger):
    """
    Test that coloredlogs is installed on the logger with the level's format.

    Args:
        mocker: PyTest mocker fixture.
        logger: A throwaway logger.
    """
    mock_install = mocker.patch("strata.log_formatter.coloredlogs.install")

    setup_logging(logger, log_level="debug")

    assert mock_install.call_args.kwargs["level"] == "DEBUG"
    assert mock_install.call_args.kwargs["logger"] is logger
    assert mock_install.call_args.kwargs["fmt"] == DEBUG_LOG_FORMAT
    assert logger.level == logging.DEBUG
    assert logger.propagate is False


def test_plain_output_adds_one_stream_handler(mocker: MockerFixture, logger: logging.Logger):
    """
    Test that without colors a single plain handler is added and coloredlogs is left alone.

    Args:
        mocker: PyTest mocker fixture.
        logger: A throwaway logger.
    """
    mock_install = mocker.patch("strata.log_formatter.coloredlogs.install")

    setup_logging(logger, log_level="WARNING", colors=False)

    mock_install.assert_not_called()
    assert len(logger.handlers) == 1
    assert logger.handlers[0].formatter._fmt == LOG_FORMAT
    assert logger.level == logging.WARNING


def test_unknown_level(logger: logging.Logger):
    """
    Test that an unknown level is rejected before the logger is touched.

    Args:
        logger: A throwaway logger.
    """
    with pytest.raises(InvalidArgumentError, match="Unknown log level 'LOUD'"):
        setup_logging(logger, log_level="loud")
    assert logger.handlers == []
