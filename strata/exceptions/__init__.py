##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Module of all Strata-specific exception types.

Transport and command failures coming from the Redis client are never wrapped;
they surface as `redis.exceptions.RedisError` subclasses.
"""

# Pylint complains that these exceptions are no different from Exception
# but we don't care, we just need new names for exceptions here
# pylint: disable=W0235

__all__ = (
    "InvalidArgumentError",
    "RepositoryConfigurationError",
    "InvalidKeyError",
    "UnsupportedOperationError",
    "RepositoryNotSupportedError",
    "CrossSlotError",
)


class InvalidArgumentError(ValueError):
    """
    Exception to signal that an argument handed to a repository operation
    is invalid (e.g. a blank id, a missing entity, or a negative TTL).

    These are always raised before any command is sent to Redis.
    """

    def __init__(self, message):
        super().__init__(message)


class RepositoryConfigurationError(InvalidArgumentError):
    """
    Exception to signal that a repository was configured incorrectly.
    Raised eagerly when the configuration object is built.
    """

    def __init__(self, message):
        super().__init__(message)


class InvalidKeyError(RepositoryConfigurationError):
    """
    Exception to signal that a collection key contains the key separator,
    which would make entity ids ambiguous.
    """

    def __init__(self, message):
        super().__init__(message)


class UnsupportedOperationError(Exception):
    """
    Exception to signal that an operation is not defined for the configured
    storage strategy or deployment (e.g. compare-and-swap on a hash-per-entity
    repository, or a key-space scan on a cluster).
    """

    def __init__(self, message):
        super().__init__(message)


class RepositoryNotSupportedError(Exception):
    """
    Exception to signal that the provided storage strategy is not supported by Strata.
    """

    def __init__(self, message):
        super().__init__(message)


class CrossSlotError(Exception):
    """
    Exception to signal that a single cluster command was given keys that
    hash to more than one slot.
    """

    def __init__(self, message):
        super().__init__(message)
