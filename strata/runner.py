##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Command runners decide which connection an operation runs on and how Redis
errors escaping it are reported.

Repositories never talk to a client directly. Every operation is a callable
taking a `redis.Redis` connection, handed to a runner along with the keys it
touches:

- [`CommandRunner`][runner.CommandRunner] runs everything on one
  single-node client.
- [`ClusterCommandExecutor`][cluster.executor.ClusterCommandExecutor] routes each
  operation to the node owning its slot and retries across topology changes.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Sequence, TypeVar, Union

from redis import Redis
from redis.exceptions import RedisError

from strata.exceptions import RepositoryConfigurationError


LOG = logging.getLogger(__name__)

R = TypeVar("R")
RedisKey = Union[str, bytes]
Operation = Callable[[Redis], R]
ErrorInterceptor = Callable[[Exception], object]


class BaseCommandRunner(ABC):
    """
    Shared behaviour of every command runner.

    Attributes:
        error_interceptor: Called with every Redis error before it is re-raised.
        supports_keyspace_scan (bool): Whether the whole key space can be scanned
            with one `SCAN` (False on clusters).

    Methods:
        intercept: Report an error to the interceptor.
        partition: Split keys into groups that can share one command.
        run: Execute an operation for a group of keys.
        close: Release the client the runner owns.
    """

    supports_keyspace_scan: bool = True

    def __init__(self, error_interceptor: Optional[ErrorInterceptor] = None):
        if error_interceptor is not None and not callable(error_interceptor):
            raise RepositoryConfigurationError("error_interceptor must be callable!")
        self.error_interceptor = error_interceptor

    def intercept(self, exc: Exception):
        """
        Hand an error to the interceptor, if one is configured.

        Args:
            exc: The error about to be raised.
        """
        LOG.debug(f"Redis command failed: {exc!r}")
        if self.error_interceptor is not None:
            self.error_interceptor(exc)

    @abstractmethod
    def partition(self, keys: Sequence[RedisKey]) -> List[List[RedisKey]]:
        """
        Split keys into groups that can be sent together in one command.

        Args:
            keys: The keys to split.

        Returns:
            A list of non-empty key groups.
        """
        raise NotImplementedError("Subclasses of `BaseCommandRunner` must implement a `partition` method.")

    @abstractmethod
    def run(self, keys: Sequence[RedisKey], operation: Operation) -> R:
        """
        Run an operation on the connection serving `keys`.

        Args:
            keys: Every key the operation touches.
            operation: A callable taking the connection to run on.

        Returns:
            Whatever the operation returns.
        """
        raise NotImplementedError("Subclasses of `BaseCommandRunner` must implement a `run` method.")

    @abstractmethod
    def close(self):
        """Release the connections held by the runner's client."""
        raise NotImplementedError("Subclasses of `BaseCommandRunner` must implement a `close` method.")


class CommandRunner(BaseCommandRunner):
    """
    Runs operations on a single-node Redis client.

    Attributes:
        client (Redis): The client every operation runs on.
    """

    def __init__(self, client: Redis, error_interceptor: Optional[ErrorInterceptor] = None):
        """
        Args:
            client: The Redis client.
            error_interceptor: Called with every Redis error before it is re-raised.
        """
        super().__init__(error_interceptor)
        if client is None:
            raise RepositoryConfigurationError("A Redis client is required to build a repository.")
        self.client = client

    def partition(self, keys: Sequence[RedisKey]) -> List[List[RedisKey]]:
        """A single node serves every key, so all keys form one group."""
        keys = list(keys)
        return [keys] if keys else []

    def run(self, keys: Sequence[RedisKey], operation: Operation) -> R:
        try:
            return operation(self.client)
        except RedisError as exc:
            self.intercept(exc)
            raise

    def close(self):
        self.client.close()
