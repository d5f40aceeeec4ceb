##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Bounded-retry command execution against a Redis Cluster.

Each operation is run on the primary owning the single slot of its keys. The
topology may move a slot at any time, so the executor follows redirects and
retries transient failures until its attempt budget is spent:

- `MOVED`: the slot has a new owner. The topology is reloaded and the next
  attempt goes to the node named in the redirect.
- `ASK`: the slot is migrating. The next attempt goes to the named node and is
  preceded by `ASKING`.
- Connection errors, timeouts, uncovered slots, `CLUSTERDOWN` and `TRYAGAIN`:
  the topology is reloaded and the operation is tried again.

Any other Redis error is reported to the error interceptor and raised at once.
When the budget is exhausted, the last error is reported and raised.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from redis import Redis
from redis.exceptions import (
    AskError,
    ClusterDownError,
    ConnectionError,
    MovedError,
    RedisClusterException,
    RedisError,
    SlotNotCoveredError,
    TimeoutError,
    TryAgainError,
)

from strata.cluster.handler import SlotConnectionHandler
from strata.cluster.slots import group_by_slot
from strata.config.repository_config import DEFAULT_MAX_ATTEMPTS
from strata.exceptions import CrossSlotError, InvalidArgumentError, RepositoryConfigurationError
from strata.runner import BaseCommandRunner, ErrorInterceptor, Operation, R, RedisKey


LOG = logging.getLogger(__name__)

RETRYABLE_ERRORS = (ConnectionError, TimeoutError, ClusterDownError, TryAgainError, SlotNotCoveredError)


class ClusterCommandExecutor(BaseCommandRunner):
    """
    Routes operations to the node owning their slot and retries across topology changes.

    Attributes:
        handler (SlotConnectionHandler): Supplies node connections and topology reloads.
        max_attempts (int): How many times an operation is tried before its last error is raised.
        supports_keyspace_scan (bool): Always False; a cluster has no single-node key space.

    Methods:
        slot_of: Return the single slot shared by a group of keys.
        partition: Group keys by slot.
        run: Execute an operation on the owner of the keys' slot.
    """

    supports_keyspace_scan = False

    def __init__(
        self,
        handler: SlotConnectionHandler,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        error_interceptor: Optional[ErrorInterceptor] = None,
    ):
        """
        Args:
            handler: Supplies node connections and topology reloads.
            max_attempts: How many times an operation is tried before its last error is raised.
            error_interceptor: Called with every Redis error before it is re-raised.
        """
        super().__init__(error_interceptor)
        if handler is None:
            raise RepositoryConfigurationError("A slot connection handler is required to build a cluster repository.")
        if isinstance(max_attempts, bool) or not isinstance(max_attempts, int) or max_attempts < 1:
            raise RepositoryConfigurationError(f"max_attempts must be a positive integer, not {max_attempts!r}!")
        self.handler = handler
        self.max_attempts = max_attempts

    def slot_of(self, keys: Sequence[RedisKey]) -> int:
        """
        Return the slot shared by every key.

        Args:
            keys: The keys of one command.

        Returns:
            The slot number.

        Raises:
            InvalidArgumentError: If no keys are given.
            CrossSlotError: If the keys hash to more than one slot.
        """
        groups = group_by_slot(keys)
        if not groups:
            raise InvalidArgumentError("A cluster command needs at least one key to be routed.")
        if len(groups) > 1:
            raise CrossSlotError(f"Keys {list(keys)} hash to {len(groups)} different slots.")
        return next(iter(groups))

    def partition(self, keys: Sequence[RedisKey]) -> List[List[RedisKey]]:
        return list(group_by_slot(keys).values())

    def _connection(self, slot: int, target: Optional[Tuple[str, int]]) -> Redis:
        if target is not None:
            connection = self.handler.connection_for_node(*target)
            if connection is not None:
                return connection
        return self.handler.connection_for_slot(slot)

    def _refresh(self):
        try:
            self.handler.refresh()
        except (RedisError, RedisClusterException) as exc:
            LOG.warning(f"Could not refresh the cluster topology: {exc}")

    def run(self, keys: Sequence[RedisKey], operation: Operation) -> R:
        slot = self.slot_of(keys)
        redirect: Optional[Tuple[str, int]] = None
        asking = False
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            target, redirect = redirect, None
            send_asking, asking = asking, False
            try:
                connection = self._connection(slot, target)
                if send_asking:
                    connection.execute_command("ASKING")
                return operation(connection)
            except MovedError as exc:
                # MovedError subclasses AskError, so it has to be handled first
                LOG.warning(f"Slot {slot} moved to {exc.host}:{exc.port} (attempt {attempt}/{self.max_attempts}).")
                self._refresh()
                redirect = (exc.host, exc.port)
                last_error = exc
            except AskError as exc:
                LOG.warning(f"Slot {slot} is migrating to {exc.host}:{exc.port} (attempt {attempt}/{self.max_attempts}).")
                redirect = (exc.host, exc.port)
                asking = True
                last_error = exc
            except RETRYABLE_ERRORS as exc:
                LOG.warning(f"Command on slot {slot} failed with {exc!r} (attempt {attempt}/{self.max_attempts}).")
                self._refresh()
                last_error = exc
            except RedisError as exc:
                self.intercept(exc)
                raise

        LOG.debug(f"Giving up on slot {slot} after {self.max_attempts} attempts.")
        self.intercept(last_error)
        raise last_error

    def close(self):
        self.handler.close()
