##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Base classes for Strata repositories.

This module defines the uniform interface every storage strategy implements,
along with the optimistic-lock protocol shared by the conditional `update` and
`delete` operations:

1. `WATCH` the physical key.
2. Read the current value. If nothing is stored, `UNWATCH` and return None.
3. If a condition is given and it is false, `UNWATCH` and return True.
4. Apply the updater and serialize the result.
5. `MULTI`, enqueue the write (or the delete), `EXEC`.
6. Return False if `EXEC` was aborted by a concurrent write, True otherwise.

The protocol never retries on its own; a False result is the caller's cue to
try again if it wants to.

See also:
    - strata.repositories.value: Value-per-entity repositories
    - strata.repositories.hash: Hash-per-entity repositories
    - strata.repositories.value_in_hash: Value-in-shared-hash repositories
    - strata.repositories.cas: Compare-and-swap operations
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

from redis import Redis
from redis.client import Pipeline
from redis.exceptions import WatchError

from strata.config.repository_config import RepositoryConfig
from strata.exceptions import InvalidArgumentError, RepositoryConfigurationError, UnsupportedOperationError
from strata.keys import EntityId, EntityKeySpace, RedisKey, validate_id, validate_ids
from strata.runner import BaseCommandRunner
from strata.serialization import WireCodec


T = TypeVar("T")

LOG = logging.getLogger(__name__)

Updater = Callable[[T], T]
Condition = Callable[[T], bool]
Reader = Callable[[Pipeline], Optional[T]]
Enqueuer = Callable[[Pipeline], Any]


def validate_callable(value: Any, name: str):
    """
    Ensure an updater or a condition was given.

    Raises:
        InvalidArgumentError: If `value` is None or not callable.
    """
    if value is None or not callable(value):
        raise InvalidArgumentError(f"{name} cannot be null and must be callable!")


def validate_milliseconds(value: int, name: str) -> int:
    """
    Ensure a TTL argument is a non-negative number of milliseconds.

    Raises:
        InvalidArgumentError: If `value` is not an integer or is negative.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, not {type(value).__name__}!")
    if value < 0:
        raise InvalidArgumentError(f"{name} cannot be negative!")
    return value


class Repository(ABC, Generic[T]):
    """
    The uniform interface over one collection of entities stored in Redis.

    Every read returns an explicit absent indicator (None, or an empty list)
    instead of raising. Every identifier is validated before any command is sent.

    Attributes:
        config (RepositoryConfig): The configuration the repository was built from.
        collection_key (str): The name of the collection.
        runner (BaseCommandRunner): Decides which connection each operation runs on.
        codec (WireCodec): Converts entities to and from their wire form.

    Methods:
        get: Retrieve one entity.
        get_many: Retrieve several entities.
        get_all: Retrieve every entity of the collection.
        exists: Check whether an entity is stored.
        set: Store an entity, replacing what was there.
        set_if_it_does_exist: Store an entity only if one is already stored under its id.
        set_if_it_does_not_exist: Store an entity only if nothing is stored under its id.
        update: Apply a function to a stored entity under an optimistic lock.
        delete: Remove an entity, optionally under an optimistic lock.
        delete_many: Remove several entities.
        delete_all: Remove every entity of the collection.
        get_all_ids: List the ids of the collection.
        update_if_it_is: Replace an entity if it equals an expected value.
        update_if_it_is_not: Replace an entity if it differs from a value.
        delete_if_it_is: Remove an entity if it equals an expected value.
        delete_if_it_is_not: Remove an entity if it differs from a value.
        set_expiration_after: Expire an entity after a number of milliseconds.
        set_expiration_at: Expire an entity at a Unix time in milliseconds.
        get_time_to_live_left: Return the milliseconds left before an entity expires.
        close: Release the client the repository runs on.
    """

    def __init__(self, config: RepositoryConfig, runner: BaseCommandRunner):
        """
        Args:
            config: The repository configuration.
            runner: The command runner operations are dispatched through.
        """
        if not isinstance(config, RepositoryConfig):
            raise RepositoryConfigurationError("config must be a RepositoryConfig instance!")
        if not isinstance(runner, BaseCommandRunner):
            raise RepositoryConfigurationError("runner must be a command runner instance!")
        self.config: RepositoryConfig = config
        self.collection_key: str = config.collection_key
        self.runner: BaseCommandRunner = runner
        self.codec: WireCodec = WireCodec(config.serializer, config.mode)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(collection_key={self.collection_key!r}, mode={self.codec.mode.value!r})"

    def close(self):
        """
        Release the connections of the client this repository was built with.

        Repositories built on the same client share its connections, so closing
        one of them closes them for all.
        """
        LOG.debug(f"Closing {self!r}.")
        self.runner.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, tback):
        self.close()

    def _run(self, keys: Sequence[RedisKey], operation: Callable[[Redis], Any]) -> Any:
        return self.runner.run(keys, operation)

    def _require_keyspace_scan(self, operation: str):
        """
        Fail fast when an operation needs to scan the whole key space and the
        runner cannot do it (i.e. on a cluster).

        Raises:
            UnsupportedOperationError: If the runner does not support key-space scans.
        """
        if not self.runner.supports_keyspace_scan:
            raise UnsupportedOperationError(
                f"{operation} is not supported by {self.__class__.__name__} on a Redis Cluster."
            )

    def _normalize_id(self, raw_id: Any) -> EntityId:
        """Convert an id read back from Redis to the configured wire type."""
        return self.codec.normalize(raw_id)

    def _watch_and_mutate(
        self,
        watch_key: RedisKey,
        read: Reader,
        prepare: Callable[[T], Enqueuer],
        condition: Optional[Condition] = None,
    ) -> Optional[bool]:
        """
        Run the optimistic-lock protocol on one physical key.

        Args:
            watch_key: The key to watch. Under the shared-hash strategy this is
                the parent key, so the lock covers the whole collection.
            read: Reads and decodes the current entity through the watching pipeline.
            prepare: Given the current entity, computes the new wire form and returns
                a function that enqueues the write (or delete) on the pipeline.
            condition: Optional predicate; when it is false nothing is written.

        Returns:
            None if nothing is stored, True if the condition was false or the
            transaction committed, False if a concurrent write aborted it.
        """

        def operation(client: Redis) -> Optional[bool]:
            with client.pipeline() as pipe:
                try:
                    pipe.watch(watch_key)
                    LOG.debug(f"Watching '{watch_key}'.")
                    entity = read(pipe)
                    if entity is None:
                        LOG.debug(f"Nothing is stored under '{watch_key}'. Releasing the watch.")
                        pipe.unwatch()
                        return None
                    if condition is not None and not condition(entity):
                        LOG.debug(f"Condition is false for '{watch_key}'. Releasing the watch.")
                        pipe.unwatch()
                        return True
                    enqueue = prepare(entity)
                    pipe.multi()
                    enqueue(pipe)
                    pipe.execute()
                    LOG.debug(f"Committed the transaction on '{watch_key}'.")
                    return True
                except WatchError:
                    LOG.debug(f"'{watch_key}' changed while it was watched. The transaction was aborted.")
                    return False

        return self._run([watch_key], operation)

    def _watch_and_set(self, watch_key: RedisKey, should_write: Callable[[Pipeline], bool], enqueue: Enqueuer) -> bool:
        """
        Run a watch/check/multi cycle that writes only when `should_write` holds.

        Args:
            watch_key: The key to watch.
            should_write: Checks, through the watching pipeline, whether to write.
            enqueue: Enqueues the write on the pipeline.

        Returns:
            True if the write committed, False if the check failed or a concurrent write aborted it.
        """

        def operation(client: Redis) -> bool:
            with client.pipeline() as pipe:
                try:
                    pipe.watch(watch_key)
                    if not should_write(pipe):
                        pipe.unwatch()
                        return False
                    pipe.multi()
                    enqueue(pipe)
                    pipe.execute()
                    return True
                except WatchError:
                    LOG.debug(f"'{watch_key}' changed while it was watched. The transaction was aborted.")
                    return False

        return self._run([watch_key], operation)

    @abstractmethod
    def get(self, entity_id: EntityId) -> Optional[T]:
        """
        Retrieve an entity.

        Args:
            entity_id: The id of the entity.

        Returns:
            The entity, or None if nothing is stored under `entity_id`.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `get` method.")

    @abstractmethod
    def get_many(self, entity_ids: Iterable[EntityId]) -> List[T]:
        """
        Retrieve several entities. Ids with nothing stored are skipped.

        Args:
            entity_ids: The ids of the entities. Blank ids are ignored.

        Returns:
            The entities found, in the order their ids were given.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `get_many` method.")

    @abstractmethod
    def get_all(self) -> List[T]:
        """
        Retrieve every entity of the collection.

        Returns:
            A list of entities.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `get_all` method.")

    @abstractmethod
    def exists(self, entity_id: EntityId) -> bool:
        """
        Check whether an entity is stored.

        Args:
            entity_id: The id of the entity.

        Returns:
            True if something is stored under `entity_id`.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement an `exists` method.")

    @abstractmethod
    def set(self, entity_id: EntityId, entity: T):
        """
        Store an entity, replacing anything stored under the same id.

        Args:
            entity_id: The id of the entity.
            entity: The entity to store.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `set` method.")

    @abstractmethod
    def set_if_it_does_exist(self, entity_id: EntityId, entity: T) -> bool:
        """
        Store an entity only if something is already stored under its id.

        Args:
            entity_id: The id of the entity.
            entity: The entity to store.

        Returns:
            True if the entity was written.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `set_if_it_does_exist` method.")

    @abstractmethod
    def set_if_it_does_not_exist(self, entity_id: EntityId, entity: T) -> bool:
        """
        Store an entity only if nothing is stored under its id.

        Args:
            entity_id: The id of the entity.
            entity: The entity to store.

        Returns:
            True if the entity was written.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `set_if_it_does_not_exist` method.")

    @abstractmethod
    def update(self, entity_id: EntityId, updater: Updater, condition: Optional[Condition] = None) -> Optional[bool]:
        """
        Apply `updater` to a stored entity under an optimistic lock.

        Args:
            entity_id: The id of the entity.
            updater: Returns the new entity given the current one.
            condition: Optional predicate on the current entity; when false nothing is written.

        Returns:
            None if nothing is stored, True if the condition was false or the update
            committed, False if a concurrent write aborted it.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement an `update` method.")

    @abstractmethod
    def delete(self, entity_id: EntityId, condition: Optional[Condition] = None) -> Optional[bool]:
        """
        Remove an entity. Deleting an absent id is not an error.

        Args:
            entity_id: The id of the entity.
            condition: Optional predicate on the current entity. When given, the
                delete runs under an optimistic lock and only if it holds.

        Returns:
            None without a condition. With a condition, the same outcomes as
            [`update`][repositories.base.Repository.update].
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `delete` method.")

    @abstractmethod
    def delete_many(self, entity_ids: Iterable[EntityId]):
        """
        Remove several entities.

        Args:
            entity_ids: The ids of the entities. Blank ids are ignored.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `delete_many` method.")

    @abstractmethod
    def delete_all(self):
        """Remove every entity of the collection."""
        raise NotImplementedError("Subclasses of `Repository` must implement a `delete_all` method.")

    @abstractmethod
    def get_all_ids(self) -> List[EntityId]:
        """
        List the ids of every entity of the collection.

        Returns:
            A list of ids.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `get_all_ids` method.")

    @abstractmethod
    def set_expiration_after(self, entity_id: EntityId, milliseconds: int) -> bool:
        """
        Expire an entity after a number of milliseconds.

        Returns:
            True if a timeout was set.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `set_expiration_after` method.")

    @abstractmethod
    def set_expiration_at(self, entity_id: EntityId, milliseconds_timestamp: int) -> bool:
        """
        Expire an entity at a Unix time expressed in milliseconds.

        Returns:
            True if a timeout was set.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `set_expiration_at` method.")

    @abstractmethod
    def get_time_to_live_left(self, entity_id: EntityId) -> int:
        """
        Return the milliseconds left before an entity expires.

        Returns:
            The remaining time, -1 if the entity never expires, or -2 if nothing is stored.
        """
        raise NotImplementedError("Subclasses of `Repository` must implement a `get_time_to_live_left` method.")

    def _unsupported_compare_and_swap(self, operation: str):
        raise UnsupportedOperationError(
            f"{operation} is not supported by {self.__class__.__name__}: "
            "compare-and-swap needs a scalar value to compare against."
        )

    def update_if_it_is(self, entity_id: EntityId, old_entity: T, new_entity: T) -> bool:
        """
        Atomically replace an entity with `new_entity` if it currently equals `old_entity`.

        Returns:
            True if the entity was replaced.
        """
        self._unsupported_compare_and_swap("update_if_it_is")

    def update_if_it_is_not(self, entity_id: EntityId, old_entity: T, new_entity: T) -> bool:
        """
        Atomically replace an entity with `new_entity` if it currently differs from `old_entity`.

        Returns:
            True if the entity was replaced.
        """
        self._unsupported_compare_and_swap("update_if_it_is_not")

    def delete_if_it_is(self, entity_id: EntityId, old_entity: T) -> bool:
        """
        Atomically remove an entity if it currently equals `old_entity`.

        Returns:
            True if the entity was removed.
        """
        self._unsupported_compare_and_swap("delete_if_it_is")

    def delete_if_it_is_not(self, entity_id: EntityId, old_entity: T) -> bool:
        """
        Atomically remove an entity if it currently differs from `old_entity`.

        Returns:
            True if the entity was removed.
        """
        self._unsupported_compare_and_swap("delete_if_it_is_not")


class KeyPerEntityRepository(Repository[T]):
    """
    Shared behaviour of the strategies that store each entity under its own key.

    Attributes:
        keyspace (EntityKeySpace): Builds the key of each entity.
    """

    def __init__(self, config: RepositoryConfig, runner: BaseCommandRunner):
        super().__init__(config, runner)
        self.keyspace = EntityKeySpace(config.collection_key, config.separator)

    def _scan_keys(self, client: Redis) -> List[RedisKey]:
        return list(client.scan_iter(match=self.keyspace.pattern))

    def exists(self, entity_id: EntityId) -> bool:
        key = self.keyspace.key(validate_id(entity_id))
        return bool(self._run([key], lambda client: client.exists(key)))

    def delete(self, entity_id: EntityId, condition: Optional[Condition] = None) -> Optional[bool]:
        key = self.keyspace.key(validate_id(entity_id))
        if condition is None:
            self._run([key], lambda client: client.delete(key))
            return None

        validate_callable(condition, "condition")
        return self._watch_and_mutate(key, self._read_watched(key), lambda entity: lambda pipe: pipe.delete(key), condition)

    def delete_many(self, entity_ids: Iterable[EntityId]):
        keys = self.keyspace.keys(validate_ids(entity_ids))
        for group in self.runner.partition(keys):
            self._run(group, lambda client, group=group: client.delete(*group))

    def delete_all(self):
        self._require_keyspace_scan("delete_all")
        LOG.info(f"Deleting every entity of '{self.collection_key}'...")

        def operation(client: Redis) -> int:
            keys = self._scan_keys(client)
            return client.delete(*keys) if keys else 0

        deleted = self._run([self.keyspace.pattern], operation)
        LOG.info(f"Deleted {deleted} entities of '{self.collection_key}'.")

    def get_all_ids(self) -> List[EntityId]:
        self._require_keyspace_scan("get_all_ids")
        keys = self._run([self.keyspace.pattern], self._scan_keys)
        return [self._normalize_id(self.keyspace.id_from_key(key)) for key in keys]

    def set_expiration_after(self, entity_id: EntityId, milliseconds: int) -> bool:
        key = self.keyspace.key(validate_id(entity_id))
        validate_milliseconds(milliseconds, "milliseconds")
        return bool(self._run([key], lambda client: client.pexpire(key, milliseconds)))

    def set_expiration_at(self, entity_id: EntityId, milliseconds_timestamp: int) -> bool:
        key = self.keyspace.key(validate_id(entity_id))
        validate_milliseconds(milliseconds_timestamp, "milliseconds_timestamp")
        return bool(self._run([key], lambda client: client.pexpireat(key, milliseconds_timestamp)))

    def get_time_to_live_left(self, entity_id: EntityId) -> int:
        key = self.keyspace.key(validate_id(entity_id))
        return self._run([key], lambda client: client.pttl(key))

    @abstractmethod
    def _read_watched(self, key: RedisKey) -> Reader:
        """
        Return a reader that loads and decodes the entity stored at `key` through a watching pipeline.
        """
        raise NotImplementedError("Subclasses of `KeyPerEntityRepository` must implement a `_read_watched` method.")
