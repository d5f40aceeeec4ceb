##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Value-in-shared-hash repositories: every entity of a collection is a field of
one Redis hash stored under the collection key, keyed by its id.

Because the whole collection is one key, `get_all`, `delete_all`, and
`get_all_ids` are single atomic commands that also work on a cluster. The
trade-off is that conditional operations watch the shared key, so concurrent
conditional writes to different ids of the same collection contend with each
other. Redis expires keys, not hash fields, so per-id expirations are not
available.
"""

import logging
from typing import Any, Iterable, List, Optional, Tuple

from strata.config.repository_config import RepositoryConfig
from strata.exceptions import UnsupportedOperationError
from strata.keys import EntityId, RedisKey, SharedHashKeySpace, validate_id, validate_ids
from strata.repositories.base import Condition, Reader, Repository, T, Updater, validate_callable
from strata.repositories.cas import CompareAndSwapMixin
from strata.runner import BaseCommandRunner
from strata.scripts import HASH_DELETE_IF_IT_IS, HASH_DELETE_IF_IT_IS_NOT, HASH_UPDATE_IF_IT_IS, HASH_UPDATE_IF_IT_IS_NOT


LOG = logging.getLogger(__name__)


class ValueInHashRepository(CompareAndSwapMixin, Repository[T]):
    """
    Stores every entity of a collection as a field of one shared Redis hash.

    The serializer is scalar: `serialize(entity)` returns `str` (TEXT mode) or
    `bytes` (BINARY mode).

    Attributes:
        keyspace (SharedHashKeySpace): Holds the parent key of the collection.
        parent_key (str): The Redis key of the shared hash.
    """

    UPDATE_IF_IT_IS_SCRIPT = HASH_UPDATE_IF_IT_IS
    UPDATE_IF_IT_IS_NOT_SCRIPT = HASH_UPDATE_IF_IT_IS_NOT
    DELETE_IF_IT_IS_SCRIPT = HASH_DELETE_IF_IT_IS
    DELETE_IF_IT_IS_NOT_SCRIPT = HASH_DELETE_IF_IT_IS_NOT

    def __init__(self, config: RepositoryConfig, runner: BaseCommandRunner):
        super().__init__(config, runner)
        self.keyspace = SharedHashKeySpace(config.collection_key, config.separator)
        self.parent_key: str = self.keyspace.parent_key

    def _script_keys_and_args(self, entity_id: EntityId, values: List[Any]) -> Tuple[List[RedisKey], List[Any]]:
        return [self.parent_key], [self.keyspace.field(entity_id), *values]

    def _read_watched(self, entity_id: EntityId) -> Reader:
        return lambda pipe: self.codec.decode(pipe.hget(self.parent_key, entity_id))

    def _decode_present(self, values: Iterable[Any]) -> List[T]:
        entities = [self.codec.decode(value) for value in values]
        return [entity for entity in entities if entity is not None]

    def get(self, entity_id: EntityId) -> Optional[T]:
        field = self.keyspace.field(validate_id(entity_id))
        return self.codec.decode(self._run([self.parent_key], lambda client: client.hget(self.parent_key, field)))

    def get_many(self, entity_ids: Iterable[EntityId]) -> List[T]:
        fields = [self.keyspace.field(entity_id) for entity_id in validate_ids(entity_ids)]
        if not fields:
            return []
        return self._decode_present(self._run([self.parent_key], lambda client: client.hmget(self.parent_key, fields)))

    def get_all(self) -> List[T]:
        LOG.info(f"Fetching every entity of '{self.collection_key}'...")
        entities = self._decode_present(self._run([self.parent_key], lambda client: client.hvals(self.parent_key)))
        LOG.info(f"Successfully retrieved {len(entities)} entities of '{self.collection_key}'.")
        return entities

    def exists(self, entity_id: EntityId) -> bool:
        field = self.keyspace.field(validate_id(entity_id))
        return bool(self._run([self.parent_key], lambda client: client.hexists(self.parent_key, field)))

    def set(self, entity_id: EntityId, entity: T):
        field = self.keyspace.field(validate_id(entity_id))
        value = self.codec.encode(entity)
        self._run([self.parent_key], lambda client: client.hset(self.parent_key, field, value))

    def set_if_it_does_exist(self, entity_id: EntityId, entity: T) -> bool:
        field = self.keyspace.field(validate_id(entity_id))
        value = self.codec.encode(entity)
        return self._watch_and_set(
            self.parent_key,
            lambda pipe: bool(pipe.hexists(self.parent_key, field)),
            lambda pipe: pipe.hset(self.parent_key, field, value),
        )

    def set_if_it_does_not_exist(self, entity_id: EntityId, entity: T) -> bool:
        field = self.keyspace.field(validate_id(entity_id))
        value = self.codec.encode(entity)
        return bool(self._run([self.parent_key], lambda client: client.hsetnx(self.parent_key, field, value)))

    def update(self, entity_id: EntityId, updater: Updater, condition: Optional[Condition] = None) -> Optional[bool]:
        field = self.keyspace.field(validate_id(entity_id))
        validate_callable(updater, "updater")
        if condition is not None:
            validate_callable(condition, "condition")

        def prepare(entity: T):
            value = self.codec.encode(updater(entity))
            return lambda pipe: pipe.hset(self.parent_key, field, value)

        return self._watch_and_mutate(self.parent_key, self._read_watched(field), prepare, condition)

    def delete(self, entity_id: EntityId, condition: Optional[Condition] = None) -> Optional[bool]:
        field = self.keyspace.field(validate_id(entity_id))
        if condition is None:
            self._run([self.parent_key], lambda client: client.hdel(self.parent_key, field))
            return None

        validate_callable(condition, "condition")
        return self._watch_and_mutate(
            self.parent_key,
            self._read_watched(field),
            lambda entity: lambda pipe: pipe.hdel(self.parent_key, field),
            condition,
        )

    def delete_many(self, entity_ids: Iterable[EntityId]):
        fields = [self.keyspace.field(entity_id) for entity_id in validate_ids(entity_ids)]
        if fields:
            self._run([self.parent_key], lambda client: client.hdel(self.parent_key, *fields))

    def delete_all(self):
        LOG.info(f"Deleting every entity of '{self.collection_key}'...")
        self._run([self.parent_key], lambda client: client.delete(self.parent_key))

    def get_all_ids(self) -> List[EntityId]:
        fields = self._run([self.parent_key], lambda client: client.hkeys(self.parent_key))
        return [self._normalize_id(field) for field in fields]

    def _unsupported_expiration(self, operation: str):
        raise UnsupportedOperationError(
            f"{operation} is not supported by {self.__class__.__name__}: "
            "entities are fields of a shared hash and Redis only expires whole keys."
        )

    def set_expiration_after(self, entity_id: EntityId, milliseconds: int) -> bool:
        self._unsupported_expiration("set_expiration_after")

    def set_expiration_at(self, entity_id: EntityId, milliseconds_timestamp: int) -> bool:
        self._unsupported_expiration("set_expiration_at")

    def get_time_to_live_left(self, entity_id: EntityId) -> int:
        self._unsupported_expiration("get_time_to_live_left")
