##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Value-per-entity repositories: each entity is a string value stored under
`{collection_key}{separator}{id}`.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from redis import Redis

from strata.keys import EntityId, RedisKey, validate_id, validate_ids
from strata.repositories.base import Condition, KeyPerEntityRepository, Reader, T, Updater, validate_callable
from strata.repositories.cas import CompareAndSwapMixin
from strata.scripts import (
    VALUE_DELETE_IF_IT_IS,
    VALUE_DELETE_IF_IT_IS_NOT,
    VALUE_UPDATE_IF_IT_IS,
    VALUE_UPDATE_IF_IT_IS_NOT,
)


LOG = logging.getLogger(__name__)


class ValueRepository(CompareAndSwapMixin, KeyPerEntityRepository[T]):
    """
    Stores each entity as a standalone Redis string.

    The serializer is scalar: `serialize(entity)` returns `str` (TEXT mode) or
    `bytes` (BINARY mode). Conditional updates watch the entity's own key.
    """

    UPDATE_IF_IT_IS_SCRIPT = VALUE_UPDATE_IF_IT_IS
    UPDATE_IF_IT_IS_NOT_SCRIPT = VALUE_UPDATE_IF_IT_IS_NOT
    DELETE_IF_IT_IS_SCRIPT = VALUE_DELETE_IF_IT_IS
    DELETE_IF_IT_IS_NOT_SCRIPT = VALUE_DELETE_IF_IT_IS_NOT

    def _script_keys_and_args(self, entity_id: EntityId, values: List[Any]) -> Tuple[List[RedisKey], List[Any]]:
        return [self.keyspace.key(entity_id)], values

    def _read_watched(self, key: RedisKey) -> Reader:
        return lambda pipe: self.codec.decode(pipe.get(key))

    def _get_by_keys(self, keys: List[RedisKey]) -> List[T]:
        """
        Fetch the entities stored at `keys` with one `MGET` per slot group.

        Returns:
            The entities found, in the order of `keys`.
        """
        found: Dict[RedisKey, Any] = {}
        for group in self.runner.partition(keys):
            values = self._run(group, lambda client, group=group: client.mget(group))
            found.update(zip(group, values))

        entities = []
        for key in keys:
            entity = self.codec.decode(found.get(key))
            if entity is not None:
                entities.append(entity)
        return entities

    def get(self, entity_id: EntityId) -> Optional[T]:
        key = self.keyspace.key(validate_id(entity_id))
        return self.codec.decode(self._run([key], lambda client: client.get(key)))

    def get_many(self, entity_ids: Iterable[EntityId]) -> List[T]:
        return self._get_by_keys(self.keyspace.keys(validate_ids(entity_ids)))

    def get_all(self) -> List[T]:
        self._require_keyspace_scan("get_all")
        LOG.info(f"Fetching every entity of '{self.collection_key}'...")

        def operation(client: Redis) -> List[Any]:
            keys = self._scan_keys(client)
            return client.mget(keys) if keys else []

        entities = [self.codec.decode(value) for value in self._run([self.keyspace.pattern], operation)]
        entities = [entity for entity in entities if entity is not None]
        LOG.info(f"Successfully retrieved {len(entities)} entities of '{self.collection_key}'.")
        return entities

    def set(self, entity_id: EntityId, entity: T):
        key = self.keyspace.key(validate_id(entity_id))
        value = self.codec.encode(entity)
        self._run([key], lambda client: client.set(key, value))

    def set_if_it_does_exist(self, entity_id: EntityId, entity: T) -> bool:
        key = self.keyspace.key(validate_id(entity_id))
        value = self.codec.encode(entity)
        return bool(self._run([key], lambda client: client.set(key, value, xx=True)))

    def set_if_it_does_not_exist(self, entity_id: EntityId, entity: T) -> bool:
        key = self.keyspace.key(validate_id(entity_id))
        value = self.codec.encode(entity)
        return bool(self._run([key], lambda client: client.set(key, value, nx=True)))

    def update(self, entity_id: EntityId, updater: Updater, condition: Optional[Condition] = None) -> Optional[bool]:
        key = self.keyspace.key(validate_id(entity_id))
        validate_callable(updater, "updater")
        if condition is not None:
            validate_callable(condition, "condition")

        def prepare(entity: T):
            value = self.codec.encode(updater(entity))
            return lambda pipe: pipe.set(key, value)

        return self._watch_and_mutate(key, self._read_watched(key), prepare, condition)
