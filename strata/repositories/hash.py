##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Hash-per-entity repositories: each entity is a Redis hash stored under
`{collection_key}{separator}{id}`, with one hash field per entity field.

Writing an entity replaces the whole hash (`DEL` and `HSET` inside one
`MULTI`), so fields the new entity no longer has do not linger. Note that
this also clears any expiration set on the key.

Compare-and-swap is not available here: there is no single scalar value to
compare against.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from redis import Redis

from strata.exceptions import InvalidArgumentError
from strata.keys import EntityId, RedisKey, is_blank, validate_id, validate_ids
from strata.repositories.base import Condition, KeyPerEntityRepository, Reader, T, Updater, validate_callable


LOG = logging.getLogger(__name__)


class HashRepository(KeyPerEntityRepository[T]):
    """
    Stores each entity as a standalone Redis hash.

    The serializer is a field-map: `serialize(entity)` returns a dict of
    `str` (TEXT mode) or `bytes` (BINARY mode) fields and values.

    Methods:
        set_field: Set a single field of a stored entity.
        set_field_if_not_exists: Set a single field of an entity only if the field is not set yet.
    """

    def _read_watched(self, key: RedisKey) -> Reader:
        return lambda pipe: self.codec.decode_map(pipe.hgetall(key))

    @staticmethod
    def _replace(pipe, key: RedisKey, mapping: Dict):
        pipe.delete(key)
        pipe.hset(key, mapping=mapping)

    def _fetch_hashes(self, client: Redis, keys: List[RedisKey]) -> List[Dict]:
        with client.pipeline(transaction=False) as pipe:
            for key in keys:
                pipe.hgetall(key)
            return pipe.execute()

    def _get_by_keys(self, keys: List[RedisKey]) -> List[T]:
        """
        Fetch the hashes stored at `keys` with one pipeline of `HGETALL` per slot group.

        Returns:
            The entities found, in the order of `keys`.
        """
        found: Dict[RedisKey, Any] = {}
        for group in self.runner.partition(keys):
            hashes = self._run(group, lambda client, group=group: self._fetch_hashes(client, group))
            found.update(zip(group, hashes))

        entities = []
        for key in keys:
            entity = self.codec.decode_map(found.get(key))
            if entity is not None:
                entities.append(entity)
        return entities

    def get(self, entity_id: EntityId) -> Optional[T]:
        key = self.keyspace.key(validate_id(entity_id))
        return self.codec.decode_map(self._run([key], lambda client: client.hgetall(key)))

    def get_many(self, entity_ids: Iterable[EntityId]) -> List[T]:
        return self._get_by_keys(self.keyspace.keys(validate_ids(entity_ids)))

    def get_all(self) -> List[T]:
        self._require_keyspace_scan("get_all")
        LOG.info(f"Fetching every entity of '{self.collection_key}'...")

        def operation(client: Redis) -> List[Dict]:
            keys = self._scan_keys(client)
            return self._fetch_hashes(client, keys) if keys else []

        entities = [self.codec.decode_map(mapping) for mapping in self._run([self.keyspace.pattern], operation)]
        entities = [entity for entity in entities if entity is not None]
        LOG.info(f"Successfully retrieved {len(entities)} entities of '{self.collection_key}'.")
        return entities

    def set(self, entity_id: EntityId, entity: T):
        key = self.keyspace.key(validate_id(entity_id))
        mapping = self.codec.encode_map(entity)

        def operation(client: Redis):
            with client.pipeline() as pipe:
                self._replace(pipe, key, mapping)
                return pipe.execute()

        self._run([key], operation)

    def set_if_it_does_exist(self, entity_id: EntityId, entity: T) -> bool:
        key = self.keyspace.key(validate_id(entity_id))
        mapping = self.codec.encode_map(entity)
        return self._watch_and_set(
            key, lambda pipe: bool(pipe.exists(key)), lambda pipe: self._replace(pipe, key, mapping)
        )

    def set_if_it_does_not_exist(self, entity_id: EntityId, entity: T) -> bool:
        key = self.keyspace.key(validate_id(entity_id))
        mapping = self.codec.encode_map(entity)
        return self._watch_and_set(
            key, lambda pipe: not pipe.exists(key), lambda pipe: pipe.hset(key, mapping=mapping)
        )

    def update(self, entity_id: EntityId, updater: Updater, condition: Optional[Condition] = None) -> Optional[bool]:
        key = self.keyspace.key(validate_id(entity_id))
        validate_callable(updater, "updater")
        if condition is not None:
            validate_callable(condition, "condition")

        def prepare(entity: T):
            mapping = self.codec.encode_map(updater(entity))
            return lambda pipe: self._replace(pipe, key, mapping)

        return self._watch_and_mutate(key, self._read_watched(key), prepare, condition)

    def _validate_field(self, field: Any) -> Any:
        if not isinstance(field, (str, bytes)) or is_blank(field):
            raise InvalidArgumentError("field cannot be null, nor empty!")
        return self.codec.normalize(field)

    def set_field(self, entity_id: EntityId, field: Any, value: Any):
        """
        Set one field of an entity's hash, creating the hash if needed.

        Args:
            entity_id: The id of the entity.
            field: The name of the field.
            value: The wire value of the field.
        """
        key = self.keyspace.key(validate_id(entity_id))
        field = self._validate_field(field)
        if value is None:
            raise InvalidArgumentError("value cannot be null!")
        value = self.codec.normalize(value)
        self._run([key], lambda client: client.hset(key, field, value))

    def set_field_if_not_exists(self, entity_id: EntityId, field: Any, value: Any) -> bool:
        """
        Set one field of an entity's hash only if the field is not set yet.

        Args:
            entity_id: The id of the entity.
            field: The name of the field.
            value: The wire value of the field.

        Returns:
            True if the field was written.
        """
        key = self.keyspace.key(validate_id(entity_id))
        field = self._validate_field(field)
        if value is None:
            raise InvalidArgumentError("value cannot be null!")
        value = self.codec.normalize(value)
        return bool(self._run([key], lambda client: client.hsetnx(key, field, value)))
