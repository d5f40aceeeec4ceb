##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Key model for Strata repositories.

This module maps a `(collection_key, id)` pair onto the physical Redis key(s)
used by each storage strategy:

- `EntityKeySpace`: every entity is its own Redis key, composed as
  `{collection_key}{separator}{id}`. Used by the value-per-entity and
  hash-per-entity strategies.
- `SharedHashKeySpace`: every entity is a field of one Redis hash whose key is
  the collection key itself. Used by the value-in-shared-hash strategy.

It also houses the identifier validation helpers that every repository
operation runs before any I/O happens.
"""

import logging
from typing import Iterable, List, Union

from strata.exceptions import InvalidArgumentError, InvalidKeyError, RepositoryConfigurationError


LOG = logging.getLogger(__name__)

DEFAULT_KEY_SEPARATOR = ":"

EntityId = Union[str, bytes]
RedisKey = Union[str, bytes]


def is_blank(value: EntityId) -> bool:
    """
    Check whether an identifier is None, empty, or made only of whitespace.

    Args:
        value: The identifier to check.

    Returns:
        True if the identifier is blank, False otherwise.
    """
    if value is None:
        return True
    if isinstance(value, (str, bytes)):
        return len(value.strip()) == 0
    return False


def validate_id(entity_id: EntityId, name: str = "id") -> EntityId:
    """
    Ensure an entity identifier is usable.

    Args:
        entity_id: The identifier to validate.
        name: The name of the argument, used in the error message.

    Returns:
        The identifier, unchanged.

    Raises:
        InvalidArgumentError: If the identifier is not a string/bytes value or is blank.
    """
    if entity_id is not None and not isinstance(entity_id, (str, bytes)):
        raise InvalidArgumentError(f"{name} must be a str or bytes value, not {type(entity_id).__name__}!")
    if is_blank(entity_id):
        raise InvalidArgumentError(f"{name} cannot be null, nor empty!")
    return entity_id


def validate_ids(entity_ids: Iterable[EntityId]) -> List[EntityId]:
    """
    Ensure a collection of identifiers is usable.

    Blank members are dropped rather than rejected, and duplicates collapse
    while preserving the order in which ids were first seen.

    Args:
        entity_ids: The identifiers to validate.

    Returns:
        The list of non-blank, unique identifiers.

    Raises:
        InvalidArgumentError: If `entity_ids` is None, a single string, or empty.
    """
    if entity_ids is None or isinstance(entity_ids, (str, bytes)):
        raise InvalidArgumentError("ids cannot be null, nor empty!")
    entity_ids = list(entity_ids)
    if not entity_ids:
        raise InvalidArgumentError("ids cannot be null, nor empty!")

    unique_ids = []
    seen = set()
    for entity_id in entity_ids:
        if is_blank(entity_id) or entity_id in seen:
            continue
        seen.add(entity_id)
        unique_ids.append(entity_id)
    return unique_ids


def validate_collection_key(collection_key: str, separator: str = None) -> str:
    """
    Ensure a collection key is usable, optionally checking it against a separator.

    Args:
        collection_key: The name of the collection.
        separator: The key separator the collection key must not contain.

    Returns:
        The collection key, unchanged.

    Raises:
        RepositoryConfigurationError: If the collection key is not a non-blank string.
        InvalidKeyError: If the collection key contains the separator.
    """
    if not isinstance(collection_key, str) or is_blank(collection_key):
        raise RepositoryConfigurationError("collection_key cannot be null, nor empty!")
    if separator and separator in collection_key:
        raise InvalidKeyError(f"Collection key `{collection_key}` cannot contain `{separator}`")
    return collection_key


class EntityKeySpace:
    """
    Key space where every entity lives under its own Redis key.

    Attributes:
        collection_key (str): The name of the collection.
        separator (str): The string placed between the collection key and the id.
        prefix (str): The prefix shared by every key of the collection.
        pattern (str): The glob pattern matching every key of the collection.

    Methods:
        key: Build the Redis key for an entity id.
        keys: Build the Redis keys for several entity ids.
        id_from_key: Recover the entity id from a Redis key.
    """

    def __init__(self, collection_key: str, separator: str = DEFAULT_KEY_SEPARATOR):
        """
        Args:
            collection_key: The name of the collection.
            separator: The string placed between the collection key and the id.
        """
        if is_blank(separator):
            separator = DEFAULT_KEY_SEPARATOR
        self.collection_key: str = validate_collection_key(collection_key, separator)
        self.separator: str = separator
        self.prefix: str = f"{collection_key}{separator}"
        self.pattern: str = f"{self.prefix}*"
        self._prefix_bytes: bytes = self.prefix.encode("utf-8")

    def key(self, entity_id: EntityId) -> RedisKey:
        """
        Build the Redis key of an entity. Bytes ids produce bytes keys.

        Args:
            entity_id: The id of the entity.

        Returns:
            The physical Redis key.
        """
        if isinstance(entity_id, bytes):
            return self._prefix_bytes + entity_id
        return self.prefix + entity_id

    def keys(self, entity_ids: Iterable[EntityId]) -> List[RedisKey]:
        """Build the Redis keys for several entity ids."""
        return [self.key(entity_id) for entity_id in entity_ids]

    def id_from_key(self, key: RedisKey) -> EntityId:
        """
        Strip the collection prefix from a Redis key.

        Args:
            key: A key that belongs to this collection.

        Returns:
            The entity id, of the same type (str/bytes) as the key.
        """
        if isinstance(key, bytes):
            return key[len(self._prefix_bytes) :] if key.startswith(self._prefix_bytes) else key
        return key[len(self.prefix) :] if key.startswith(self.prefix) else key

    def __repr__(self) -> str:
        return f"EntityKeySpace(collection_key={self.collection_key!r}, separator={self.separator!r})"


class SharedHashKeySpace:
    """
    Key space where every entity is a field of one shared Redis hash.

    Attributes:
        collection_key (str): The name of the collection.
        parent_key (str): The Redis key of the shared hash (the collection key itself).
    """

    def __init__(self, collection_key: str, separator: str = DEFAULT_KEY_SEPARATOR):
        """
        Args:
            collection_key: The name of the collection.
            separator: The configured separator; the collection key still may not contain it.
        """
        if is_blank(separator):
            separator = DEFAULT_KEY_SEPARATOR
        self.collection_key: str = validate_collection_key(collection_key, separator)
        self.separator: str = separator
        self.parent_key: str = collection_key

    def field(self, entity_id: EntityId) -> EntityId:
        """The hash field used for an entity is its id."""
        return entity_id

    def __repr__(self) -> str:
        return f"SharedHashKeySpace(parent_key={self.parent_key!r})"
