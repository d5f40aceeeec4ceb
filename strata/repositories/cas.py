##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Compare-and-swap operations for the strategies that store scalar values.

Each operation runs one Lua script server-side, so the comparison and the
write (or delete) happen atomically without a watch round trip.
"""

import logging
from typing import Any, List, Tuple

from strata.keys import EntityId, RedisKey, validate_id
from strata.scripts import LuaScript, ScriptCache


LOG = logging.getLogger(__name__)


class CompareAndSwapMixin:
    """
    Mixin adding `update_if_it_is`, `update_if_it_is_not`, `delete_if_it_is`,
    and `delete_if_it_is_not` to a repository.

    Classes using it define the four scripts and `_script_keys_and_args`, which
    lays out the keys and arguments those scripts expect.

    Attributes:
        scripts (ScriptCache): The digests of the scripts this repository has loaded.
    """

    UPDATE_IF_IT_IS_SCRIPT: LuaScript
    UPDATE_IF_IT_IS_NOT_SCRIPT: LuaScript
    DELETE_IF_IT_IS_SCRIPT: LuaScript
    DELETE_IF_IT_IS_NOT_SCRIPT: LuaScript

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.scripts = ScriptCache()

    def _script_keys_and_args(self, entity_id: EntityId, values: List[Any]) -> Tuple[List[RedisKey], List[Any]]:
        """
        Lay out the keys and arguments of a compare-and-swap script.

        Args:
            entity_id: The id of the entity.
            values: The serialized expected value, followed by the new value for updates.

        Returns:
            A tuple of the script's keys and its arguments.
        """
        raise NotImplementedError("Classes using `CompareAndSwapMixin` must implement `_script_keys_and_args`.")

    def _compare_and_swap(self, script: LuaScript, entity_id: EntityId, *entities: Any) -> bool:
        entity_id = validate_id(entity_id)
        values = [self.codec.encode(entity) for entity in entities]
        keys, args = self._script_keys_and_args(entity_id, values)

        result = self._run(keys, lambda client: self.scripts.evaluate(client, script, keys, args))
        LOG.debug(f"Script '{script.name}' on id '{entity_id}' returned {result}.")
        return int(result or 0) == 1

    def update_if_it_is(self, entity_id: EntityId, old_entity: Any, new_entity: Any) -> bool:
        """
        Atomically replace an entity with `new_entity` if it is stored and its
        serialized value equals that of `old_entity`.

        Args:
            entity_id: The id of the entity.
            old_entity: The expected current entity.
            new_entity: The replacement.

        Returns:
            True if the entity was replaced, False if the store was left unchanged.
        """
        return self._compare_and_swap(self.UPDATE_IF_IT_IS_SCRIPT, entity_id, old_entity, new_entity)

    def update_if_it_is_not(self, entity_id: EntityId, old_entity: Any, new_entity: Any) -> bool:
        """
        Atomically replace an entity with `new_entity` if it is stored and its
        serialized value differs from that of `old_entity`.

        Returns:
            True if the entity was replaced, False if the store was left unchanged.
        """
        return self._compare_and_swap(self.UPDATE_IF_IT_IS_NOT_SCRIPT, entity_id, old_entity, new_entity)

    def delete_if_it_is(self, entity_id: EntityId, old_entity: Any) -> bool:
        """
        Atomically remove an entity if its serialized value equals that of `old_entity`.

        Returns:
            True if the entity was removed.
        """
        return self._compare_and_swap(self.DELETE_IF_IT_IS_SCRIPT, entity_id, old_entity)

    def delete_if_it_is_not(self, entity_id: EntityId, old_entity: Any) -> bool:
        """
        Atomically remove an entity if it is stored and its serialized value differs from that of `old_entity`.

        Returns:
            True if the entity was removed.
        """
        return self._compare_and_swap(self.DELETE_IF_IT_IS_NOT_SCRIPT, entity_id, old_entity)
