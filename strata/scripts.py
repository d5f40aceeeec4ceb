##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Lua scripts backing the compare-and-swap operations, and the per-repository
cache of their digests.

Every script returns `1` when its guarded action fired and `0` otherwise.

Value scripts take one key and two arguments:

- `KEYS[1]`: the entity key
- `ARGV[1]`: the expected (serialized) value
- `ARGV[2]`: the new (serialized) value, for updates

Shared-hash scripts take the parent key only; the hash field is an argument
so every declared key lives in the parent key's cluster slot:

- `KEYS[1]`: the parent key
- `ARGV[1]`: the hash field (entity id)
- `ARGV[2]`: the expected (serialized) value
- `ARGV[3]`: the new (serialized) value, for updates
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from redis import Redis
from redis.exceptions import NoScriptError


LOG = logging.getLogger(__name__)


@dataclass(frozen=True)
class LuaScript:
    """
    A named Lua script body.

    Attributes:
        name: A unique name for the script, used as the digest cache key.
        body: The Lua source.
    """

    name: str
    body: str


VALUE_UPDATE_IF_IT_IS = LuaScript(
    name="value_update_if_it_is",
    body="""
local current = redis.call('get', KEYS[1])
if current and current == ARGV[1] then
    redis.call('set', KEYS[1], ARGV[2])
    return 1
end
return 0
""",
)

VALUE_UPDATE_IF_IT_IS_NOT = LuaScript(
    name="value_update_if_it_is_not",
    body="""
local current = redis.call('get', KEYS[1])
if current and current ~= ARGV[1] then
    redis.call('set', KEYS[1], ARGV[2])
    return 1
end
return 0
""",
)

VALUE_DELETE_IF_IT_IS = LuaScript(
    name="value_delete_if_it_is",
    body="""
local current = redis.call('get', KEYS[1])
if current and current == ARGV[1] then
    redis.call('del', KEYS[1])
    return 1
end
return 0
""",
)

VALUE_DELETE_IF_IT_IS_NOT = LuaScript(
    name="value_delete_if_it_is_not",
    body="""
local current = redis.call('get', KEYS[1])
if current and current ~= ARGV[1] then
    redis.call('del', KEYS[1])
    return 1
end
return 0
""",
)

HASH_UPDATE_IF_IT_IS = LuaScript(
    name="hash_update_if_it_is",
    body="""
local current = redis.call('hget', KEYS[1], ARGV[1])
if current and current == ARGV[2] then
    redis.call('hset', KEYS[1], ARGV[1], ARGV[3])
    return 1
end
return 0
""",
)

HASH_UPDATE_IF_IT_IS_NOT = LuaScript(
    name="hash_update_if_it_is_not",
    body="""
local current = redis.call('hget', KEYS[1], ARGV[1])
if current and current ~= ARGV[2] then
    redis.call('hset', KEYS[1], ARGV[1], ARGV[3])
    return 1
end
return 0
""",
)

HASH_DELETE_IF_IT_IS = LuaScript(
    name="hash_delete_if_it_is",
    body="""
local current = redis.call('hget', KEYS[1], ARGV[1])
if current and current == ARGV[2] then
    redis.call('hdel', KEYS[1], ARGV[1])
    return 1
end
return 0
""",
)

HASH_DELETE_IF_IT_IS_NOT = LuaScript(
    name="hash_delete_if_it_is_not",
    body="""
local current = redis.call('hget', KEYS[1], ARGV[1])
if current and current ~= ARGV[2] then
    redis.call('hdel', KEYS[1], ARGV[1])
    return 1
end
return 0
""",
)


class ScriptCache:
    """
    Lazily loads Lua scripts into Redis and invokes them by digest.

    Each repository owns one cache. Digests are loaded with `SCRIPT LOAD` the
    first time a script is used and invoked with `EVALSHA` afterwards. If the
    server no longer knows a digest (the script cache was flushed, or a cluster
    node has never seen the script) the script is loaded again and the call is
    retried once.

    Populating the cache takes no lock: loading the same body twice yields the
    same digest.

    Attributes:
        _digests (Dict[str, str]): Maps script names to their SHA1 digests.

    Methods:
        digest: Return the digest of a script, loading it if needed.
        evaluate: Run a script by digest, reloading it once on `NoScriptError`.
        clear: Forget every cached digest.
    """

    def __init__(self):
        self._digests: Dict[str, str] = {}

    def digest(self, client: Redis, script: LuaScript) -> str:
        """
        Return the digest of a script, loading it on the server if it isn't cached yet.

        Args:
            client: The connection used to load the script.
            script: The script to load.

        Returns:
            The SHA1 digest of the script.
        """
        sha = self._digests.get(script.name)
        if sha is None:
            LOG.debug(f"Loading script '{script.name}'...")
            sha = client.script_load(script.body)
            self._digests[script.name] = sha
            LOG.debug(f"Loaded script '{script.name}' with digest {sha}.")
        return sha

    def evaluate(self, client: Redis, script: LuaScript, keys: List[Any], args: List[Any]) -> Any:
        """
        Run a script by digest.

        Args:
            client: The connection used to run the script.
            script: The script to run.
            keys: The keys the script touches.
            args: The arguments handed to the script.

        Returns:
            Whatever the script returns.
        """
        sha = self.digest(client, script)
        try:
            return client.evalsha(sha, len(keys), *keys, *args)
        except NoScriptError:
            LOG.debug(f"Script '{script.name}' is unknown to the server. Reloading it and retrying.")
            self._digests.pop(script.name, None)
            sha = self.digest(client, script)
            return client.evalsha(sha, len(keys), *keys, *args)

    def clear(self):
        """Forget every cached digest."""
        self._digests.clear()
