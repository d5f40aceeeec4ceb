##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Hash slot helpers for Redis Cluster.

Keys are mapped to one of 16384 slots by Redis Cluster's CRC16 function,
honouring `{hash tags}`. Multi-key commands must only ever be sent with keys
from a single slot, so batch operations group their keys with `group_by_slot`
before dispatching one sub-request per group.
"""

from typing import Dict, Iterable, List, Union

from redis.crc import key_slot as _crc_key_slot


def _as_bytes(key: Union[str, bytes]) -> bytes:
    return key if isinstance(key, bytes) else key.encode("utf-8")


def key_slot(key: Union[str, bytes]) -> int:
    """
    Compute the cluster slot of a key.

    Args:
        key: A Redis key.

    Returns:
        The slot number, between 0 and 16383.
    """
    return _crc_key_slot(_as_bytes(key))


def group_by_slot(keys: Iterable[Union[str, bytes]]) -> Dict[int, List[Union[str, bytes]]]:
    """
    Group keys by cluster slot.

    Slots appear in the order their first key was seen, and keys keep their
    relative order within a slot.

    Args:
        keys: The keys to group.

    Returns:
        A dict mapping slot numbers to the keys that hash to them.
    """
    groups: Dict[int, List[Union[str, bytes]]] = {}
    for key in keys:
        groups.setdefault(key_slot(key), []).append(key)
    return groups
