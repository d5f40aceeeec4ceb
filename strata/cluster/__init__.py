##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
The `cluster` package routes repository operations across a Redis Cluster.

Modules:
    slots: CRC16 slot computation and grouping of keys by slot.
    handler: Contains `SlotConnectionHandler`, an adapter over `redis.cluster.RedisCluster`.
    executor: Contains `ClusterCommandExecutor`, the bounded-retry command runner.
"""

from strata.cluster.executor import ClusterCommandExecutor
from strata.cluster.handler import SlotConnectionHandler
from strata.cluster.slots import group_by_slot, key_slot


__all__ = ["ClusterCommandExecutor", "SlotConnectionHandler", "group_by_slot", "key_slot"]
