##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Adapter exposing the routing pieces of `redis.cluster.RedisCluster` that the
cluster command executor needs.
"""

import logging
from typing import Optional

from redis import Redis
from redis.cluster import RedisCluster


LOG = logging.getLogger(__name__)


class SlotConnectionHandler:
    """
    Hands out node connections by slot or by address, and reloads the cluster topology.

    Attributes:
        cluster (RedisCluster): The cluster client whose topology and connection pools are used.

    Methods:
        connection_for_slot: Return a connection to the primary owning a slot.
        connection_for_node: Return a connection to the node at an address.
        refresh: Reload the slot map from the cluster.
    """

    def __init__(self, cluster: RedisCluster):
        """
        Args:
            cluster: The cluster client.
        """
        self.cluster = cluster

    def connection_for_slot(self, slot: int) -> Redis:
        """
        Return a connection to the primary node serving a slot.

        Args:
            slot: The cluster slot.

        Returns:
            A `redis.Redis` client bound to the owning node.
        """
        node = self.cluster.nodes_manager.get_node_from_slot(slot)
        LOG.debug(f"Slot {slot} is served by {node.host}:{node.port}.")
        return self.cluster.get_redis_connection(node)

    def connection_for_node(self, host: str, port: int) -> Optional[Redis]:
        """
        Return a connection to the node at `host:port`.

        The topology is reloaded once if the node is unknown.

        Args:
            host: The host of the node.
            port: The port of the node.

        Returns:
            A `redis.Redis` client bound to the node, or None if the cluster does not know it.
        """
        node = self.cluster.get_node(host=host, port=port)
        if node is None:
            self.refresh()
            node = self.cluster.get_node(host=host, port=port)
        if node is None:
            LOG.debug(f"Node {host}:{port} is not part of the cluster topology.")
            return None
        return self.cluster.get_redis_connection(node)

    def refresh(self):
        """Reload the slot map from the cluster."""
        LOG.debug("Refreshing the cluster topology...")
        self.cluster.nodes_manager.initialize()

    def close(self):
        """Close the connections to every node of the cluster."""
        self.cluster.close()
