##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Repository factory for selecting and instantiating storage strategies.

This module defines the `RepositoryFactory` class, which maps strategy names
(and their aliases) to repository classes, and `create_repository`, which
picks the command runner (single node or cluster) and builds the repository
a configuration asks for.

Third-party strategies can be registered through the `strata.repositories`
entry point group.
"""

import logging
from typing import Any, Type

from redis import Redis
from redis.cluster import RedisCluster

from strata.abstracts import StrataBaseFactory
from strata.cluster import ClusterCommandExecutor, SlotConnectionHandler
from strata.config.repository_config import DEFAULT_MAX_ATTEMPTS, RepositoryConfig, Strategy
from strata.exceptions import RepositoryConfigurationError, RepositoryNotSupportedError
from strata.repositories.base import Repository
from strata.repositories.hash import HashRepository
from strata.repositories.value import ValueRepository
from strata.repositories.value_in_hash import ValueInHashRepository
from strata.runner import BaseCommandRunner, CommandRunner


LOG = logging.getLogger(__name__)


class RepositoryFactory(StrataBaseFactory):
    """
    Factory class for managing and instantiating repository strategies.

    Attributes:
        _registry (Dict[str, Repository]): Maps canonical strategy names to repository classes.
        _aliases (Dict[str, str]): Maps alternate names to canonical strategy names.

    Methods:
        register: Register a new repository class and optional aliases.
        list_available: Return a list of supported strategy names.
        create: Instantiate a repository class by strategy name or alias.
        get_component_info: Return metadata about a registered strategy.
    """

    def _register_builtins(self):
        """
        Register the built-in storage strategies.
        """
        self.register(Strategy.VALUE.value, ValueRepository, aliases=["each_entity_is_a_value", "value_per_entity"])
        self.register(Strategy.HASH.value, HashRepository, aliases=["each_entity_is_a_hash", "hash_per_entity"])
        self.register(
            Strategy.VALUE_IN_HASH.value,
            ValueInHashRepository,
            aliases=["each_entity_is_a_value_in_a_hash", "value_in_shared_hash"],
        )

    def _validate_component(self, component_class: Any):
        """
        Ensure registered component is a subclass of Repository.

        Args:
            component_class: The class to validate.

        Raises:
            TypeError: If the component does not subclass Repository.
        """
        if not isinstance(component_class, type) or not issubclass(component_class, Repository):
            raise TypeError(f"{component_class} must inherit from Repository")

    def _entry_point_group(self) -> str:
        """
        Entry point group used for discovering repository plugins.

        Returns:
            The entry point namespace for Strata repository plugins.
        """
        return "strata.repositories"

    def _raise_component_error_class(self, msg: str) -> Type[Exception]:
        """
        Raise an appropriate exception for unsupported strategies.

        Args:
            msg: The message to add to the error being raised.

        Raises:
            RepositoryNotSupportedError: Always.
        """
        raise RepositoryNotSupportedError(msg)


repository_factory = RepositoryFactory()


def build_runner(config: RepositoryConfig, client: Redis = None, cluster: RedisCluster = None) -> BaseCommandRunner:
    """
    Build the command runner for a configuration.

    Args:
        config: The repository configuration.
        client: A single-node Redis client. A Redis Cluster client passed here is treated as `cluster`.
        cluster: A Redis Cluster client.

    Returns:
        A `CommandRunner` for a single node or a `ClusterCommandExecutor` for a cluster.

    Raises:
        RepositoryConfigurationError: If neither or both clients are given.
    """
    if isinstance(client, RedisCluster) and cluster is None:
        client, cluster = None, client
    if (client is None) == (cluster is None):
        raise RepositoryConfigurationError("Exactly one of a Redis client or a Redis Cluster client is required.")

    if cluster is not None:
        max_attempts = getattr(config, "max_attempts", DEFAULT_MAX_ATTEMPTS)
        return ClusterCommandExecutor(
            SlotConnectionHandler(cluster), max_attempts=max_attempts, error_interceptor=config.error_interceptor
        )

    return CommandRunner(client, error_interceptor=config.error_interceptor)


def create_repository(config: RepositoryConfig, client: Redis = None, cluster: RedisCluster = None) -> Repository:
    """
    Build the repository a configuration asks for.

    Args:
        config: The repository configuration. Its `strategy` selects the repository class.
        client: A single-node Redis client.
        cluster: A Redis Cluster client.

    Returns:
        The repository.

    Raises:
        RepositoryConfigurationError: If the configuration is invalid.
        RepositoryNotSupportedError: If the strategy is unknown.
    """
    if not isinstance(config, RepositoryConfig):
        raise RepositoryConfigurationError("config must be a RepositoryConfig instance!")

    # Unknown strategies fail before any runner is built
    repository_factory.get_component_class(config.strategy)
    runner = build_runner(config, client=client, cluster=cluster)
    repository = repository_factory.create(config.strategy, {"config": config, "runner": runner})
    LOG.debug(f"Created {repository!r} on a {'cluster' if isinstance(runner, ClusterCommandExecutor) else 'single node'}.")
    return repository
