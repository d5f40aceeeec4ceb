##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Utility functions to support Strata CLI command handlers.

The CLI inspects collections without knowing their entity types, so every
repository it builds uses an identity serializer in TEXT mode: values are
shown exactly as they are stored.
"""

import logging
from argparse import ArgumentParser, Namespace
from typing import Any

from strata.config.configfile import get_config
from strata.config.connection import get_client
from strata.config.repository_config import ClusterRepositoryConfig, RepositoryConfig, Strategy
from strata.repositories import Repository, create_repository, repository_factory
from strata.serialization import SerializationMode, Serializer


LOG = logging.getLogger(__name__)


def _identity(value: Any) -> Any:
    return value


def raw_serializer() -> Serializer:
    """
    Build a serializer that passes wire values through untouched.

    It works for scalar values and for field-maps alike.

    Returns:
        An identity [`Serializer`][serialization.Serializer].
    """
    return Serializer(serialize=_identity, deserialize=_identity)


def add_collection_arguments(parser: ArgumentParser, with_id: bool = True):
    """
    Add the arguments shared by every command that reads a collection.

    Args:
        parser: The parser of the command.
        with_id: Whether the command also takes an entity id.
    """
    parser.add_argument("collection", type=str, help="The collection key.")
    if with_id:
        parser.add_argument("id", type=str, help="The id of the entity.")
    parser.add_argument(
        "-s",
        "--strategy",
        type=str,
        default=Strategy.VALUE.value,
        help="How the collection is stored: value, hash, or value_in_hash (aliases accepted). "
        "Default: %(default)s",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="The path to a strata.yaml file, or the directory holding it.",
    )


def build_repository(args: Namespace) -> Repository:
    """
    Build a raw TEXT-mode repository for the collection named on the command line.

    Args:
        args: Parsed CLI arguments with `collection`, `strategy`, and `config` attributes.

    Returns:
        The repository.
    """
    app_config = get_config(args.config)
    is_cluster = bool(getattr(app_config.redis, "cluster", False))
    config_class = ClusterRepositoryConfig if is_cluster else RepositoryConfig
    strategy = repository_factory.resolve(args.strategy)

    config = config_class.from_app_config(
        app_config,
        collection_key=args.collection,
        serializer=raw_serializer(),
        strategy=strategy,
        mode=SerializationMode.TEXT,
    )
    client = get_client(app_config, decode_responses=True)
    LOG.debug(f"Using the '{strategy}' strategy on collection '{args.collection}'.")
    if is_cluster:
        return create_repository(config, cluster=client)
    return create_repository(config, client=client)


def format_entity(entity: Any) -> str:
    """
    Render a raw entity for printing.

    Args:
        entity: A scalar value or a field-map.

    Returns:
        The value itself, or one `field: value` line per field.
    """
    if isinstance(entity, dict):
        return "\n".join(f"{field}: {value}" for field, value in sorted(entity.items()))
    return str(entity)
