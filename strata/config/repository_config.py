##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Per-repository configuration objects.

A [`RepositoryConfig`][config.repository_config.RepositoryConfig] describes one
collection: its key, how entities are serialized, which storage strategy lays
them out in Redis, and which separator joins collection keys and ids. The
cluster variant adds the retry budget used when following topology changes.

Both objects are validated when they are built, so a misconfigured repository
fails before the first command is sent.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Union

from strata.config import Config
from strata.exceptions import RepositoryConfigurationError
from strata.keys import DEFAULT_KEY_SEPARATOR, is_blank, validate_collection_key
from strata.serialization import SerializationMode, Serializer


LOG = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 5


class Strategy(str, Enum):
    """
    The built-in layouts of a collection in Redis.

    Attributes:
        VALUE: Each entity is a standalone string value.
        HASH: Each entity is a standalone hash of fields.
        VALUE_IN_HASH: Every entity is a field of one hash shared by the collection.
    """

    VALUE = "value"
    HASH = "hash"
    VALUE_IN_HASH = "value_in_hash"


ErrorInterceptor = Callable[[Exception], Any]


@dataclass
class RepositoryConfig:
    """
    Configuration of a single-node repository.

    Attributes:
        collection_key: The name of the collection. Cannot contain `separator`.
        serializer: The entity conversion pair. Scalar for the value strategies,
            field-map for the hash strategy.
        strategy: The name (or alias) of the storage strategy.
        mode: The wire type exchanged with Redis.
        separator: The string joining collection keys and ids. Blank values fall back to `:`.
        error_interceptor: Called with every Redis error before it is re-raised.
    """

    collection_key: str
    serializer: Serializer
    strategy: Union[str, Strategy] = Strategy.VALUE
    mode: Union[str, SerializationMode] = SerializationMode.TEXT
    separator: str = DEFAULT_KEY_SEPARATOR
    error_interceptor: Optional[ErrorInterceptor] = None

    def __post_init__(self):
        if is_blank(self.separator):
            self.separator = DEFAULT_KEY_SEPARATOR
        validate_collection_key(self.collection_key, self.separator)

        if not isinstance(self.serializer, Serializer):
            raise RepositoryConfigurationError("serializer must be a Serializer instance!")

        if isinstance(self.strategy, Strategy):
            self.strategy = self.strategy.value
        if not isinstance(self.strategy, str) or is_blank(self.strategy):
            raise RepositoryConfigurationError("strategy cannot be null, nor empty!")

        self.mode = SerializationMode.from_value(self.mode)

        if self.error_interceptor is not None and not callable(self.error_interceptor):
            raise RepositoryConfigurationError("error_interceptor must be callable!")

    @classmethod
    def from_app_config(cls, app_config: Config, collection_key: str, serializer: Serializer, **kwargs):
        """
        Build a repository configuration using the defaults of the `repository`
        section of the application configuration.

        Args:
            app_config: The application configuration.
            collection_key: The name of the collection.
            serializer: The entity conversion pair.
            **kwargs: Any other field of the configuration. Explicit values win over the file.

        Returns:
            The repository configuration.
        """
        settings = app_config.repository
        if settings is not None:
            kwargs.setdefault("separator", getattr(settings, "separator", DEFAULT_KEY_SEPARATOR))
            if issubclass(cls, ClusterRepositoryConfig):
                kwargs.setdefault("max_attempts", getattr(settings, "max_attempts", DEFAULT_MAX_ATTEMPTS))
        return cls(collection_key=collection_key, serializer=serializer, **kwargs)


@dataclass
class ClusterRepositoryConfig(RepositoryConfig):
    """
    Configuration of a repository backed by a Redis Cluster.

    Attributes:
        max_attempts: How many times a command is tried before its last error is raised.
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def __post_init__(self):
        super().__post_init__()
        if isinstance(self.max_attempts, bool) or not isinstance(self.max_attempts, int) or self.max_attempts < 1:
            raise RepositoryConfigurationError(f"max_attempts must be a positive integer, not {self.max_attempts!r}!")
