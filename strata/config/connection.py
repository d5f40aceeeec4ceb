##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
This module builds Redis connection URLs and clients from the application configuration.
"""

import logging
import os
from typing import Union
from urllib.parse import quote

from redis import Redis
from redis.cluster import RedisCluster

from strata.config import Config
from strata.config.config_filepaths import STRATA_HOME


LOG = logging.getLogger(__name__)


def get_password(password_file: str) -> str:
    """
    Retrieves the Redis password from a specified file or returns the provided password value.

    The password file is looked for in the `STRATA_HOME` directory first and then
    at the path itself. If no file is found, `password_file` is treated as the
    password itself.

    Args:
        password_file: The file path or value for the password.

    Returns:
        The password, either retrieved from the file (URL-quoted) or the provided value.
    """
    strata_pass = os.path.join(STRATA_HOME, password_file)
    password_file = os.path.expanduser(password_file)

    password_filepath = ""
    if os.path.isfile(strata_pass):
        password_filepath = strata_pass
    elif os.path.isfile(password_file):
        password_filepath = password_file

    if not password_filepath:
        # The password was given instead of the filepath.
        LOG.debug("Password resolution: using direct value.")
        return password_file.strip()

    with open(password_filepath, "r") as f:  # pylint: disable=C0103
        line = f.readline().strip()
    LOG.debug("Password resolution: using file.")
    return quote(line, safe="")


def get_connection_string(config: Config, include_password: bool = True, include_db: bool = True) -> str:
    """
    Constructs a `redis://` or `rediss://` connection URL from the `redis` section of the configuration.

    Args:
        config: The application configuration.
        include_password: Whether to include the password in the URL. If False, it is masked.
        include_db: Whether to append the database number. Clusters only have database 0.

    Returns:
        The connection URL.
    """
    settings = config.redis
    urlbase = "rediss" if getattr(settings, "ssl", False) else "redis"
    server = getattr(settings, "server", "127.0.0.1")
    port = getattr(settings, "port", 6379)
    db_num = getattr(settings, "db_num", 0)
    username = getattr(settings, "username", None) or ""
    password_file = getattr(settings, "password", None)

    spass = ""
    if password_file:
        password = get_password(str(password_file)) if include_password else "******"
        spass = f"{username}:{password}@"
    elif username:
        spass = f"{username}@"
    else:
        LOG.debug("No Redis password configured.")

    url = f"{urlbase}://{spass}{server}:{port}"
    return f"{url}/{db_num}" if include_db else url


def get_redis_client(config: Config, decode_responses: bool = False) -> Redis:
    """
    Build a single-node Redis client.

    Args:
        config: The application configuration.
        decode_responses: Whether the client should decode replies to `str`.

    Returns:
        A `redis.Redis` client.
    """
    LOG.debug(f"Connecting to {get_connection_string(config, include_password=False)}")
    return Redis.from_url(get_connection_string(config), decode_responses=decode_responses)


def get_cluster_client(config: Config, decode_responses: bool = False) -> RedisCluster:
    """
    Build a Redis Cluster client. The configured server is used as the startup node.

    Args:
        config: The application configuration.
        decode_responses: Whether the client should decode replies to `str`.

    Returns:
        A `redis.cluster.RedisCluster` client.
    """
    LOG.debug(f"Connecting to cluster via {get_connection_string(config, include_password=False, include_db=False)}")
    return RedisCluster.from_url(get_connection_string(config, include_db=False), decode_responses=decode_responses)


def get_client(config: Config, decode_responses: bool = False) -> Union[Redis, RedisCluster]:
    """
    Build the client the configuration asks for (`redis.cluster` selects cluster mode).

    Args:
        config: The application configuration.
        decode_responses: Whether the client should decode replies to `str`.

    Returns:
        Either a `redis.Redis` or a `redis.cluster.RedisCluster` client.
    """
    if getattr(config.redis, "cluster", False):
        return get_cluster_client(config, decode_responses=decode_responses)
    return get_redis_client(config, decode_responses=decode_responses)
