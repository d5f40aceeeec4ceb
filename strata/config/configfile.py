##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
This module provides functionality for locating and loading the application
configuration file (`strata.yaml`) and filling in default settings.
"""
import logging
import os
from typing import Dict, Optional

from strata.config import Config
from strata.config.config_filepaths import APP_FILENAME, CONFIG_ENV_VAR, CONFIG_PATH_FILE, STRATA_HOME
from strata.keys import DEFAULT_KEY_SEPARATOR
from strata.utils import load_yaml


LOG: logging.Logger = logging.getLogger(__name__)

DEFAULT_REDIS_SETTINGS: Dict = {
    "server": "127.0.0.1",
    "port": 6379,
    "db_num": 0,
    "ssl": False,
    "cluster": False,
}

DEFAULT_REPOSITORY_SETTINGS: Dict = {
    "separator": DEFAULT_KEY_SEPARATOR,
    "max_attempts": 5,
}


def load_config(filepath: str) -> Optional[Dict]:
    """
    Reads a Strata YAML configuration file and returns its contents as a dictionary.

    Args:
        filepath: The path to the YAML configuration file.

    Returns:
        A dictionary containing the contents of the YAML file or None if file doesn't exist.
    """
    if not os.path.isfile(filepath):
        LOG.info(f"No app config file at {filepath}")
        return None
    LOG.info(f"Reading app config from file {filepath}")
    return load_yaml(filepath) or {}


def find_config_file(path: str = None) -> Optional[str]:
    """
    Locate the Strata application configuration file (`strata.yaml`).

    If `path` is given it may name the file itself or the directory holding it,
    and nothing else is searched. Otherwise the `STRATA_CONFIG` environment
    variable wins, followed by this fallback sequence:
      1. `strata.yaml` in the current working directory.
      2. The file named in `CONFIG_PATH_FILE`, if it exists.
      3. `strata.yaml` in the `STRATA_HOME` directory.

    Args:
        path: A specific file or directory to look for the configuration in.

    Returns:
        The full path to the configuration file if found, otherwise `None`.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR)

    if path is not None:
        path = os.path.expanduser(path)
        if os.path.isfile(path):
            return path
        app_path = os.path.join(path, APP_FILENAME)
        if os.path.isfile(app_path):
            return app_path
        return None

    local_app = os.path.join(os.getcwd(), APP_FILENAME)
    if os.path.isfile(local_app):
        return local_app

    if os.path.isfile(CONFIG_PATH_FILE):
        with open(CONFIG_PATH_FILE, "r") as f:
            config_path = f.read().strip()
        if os.path.isfile(config_path):
            return config_path

    path_app = os.path.join(STRATA_HOME, APP_FILENAME)
    if os.path.isfile(path_app):
        return path_app

    return None


def load_defaults(config: Dict):
    """
    Fill in default values for every setting the configuration leaves out.

    Args:
        config: The configuration dictionary, modified in place.
    """
    for section, defaults in (("redis", DEFAULT_REDIS_SETTINGS), ("repository", DEFAULT_REPOSITORY_SETTINGS)):
        if not isinstance(config.get(section), dict):
            config[section] = {}
        for key, value in defaults.items():
            if config[section].get(key) is None:
                config[section][key] = value


def get_config(path: Optional[str] = None) -> Config:
    """
    Loads the Strata configuration file and returns it as a [`Config`][config.Config] object.

    Args:
        path: The file or directory to read the configuration from.
            If `None`, default search paths are used.

    Returns:
        The application configuration with defaults applied.

    Raises:
        ValueError: If the configuration file cannot be found.
    """
    filepath = find_config_file(path)
    if filepath is None:
        raise ValueError(
            f"Cannot find a strata config file! Create '{os.path.join(STRATA_HOME, APP_FILENAME)}' "
            f"or point the {CONFIG_ENV_VAR} environment variable at one."
        )
    config = load_config(filepath)
    load_defaults(config)
    return Config(config)
