##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Used to store the application and repository configuration.

Modules:
    config_filepaths.py: Constants for the locations of Strata's configuration files.
    configfile.py: Locates and loads the application configuration file (`strata.yaml`).
    connection.py: Builds connection URLs and Redis clients from the application configuration.
    repository_config.py: The per-repository configuration objects, validated on construction.
"""
from copy import copy
from types import SimpleNamespace
from typing import Dict, List, Optional

from strata.utils import nested_dict_to_namespaces


# Pylint complains that there's too few methods here but this class might
# be useful if we ever need to do extra stuff with the configuration so we'll
# ignore it for now
class Config:  # pylint: disable=R0903
    """
    Stores the application settings read from `strata.yaml` as namespaces.

    Attributes:
        redis (Optional[SimpleNamespace]): Connection settings for the Redis server or cluster.
        repository (Optional[SimpleNamespace]): Defaults applied to every repository.

    Methods:
        load_app_into_namespaces: Converts the provided configuration dictionary into namespaces
            and assigns them to the Config instance's attributes.
    """

    FIELDS: List[str] = ["redis", "repository"]

    def __init__(self, app_dict: Dict):
        """
        Args:
            app_dict: A dictionary containing configuration data for the application.
        """
        self.redis: Optional[SimpleNamespace] = None
        self.repository: Optional[SimpleNamespace] = None
        self.load_app_into_namespaces(app_dict or {})

    def __copy__(self) -> "Config":
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update({field: copy(self.__dict__[field]) for field in self.FIELDS})
        return result

    def __str__(self) -> str:
        formatted_str = "config:"
        for name in self.FIELDS:
            attr = getattr(self, name)
            if attr is not None:
                items = (f"    {k}: {v!r}" for k, v in attr.__dict__.items())
                joined_items = "\n".join(items)
                formatted_str += f"\n  {name}:\n{joined_items}"
            else:
                formatted_str += f"\n  {name}:\n    None"
        return formatted_str

    def load_app_into_namespaces(self, app_dict: Dict):
        """
        Converts the provided application dictionary into namespaces and assigns them
        to the Config instance's attributes.

        Args:
            app_dict: A dictionary containing configuration data for the application.
        """
        for field in self.FIELDS:
            try:
                setattr(self, field, nested_dict_to_namespaces(app_dict[field]))
            except KeyError:
                # The sections are optional
                pass
