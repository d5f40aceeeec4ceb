##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Test the functionality of the Config object.
"""

from copy import copy
from types import SimpleNamespace

import pytest

from strata.config import Config
from strata.utils import nested_dict_to_namespaces


class TestConfig:
    """
    Class for testing the Config object. We'll store a valid `app_dict`
    as an attribute here so that each test doesn't have to redefine it
    each time.
    """

    app_dict = {
        "redis": {
            "server": "127.0.0.1",
            "port": 6379,
            "db_num": 0,
            "password": "redis.pass",
            "ssl": False,
            "cluster": False,
        },
        "repository": {"separator": ":", "max_attempts": 5},
    }

    def test_config_creation(self):
        """
        Test that every section of `app_dict` becomes a namespace attribute.
        """
        config = Config(self.app_dict)

        assert config.redis == SimpleNamespace(**self.app_dict["redis"])
        assert config.repository == SimpleNamespace(**self.app_dict["repository"])

    def test_missing_sections(self):
        """
        Test that sections left out of the configuration stay None.
        """
        config = Config({"redis": {"server": "cache.local"}})

        assert config.redis.server == "cache.local"
        assert config.repository is None

    def test_empty_config(self):
        """
        Test that a None dictionary gives an empty configuration.
        """
        config = Config(None)
        assert config.redis is None
        assert config.repository is None

    def test_copy(self):
        """
        Test that a copy does not share its sections with the original.
        """
        config = Config(self.app_dict)
        config_copy = copy(config)

        config_copy.redis.server = "10.0.0.1"

        assert config.redis.server == "127.0.0.1"
        assert config_copy.repository == config.repository

    def test_str(self):
        """
        Test the string representation of the configuration.
        """
        config = Config({"repository": {"separator": ":"}})
        assert str(config) == "config:\n  redis:\n    None\n  repository:\n    separator: ':'"


class TestNestedDictToNamespaces:
    """Tests for the `nested_dict_to_namespaces` helper used by `Config`."""

    def test_nested(self):
        """
        Test that nested dictionaries become nested namespaces without touching the input.
        """
        source = {"redis": {"server": "127.0.0.1"}}

        result = nested_dict_to_namespaces(source)

        assert result.redis.server == "127.0.0.1"
        assert source == {"redis": {"server": "127.0.0.1"}}

    def test_not_a_dict(self):
        """
        Test that anything but a dictionary is rejected.
        """
        with pytest.raises(TypeError, match="is not a dict"):
            nested_dict_to_namespaces(["redis"])
