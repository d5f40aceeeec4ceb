##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Base factory class for managing pluggable components in Strata.

This module defines an abstract `StrataBaseFactory` class that provides a reusable
infrastructure for registering, discovering, and instantiating pluggable components.
It supports alias resolution, entry-point-based plugin discovery, and runtime
introspection of registered components.

Subclasses must define how to register built-in components, validate component classes,
and identify the appropriate entry point group for plugin discovery.
"""

import logging
from abc import ABC, abstractmethod
from importlib.metadata import entry_points
from typing import Any, Dict, List, Type

from strata.exceptions import InvalidArgumentError


LOG = logging.getLogger(__name__)


class StrataBaseFactory(ABC):
    """
    Abstract base factory for managing and instantiating pluggable components.

    This class provides the infrastructure for:
    - Registering components and their aliases
    - Discovering plugins via Python entry points
    - Creating instances of registered components
    - Listing and introspecting available components

    Subclasses are required to:
        - Implement `_register_builtins()` to register default implementations
        - Implement `_validate_component()` to enforce interface/type constraints
        - Define `_entry_point_group()` to identify the entry point namespace for discovery

    Attributes:
        _registry (Dict[str, Any]): Maps canonical component names to their classes.
        _aliases (Dict[str, str]): Maps alias names to canonical component names.

    Methods:
        register: Register a new component and its optional aliases.
        resolve: Resolve an alias to its canonical name.
        list_available: Return a list of all registered component names.
        get_component_class: Return the class registered under a name or alias.
        create: Instantiate a registered component by name or alias.
        get_component_info: Return introspection metadata for a registered component.
    """

    def __init__(self):
        # Map canonical names to implementation classes
        self._registry: Dict[str, Any] = {}

        # Map aliases to canonical names (e.g., legacy names or shorthand)
        self._aliases: Dict[str, str] = {}

        self._plugins_discovered = False

        self._register_builtins()

    @abstractmethod
    def _register_builtins(self):
        """
        Register built-in components.

        Subclasses must implement this to register relevant components.
        """
        raise NotImplementedError("Subclasses of `StrataBaseFactory` must implement a `_register_builtins` method.")

    @abstractmethod
    def _validate_component(self, component_class: Any):
        """
        Validate the component class before registration.

        Args:
            component_class: The class to validate.

        Raises:
            TypeError: If `component_class` is not valid.
        """
        raise NotImplementedError("Subclasses of `StrataBaseFactory` must implement a `_validate_component` method.")

    @abstractmethod
    def _entry_point_group(self) -> str:
        """
        Return the entry point group used for plugin discovery.

        Returns:
            The entry point group used for plugin discovery.
        """
        raise NotImplementedError("Subclasses must define an entry point group.")

    def _discover_plugins(self):
        """
        Discover and register plugins via Python entry points.

        Discovery runs once per factory. A plugin that fails to load is logged and skipped.
        """
        if self._plugins_discovered:
            return
        self._plugins_discovered = True

        for entry_point in entry_points(group=self._entry_point_group()):
            try:
                plugin_class = entry_point.load()
                self.register(entry_point.name, plugin_class)
                LOG.info(f"Loaded plugin via entry point: {entry_point.name}")
            except Exception as e:  # pylint: disable=broad-exception-caught
                LOG.warning(f"Failed to load plugin '{entry_point.name}': {e}")

    def _raise_component_error_class(self, msg: str) -> Type[Exception]:
        """
        Raise an appropriate exception when an invalid component is requested.

        Subclasses should override this to raise more specific exceptions.

        Args:
            msg: The message to add to the error being raised.

        Raises:
            A subclass of Exception (e.g., ValueError by default).
        """
        raise ValueError(msg)

    def register(self, name: str, component_class: Any, aliases: List[str] = None) -> None:
        """
        Register a new component implementation.

        Args:
            name: Canonical name for the component.
            component_class: The class or implementation to register.
            aliases: Optional alternative names for this component.

        Raises:
            TypeError: If the component_class fails validation.
        """
        self._validate_component(component_class)

        self._registry[name] = component_class
        LOG.debug(f"Registered component: {name}")

        if aliases:
            for alias in aliases:
                self._aliases[alias] = name
                LOG.debug(f"Registered alias '{alias}' for component '{name}'")

    def resolve(self, component_type: str) -> str:
        """
        Resolve a name or alias to its canonical name.

        Args:
            component_type: The name or alias of a component.

        Returns:
            The canonical name (or `component_type` itself if it is not an alias).
        """
        return self._aliases.get(component_type, component_type)

    def list_available(self) -> List[str]:
        """
        Return a list of supported component names.

        This includes both built-in and dynamically discovered components.

        Returns:
            A list of canonical names for all available components.
        """
        self._discover_plugins()
        return list(self._registry.keys())

    def get_component_class(self, component_type: str) -> Any:
        """
        Retrieve a registered component class by its name or alias.

        Plugin discovery is triggered if the name isn't registered yet.

        Args:
            component_type: The name or alias provided by the user.

        Returns:
            The class object corresponding to the requested component.

        Raises:
            Exception: Raises the result of `_raise_component_error_class` if the component is not registered.
        """
        canonical_name = self.resolve(component_type)
        if canonical_name not in self._registry:
            self._discover_plugins()
            canonical_name = self.resolve(component_type)

        component_class = self._registry.get(canonical_name)
        if component_class is None:
            available = ", ".join(self.list_available())
            self._raise_component_error_class(
                f"Component '{component_type}' is not supported. " f"Available components: {available}"
            )

        return component_class

    def create(self, component_type: str, config: Dict = None) -> Any:
        """
        Instantiate and return a component of the specified type.

        Args:
            component_type: The name or alias of the component to create.
            config: Optional keyword arguments for initializing the component.

        Returns:
            An instance of the requested component.

        Raises:
            InvalidArgumentError: If the component rejects its configuration.
            ValueError: If instantiation fails for any other reason.
        """
        component_class = self.get_component_class(component_type)
        canonical_name = self.resolve(component_type)

        try:
            instance = component_class() if config is None else component_class(**config)
        except InvalidArgumentError:
            raise
        except Exception as e:
            raise ValueError(f"Failed to create component '{canonical_name}': {e}") from e

        LOG.debug(f"Created component '{canonical_name}'")
        return instance

    def get_component_info(self, component_type: str) -> Dict:
        """
        Get introspection information about a registered component.

        Args:
            component_type: The name or alias of the component.

        Returns:
            Dictionary containing metadata such as name, class, module, and docstring.
        """
        component_class = self.get_component_class(component_type)

        return {
            "name": self.resolve(component_type),
            "class": component_class.__name__,
            "module": component_class.__module__,
            "description": component_class.__doc__ or "No description available",
        }
