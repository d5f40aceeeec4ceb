##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
The `repositories` package holds one repository class per storage strategy,
all sharing the interface defined in `base`.

Modules:
    base: Contains `Repository`, the uniform interface, and the optimistic-lock protocol.
    cas: Contains `CompareAndSwapMixin`, the script-backed conditional operations.
    value: Contains `ValueRepository`, where each entity is a string value.
    hash: Contains `HashRepository`, where each entity is a hash of fields.
    value_in_hash: Contains `ValueInHashRepository`, where entities are fields of one shared hash.
    factory: Contains `RepositoryFactory` and `create_repository`.
"""

from strata.repositories.base import Repository
from strata.repositories.factory import RepositoryFactory, create_repository, repository_factory
from strata.repositories.hash import HashRepository
from strata.repositories.value import ValueRepository
from strata.repositories.value_in_hash import ValueInHashRepository


__all__ = [
    "Repository",
    "RepositoryFactory",
    "create_repository",
    "repository_factory",
    "HashRepository",
    "ValueRepository",
    "ValueInHashRepository",
]
