##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
This directory is for help modularizing fixture definitions so that we don't have to
store every single fixture in the `conftest.py` file.

Every module in here is loaded as a pytest plugin by `tests/conftest.py`:

- `redis_clients.py`: mocked Redis clients, pipelines, and cluster clients.
- `repositories.py`: serializers and repositories built on the mocked clients.
"""
