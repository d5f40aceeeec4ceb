##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Strata
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Strata.
##############################################################################

"""
Strata: storage strategies for Redis-backed repositories.

This package exposes a uniform repository interface over three physical
layouts in Redis (a value per entity, a hash per entity, and a value per
entity inside one shared hash), along with optimistic-locking and
compare-and-swap conditional mutations for single nodes and clusters.
"""

__version__ = "0.4.0"
VERSION = __version__
