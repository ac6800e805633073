#!/usr/bin/env python3
"""
sim/errors.py
=============
Exception taxonomy for the simulation core.

* :class:`ConfigurationError`: degenerate parameters, rejected before the
  simulation starts.
* :class:`InternalConsistencyError`: a broken phase-ordering or
  bookkeeping invariant.  Never caught inside the engine.
* :class:`OutOfGridError`: a coordinate outside ``[0, dimension)``.

Capacity exhaustion is not an exception: the affected calls return ``None``.
"""


class ConfigurationError(ValueError):
    """Raised when a configuration record fails validation."""


class InternalConsistencyError(RuntimeError):
    """Raised when the engine detects a violated internal invariant."""


class OutOfGridError(InternalConsistencyError):
    """Raised on any access to a coordinate outside the grid."""
