#!/usr/bin/env python3
"""
sim/params.py
=============
Immutable configuration records for the grid, the RSU layer and the OBU
population.  Every record validates itself in ``__post_init__`` so a
degenerate parameter set is rejected before :class:`~sim.simulator.Simulator`
builds anything.
"""

from __future__ import annotations

from dataclasses import dataclass

from sim.errors import ConfigurationError


def _require_positive(name: str, value: int) -> None:
    if value < 1:
        raise ConfigurationError(f"{name} must be >= 1 (got {value})")


def _require_probability(name: str, value: float) -> None:
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(f"{name} must be within [0, 1] (got {value})")


@dataclass(frozen=True)
class GridConfig:
    """Street lattice shape.

    Parameters
    ----------
    blocks_per_street : int
        Number of blocks along each side of the (square) grid.
    block_size : int
        Side length of one block, in cells.
    """

    blocks_per_street: int = 3
    block_size: int = 2

    def __post_init__(self) -> None:
        _require_positive("blocks_per_street", self.blocks_per_street)
        _require_positive("block_size", self.block_size)

    @property
    def dimension(self) -> int:
        """Side length of the resulting grid, in cells."""
        return self.blocks_per_street * self.block_size + self.blocks_per_street + 1


@dataclass(frozen=True)
class RsuConfig:
    """Road-side unit layer.

    ``rx_range`` drives both the lattice spacing and the listening footprint.
    ``tx_range`` is the RSU transmit reach; RSUs in this model only listen.
    """

    tx_range: int = 5
    rx_range: int = 5
    detect_tx_failure: bool = True
    detect_gps_failure: bool = False

    def __post_init__(self) -> None:
        _require_positive("tx_range", self.tx_range)
        _require_positive("rx_range", self.rx_range)


@dataclass(frozen=True)
class ObuConfig:
    """On-board unit population and fault model."""

    max_obus: int = 120
    comms_range: int = 6
    tx_base_failure_rate: float = 0.02
    tx_faulty_failure_rate: float = 0.05
    gps_failure_rate: float = 0.02
    gps_faulty_failure_rate: float = 0.05
    faulty_obu_count: int = 20

    def __post_init__(self) -> None:
        _require_positive("max_obus", self.max_obus)
        _require_positive("comms_range", self.comms_range)
        _require_probability("tx_base_failure_rate", self.tx_base_failure_rate)
        _require_probability("tx_faulty_failure_rate", self.tx_faulty_failure_rate)
        _require_probability("gps_failure_rate", self.gps_failure_rate)
        _require_probability("gps_faulty_failure_rate", self.gps_faulty_failure_rate)
        if not 0 <= self.faulty_obu_count <= self.max_obus:
            raise ConfigurationError(
                f"faulty_obu_count must be within [0, max_obus={self.max_obus}] "
                f"(got {self.faulty_obu_count})"
            )

    @property
    def faulty_spacing(self) -> int:
        """Every N-th created OBU is faulty; 0 when no faulty OBUs are wanted."""
        if self.faulty_obu_count == 0:
            return 0
        return self.max_obus // self.faulty_obu_count
