#!/usr/bin/env python3
"""
sim/nodes.py
============
Node entity records owned by the population managers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from bus.message import NeighborEntry
from sim.grid import Coordinate, SquareCoords


@dataclass
class OnBoardUnit:
    """A mobile node.

    Attributes
    ----------
    id : int
        Dense id, equal to the creation index.
    coordinate : Coordinate
        Current (true) cell.
    comms_range : int
        Transmission range, in cells.
    tx_failure_rate, gps_failure_rate : float
        Independent per-round failure probabilities.
    is_faulty : bool
        Ground truth assigned at creation.
    neighbors : list of NeighborEntry
        Sightings delivered this round; replaced every round.
    """

    id: int
    coordinate: Coordinate
    comms_range: int
    tx_failure_rate: float
    gps_failure_rate: float
    is_faulty: bool = False
    neighbors: List[NeighborEntry] = field(default_factory=list, repr=False)


@dataclass
class RoadSideUnit:
    """A fixed, always-listening infrastructure node."""

    id: int
    coordinate: Coordinate
    coverage: SquareCoords
    neighbors: List[NeighborEntry] = field(default_factory=list, repr=False)
