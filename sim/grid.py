#!/usr/bin/env python3
"""
sim/grid.py
===========
Street-grid topology for the VANET simulation.

The grid is a square of cells.  Square blocks of ``block_size`` cells are
surrounded on every side by one-cell-wide streets, so a cell is a street
cell iff its row or its column index is a multiple of ``block_size + 1``.

Every street is one-way.  The flow sense of a street depends on the parity
of its index, and a row street and a column street with the same index
flow in opposite senses, which gives every crossing one inbound and one
outbound lane per axis.

:class:`Grid` owns all spatial state: the lane graph (precomputed once by
:meth:`Grid.compute_lane_graph`), cell occupancy, and the rectangular
coverage-box geometry used for bulk range tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from sim.errors import ConfigurationError, InternalConsistencyError, OutOfGridError

log = logging.getLogger("grid")


class Coordinate(NamedTuple):
    """Integer cell index: ``x`` is the row, ``y`` the column."""

    x: int
    y: int


class SquareCoords(NamedTuple):
    """Axis-aligned box ``(x1, y1)``–``(x2, y2)``, inclusive on both ends."""

    x1: int
    y1: int
    x2: int
    y2: int


class FlowDirection(Enum):
    FROM_ZERO = "from_zero"   # left → right / top → bottom
    TO_ZERO = "to_zero"       # right → left / bottom → top


@dataclass
class CellState:
    """State of a single grid cell.

    Attributes
    ----------
    id : int
        Unique, row-major cell id.
    is_street : bool
        True for street cells.
    occupant : int or None
        Id of the OBU currently on the cell.
    next_coordinates : list of Coordinate
        Legal successors under the one-way lane rule.  Filled once by
        :meth:`Grid.compute_lane_graph`.
    """

    id: int
    is_street: bool
    occupant: Optional[int] = None
    next_coordinates: List[Coordinate] = field(default_factory=list, repr=False)


class Grid:
    """Square street lattice with one-way lanes and single-occupant cells.

    Parameters
    ----------
    blocks_per_street : int
        Number of blocks along each side.
    block_size : int
        Side length of a block, in cells.
    """

    def __init__(self, blocks_per_street: int, block_size: int) -> None:
        if blocks_per_street < 1 or block_size < 1:
            raise ConfigurationError(
                "grid needs blocks_per_street >= 1 and block_size >= 1 "
                f"(got {blocks_per_street}, {block_size})"
            )
        self.block_size = block_size
        self.dimension = blocks_per_street * block_size + blocks_per_street + 1

        self._cells: List[List[CellState]] = []
        cell_id = 0
        for i in range(self.dimension):
            row: List[CellState] = []
            for j in range(self.dimension):
                row.append(CellState(
                    id=cell_id,
                    is_street=self.is_street_index(i) or self.is_street_index(j),
                ))
                cell_id += 1
            self._cells.append(row)

        self.street_cells = sum(
            1 for row in self._cells for cell in row if cell.is_street
        )
        self._lane_graph_ready = False

    # ── topology ──────────────────────────────────────────────────────────

    def is_street_index(self, i: int) -> bool:
        """True when row / column *i* is a street."""
        return i % (self.block_size + 1) == 0

    def is_street(self, coord: Coordinate) -> bool:
        return self._cell(coord).is_street

    def is_crossing(self, coord: Coordinate) -> bool:
        """A crossing is a cell whose row and column are both streets."""
        self._check_bounds(coord)
        return self.is_street_index(coord.x) and self.is_street_index(coord.y)

    @staticmethod
    def flow_direction(axis: str, index: int) -> FlowDirection:
        """Flow sense of the street with *index* along *axis* (``"row"`` or ``"col"``).

        Even rows flow from zero, odd rows towards zero; columns use the
        opposite sense for the same index.

        Parity is taken on the cell index, not the street ordinal.  With an
        odd ``block_size`` every street index is even, so all row streets
        share one sense, all column streets share the other, and traffic
        drains towards the ``(0, dimension-1)`` corner, which is a dead end.
        """
        even = index % 2 == 0
        if axis == "row":
            return FlowDirection.FROM_ZERO if even else FlowDirection.TO_ZERO
        if axis == "col":
            return FlowDirection.TO_ZERO if even else FlowDirection.FROM_ZERO
        raise ValueError(f"unknown axis {axis!r}")

    def _successors(self, coord: Coordinate) -> List[Coordinate]:
        """Derive the legal next cells of *coord*; row lane first, then column lane."""
        result: List[Coordinate] = []
        last = self.dimension - 1

        if self.is_street_index(coord.x):
            if self.flow_direction("row", coord.x) is FlowDirection.FROM_ZERO:
                if coord.y < last:
                    result.append(Coordinate(coord.x, coord.y + 1))
            elif coord.y > 0:
                result.append(Coordinate(coord.x, coord.y - 1))

        if self.is_street_index(coord.y):
            if self.flow_direction("col", coord.y) is FlowDirection.FROM_ZERO:
                if coord.x < last:
                    result.append(Coordinate(coord.x + 1, coord.y))
            elif coord.x > 0:
                result.append(Coordinate(coord.x - 1, coord.y))

        return result

    def compute_lane_graph(self) -> None:
        """Precompute successors for every street cell.  Must run exactly once."""
        if self._lane_graph_ready:
            raise InternalConsistencyError("lane graph already computed")
        for i, row in enumerate(self._cells):
            for j, cell in enumerate(row):
                if cell.is_street:
                    cell.next_coordinates = self._successors(Coordinate(i, j))
        self._lane_graph_ready = True
        log.debug("lane graph computed for %d street cells", self.street_cells)

    @property
    def lane_graph_ready(self) -> bool:
        return self._lane_graph_ready

    def next_coordinates(self, coord: Coordinate) -> List[Coordinate]:
        """Precomputed successors of *coord* (a copy)."""
        if not self._lane_graph_ready:
            raise InternalConsistencyError("lane graph not computed yet")
        return list(self._cell(coord).next_coordinates)

    def possible_moves(self, coord: Coordinate) -> List[Coordinate]:
        """Successors of *coord* whose occupant slot is empty."""
        return [
            nxt for nxt in self.next_coordinates(coord)
            if self._cell(nxt).occupant is None
        ]

    # ── occupancy ─────────────────────────────────────────────────────────

    def occupant(self, coord: Coordinate) -> Optional[int]:
        return self._cell(coord).occupant

    def place_occupant(self, coord: Coordinate, obu_id: int) -> None:
        """Put *obu_id* on an empty street cell."""
        cell = self._cell(coord)
        if not cell.is_street:
            raise InternalConsistencyError(f"{coord} is not a street cell")
        if cell.occupant is not None:
            raise InternalConsistencyError(
                f"{coord} already occupied by OBU {cell.occupant}"
            )
        cell.occupant = obu_id

    def move_occupant(self, frm: Coordinate, to: Coordinate) -> Coordinate:
        """Move the occupant of *frm* onto the empty street cell *to*.

        Both cells are validated before either is touched, so the swap is
        all-or-nothing.  Returns *to*.
        """
        src = self._cell(frm)
        dst = self._cell(to)
        if src.occupant is None:
            raise InternalConsistencyError(f"no occupant to move at {frm}")
        if not dst.is_street:
            raise InternalConsistencyError(f"{to} is not a street cell")
        if dst.occupant is not None:
            raise InternalConsistencyError(
                f"{to} already occupied by OBU {dst.occupant}"
            )
        dst.occupant, src.occupant = src.occupant, None
        return to

    def lane_entries(self) -> Iterator[Coordinate]:
        """Lane-entry cells in insertion order.

        Street indices are scanned ascending; for each one the entry cell of
        the column street comes first, then the one of the row street.
        """
        last = self.dimension - 1
        for i in range(0, self.dimension, self.block_size + 1):
            if self.flow_direction("col", i) is FlowDirection.FROM_ZERO:
                yield Coordinate(0, i)
            else:
                yield Coordinate(last, i)
            if self.flow_direction("row", i) is FlowDirection.FROM_ZERO:
                yield Coordinate(i, 0)
            else:
                yield Coordinate(i, last)

    def insert_at_first_free_lane_entry(self, obu_id: int) -> Optional[Coordinate]:
        """Place *obu_id* on the first free lane entry.

        Returns the chosen coordinate, or ``None`` when every entry is taken.
        """
        for coord in self.lane_entries():
            if self._cell(coord).occupant is None:
                self._cell(coord).occupant = obu_id
                return coord
        log.debug("no free lane entry for OBU %d", obu_id)
        return None

    def occupied_cells(self) -> Dict[int, Coordinate]:
        """Map of occupant id → coordinate for every occupied cell."""
        result: Dict[int, Coordinate] = {}
        for i, row in enumerate(self._cells):
            for j, cell in enumerate(row):
                if cell.occupant is not None:
                    if cell.occupant in result:
                        raise InternalConsistencyError(
                            f"OBU {cell.occupant} occupies {result[cell.occupant]} "
                            f"and {Coordinate(i, j)}"
                        )
                    result[cell.occupant] = Coordinate(i, j)
        return result

    def occupant_count(self) -> int:
        return sum(
            1 for row in self._cells for cell in row if cell.occupant is not None
        )

    # ── range geometry ────────────────────────────────────────────────────

    def coverage_box(self, coord: Coordinate, comms_range: int) -> SquareCoords:
        """Bounding box of half-width ``comms_range - 1`` around *coord*, clamped to the grid."""
        self._check_bounds(coord)
        half = max(comms_range - 1, 0)
        last = self.dimension - 1
        return SquareCoords(
            x1=max(coord.x - half, 0),
            y1=max(coord.y - half, 0),
            x2=min(coord.x + half, last),
            y2=min(coord.y + half, last),
        )

    @staticmethod
    def boxes_overlap(a: SquareCoords, b: SquareCoords) -> bool:
        """Axis-aligned rectangle intersection (edges touching count)."""
        if a.x2 < b.x1 or b.x2 < a.x1:
            return False
        if a.y2 < b.y1 or b.y2 < a.y1:
            return False
        return True

    # ── misc ──────────────────────────────────────────────────────────────

    def in_bounds(self, coord: Tuple[int, int]) -> bool:
        return 0 <= coord[0] < self.dimension and 0 <= coord[1] < self.dimension

    def stats(self) -> Dict[str, int]:
        """Snapshot of the grid shape and occupancy."""
        crossings = (self.dimension // (self.block_size + 1) + 1) ** 2
        return {
            "dimension": self.dimension,
            "cells": self.dimension * self.dimension,
            "street_cells": self.street_cells,
            "crossings": crossings,
            "occupied_cells": self.occupant_count(),
        }

    def _check_bounds(self, coord: Tuple[int, int]) -> None:
        if not self.in_bounds(coord):
            raise OutOfGridError(
                f"coordinate {tuple(coord)} outside grid of dimension {self.dimension}"
            )

    def _cell(self, coord: Tuple[int, int]) -> CellState:
        self._check_bounds(coord)
        return self._cells[coord[0]][coord[1]]
