#!/usr/bin/env python3
"""
sim/rsu_manager.py
==================
Road-side unit layer: fixed lattice placement, per-round neighbor
aggregation into the round-indexed observation history, and the end-of-run
call into :mod:`sim.detector`.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence

from bus.ether import Ether
from bus.message import Message, NeighborEntry, NodeKind
from bus.metrics import EtherMetrics
from sim.detector import DetectionResult, RoundObservations, Sighting, detect
from sim.errors import InternalConsistencyError
from sim.grid import Coordinate, Grid
from sim.nodes import RoadSideUnit
from sim.params import RsuConfig

log = logging.getLogger("rsu_manager")


class RsuManager:
    """Owns every :class:`~sim.nodes.RoadSideUnit` and the observation history.

    Parameters
    ----------
    config : RsuConfig
        Ranges and enabled detection channels.
    grid : Grid
        Used for lattice bounds and coverage boxes.
    """

    def __init__(self, config: RsuConfig, grid: Grid) -> None:
        self.config = config
        self._grid = grid
        self._rsus: List[RoadSideUnit] = []
        self._history: List[RoundObservations] = []
        self.current_round = 0

    # ── population ────────────────────────────────────────────────────────

    @property
    def count(self) -> int:
        return len(self._rsus)

    def rsus(self) -> Sequence[RoadSideUnit]:
        return tuple(self._rsus)

    def get(self, rsu_id: int) -> RoadSideUnit:
        if not 0 <= rsu_id < len(self._rsus):
            raise InternalConsistencyError(f"RSU {rsu_id} does not exist")
        return self._rsus[rsu_id]

    def create(self, coordinate: Coordinate) -> int:
        rsu_id = len(self._rsus)
        self._rsus.append(RoadSideUnit(
            id=rsu_id,
            coordinate=coordinate,
            coverage=self._grid.coverage_box(coordinate, self.config.rx_range),
        ))
        return rsu_id

    def lattice_positions(self) -> List[int]:
        """Row / column indices of the RSU lattice along one axis.

        Positions start at ``rx_range - 1`` and are ``2 * rx_range - 1`` apart.
        When the next regular position falls off the grid while the last one
        leaves the far edge uncovered, one extra position is snapped to the
        grid boundary.
        """
        r = self.config.rx_range
        last = self._grid.dimension - 1
        positions: List[int] = []
        nxt = r - 1
        while nxt <= last:
            positions.append(nxt)
            nxt += 2 * r - 1
            if nxt > last and positions[-1] + r <= last:
                nxt = last
        return positions

    def place_lattice(self) -> int:
        """Tile the grid with RSUs; returns how many were placed."""
        if self._rsus:
            raise InternalConsistencyError("RSU lattice already placed")
        positions = self.lattice_positions()
        for x in positions:
            for y in positions:
                self.create(Coordinate(x, y))
        if not self._rsus:
            log.warning(
                "rx_range %d exceeds grid dimension %d; no RSU placed",
                self.config.rx_range, self._grid.dimension,
            )
        log.info("placed %d RSUs (spacing %d)", len(self._rsus), 2 * self.config.rx_range - 1)
        return len(self._rsus)

    # ── message lifecycle ─────────────────────────────────────────────────

    def deliver_messages(
        self,
        messages: Iterable[Message],
        metrics: Optional[EtherMetrics] = None,
    ) -> None:
        """Rebuild neighbor lists and append this round's observations."""
        messages = list(messages)
        for rsu in self._rsus:
            neighbors: List[NeighborEntry] = []
            for msg in messages:
                if not Grid.boxes_overlap(msg.coverage, rsu.coverage):
                    continue
                neighbors.append(NeighborEntry(msg.origin_id, msg.origin_kind, msg.reported))
                if metrics is not None:
                    metrics.record_delivery(
                        Ether.is_reachable(msg.physical, msg.phy_range, rsu.coordinate)
                    )
            rsu.neighbors = neighbors
        self._record_observations()

    def _record_observations(self) -> None:
        if len(self._history) != self.current_round:
            raise InternalConsistencyError(
                f"observation history holds {len(self._history)} rounds, "
                f"cannot record round {self.current_round}"
            )
        round_data: RoundObservations = {}
        for rsu in self._rsus:
            seen = set()
            for neighbor in rsu.neighbors:
                if neighbor.kind is not NodeKind.OBU or neighbor.id in seen:
                    continue
                seen.add(neighbor.id)
                round_data.setdefault(neighbor.id, []).append(
                    Sighting(neighbor.coordinate, rsu.id)
                )
        self._history.append(round_data)
        log.debug("round %d: %d OBUs observed", self.current_round, len(round_data))

    def history(self) -> Sequence[RoundObservations]:
        return tuple(self._history)

    # ── detection ─────────────────────────────────────────────────────────

    def rsu_coordinates(self) -> Dict[int, Coordinate]:
        return {rsu.id: rsu.coordinate for rsu in self._rsus}

    def detect_faulty_obus(self) -> DetectionResult:
        """Run the detector once over the full observation history."""
        return detect(
            self._history,
            self.rsu_coordinates(),
            self.config.rx_range,
            self.current_round,
            detect_tx=self.config.detect_tx_failure,
            detect_gps=self.config.detect_gps_failure,
        )
