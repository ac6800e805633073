#!/usr/bin/env python3
"""
sim/obu_manager.py
==================
On-board unit population: creation with deterministic fault placement,
beacon emission with probabilistic drop and GPS spoofing, and per-round
neighbor delivery.

OBUs are never removed, so the population is a dense list indexed by id.
"""

from __future__ import annotations

import logging
import random
from typing import Iterable, List, Optional, Sequence

from bus.ether import Ether
from bus.message import Message, NeighborEntry, NodeKind
from bus.metrics import EtherMetrics
from bus.utils import maybe_fail, spoofed_coordinate
from sim.errors import InternalConsistencyError
from sim.grid import Coordinate, Grid
from sim.nodes import OnBoardUnit
from sim.params import ObuConfig

log = logging.getLogger("obu_manager")

# A spoofed position is kept this many cells beyond the sender's true reach.
SPOOF_MARGIN: int = 2


class ObuManagerStats:
    """Transmission counters split by ground-truth fault class."""

    def __init__(self) -> None:
        self.normal_tx = 0
        self.normal_tx_errors = 0
        self.faulty_tx = 0
        self.faulty_tx_errors = 0
        self.gps_spoofs = 0

    @property
    def total_tx(self) -> int:
        return self.normal_tx + self.faulty_tx

    @property
    def total_tx_errors(self) -> int:
        return self.normal_tx_errors + self.faulty_tx_errors

    @staticmethod
    def _pct(errors: int, attempts: int) -> float:
        return 100.0 * errors / attempts if attempts else 0.0

    def report(self) -> dict:
        return {
            "total_tx": self.total_tx,
            "total_tx_errors": self.total_tx_errors,
            "total_tx_error_pct": self._pct(self.total_tx_errors, self.total_tx),
            "normal_tx": self.normal_tx,
            "normal_tx_errors": self.normal_tx_errors,
            "normal_tx_error_pct": self._pct(self.normal_tx_errors, self.normal_tx),
            "faulty_tx": self.faulty_tx,
            "faulty_tx_errors": self.faulty_tx_errors,
            "faulty_tx_error_pct": self._pct(self.faulty_tx_errors, self.faulty_tx),
            "gps_spoofs": self.gps_spoofs,
        }


class ObuManager:
    """Owns every :class:`~sim.nodes.OnBoardUnit` of the run.

    Parameters
    ----------
    config : ObuConfig
        Population cap, range and fault model.
    grid : Grid
        Used for coverage boxes and spoofed-position bounds.
    rng : random.Random
        Shared source for the failure trials.
    """

    def __init__(self, config: ObuConfig, grid: Grid, rng: random.Random) -> None:
        self.config = config
        self._grid = grid
        self._rng = rng
        self._obus: List[OnBoardUnit] = []
        self._faulty_added = 0
        self.stats = ObuManagerStats()

    # ── population ────────────────────────────────────────────────────────

    @property
    def next_id(self) -> int:
        return len(self._obus)

    @property
    def count(self) -> int:
        return len(self._obus)

    @property
    def capacity(self) -> int:
        return self.config.max_obus

    @property
    def is_full(self) -> bool:
        return len(self._obus) >= self.config.max_obus

    def obus(self) -> Sequence[OnBoardUnit]:
        """Every OBU, in id (creation) order."""
        return tuple(self._obus)

    def get(self, obu_id: int) -> OnBoardUnit:
        if not 0 <= obu_id < len(self._obus):
            raise InternalConsistencyError(f"OBU {obu_id} does not exist")
        return self._obus[obu_id]

    def faulty_ids(self) -> List[int]:
        return [obu.id for obu in self._obus if obu.is_faulty]

    def create(self, coordinate: Coordinate) -> Optional[int]:
        """Create an OBU at *coordinate*; ``None`` once the cap is reached.

        With a target faulty count F, every ``max_obus // F``-th OBU created
        is faulty until F of them exist.
        """
        if self.is_full:
            return None

        cfg = self.config
        obu_id = len(self._obus)
        is_faulty = False
        tx_rate = cfg.tx_base_failure_rate
        gps_rate = cfg.gps_failure_rate

        spacing = cfg.faulty_spacing
        if spacing and self._faulty_added < cfg.faulty_obu_count:
            if (obu_id + 1) % spacing == 0:
                is_faulty = True
                tx_rate = cfg.tx_faulty_failure_rate
                gps_rate = cfg.gps_faulty_failure_rate
                self._faulty_added += 1

        self._obus.append(OnBoardUnit(
            id=obu_id,
            coordinate=coordinate,
            comms_range=cfg.comms_range,
            tx_failure_rate=tx_rate,
            gps_failure_rate=gps_rate,
            is_faulty=is_faulty,
        ))
        log.debug("created OBU %d at %s faulty=%s", obu_id, coordinate, is_faulty)
        return obu_id

    # ── message lifecycle ─────────────────────────────────────────────────

    def collect_messages(self) -> List[Message]:
        """Emit this round's beacons.

        Each OBU runs a transmission trial (failure → silent this round) and,
        on success, a GPS trial (failure → reported position is spoofed well
        outside the true reach while the physical position stays accurate).
        """
        messages: List[Message] = []
        for obu in self._obus:
            if obu.is_faulty:
                self.stats.faulty_tx += 1
            else:
                self.stats.normal_tx += 1

            if maybe_fail(self._rng, obu.tx_failure_rate):
                if obu.is_faulty:
                    self.stats.faulty_tx_errors += 1
                else:
                    self.stats.normal_tx_errors += 1
                continue

            reported = obu.coordinate
            if maybe_fail(self._rng, obu.gps_failure_rate):
                spoofed = spoofed_coordinate(
                    self._rng,
                    obu.coordinate,
                    obu.comms_range + SPOOF_MARGIN,
                    self._grid.dimension,
                )
                if spoofed is not None:
                    reported = spoofed
                    self.stats.gps_spoofs += 1

            messages.append(Message(
                origin_id=obu.id,
                origin_kind=NodeKind.OBU,
                reported=reported,
                physical=obu.coordinate,
                phy_range=obu.comms_range,
                coverage=self._grid.coverage_box(obu.coordinate, obu.comms_range),
            ))
        return messages

    def deliver_messages(
        self,
        messages: Iterable[Message],
        metrics: Optional[EtherMetrics] = None,
    ) -> None:
        """Replace every OBU's neighbor list with the messages whose coverage box overlaps its own."""
        messages = list(messages)
        for obu in self._obus:
            own_box = self._grid.coverage_box(obu.coordinate, obu.comms_range)
            neighbors: List[NeighborEntry] = []
            for msg in messages:
                if msg.origin_kind is NodeKind.OBU and msg.origin_id == obu.id:
                    continue
                if not Grid.boxes_overlap(msg.coverage, own_box):
                    continue
                neighbors.append(NeighborEntry(msg.origin_id, msg.origin_kind, msg.reported))
                if metrics is not None:
                    metrics.record_delivery(
                        Ether.is_reachable(msg.physical, msg.phy_range, obu.coordinate)
                    )
            obu.neighbors = neighbors
