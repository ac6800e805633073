#!/usr/bin/env python3
"""
sim/simulator.py
================
Round-based simulation engine.

:class:`Simulator` owns the :class:`~sim.grid.Grid`, the
:class:`~bus.ether.Ether` and both population managers, and drives the
round loop.  Every round runs five phases in a fixed order:

1. deliver the *previous* round's Ether contents to OBUs and RSUs
   (one round of propagation latency, which keeps the observation history
   aligned with the round counter);
2. move every OBU to a random legal, free successor cell;
3. top the population up to capacity;
4. advance the round counter;
5. collect this round's beacons into the Ether.

After the last round the RSU detector runs once and its verdict is scored
against the OBUs' ground truth.

Public API consumed by :mod:`main`
----------------------------------
* ``init()``           → ``None``
* ``run(rounds)``      → ``SimulationReport``
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence

from bus.ether import Ether
from sim.detector import DetectionResult, LedgerRecord
from sim.errors import ConfigurationError, InternalConsistencyError
from sim.grid import Grid
from sim.obu_manager import ObuManager
from sim.params import GridConfig, ObuConfig, RsuConfig
from sim.rsu_manager import RsuManager

log = logging.getLogger("simulator")

LedgerWriter = Callable[[Sequence[LedgerRecord]], object]


class SimState(Enum):
    IDLE = "idle"
    INITIALIZED = "initialized"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass
class SimulationReport:
    """Detector verdict scored against ground truth.

    ``detection_rate`` is the share of OBUs classified correctly (faulty or
    not).  Every rate is 0.0 when its denominator is empty.
    """

    rounds: int
    true_positive: int
    false_positive: int
    true_negative: int
    false_negative: int
    flagged: List[int] = field(default_factory=list)
    detection: Optional[DetectionResult] = field(default=None, repr=False)

    @property
    def total(self) -> int:
        return self.true_positive + self.false_positive + self.true_negative + self.false_negative

    @staticmethod
    def _rate(num: int, den: int) -> float:
        return num / den if den else 0.0

    @property
    def detection_rate(self) -> float:
        return self._rate(self.true_positive + self.true_negative, self.total)

    @property
    def false_positive_rate(self) -> float:
        return self._rate(self.false_positive, self.false_positive + self.true_negative)

    @property
    def false_negative_rate(self) -> float:
        return self._rate(self.false_negative, self.false_negative + self.true_positive)

    def as_dict(self) -> dict:
        return {
            "rounds": self.rounds,
            "true_positive": self.true_positive,
            "false_positive": self.false_positive,
            "true_negative": self.true_negative,
            "false_negative": self.false_negative,
            "detection_rate": self.detection_rate,
            "false_positive_rate": self.false_positive_rate,
            "false_negative_rate": self.false_negative_rate,
        }


class Simulator:
    """Owns every simulation component and runs the round loop.

    Parameters
    ----------
    grid_config : GridConfig
        Street lattice shape.
    rsu_config : RsuConfig
        RSU ranges and enabled detection channels.
    obu_config : ObuConfig
        OBU population and fault model.
    seed : int or None
        Seed for move selection and failure trials.
    ledger_writer : callable or None
        Receives the ordered ledger records once detection has run.
    """

    def __init__(
        self,
        grid_config: GridConfig,
        rsu_config: RsuConfig,
        obu_config: ObuConfig,
        seed: Optional[int] = None,
        ledger_writer: Optional[LedgerWriter] = None,
    ) -> None:
        self.rng = random.Random(seed)
        self.grid = Grid(grid_config.blocks_per_street, grid_config.block_size)
        self.ether = Ether()
        self.obu_manager = ObuManager(obu_config, self.grid, self.rng)
        self.rsu_manager = RsuManager(rsu_config, self.grid)
        self.round = 0
        self.state = SimState.IDLE
        self.report: Optional[SimulationReport] = None
        self._ledger_writer = ledger_writer

        if obu_config.comms_range <= rsu_config.rx_range:
            log.warning(
                "OBU range %d does not exceed RSU rx range %d",
                obu_config.comms_range, rsu_config.rx_range,
            )

    # ── lifecycle ─────────────────────────────────────────────────────────

    def init(self) -> None:
        """Compute the lane graph and place the RSU lattice."""
        if self.state is not SimState.IDLE:
            raise InternalConsistencyError(f"cannot init from state {self.state.value}")
        self.grid.compute_lane_graph()
        self.rsu_manager.place_lattice()
        self._set_round(0)
        self.state = SimState.INITIALIZED
        log.info(
            "simulation initialized rsus=%d max_obus=%d grid=%s",
            self.rsu_manager.count, self.obu_manager.capacity, self.grid.stats(),
        )

    def run(self, rounds: int) -> SimulationReport:
        """Run *rounds* rounds, then detect and score."""
        if self.state is not SimState.INITIALIZED:
            raise InternalConsistencyError(f"cannot run from state {self.state.value}")
        if rounds < 0:
            raise ConfigurationError(f"rounds must be >= 0 (got {rounds})")

        self.state = SimState.RUNNING
        log.info("simulation running rounds=%d", rounds)

        if self.round == 0:
            self.collect_messages()

        for _ in range(rounds):
            self.step()

        self.state = SimState.FINISHED
        self.report = self._finish()
        return self.report

    def step(self) -> None:
        """One round: deliver → move → replenish → advance → collect."""
        self.deliver_messages()
        self.move_obus()
        added = self.replenish()
        if added:
            log.debug("added %d OBUs in round %d", added, self.round)
        self._set_round(self.round + 1)
        self.collect_messages()

    # ── phases ────────────────────────────────────────────────────────────

    def deliver_messages(self) -> None:
        messages = self.ether.messages()
        self.obu_manager.deliver_messages(messages, self.ether.metrics)
        self.rsu_manager.deliver_messages(messages, self.ether.metrics)

    def move_obus(self) -> None:
        for obu in self.obu_manager.obus():
            moves = self.grid.possible_moves(obu.coordinate)
            if not moves:
                continue
            target = self.rng.choice(moves)
            obu.coordinate = self.grid.move_occupant(obu.coordinate, target)

    def add_obu(self) -> Optional[int]:
        """Insert one OBU at the first free lane entry; ``None`` when full."""
        if self.obu_manager.is_full:
            return None
        coord = self.grid.insert_at_first_free_lane_entry(self.obu_manager.next_id)
        if coord is None:
            return None
        obu_id = self.obu_manager.create(coord)
        if obu_id is None:
            raise InternalConsistencyError(f"grid accepted an OBU the manager refused at {coord}")
        return obu_id

    def replenish(self) -> int:
        """Top the population up to capacity; returns how many OBUs were added."""
        added = 0
        while not self.obu_manager.is_full:
            if self.add_obu() is None:
                break
            added += 1
        return added

    def collect_messages(self) -> None:
        self.ether.clear()
        for message in self.obu_manager.collect_messages():
            self.ether.send(message)

    # ── checks & scoring ──────────────────────────────────────────────────

    def check_occupancy(self) -> None:
        """Verify that occupied cells and live OBUs match one-to-one."""
        occupied = self.grid.occupied_cells()
        obus = self.obu_manager.obus()
        if len(occupied) != len(obus):
            raise InternalConsistencyError(
                f"{len(occupied)} occupied cells for {len(obus)} OBUs"
            )
        for obu in obus:
            if occupied.get(obu.id) != obu.coordinate:
                raise InternalConsistencyError(
                    f"OBU {obu.id} at {obu.coordinate} but grid has {occupied.get(obu.id)}"
                )

    def _set_round(self, value: int) -> None:
        self.round = value
        self.rsu_manager.current_round = value

    def _finish(self) -> SimulationReport:
        detection = self.rsu_manager.detect_faulty_obus()
        if self._ledger_writer is not None:
            self._ledger_writer(detection.records)

        flagged = set(detection.flagged)
        tp = fp = tn = fn = 0
        for obu in self.obu_manager.obus():
            if obu.is_faulty:
                if obu.id in flagged:
                    tp += 1
                else:
                    fn += 1
            elif obu.id in flagged:
                fp += 1
            else:
                tn += 1

        report = SimulationReport(
            rounds=self.round,
            true_positive=tp,
            false_positive=fp,
            true_negative=tn,
            false_negative=fn,
            flagged=sorted(flagged),
            detection=detection,
        )
        log.info("simulation finished obu_stats=%s", self.obu_manager.stats.report())
        log.info("ether stats=%s", self.ether.metrics.report())
        log.info("final stats=%s", report.as_dict())
        return report
