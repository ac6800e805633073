#!/usr/bin/env python3
"""
OBU population tests: fault placement, beacon emission and neighbor delivery.
"""

from __future__ import annotations

import math
import random
import unittest

from bus.metrics import EtherMetrics
from sim.grid import Coordinate, Grid
from sim.obu_manager import SPOOF_MARGIN, ObuManager
from sim.params import ObuConfig


def _manager(grid: Grid, **overrides) -> ObuManager:
    params = dict(
        max_obus=10,
        comms_range=3,
        tx_base_failure_rate=0.0,
        tx_faulty_failure_rate=0.0,
        gps_failure_rate=0.0,
        gps_faulty_failure_rate=0.0,
        faulty_obu_count=0,
    )
    params.update(overrides)
    return ObuManager(ObuConfig(**params), grid, random.Random(1))


class FaultPlacementTests(unittest.TestCase):
    def _faulty_after_filling(self, max_obus: int, faulty: int):
        manager = _manager(Grid(3, 2), max_obus=max_obus, faulty_obu_count=faulty)
        for _ in range(max_obus):
            self.assertIsNotNone(manager.create(Coordinate(0, 0)))
        return manager

    def test_every_fifth_is_faulty(self) -> None:
        manager = self._faulty_after_filling(100, 20)
        self.assertEqual(manager.faulty_ids(), list(range(4, 100, 5)))
        self.assertEqual(len(manager.faulty_ids()), 20)

    def test_faulty_count_is_capped(self) -> None:
        manager = self._faulty_after_filling(100, 13)
        self.assertEqual(manager.faulty_ids(), [7 * k - 1 for k in range(1, 14)])

    def test_no_faulty_requested(self) -> None:
        manager = self._faulty_after_filling(10, 0)
        self.assertEqual(manager.faulty_ids(), [])

    def test_faulty_units_get_faulty_rates(self) -> None:
        manager = _manager(
            Grid(3, 2), max_obus=4, faulty_obu_count=2,
            tx_base_failure_rate=0.01, tx_faulty_failure_rate=0.3,
            gps_failure_rate=0.02, gps_faulty_failure_rate=0.4,
        )
        for _ in range(4):
            manager.create(Coordinate(0, 0))
        normal, faulty = manager.get(0), manager.get(1)
        self.assertFalse(normal.is_faulty)
        self.assertEqual((normal.tx_failure_rate, normal.gps_failure_rate), (0.01, 0.02))
        self.assertTrue(faulty.is_faulty)
        self.assertEqual((faulty.tx_failure_rate, faulty.gps_failure_rate), (0.3, 0.4))

    def test_create_beyond_capacity(self) -> None:
        manager = _manager(Grid(3, 2), max_obus=2)
        self.assertEqual(manager.create(Coordinate(0, 0)), 0)
        self.assertEqual(manager.create(Coordinate(0, 1)), 1)
        self.assertTrue(manager.is_full)
        self.assertIsNone(manager.create(Coordinate(0, 2)))
        self.assertEqual(manager.count, 2)


class MessageLifecycleTests(unittest.TestCase):
    def test_silent_when_transmission_always_fails(self) -> None:
        manager = _manager(Grid(3, 2), tx_base_failure_rate=1.0)
        manager.create(Coordinate(0, 0))
        manager.create(Coordinate(0, 3))
        self.assertEqual(manager.collect_messages(), [])
        self.assertEqual(manager.stats.normal_tx_errors, 2)

    def test_truthful_beacons(self) -> None:
        grid = Grid(3, 2)
        manager = _manager(grid)
        manager.create(Coordinate(0, 0))
        manager.create(Coordinate(3, 9))
        messages = manager.collect_messages()
        self.assertEqual([m.origin_id for m in messages], [0, 1])
        for msg in messages:
            self.assertFalse(msg.is_spoofed)
            self.assertEqual(msg.coverage, grid.coverage_box(msg.physical, 3))

    def test_spoofed_position_is_beyond_reach(self) -> None:
        manager = _manager(Grid(25, 3), max_obus=5, comms_range=6, gps_failure_rate=1.0)
        for _ in range(5):
            manager.create(Coordinate(50, 50))
        messages = manager.collect_messages()
        self.assertEqual(len(messages), 5)
        for msg in messages:
            self.assertEqual(msg.physical, Coordinate(50, 50))
            distance = math.hypot(msg.reported.x - 50, msg.reported.y - 50)
            self.assertGreater(distance, 6 + SPOOF_MARGIN)
        self.assertEqual(manager.stats.gps_spoofs, 5)

    def test_delivery_excludes_self_and_far_senders(self) -> None:
        manager = _manager(Grid(3, 2))
        manager.create(Coordinate(0, 0))
        manager.create(Coordinate(0, 3))
        manager.create(Coordinate(9, 9))
        metrics = EtherMetrics()
        manager.deliver_messages(manager.collect_messages(), metrics)

        self.assertEqual([n.id for n in manager.get(0).neighbors], [1])
        self.assertEqual([n.id for n in manager.get(1).neighbors], [0])
        self.assertEqual(manager.get(2).neighbors, [])
        self.assertEqual(metrics.delivered, 2)
        self.assertEqual(metrics.false_neighbors, 0)

    def test_delivery_replaces_previous_neighbors(self) -> None:
        manager = _manager(Grid(3, 2))
        manager.create(Coordinate(0, 0))
        manager.create(Coordinate(0, 3))
        manager.deliver_messages(manager.collect_messages())
        manager.deliver_messages([])
        self.assertEqual(manager.get(0).neighbors, [])


if __name__ == "__main__":
    unittest.main()
