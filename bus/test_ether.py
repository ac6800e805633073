#!/usr/bin/env python3
"""
Tests for the Ether transport, its delivery counters and the fault helpers.
"""

from __future__ import annotations

import math
import random
import unittest

from bus import Ether, EtherMetrics, Message, NodeKind, maybe_fail, spoofed_coordinate
from sim.grid import Coordinate, SquareCoords


def _beacon(origin_id: int, reported: Coordinate, physical: Coordinate) -> Message:
    return Message(
        origin_id=origin_id,
        origin_kind=NodeKind.OBU,
        reported=reported,
        physical=physical,
        phy_range=3,
        coverage=SquareCoords(physical.x, physical.y, physical.x, physical.y),
    )


class EtherTests(unittest.TestCase):
    def test_send_then_clear(self) -> None:
        ether = Ether()
        first = _beacon(0, Coordinate(0, 0), Coordinate(0, 0))
        second = _beacon(1, Coordinate(0, 3), Coordinate(0, 3))
        ether.send(first)
        ether.send(second)

        self.assertEqual(len(ether), 2)
        self.assertEqual(ether.messages(), (first, second))

        ether.clear()
        self.assertEqual(len(ether), 0)
        self.assertEqual(ether.metrics.sent, 2)
        self.assertEqual(ether.metrics.rounds, 1)

    def test_drain_returns_round_contents(self) -> None:
        ether = Ether()
        msg = _beacon(0, Coordinate(1, 1), Coordinate(1, 1))
        ether.send(msg)
        self.assertEqual(ether.drain(), [msg])
        self.assertEqual(ether.drain(), [])

    def test_is_reachable_is_euclidean(self) -> None:
        self.assertTrue(Ether.is_reachable(Coordinate(0, 0), 5, Coordinate(3, 4)))
        self.assertFalse(Ether.is_reachable(Coordinate(0, 0), 4, Coordinate(3, 4)))
        # inside the bounding box, outside the circle
        self.assertFalse(Ether.is_reachable(Coordinate(0, 0), 4, Coordinate(4, 4)))

    def test_spoofed_flag(self) -> None:
        self.assertFalse(_beacon(0, Coordinate(2, 2), Coordinate(2, 2)).is_spoofed)
        self.assertTrue(_beacon(0, Coordinate(9, 9), Coordinate(2, 2)).is_spoofed)


class EtherMetricsTests(unittest.TestCase):
    def test_false_neighbor_rate(self) -> None:
        metrics = EtherMetrics()
        self.assertEqual(metrics.false_neighbor_rate(), 0.0)
        metrics.record_delivery(True)
        metrics.record_delivery(True)
        metrics.record_delivery(True)
        metrics.record_delivery(False)
        report = metrics.report()
        self.assertEqual(report["delivered"], 4)
        self.assertEqual(report["false_neighbors"], 1)
        self.assertAlmostEqual(report["false_neighbor_rate"], 0.25)


class FaultHelperTests(unittest.TestCase):
    def test_maybe_fail_bounds(self) -> None:
        rng = random.Random(3)
        self.assertFalse(any(maybe_fail(rng, 0.0) for _ in range(1000)))
        self.assertTrue(all(maybe_fail(rng, 1.0) for _ in range(1000)))

    def test_maybe_fail_frequency(self) -> None:
        rng = random.Random(11)
        failures = sum(maybe_fail(rng, 0.25) for _ in range(20_000))
        self.assertAlmostEqual(failures / 20_000, 0.25, delta=0.02)

    def test_spoofed_coordinate_is_far_and_in_bounds(self) -> None:
        rng = random.Random(5)
        true = Coordinate(10, 10)
        for _ in range(200):
            spoofed = spoofed_coordinate(rng, true, 8, 21)
            self.assertIsNotNone(spoofed)
            self.assertTrue(0 <= spoofed.x < 21 and 0 <= spoofed.y < 21)
            self.assertGreater(math.hypot(spoofed.x - true.x, spoofed.y - true.y), 8)

    def test_spoofed_coordinate_none_when_grid_too_small(self) -> None:
        rng = random.Random(5)
        self.assertIsNone(spoofed_coordinate(rng, Coordinate(1, 1), 5, 3))


if __name__ == "__main__":
    unittest.main()
