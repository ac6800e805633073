"""
Utility functions for the Ether:
    - probabilistic fault trials (transmission drop, GPS failure)
    - spoofed-position sampling
"""

import math
import random
import logging
from typing import Optional

from sim.grid import Coordinate

log = logging.getLogger(__name__)


# ---------- Fault Trials ----------
def maybe_fail(rng: random.Random, probability: float) -> bool:
    """
    Run one independent failure trial.

    Args:
        rng (random.Random): Source of randomness.
        probability (float): Probability (0.0–1.0) that the trial fails.

    Returns:
        bool: True if the trial failed, False otherwise.
    """
    if probability <= 0.0:
        return False
    return rng.random() < probability


# ---------- Position Spoofing ----------
def spoofed_coordinate(
    rng: random.Random,
    true_coord: Coordinate,
    min_distance: float,
    dimension: int,
) -> Optional[Coordinate]:
    """
    Draw a grid cell uniformly among those farther than ``min_distance`` from ``true_coord``.

    Args:
        rng (random.Random): Source of randomness.
        true_coord (Coordinate): Real position of the node.
        min_distance (float): Exclusive lower bound on the Euclidean distance.
        dimension (int): Grid side length.

    Returns:
        Optional[Coordinate]: The spoofed position, or None if no cell of the grid is far enough.
    """
    last = dimension - 1
    farthest = max(
        math.hypot(true_coord.x - cx, true_coord.y - cy)
        for cx in (0, last)
        for cy in (0, last)
    )
    if farthest <= min_distance:
        log.debug("no cell farther than %.1f from %s", min_distance, true_coord)
        return None

    # rejection sampling keeps the draw uniform over the eligible cells
    while True:
        candidate = Coordinate(rng.randrange(dimension), rng.randrange(dimension))
        if math.hypot(candidate.x - true_coord.x, candidate.y - true_coord.y) > min_distance:
            return candidate
