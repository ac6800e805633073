#!/usr/bin/env python3
"""
sim/detector.py
===============
Multi-round robust-statistics fault detector run by the RSU layer.

Two independent channels are scored for every OBU the RSUs ever heard:

* **transmission**: rounds in which the OBU went silent after it was
  first heard, divided by the rounds elapsed;
* **GPS plausibility**: rounds in which no observing RSU lies within
  ``rx_range + GPS_SLACK`` of the position the OBU reported, divided by the
  rounds the OBU was heard.

Each channel gets the threshold ``median + 3 * MAD * 1.4826``.  The ratio
``rate / threshold`` maps to a reputation class (red ≥ 1.0, yellow ≥ 0.6,
green otherwise) and the combined reputation is the worse of the two.

:func:`detect` is pure: it returns ledger records and never writes files.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Mapping, NamedTuple, Sequence

import numpy as np

from bus.ether import Ether
from sim.errors import InternalConsistencyError
from sim.grid import Coordinate

log = logging.getLogger("detector")

MAD_SCALE: float = 1.4826       # consistency constant for a normal distribution
THRESHOLD_MADS: float = 3.0
YELLOW_RATIO: float = 0.6
RED_RATIO: float = 1.0
GPS_SLACK: int = 3              # cells added to rx_range for the plausibility radius


class Sighting(NamedTuple):
    """One RSU hearing one OBU in one round."""

    coordinate: Coordinate      # position reported by the OBU
    rsu_id: int


# round index → OBU id → sightings
RoundObservations = Dict[int, List[Sighting]]


class Reputation(IntEnum):
    RED = 0
    YELLOW = 1
    GREEN = 2


@dataclass
class ObuErrorStats:
    """Per-OBU error figures derived at detection time."""

    first_seen: int
    rounds_seen: int = 0
    tx_error_count: int = 0
    tx_error_rate: float = 0.0
    gps_error_count: int = 0
    gps_error_rate: float = 0.0


@dataclass(frozen=True)
class LedgerRecord:
    """One row of the reputation ledger."""

    obu_id: int
    tx_error_rate: float
    tx_class: Reputation
    gps_error_rate: float
    gps_class: Reputation
    reputation: Reputation


@dataclass
class DetectionResult:
    records: List[LedgerRecord] = field(default_factory=list)
    flagged: List[int] = field(default_factory=list)
    tx_threshold: float = 0.0
    gps_threshold: float = 0.0


# ── robust statistics ────────────────────────────────────────────────────────

def median(values: Sequence[float]) -> float:
    """Median; the mean of the two central elements for even-sized samples, 0.0 when empty."""
    arr = np.sort(np.asarray(values, dtype=float))
    n = arr.size
    if n == 0:
        return 0.0
    mid = n // 2
    if n % 2 == 1:
        return float(arr[mid])
    return float((arr[mid - 1] + arr[mid]) / 2.0)


def mad(values: Sequence[float]) -> float:
    """Median absolute deviation scaled by :data:`MAD_SCALE`."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    deviations = np.abs(arr - median(arr))
    return median(deviations) * MAD_SCALE


def threshold(values: Sequence[float]) -> float:
    """``median + 3 * scaled MAD``."""
    return median(values) + THRESHOLD_MADS * mad(values)


def ratio(rate: float, limit: float) -> float:
    """``rate / limit``; a zero limit gives 0.0 for a zero rate and infinity otherwise."""
    if limit > 0.0:
        return rate / limit
    return math.inf if rate > 0.0 else 0.0


def classify(rate: float, limit: float) -> Reputation:
    r = ratio(rate, limit)
    if r >= RED_RATIO:
        return Reputation.RED
    if r >= YELLOW_RATIO:
        return Reputation.YELLOW
    return Reputation.GREEN


# ── detection ────────────────────────────────────────────────────────────────

def error_stats(
    history: Sequence[RoundObservations],
    rsu_coordinates: Mapping[int, Coordinate],
    rx_range: int,
    current_round: int,
) -> Dict[int, ObuErrorStats]:
    """Derive per-OBU error counts and rates from the observation history."""
    stats: Dict[int, ObuErrorStats] = {}
    plausible_radius = rx_range + GPS_SLACK

    for round_index, round_data in enumerate(history):
        for obu_id, sightings in round_data.items():
            entry = stats.setdefault(obu_id, ObuErrorStats(first_seen=round_index))
            entry.rounds_seen += 1

            plausible = False
            for sighting in sightings:
                if sighting.rsu_id not in rsu_coordinates:
                    raise InternalConsistencyError(
                        f"sighting from unknown RSU {sighting.rsu_id}"
                    )
                if Ether.is_reachable(
                    sighting.coordinate, plausible_radius, rsu_coordinates[sighting.rsu_id]
                ):
                    plausible = True
                    break
            if not plausible:
                entry.gps_error_count += 1

    rounds_elapsed = len(history)
    for entry in stats.values():
        entry.tx_error_count = rounds_elapsed - (entry.rounds_seen + entry.first_seen)
        entry.tx_error_rate = entry.tx_error_count / current_round if current_round else 0.0
        entry.gps_error_rate = entry.gps_error_count / entry.rounds_seen
    return stats


def detect(
    history: Sequence[RoundObservations],
    rsu_coordinates: Mapping[int, Coordinate],
    rx_range: int,
    current_round: int,
    detect_tx: bool = True,
    detect_gps: bool = True,
) -> DetectionResult:
    """Score every observed OBU and flag the faulty ones.

    An OBU is flagged when, on every enabled channel, its error rate is at
    or above that channel's threshold.  A zero threshold therefore flags
    every observed OBU on that channel.  With both channels disabled
    nothing is flagged.  Ledger classes come from :func:`classify` and do
    not take part in flagging.
    """
    stats = error_stats(history, rsu_coordinates, rx_range, current_round)
    if not stats:
        log.info("no OBU observed in %d rounds; nothing to score", len(history))
        return DetectionResult()

    ids = sorted(stats)
    tx_limit = threshold([stats[i].tx_error_rate for i in ids])
    gps_limit = threshold([stats[i].gps_error_rate for i in ids])
    log.info("thresholds tx=%.4f gps=%.4f over %d OBUs", tx_limit, gps_limit, len(ids))

    result = DetectionResult(tx_threshold=tx_limit, gps_threshold=gps_limit)
    any_enabled = detect_tx or detect_gps
    for obu_id in ids:
        s = stats[obu_id]
        tx_class = classify(s.tx_error_rate, tx_limit)
        gps_class = classify(s.gps_error_rate, gps_limit)
        result.records.append(LedgerRecord(
            obu_id=obu_id,
            tx_error_rate=s.tx_error_rate,
            tx_class=tx_class,
            gps_error_rate=s.gps_error_rate,
            gps_class=gps_class,
            reputation=min(tx_class, gps_class),
        ))

        flagged = (
            any_enabled
            and (not detect_tx or s.tx_error_rate >= tx_limit)
            and (not detect_gps or s.gps_error_rate >= gps_limit)
        )
        log.debug(
            "OBU %03d tx=%d/%.4f (%s) gps=%d/%.4f (%s) flagged=%s",
            obu_id, s.tx_error_count, s.tx_error_rate, tx_class.name,
            s.gps_error_count, s.gps_error_rate, gps_class.name, flagged,
        )
        if flagged:
            result.flagged.append(obu_id)

    log.info("%d of %d observed OBUs flagged as faulty", len(result.flagged), len(ids))
    return result
