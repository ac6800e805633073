#!/usr/bin/env python3
"""
sim/ledger.py
=============
Writes the reputation ledger produced by :func:`sim.detector.detect`.

The file is a CSV with the fixed header::

    OBU #,TX Error,TX Rep,GPS Error,GPS Rep,Reputation

one row per observed OBU, decimal error rates and integer class codes
(0 = red, 1 = yellow, 2 = green).  Any previous content is truncated.
"""

from __future__ import annotations

import logging
import os
from typing import Sequence

import pandas as pd

from sim.detector import LedgerRecord

log = logging.getLogger("ledger")

LEDGER_COLUMNS = ["OBU #", "TX Error", "TX Rep", "GPS Error", "GPS Rep", "Reputation"]


def ledger_frame(records: Sequence[LedgerRecord]) -> pd.DataFrame:
    """Tabulate *records* in ledger column order."""
    rows = [
        (
            r.obu_id,
            float(r.tx_error_rate),
            int(r.tx_class),
            float(r.gps_error_rate),
            int(r.gps_class),
            int(r.reputation),
        )
        for r in records
    ]
    df = pd.DataFrame(rows, columns=LEDGER_COLUMNS)
    return df.astype({
        "OBU #": "int64",
        "TX Error": "float64",
        "TX Rep": "int64",
        "GPS Error": "float64",
        "GPS Rep": "int64",
        "Reputation": "int64",
    })


def write_ledger(records: Sequence[LedgerRecord], path: str) -> str:
    """Write *records* to *path*, truncating it.  Returns the absolute path."""
    df = ledger_frame(records)
    df.to_csv(path, index=False, mode="w", lineterminator="\n")
    full = os.path.abspath(path)
    log.info("reputation ledger written rows=%d path=%s", len(df), full)
    return full
