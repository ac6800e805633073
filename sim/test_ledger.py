#!/usr/bin/env python3
"""
Reputation ledger output tests.
"""

from __future__ import annotations

import os
import tempfile
import unittest

from sim.detector import LedgerRecord, Reputation
from sim.ledger import LEDGER_COLUMNS, ledger_frame, write_ledger


def _record(obu_id: int, tx: float, gps: float) -> LedgerRecord:
    tx_class = Reputation.RED if tx >= 0.5 else Reputation.GREEN
    gps_class = Reputation.YELLOW if gps > 0.0 else Reputation.GREEN
    return LedgerRecord(
        obu_id=obu_id,
        tx_error_rate=tx,
        tx_class=tx_class,
        gps_error_rate=gps,
        gps_class=gps_class,
        reputation=min(tx_class, gps_class),
    )


class LedgerTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "reputation.csv")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _lines(self):
        with open(self.path, encoding="utf-8") as fh:
            return fh.read().splitlines()

    def test_header_and_rows(self) -> None:
        write_ledger([_record(0, 0.0, 0.0), _record(7, 0.5, 1.0)], self.path)
        lines = self._lines()
        self.assertEqual(lines[0], "OBU #,TX Error,TX Rep,GPS Error,GPS Rep,Reputation")
        self.assertEqual(lines[1], "0,0.0,2,0.0,2,2")
        self.assertEqual(lines[2], "7,0.5,0,1.0,1,0")
        self.assertEqual(len(lines), 3)

    def test_previous_content_truncated(self) -> None:
        write_ledger([_record(i, 0.0, 0.0) for i in range(5)], self.path)
        write_ledger([_record(3, 0.0, 0.0)], self.path)
        self.assertEqual(len(self._lines()), 2)

    def test_empty_ledger_has_header_only(self) -> None:
        returned = write_ledger([], self.path)
        self.assertEqual(returned, os.path.abspath(self.path))
        self.assertEqual(self._lines(), [",".join(LEDGER_COLUMNS)])

    def test_frame_dtypes(self) -> None:
        df = ledger_frame([_record(1, 0.25, 0.0)])
        self.assertEqual(list(df.columns), LEDGER_COLUMNS)
        self.assertEqual(str(df["OBU #"].dtype), "int64")
        self.assertEqual(str(df["TX Error"].dtype), "float64")
        self.assertEqual(int(df.loc[0, "Reputation"]), 2)


if __name__ == "__main__":
    unittest.main()
