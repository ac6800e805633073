#!/usr/bin/env python3
"""
Entry-point tests: environment overrides and logging setup.
"""

from __future__ import annotations

import logging
import os
import tempfile
import unittest
from unittest import mock

import config
import main
from logging_setup import DETECTOR_LOG, RUN_LOG, setup_logging
from sim.errors import ConfigurationError


class EnvOverrideTests(unittest.TestCase):
    def test_defaults(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            grid, rsu, obu = main.build_configs()
        self.assertEqual(grid.blocks_per_street, config.DEFAULT_BLOCKS_PER_STREET)
        self.assertEqual(rsu.rx_range, config.DEFAULT_RSU_RX_RANGE)
        self.assertFalse(rsu.detect_gps_failure)
        self.assertEqual(obu.faulty_obu_count, config.DEFAULT_FAULTY_OBU_COUNT)

    def test_overrides(self) -> None:
        env = {
            "VANET_BLOCKS_PER_STREET": "4",
            "VANET_RSU_RX_RANGE": "3",
            "VANET_DETECT_GPS_FAILURE": "yes",
            "VANET_MAX_OBUS": "50",
            "VANET_FAULTY_OBU_COUNT": "5",
            "VANET_GPS_FAILURE_RATE": "0.1",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            grid, rsu, obu = main.build_configs()
        self.assertEqual(grid.blocks_per_street, 4)
        self.assertEqual(rsu.rx_range, 3)
        self.assertTrue(rsu.detect_gps_failure)
        self.assertEqual((obu.max_obus, obu.faulty_obu_count), (50, 5))
        self.assertAlmostEqual(obu.gps_failure_rate, 0.1)

    def test_malformed_values(self) -> None:
        for env in ({"VANET_MAX_OBUS": "many"}, {"VANET_DETECT_TX_FAILURE": "maybe"},
                    {"VANET_GPS_FAILURE_RATE": "2.0"}):
            with mock.patch.dict(os.environ, env, clear=True):
                with self.assertRaises(ConfigurationError):
                    main.build_configs()


class _LogHandlerCleanup(unittest.TestCase):
    """Restores root and detector handlers replaced by ``setup_logging``."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        root = logging.getLogger()
        self._saved = (list(root.handlers), root.level)

    def tearDown(self) -> None:
        root = logging.getLogger()
        for logger in (root, logging.getLogger("detector")):
            for handler in list(logger.handlers):
                if handler not in self._saved[0]:
                    logger.removeHandler(handler)
                    handler.close()
        root.setLevel(self._saved[1])
        logging.getLogger("detector").setLevel(logging.NOTSET)
        self._tmp.cleanup()


class LoggingSetupTests(_LogHandlerCleanup):
    def test_repeated_setup_does_not_stack_handlers(self) -> None:
        setup_logging("INFO", log_dir=self._tmp.name)
        first = len(logging.getLogger().handlers)
        run_log = setup_logging("DEBUG", log_dir=self._tmp.name)
        self.assertEqual(len(logging.getLogger().handlers), first)
        self.assertEqual(len(logging.getLogger("detector").handlers), 1)
        self.assertEqual(run_log, os.path.abspath(os.path.join(self._tmp.name, RUN_LOG)))
        self.assertTrue(os.path.exists(os.path.join(self._tmp.name, DETECTOR_LOG)))

    def test_unknown_level(self) -> None:
        with self.assertRaises(ValueError):
            setup_logging("CHATTY", log_dir=self._tmp.name)


class MainEntryTests(_LogHandlerCleanup):
    def test_malformed_override_exits_with_status_2(self) -> None:
        env = {"VANET_MAX_OBUS": "many", "VANET_LOG_DIR": self._tmp.name}
        with mock.patch.dict(os.environ, env, clear=True):
            self.assertEqual(main.main(), 2)

    def test_small_run_writes_ledger(self) -> None:
        ledger = os.path.join(self._tmp.name, "ledger.csv")
        env = {
            "VANET_BLOCKS_PER_STREET": "3",
            "VANET_BLOCK_SIZE": "2",
            "VANET_ROUNDS": "5",
            "VANET_SEED": "1",
            "VANET_LEDGER_PATH": ledger,
            "VANET_LOG_DIR": self._tmp.name,
        }
        with mock.patch.dict(os.environ, env, clear=True):
            self.assertEqual(main.main(), 0)

        with open(ledger, encoding="utf-8") as fh:
            header = fh.readline().rstrip("\n")
        self.assertEqual(header, "OBU #,TX Error,TX Rep,GPS Error,GPS Rep,Reputation")
        self.assertTrue(os.path.exists(os.path.join(self._tmp.name, RUN_LOG)))


if __name__ == "__main__":
    unittest.main()
