#!/usr/bin/env python3
"""
main.py
=======
Entry point: builds the configuration records from :mod:`config`, applies
``VANET_*`` environment overrides, runs one simulation and writes the
reputation ledger.

Environment overrides
---------------------
VANET_ROUNDS, VANET_SEED, VANET_LEDGER_PATH, VANET_LOG_LEVEL, VANET_LOG_DIR,
VANET_BLOCKS_PER_STREET, VANET_BLOCK_SIZE,
VANET_RSU_TX_RANGE, VANET_RSU_RX_RANGE,
VANET_DETECT_TX_FAILURE, VANET_DETECT_GPS_FAILURE,
VANET_MAX_OBUS, VANET_OBU_RANGE, VANET_FAULTY_OBU_COUNT,
VANET_TX_BASE_FAILURE_RATE, VANET_TX_FAULTY_FAILURE_RATE,
VANET_GPS_FAILURE_RATE, VANET_GPS_FAULTY_FAILURE_RATE
"""

import functools
import logging
import os
import sys

import config
from logging_setup import setup_logging
from sim.errors import ConfigurationError
from sim.ledger import write_ledger
from sim.params import GridConfig, ObuConfig, RsuConfig
from sim.simulator import Simulator

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_int(name, default):
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer (got {raw!r})") from None


def _env_float(name, default):
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number (got {raw!r})") from None


def _env_bool(name, default):
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigurationError(f"{name} must be a boolean (got {raw!r})")


def build_configs():
    """Return ``(GridConfig, RsuConfig, ObuConfig)`` with overrides applied."""
    grid = GridConfig(
        blocks_per_street=_env_int("VANET_BLOCKS_PER_STREET", config.DEFAULT_BLOCKS_PER_STREET),
        block_size=_env_int("VANET_BLOCK_SIZE", config.DEFAULT_BLOCK_SIZE),
    )
    rsu = RsuConfig(
        tx_range=_env_int("VANET_RSU_TX_RANGE", config.DEFAULT_RSU_TX_RANGE),
        rx_range=_env_int("VANET_RSU_RX_RANGE", config.DEFAULT_RSU_RX_RANGE),
        detect_tx_failure=_env_bool("VANET_DETECT_TX_FAILURE", config.DEFAULT_DETECT_TX_FAILURE),
        detect_gps_failure=_env_bool("VANET_DETECT_GPS_FAILURE", config.DEFAULT_DETECT_GPS_FAILURE),
    )
    obu = ObuConfig(
        max_obus=_env_int("VANET_MAX_OBUS", config.DEFAULT_MAX_OBUS),
        comms_range=_env_int("VANET_OBU_RANGE", config.DEFAULT_OBU_RANGE),
        tx_base_failure_rate=_env_float(
            "VANET_TX_BASE_FAILURE_RATE", config.DEFAULT_TX_BASE_FAILURE_RATE),
        tx_faulty_failure_rate=_env_float(
            "VANET_TX_FAULTY_FAILURE_RATE", config.DEFAULT_TX_FAULTY_FAILURE_RATE),
        gps_failure_rate=_env_float(
            "VANET_GPS_FAILURE_RATE", config.DEFAULT_GPS_FAILURE_RATE),
        gps_faulty_failure_rate=_env_float(
            "VANET_GPS_FAULTY_FAILURE_RATE", config.DEFAULT_GPS_FAULTY_FAILURE_RATE),
        faulty_obu_count=_env_int("VANET_FAULTY_OBU_COUNT", config.DEFAULT_FAULTY_OBU_COUNT),
    )
    return grid, rsu, obu


def main():
    level_name = os.environ.get("VANET_LOG_LEVEL", config.LOG_LEVEL)
    log_dir = os.environ.get("VANET_LOG_DIR", config.LOG_DIR)
    try:
        setup_logging(level_name, log_dir=log_dir, detector_debug=config.DETECTOR_DEBUG_LOG)
    except ValueError:
        setup_logging(logging.INFO, log_dir=log_dir, detector_debug=config.DETECTOR_DEBUG_LOG)
        logging.getLogger("main").warning("unknown log level %r, using INFO", level_name)
    log = logging.getLogger("main")

    try:
        grid_cfg, rsu_cfg, obu_cfg = build_configs()
        rounds = _env_int("VANET_ROUNDS", config.DEFAULT_ROUNDS)
        seed = _env_int("VANET_SEED", config.DEFAULT_SEED)
    except ConfigurationError as exc:
        log.error("invalid configuration: %s", exc)
        return 2

    ledger_path = os.environ.get("VANET_LEDGER_PATH", config.LEDGER_PATH)
    log.info(
        "Starting simulation rounds=%d seed=%s grid=%dx%d ledger=%s",
        rounds, seed, grid_cfg.dimension, grid_cfg.dimension, ledger_path,
    )

    sim = Simulator(
        grid_cfg, rsu_cfg, obu_cfg,
        seed=seed,
        ledger_writer=functools.partial(write_ledger, path=ledger_path),
    )
    sim.init()
    report = sim.run(rounds)

    log.info(
        "detection rate %.2f%% (fp %.2f%%, fn %.2f%%) tp=%d fp=%d tn=%d fn=%d",
        100.0 * report.detection_rate,
        100.0 * report.false_positive_rate,
        100.0 * report.false_negative_rate,
        report.true_positive, report.false_positive,
        report.true_negative, report.false_negative,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
