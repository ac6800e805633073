#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Values can be overridden via ``VANET_*`` environment variables (see
:mod:`main`).  This module is a thin, import-safe leaf and never imports
from other project packages.
"""

# ── Grid defaults ────────────────────────────────────────────────────────────
DEFAULT_BLOCKS_PER_STREET: int = 25
DEFAULT_BLOCK_SIZE: int = 3

# ── RSU defaults ─────────────────────────────────────────────────────────────
DEFAULT_RSU_TX_RANGE: int = 5
DEFAULT_RSU_RX_RANGE: int = 5        # also the lattice spacing driver
DEFAULT_DETECT_TX_FAILURE: bool = True
DEFAULT_DETECT_GPS_FAILURE: bool = False

# ── OBU defaults ─────────────────────────────────────────────────────────────
DEFAULT_MAX_OBUS: int = 120
DEFAULT_OBU_RANGE: int = 6           # keep above the RSU rx range
DEFAULT_TX_BASE_FAILURE_RATE: float = 0.02
DEFAULT_TX_FAULTY_FAILURE_RATE: float = 0.05
DEFAULT_GPS_FAILURE_RATE: float = 0.02
DEFAULT_GPS_FAULTY_FAILURE_RATE: float = 0.05
DEFAULT_FAULTY_OBU_COUNT: int = 20

# ── Run defaults ─────────────────────────────────────────────────────────────
DEFAULT_ROUNDS: int = 180
DEFAULT_SEED = None                  # None → non-reproducible run

# ── Output ───────────────────────────────────────────────────────────────────
LEDGER_PATH: str = "reputation.csv"
LOG_LEVEL: str = "INFO"
LOG_DIR: str = "."
DETECTOR_DEBUG_LOG: bool = True      # per-OBU detector decisions in detector_debug.log
