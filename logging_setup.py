#!/usr/bin/env python3
"""
logging_setup.py
================
Root logger configuration for a simulation run.

* console handler at the requested level;
* ``vanet.log`` rotating file (1 MB, 2 backups) with the same format;
* optional ``detector_debug.log`` rotating file (5 MB, 2 backups) that
  captures the per-OBU DEBUG decisions of the ``detector`` logger even
  when the console runs at INFO.

Safe to call more than once: handlers installed by a previous call are
replaced rather than stacked.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Union

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
RUN_LOG = "vanet.log"
DETECTOR_LOG = "detector_debug.log"

_MARK = "_vanet_handler"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"unknown log level {level!r}")
    return resolved


def _tagged(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _MARK, True)
    return handler


def _drop_tagged(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _MARK, False):
            logger.removeHandler(handler)
            handler.close()


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_dir: str = ".",
    detector_debug: bool = True,
) -> str:
    """Install console and rotating file handlers.

    Parameters
    ----------
    level : int or str
        Console / run-log threshold (``logging.DEBUG`` or ``"DEBUG"``).
    log_dir : str
        Directory for the log files; created if missing.
    detector_debug : bool
        Also write every ``detector`` DEBUG record to its own file.

    Returns
    -------
    str
        Absolute path of the run log.
    """
    level = _resolve_level(level)
    os.makedirs(log_dir, exist_ok=True)
    fmt = logging.Formatter(LOG_FORMAT)

    root = logging.getLogger()
    _drop_tagged(root)
    root.setLevel(level)

    ch = _tagged(logging.StreamHandler())
    ch.setLevel(level)
    ch.setFormatter(fmt)
    root.addHandler(ch)

    run_log = os.path.abspath(os.path.join(log_dir, RUN_LOG))
    fh = _tagged(RotatingFileHandler(run_log, maxBytes=1_000_000, backupCount=2))
    fh.setLevel(level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    detector_logger = logging.getLogger("detector")
    _drop_tagged(detector_logger)
    if detector_debug:
        # DEBUG reaches this file only; root handlers keep their own threshold
        detector_logger.setLevel(logging.DEBUG)
        dfh = _tagged(RotatingFileHandler(
            os.path.join(log_dir, DETECTOR_LOG), maxBytes=5_000_000, backupCount=2
        ))
        dfh.setLevel(logging.DEBUG)
        dfh.setFormatter(fmt)
        detector_logger.addHandler(dfh)
    else:
        detector_logger.setLevel(logging.NOTSET)

    return run_log
