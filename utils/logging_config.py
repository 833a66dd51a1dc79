"""Logging helpers to mirror console output into a persistent log file."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path

from loguru import logger

from utils.constants import LOGS_DIR

LOG_FILE_PREFIX = "printing_sync"


def configure_logging(logs_dir: Path | None = None, level: str = "INFO") -> Path | None:
    """
    Configure loguru to emit to stderr and a rolling file in the logs directory.

    Returns the file path in use when file logging is available, otherwise None.
    """
    logs_dir = logs_dir or LOGS_DIR
    logger.remove()
    logger.add(sys.stderr, level=level, backtrace=True, diagnose=False, enqueue=True)

    log_file: Path | None = None
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_file = logs_dir / f"{LOG_FILE_PREFIX}_{datetime.now():%Y%m%d_%H%M%S}.log"
        logger.add(
            log_file,
            level=level,
            rotation="5 MB",
            retention=5,
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )
    except OSError as exc:
        logger.warning(f"File logging disabled; unable to write to {logs_dir}: {exc}")
        log_file = None

    return log_file
