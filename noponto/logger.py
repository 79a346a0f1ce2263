"""
Logging setup for NoPonto.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

from loguru import logger as _logger

_LOG_INITIALISED = False
LOG_DIR = Path(
    os.environ.get(
        "NOPONTO_LOG_DIR",
        str(Path.home() / "AppData" / "Local" / "NoPonto" / "Logs"),
    )
)
DEFAULT_LOG_PATH = LOG_DIR / "noponto.log"


def configure(log_path: Optional[Path] = None) -> None:
    """
    Configure loguru for the application.

    Runs only once per process: console output at INFO plus a rotating
    file sink at DEBUG.
    """
    global _LOG_INITIALISED
    if _LOG_INITIALISED:
        return
    target = Path(log_path) if log_path is not None else DEFAULT_LOG_PATH
    target.parent.mkdir(parents=True, exist_ok=True)

    _logger.remove()
    if sys.stderr is not None:
        _logger.add(sys.stderr, level="INFO", enqueue=True)
    _logger.add(
        target,
        level="DEBUG",
        rotation="10 MB",
        retention=5,
        encoding="utf-8",
        enqueue=True,
        backtrace=True,
        diagnose=False,
    )
    _LOG_INITIALISED = True


def get_logger():
    """Return the shared logger instance."""
    configure()
    return _logger
