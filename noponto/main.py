"""
Entry point for the NoPonto desktop application.
"""

from __future__ import annotations

import sys
import time
from pathlib import Path
from typing import Iterable, Tuple

from PySide6.QtCore import QDir, QLockFile
from PySide6.QtWidgets import QApplication

from noponto import logger as app_logger
from noponto_core.app import APP_NAME, AppCoordinator
from noponto_core.session_store import APPLICATION_NAME, ORGANIZATION_NAME

_LOCK_NAME = "noponto.lock"


class _InstanceGuard:
    """Lock file guard to prevent concurrent instances."""

    def __init__(self, path: Path) -> None:
        self._lock = QLockFile(str(path))
        self._lock.setStaleLockTime(0)

    def acquire(self) -> bool:
        return self._lock.tryLock(100)

    def release(self) -> None:
        if self._lock.isLocked():
            self._lock.unlock()


def _run_application_once(argv: Iterable[str]) -> Tuple[int, bool]:
    """Start the Qt application once and report whether shutdown was intentional."""
    app = QApplication(list(argv))
    app.setOrganizationName(ORGANIZATION_NAME)
    app.setApplicationName(APPLICATION_NAME)
    app.setApplicationDisplayName(APP_NAME)
    app.setQuitOnLastWindowClosed(False)
    coordinator = AppCoordinator()
    coordinator.start()
    exit_code = app.exec()
    manual_shutdown = getattr(coordinator, "manual_shutdown_requested", False)
    return exit_code, bool(manual_shutdown)


def main() -> int:
    """Launch the application with single-instance + recovery safeguards."""
    logger = app_logger.get_logger()
    guard = _InstanceGuard(Path(QDir.tempPath()) / _LOCK_NAME)
    if not guard.acquire():
        logger.info("NoPonto is already running; exiting.")
        return 0

    backoff_seconds = 2
    max_backoff = 30

    try:
        while True:
            try:
                exit_code, manual = _run_application_once(sys.argv)
            except Exception:
                logger.exception("NoPonto crashed; attempting automatic recovery.")
                exit_code = 1
                manual = False

            if manual:
                return exit_code

            logger.warning(
                "NoPonto exited unexpectedly (code={}). Restarting in {} seconds.",
                exit_code,
                backoff_seconds,
            )
            time.sleep(backoff_seconds)
            backoff_seconds = min(backoff_seconds * 2, max_backoff)
    finally:
        guard.release()


if __name__ == "__main__":
    raise SystemExit(main())
