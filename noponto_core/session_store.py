"""
Persistence of the day's punch times using QSettings.

On Windows QSettings writes to the registry under HKCU, on other platforms to
the native preference store. An explicit INI path can be supplied instead.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QSettings

from noponto import logger as app_logger
from noponto_shared.session_times import FIELD_NAMES, SessionTimes

ORGANIZATION_NAME = "NoPonto"
APPLICATION_NAME = "NoPonto"
TIME_DATA_KEY = "timeData"
SETTINGS_FILE_ENV = "NOPONTO_SETTINGS_FILE"


def open_settings(path: Optional[Path] = None) -> QSettings:
    """
    Return the QSettings backing both the session store and core settings.

    ``path`` (or the NOPONTO_SETTINGS_FILE environment variable) selects an
    INI file; otherwise the platform's native location is used.
    """
    target = path or os.environ.get(SETTINGS_FILE_ENV)
    if target:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        return QSettings(str(target), QSettings.Format.IniFormat)
    return QSettings(ORGANIZATION_NAME, APPLICATION_NAME)


class SessionStore:
    """Thin key-value wrapper storing SessionTimes as a settings group."""

    def __init__(self, settings: Optional[QSettings] = None) -> None:
        self._settings = settings if settings is not None else open_settings()
        self._logger = app_logger.get_logger()

    def get(self, key: str = TIME_DATA_KEY) -> Optional[SessionTimes]:
        self._settings.beginGroup(key)
        try:
            present = [name for name in FIELD_NAMES if self._settings.contains(name)]
            if not present:
                return None
            values = {name: self._read_string(name) for name in FIELD_NAMES}
        finally:
            self._settings.endGroup()
        return SessionTimes.from_dict(values)

    def set(self, key: str, times: SessionTimes) -> None:
        """Queue ``times`` for persistence; QSettings flushes to disk on its own."""
        self._settings.beginGroup(key)
        try:
            for name, value in times.as_dict().items():
                self._settings.setValue(name, value)
        finally:
            self._settings.endGroup()
        self._logger.debug("Stored {} = {}", key, times.as_dict())

    def clear(self, key: str = TIME_DATA_KEY) -> None:
        self._settings.remove(key)

    def sync(self) -> None:
        """Flush pending writes, logging instead of raising when storage is unavailable."""
        self._settings.sync()
        status = self._settings.status()
        if status != QSettings.Status.NoError:
            self._logger.error("Failed to persist session times: {}", status)

    def _read_string(self, name: str) -> str:
        value = self._settings.value(name, "")
        if value is None:
            return ""
        if not isinstance(value, str):
            self._logger.warning("Stored value {} has unexpected type {}.", name, type(value).__name__)
            return ""
        return value
