"""
QSettings-backed configuration for the NoPonto runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from PySide6.QtCore import QSettings

from noponto import logger as app_logger
from noponto_shared.progress import DEFAULT_TARGET_MINUTES

from .session_monitor import DEFAULT_ALMOST_COMPLETE_MINUTES, DEFAULT_TICK_INTERVAL_SECONDS
from .session_store import open_settings

_GROUP = "Core"
DEFAULT_OVERLAY_SECONDS = 8

_TARGET_BOUNDS = (60, 24 * 60)
_ALMOST_COMPLETE_BOUNDS = (1, 60)
_TICK_INTERVAL_BOUNDS = (10, 3600)
_OVERLAY_BOUNDS = (1, 120)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


@dataclass(eq=True)
class CoreSettings:
    target_minutes: int = DEFAULT_TARGET_MINUTES
    almost_complete_minutes: int = DEFAULT_ALMOST_COMPLETE_MINUTES
    tick_interval_seconds: int = DEFAULT_TICK_INTERVAL_SECONDS
    show_tray_icon: bool = True
    system_notifications: bool = True
    overlay_seconds: int = DEFAULT_OVERLAY_SECONDS


class CoreSettingsManager:
    """Loads persisted settings and clamps invalid data."""

    def __init__(self, settings: Optional[QSettings] = None) -> None:
        self._settings = settings if settings is not None else open_settings()
        self._logger = app_logger.get_logger()

    def read_settings(self) -> CoreSettings:
        self._settings.sync()
        self._settings.beginGroup(_GROUP)
        try:
            return CoreSettings(
                target_minutes=self._read_int("TargetMinutes", DEFAULT_TARGET_MINUTES, _TARGET_BOUNDS),
                almost_complete_minutes=self._read_int(
                    "AlmostCompleteMinutes", DEFAULT_ALMOST_COMPLETE_MINUTES, _ALMOST_COMPLETE_BOUNDS
                ),
                tick_interval_seconds=self._read_int(
                    "TickIntervalSeconds", DEFAULT_TICK_INTERVAL_SECONDS, _TICK_INTERVAL_BOUNDS
                ),
                show_tray_icon=self._read_bool("ShowTrayIcon", True),
                system_notifications=self._read_bool("SystemNotifications", True),
                overlay_seconds=self._read_int("OverlaySeconds", DEFAULT_OVERLAY_SECONDS, _OVERLAY_BOUNDS),
            )
        finally:
            self._settings.endGroup()

    def write_settings(self, settings: CoreSettings) -> None:
        self._settings.beginGroup(_GROUP)
        try:
            self._settings.setValue("TargetMinutes", settings.target_minutes)
            self._settings.setValue("AlmostCompleteMinutes", settings.almost_complete_minutes)
            self._settings.setValue("TickIntervalSeconds", settings.tick_interval_seconds)
            self._settings.setValue("ShowTrayIcon", settings.show_tray_icon)
            self._settings.setValue("SystemNotifications", settings.system_notifications)
            self._settings.setValue("OverlaySeconds", settings.overlay_seconds)
        finally:
            self._settings.endGroup()
        self._settings.sync()

    def _read_int(self, name: str, default: int, bounds: Tuple[int, int]) -> int:
        raw = self._read_raw(name)
        if raw is None:
            return default
        try:
            value = int(raw)
        except (TypeError, ValueError):
            self._logger.warning("Setting {} has unusable value {!r}; using {}.", name, raw, default)
            return default
        low, high = bounds
        if value < low or value > high:
            self._logger.warning(
                "Invalid {} value {} found in settings. Clamping to safe bounds.",
                name,
                value,
            )
        return max(low, min(high, value))

    def _read_bool(self, name: str, default: bool) -> bool:
        raw = self._read_raw(name)
        if raw is None:
            return default
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, int):
            return bool(raw)
        text = str(raw).strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        self._logger.warning("Setting {} has unusable value {!r}; using {}.", name, raw, default)
        return default

    def _read_raw(self, name: str) -> Any:
        if not self._settings.contains(name):
            return None
        return self._settings.value(name)
