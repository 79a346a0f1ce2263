"""
Application coordinator wiring the window, monitor and notification presenters.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from PySide6.QtCore import QObject, Qt, QTimer
from PySide6.QtGui import QAction
from PySide6.QtWidgets import QApplication, QMenu, QStyle, QSystemTrayIcon

from noponto import logger as app_logger
from noponto_shared.session_times import SessionTimes, SessionValidationError

from .main_window import MainWindow
from .notification_popup import NotificationPopup
from .notifier import MilestoneNotifier, NotificationMessage
from .session_monitor import MonitorStatus, SessionMonitor
from .session_store import TIME_DATA_KEY, SessionStore
from .settings import CoreSettings, CoreSettingsManager

APP_NAME = "NoPonto"
APP_VERSION = "1.0.0"
APP_PURPOSE = "Controle de Ponto"
SETTINGS_REFRESH_INTERVAL_MS = 15000
TRAY_MESSAGE_TIMEOUT_MS = 10000


@dataclass
class AppCoordinator(QObject):
    store: SessionStore = field(default_factory=SessionStore)
    settings_manager: CoreSettingsManager = field(default_factory=CoreSettingsManager)

    def __post_init__(self) -> None:
        super().__init__()
        self._logger = app_logger.get_logger()
        self._manual_shutdown_requested = False

        self._settings: CoreSettings = self.settings_manager.read_settings()

        self._monitor = SessionMonitor(
            tick_interval_seconds=self._settings.tick_interval_seconds,
            almost_complete_minutes=self._settings.almost_complete_minutes,
            target_minutes=self._settings.target_minutes,
            parent=self,
        )
        self._notifier = MilestoneNotifier(target_minutes=self._settings.target_minutes, parent=self)
        self._popup = NotificationPopup(duration_seconds=self._settings.overlay_seconds)
        self._window = MainWindow(target_minutes=self._settings.target_minutes)

        self._window.timesChanged.connect(self._on_times_changed)
        self._window.toggleRequested.connect(self._on_toggle_requested)
        self._window.testNotificationRequested.connect(self._notifier.show_test_notification)
        self._window.quitRequested.connect(self.shutdown)

        self._monitor.statusChanged.connect(self._on_status_changed)
        self._monitor.snapshotUpdated.connect(self._window.update_progress)
        # Presenters run after the emitting tick has returned.
        self._monitor.workAlmostComplete.connect(self._notifier.deliver, Qt.ConnectionType.QueuedConnection)
        self._monitor.workComplete.connect(self._notifier.deliver, Qt.ConnectionType.QueuedConnection)

        self._notifier.add_presenter(self._show_tray_message)
        self._notifier.add_presenter(self._popup.show_message)
        self._notifier.add_presenter(self._focus_window_for_milestone)

        self._popup.clicked.connect(self._window.bring_to_front)

        self._tray = QSystemTrayIcon(self)
        tray_icon = QApplication.style().standardIcon(QStyle.StandardPixmap.SP_FileDialogDetailedView)
        self._tray.setIcon(tray_icon)
        self._tray.setToolTip(f"{APP_NAME} - {APP_PURPOSE}")

        menu = QMenu()
        show_action = QAction("Mostrar", menu)
        exit_action = QAction("Sair", menu)
        menu.addAction(show_action)
        menu.addSeparator()
        menu.addAction(exit_action)
        self._tray.setContextMenu(menu)
        self._tray_menu = menu

        show_action.triggered.connect(self._window.bring_to_front)
        exit_action.triggered.connect(self.shutdown)
        self._tray.activated.connect(self._on_tray_activated)

        self._settings_timer = QTimer(self)
        self._settings_timer.setInterval(SETTINGS_REFRESH_INTERVAL_MS)
        self._settings_timer.timeout.connect(self._reload_settings)

        app = QApplication.instance()
        if app is not None:
            app.applicationStateChanged.connect(self._on_application_state_changed)

    def start(self) -> None:
        self._logger.info("Starting {} v{}.", APP_NAME, APP_VERSION)
        stored = self.store.get(TIME_DATA_KEY)
        if stored is not None:
            self._logger.debug("Restoring saved times {}.", stored.as_dict())
            self._window.set_times(stored)
        self._apply_settings(self._settings)
        self._window.show()
        self._settings_timer.start()

    def shutdown(self) -> None:
        self._logger.info("Shutting down application on user request.")
        self._manual_shutdown_requested = True
        self._settings_timer.stop()
        self._monitor.stop()
        self.store.set(TIME_DATA_KEY, self._window.session_times())
        self.store.sync()
        self._popup.dismiss()
        self._tray.hide()
        QApplication.instance().quit()

    @property
    def manual_shutdown_requested(self) -> bool:
        return self._manual_shutdown_requested

    @property
    def monitor(self) -> SessionMonitor:
        return self._monitor

    @property
    def window(self) -> MainWindow:
        return self._window

    # ------------------------------------------------------------------#
    # Window and monitor events
    # ------------------------------------------------------------------#

    def _on_times_changed(self, times: SessionTimes) -> None:
        self.store.set(TIME_DATA_KEY, times)

    def _on_toggle_requested(self) -> None:
        if self._monitor.is_active:
            self._monitor.stop_monitoring()
            return
        times = self._window.session_times()
        try:
            self._monitor.start_monitoring(times)
        except SessionValidationError as exc:
            self._logger.warning("Monitoring not started: {}", exc)
            self._window.show_validation(exc.validation)

    def _on_status_changed(self, status: MonitorStatus) -> None:
        active = status is MonitorStatus.ACTIVE
        self._window.set_monitoring(active)
        if not active:
            self._window.update_progress(None)

    def _on_application_state_changed(self, state: Qt.ApplicationState) -> None:
        if state == Qt.ApplicationState.ApplicationActive:
            self._monitor.resync()

    def _on_tray_activated(self, reason: QSystemTrayIcon.ActivationReason) -> None:
        if reason == QSystemTrayIcon.ActivationReason.Trigger:
            self._window.bring_to_front()

    # ------------------------------------------------------------------#
    # Presenters
    # ------------------------------------------------------------------#

    def _show_tray_message(self, message: NotificationMessage) -> None:
        if not self._settings.system_notifications:
            return
        if not self._tray.isVisible() or not QSystemTrayIcon.supportsMessages():
            self._logger.debug("System notification skipped; tray messages unavailable.")
            return
        icon = (
            QSystemTrayIcon.MessageIcon.Warning
            if message.kind == "warning"
            else QSystemTrayIcon.MessageIcon.Information
        )
        self._tray.showMessage(message.title, message.message, icon, TRAY_MESSAGE_TIMEOUT_MS)

    def _focus_window_for_milestone(self, message: NotificationMessage) -> None:
        if message.kind in ("success", "warning"):
            self._window.bring_to_front()

    # ------------------------------------------------------------------#
    # Settings
    # ------------------------------------------------------------------#

    def _reload_settings(self) -> None:
        new_settings = self.settings_manager.read_settings()
        if new_settings != self._settings:
            self._logger.info("Detected settings change. Applying updates.")
            self._apply_settings(new_settings)

    def _apply_settings(self, settings: CoreSettings) -> None:
        self._settings = settings
        self._monitor.configure(
            tick_interval_seconds=settings.tick_interval_seconds,
            almost_complete_minutes=settings.almost_complete_minutes,
            target_minutes=settings.target_minutes,
        )
        self._notifier.target_minutes = settings.target_minutes
        self._window.target_minutes = settings.target_minutes
        self._popup.duration_seconds = settings.overlay_seconds

        tray_wanted = settings.show_tray_icon and QSystemTrayIcon.isSystemTrayAvailable()
        if tray_wanted and not self._tray.isVisible():
            self._tray.show()
        elif not tray_wanted and self._tray.isVisible():
            self._tray.hide()
        # Closing the window quits the app when there is no tray icon.
        self._window.hide_on_close = tray_wanted
