"""
Milestone notification dispatch.

Turns monitor events into user-facing messages and hands them to the
registered presenters (tray balloon, overlay popup, main window focus).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional, Set, Tuple

from PySide6.QtCore import QObject, Signal

from noponto import logger as app_logger
from noponto_shared.progress import DEFAULT_TARGET_MINUTES, format_duration

from .session_monitor import MilestoneEvent, WorkAlmostComplete, WorkComplete

_ICONS = ("🎉", "⏰", "🧪")
_DEFAULT_ICON = "✅"


@dataclass(frozen=True)
class NotificationMessage:
    title: str
    message: str
    kind: str = "info"

    @property
    def icon(self) -> str:
        for icon in _ICONS:
            if icon in self.title:
                return icon
        return _DEFAULT_ICON


Presenter = Callable[[NotificationMessage], None]


def message_for(event: MilestoneEvent, *, target_minutes: int = DEFAULT_TARGET_MINUTES) -> NotificationMessage:
    if isinstance(event, WorkComplete):
        if target_minutes % 60 == 0:
            target_text = f"{target_minutes // 60} horas"
        else:
            target_text = format_duration(target_minutes)
        return NotificationMessage(
            title="🎉 Jornada Completa!",
            message=f"Parabéns! Você completou suas {target_text} de trabalho. Tenha um ótimo resto do dia!",
            kind="success",
        )
    if isinstance(event, WorkAlmostComplete):
        unit = "minuto" if event.remaining_minutes == 1 else "minutos"
        return NotificationMessage(
            title="⏰ Quase Acabando!",
            message=f"Faltam apenas {event.remaining_minutes} {unit} para completar sua jornada!",
            kind="warning",
        )
    raise TypeError(f"Unsupported milestone event: {event!r}")


TEST_MESSAGE = NotificationMessage(
    title="🧪 Teste de Notificação!",
    message="Esta é uma notificação de teste do NoPonto!",
    kind="info",
)


class MilestoneNotifier(QObject):
    """
    Presents each milestone once per session.

    Delivery is keyed on the event type and session id, so a repeated event
    (for example after an application restart) is dropped quietly. A failing
    presenter is logged and does not prevent the others from running.
    """

    delivered = Signal(object)

    def __init__(self, *, target_minutes: int = DEFAULT_TARGET_MINUTES, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self._logger = app_logger.get_logger()
        self.target_minutes = target_minutes
        self._presenters: List[Presenter] = []
        self._delivered_keys: Set[Tuple[str, str]] = set()

    def add_presenter(self, presenter: Presenter) -> None:
        self._presenters.append(presenter)

    def deliver(self, event: MilestoneEvent) -> bool:
        """Present ``event`` unless it was already presented. Returns whether it was shown."""
        key = (type(event).__name__, event.session_id)
        if key in self._delivered_keys:
            self._logger.debug("Duplicate {} for session {} ignored.", key[0], key[1])
            return False
        self._delivered_keys.add(key)
        self._present(message_for(event, target_minutes=self.target_minutes))
        return True

    def show_test_notification(self) -> None:
        self._logger.info("Test notification requested.")
        self._present(TEST_MESSAGE)

    def show_message(self, message: NotificationMessage) -> None:
        self._present(message)

    def _present(self, message: NotificationMessage) -> None:
        self._logger.info("Presenting notification: {}", message.title)
        for presenter in list(self._presenters):
            try:
                presenter(message)
            except Exception:
                self._logger.exception("Notification presenter {!r} failed.", presenter)
        self.delivered.emit(message)
