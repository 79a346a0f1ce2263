"""
Overlay notification card shown in the centre of the primary screen.
"""

from __future__ import annotations

from PySide6.QtCore import QPoint, Qt, QTimer, Signal
from PySide6.QtGui import QColor, QMouseEvent
from PySide6.QtWidgets import (
    QApplication,
    QGraphicsDropShadowEffect,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from .notifier import NotificationMessage
from .settings import DEFAULT_OVERLAY_SECONDS

_BACKGROUNDS = {
    "success": "qlineargradient(x1:0, y1:0, x2:1, y2:1, stop:0 #10b981, stop:1 #059669)",
    "warning": "qlineargradient(x1:0, y1:0, x2:1, y2:1, stop:0 #f59e0b, stop:1 #d97706)",
    "info": "qlineargradient(x1:0, y1:0, x2:1, y2:1, stop:0 #3b82f6, stop:1 #1d4ed8)",
}


class NotificationPopup(QWidget):
    clicked = Signal()

    def __init__(self, parent: QWidget | None = None, *, duration_seconds: int = DEFAULT_OVERLAY_SECONDS) -> None:
        flags = Qt.WindowType.Tool | Qt.WindowType.FramelessWindowHint | Qt.WindowType.WindowStaysOnTopHint
        super().__init__(parent)
        self.setWindowFlags(flags)
        self.setObjectName("NotificationPopup")
        self.setAttribute(Qt.WidgetAttribute.WA_TranslucentBackground, True)

        self.duration_seconds = duration_seconds
        self._auto_close = QTimer(self)
        self._auto_close.setSingleShot(True)
        self._auto_close.timeout.connect(self.dismiss)  # type: ignore[arg-type]

        self._container = QWidget(self)
        self._container.setObjectName("PopupCard")
        shadow = QGraphicsDropShadowEffect(self._container)
        shadow.setBlurRadius(32)
        shadow.setColor(QColor(0, 0, 0, 110))
        shadow.setOffset(0, 16)
        self._container.setGraphicsEffect(shadow)

        self._icon_label = QLabel()
        self._icon_label.setObjectName("NotificationIcon")
        self._icon_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._title_label = QLabel()
        self._title_label.setObjectName("NotificationTitle")
        self._title_label.setAlignment(Qt.AlignmentFlag.AlignCenter)

        self._message_label = QLabel()
        self._message_label.setObjectName("NotificationMessage")
        self._message_label.setWordWrap(True)
        self._message_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._message_label.setMaximumWidth(440)

        self._close_button = QPushButton("Fechar")
        self._close_button.setObjectName("NotificationClose")
        self._close_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self._close_button.clicked.connect(self.dismiss)  # type: ignore[arg-type]

        button_row = QHBoxLayout()
        button_row.addStretch()
        button_row.addWidget(self._close_button)
        button_row.addStretch()

        layout = QVBoxLayout(self._container)
        layout.setContentsMargins(24, 28, 24, 24)
        layout.setSpacing(10)
        layout.addWidget(self._icon_label)
        layout.addWidget(self._title_label)
        layout.addWidget(self._message_label)
        layout.addLayout(button_row)

        base_layout = QHBoxLayout(self)
        base_layout.setContentsMargins(16, 16, 16, 24)
        base_layout.addWidget(self._container)

        self.setFixedWidth(500)
        self._apply_style("info")

    def show_message(self, message: NotificationMessage) -> None:
        """Replace whatever is on screen with ``message`` and restart the auto-close countdown."""
        self._auto_close.stop()
        self._icon_label.setText(message.icon)
        self._title_label.setText(message.title)
        self._message_label.setText(message.message)
        self._apply_style(message.kind)
        self.adjustSize()
        self._position_center()
        self.show()
        self.raise_()
        self._auto_close.start(max(1, self.duration_seconds) * 1000)

    def dismiss(self) -> None:
        self._auto_close.stop()
        self.hide()

    def _apply_style(self, kind: str) -> None:
        background = _BACKGROUNDS.get(kind, _BACKGROUNDS["info"])
        self.setStyleSheet(
            f"""
            QWidget#PopupCard {{
                background: {background};
                border-radius: 16px;
            }}
            QWidget#PopupCard QLabel {{
                color: white;
                background: transparent;
            }}
            QLabel#NotificationIcon {{
                font-size: 42px;
            }}
            QLabel#NotificationTitle {{
                font-size: 22px;
                font-weight: 700;
            }}
            QLabel#NotificationMessage {{
                font-size: 15px;
            }}
            QPushButton#NotificationClose {{
                background-color: rgba(255, 255, 255, 0.22);
                color: white;
                border: none;
                border-radius: 16px;
                padding: 8px 22px;
                font-weight: 600;
            }}
            QPushButton#NotificationClose:hover {{
                background-color: rgba(255, 255, 255, 0.32);
            }}
            """
        )

    def _position_center(self) -> None:
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geometry = screen.availableGeometry()
        x = geometry.center().x() - self.width() // 2
        y = geometry.center().y() - self.height() // 2
        self.move(QPoint(x, y))

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        super().mousePressEvent(event)
        if event.button() == Qt.MouseButton.LeftButton:
            self.clicked.emit()
