"""
Main window: punch-time entry, monitoring toggle and live progress.
"""

from __future__ import annotations

from typing import Dict, Optional

from PySide6.QtCore import QSignalBlocker, Qt, Signal
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QProgressBar,
    QPushButton,
    QStyle,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from noponto_shared.progress import (
    DEFAULT_TARGET_MINUTES,
    ProgressSnapshot,
    display_percent,
    format_duration,
)
from noponto_shared.session_times import (
    FIELD_NAMES,
    SequenceValidation,
    SessionTimes,
    normalize,
    validate_sequence,
)

_FIELD_LABELS = {
    "start1": "Início 1",
    "end1": "Fim 1",
    "start2": "Início 2",
}

_HELP_TEXT = "\n".join(
    [
        "• Insira o horário de início do primeiro período",
        "• Insira o horário de saída para o intervalo",
        "• Insira o horário de volta do intervalo",
        "• Clique em \"Iniciar Monitoramento\" para acompanhar a jornada",
        "• Você será avisado quando faltarem poucos minutos e ao completar a jornada",
        "• Ao fechar a janela o aplicativo continua na bandeja do sistema",
    ]
)

_VALID_FIELD_STYLE = """
QLineEdit {
    font-family: monospace;
    font-size: 16px;
    padding: 4px;
    border: 1px solid #cbd5e1;
    border-radius: 8px;
}
"""

_INVALID_FIELD_STYLE = """
QLineEdit {
    font-family: monospace;
    font-size: 16px;
    padding: 4px;
    border: 2px solid #dc2626;
    border-radius: 8px;
}
"""

_BAR_STYLE = """
QProgressBar {{
    border: none;
    border-radius: 6px;
    background-color: #e2e8f0;
    height: 12px;
}}
QProgressBar::chunk {{
    border-radius: 6px;
    background-color: {color};
}}
"""


def _target_text(target_minutes: int) -> str:
    if target_minutes % 60 == 0:
        return f"{target_minutes // 60} horas"
    return format_duration(target_minutes)


class MainWindow(QWidget):
    """
    Collects the three punch times and renders monitor snapshots.

    The window never talks to the monitor or the store directly; it emits
    signals and the coordinator reacts.
    """

    timesChanged = Signal(object)
    toggleRequested = Signal()
    testNotificationRequested = Signal()
    quitRequested = Signal()

    def __init__(self, *, target_minutes: int = DEFAULT_TARGET_MINUTES, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setObjectName("MainWindow")
        self.setWindowTitle("NoPonto - Registro de Ponto")
        self.setWindowIcon(self.style().standardIcon(QStyle.StandardPixmap.SP_FileDialogDetailedView))
        self.setFixedWidth(580)

        self.target_minutes = target_minutes
        self.hide_on_close = True
        self._monitoring = False
        self._invalid_fields: frozenset = frozenset()
        self._fields: Dict[str, QLineEdit] = {}

        self._build_ui()
        self._refresh_validation()
        self.update_progress(None)

    # ------------------------------------------------------------------#
    # UI construction helpers
    # ------------------------------------------------------------------#

    def _build_ui(self) -> None:
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(20, 12, 20, 16)
        main_layout.setSpacing(12)

        title = QLabel("Registro de Ponto")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        title.setStyleSheet("font-size: 24px; font-weight: 600; color: #1e293b;")
        subtitle = QLabel("Registre seus horários e acompanhe o progresso da jornada de trabalho")
        subtitle.setAlignment(Qt.AlignmentFlag.AlignCenter)
        subtitle.setStyleSheet("color: #64748b;")
        main_layout.addWidget(title)
        main_layout.addWidget(subtitle)

        main_layout.addWidget(self._build_times_card())
        main_layout.addWidget(self._build_progress_card())
        main_layout.addLayout(self._build_time_cards())
        main_layout.addWidget(self._build_help_section())
        main_layout.addStretch()

    def _build_times_card(self) -> QFrame:
        card = self._create_card()
        layout = QVBoxLayout(card)
        layout.setSpacing(10)

        heading = QLabel("Horários do Dia")
        heading.setAlignment(Qt.AlignmentFlag.AlignCenter)
        heading.setStyleSheet("font-size: 16px; font-weight: 600; color: #475569;")
        layout.addWidget(heading)

        fields_row = QHBoxLayout()
        fields_row.setSpacing(16)
        fields_row.addStretch()
        for name in FIELD_NAMES:
            column = QVBoxLayout()
            column.setSpacing(4)
            label = QLabel(_FIELD_LABELS[name])
            label.setAlignment(Qt.AlignmentFlag.AlignCenter)
            editor = QLineEdit()
            editor.setObjectName(f"{name}Input")
            editor.setPlaceholderText("HH:MM")
            editor.setMaxLength(5)
            editor.setFixedWidth(130)
            editor.setAlignment(Qt.AlignmentFlag.AlignCenter)
            editor.setStyleSheet(_VALID_FIELD_STYLE)
            editor.textEdited.connect(lambda text, field=name: self._on_field_edited(field, text))
            self._fields[name] = editor
            column.addWidget(label)
            column.addWidget(editor)
            fields_row.addLayout(column)
        fields_row.addStretch()
        layout.addLayout(fields_row)

        self._toggle_button = QPushButton("Iniciar Monitoramento")
        self._toggle_button.setObjectName("ToggleButton")
        self._toggle_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self._toggle_button.setFixedWidth(250)
        self._toggle_button.clicked.connect(self.toggleRequested)  # type: ignore[arg-type]

        self._test_button = QPushButton("Testar Notificação")
        self._test_button.setCursor(Qt.CursorShape.PointingHandCursor)
        self._test_button.setFixedWidth(250)
        self._test_button.clicked.connect(self.testNotificationRequested)  # type: ignore[arg-type]

        for button in (self._toggle_button, self._test_button):
            row = QHBoxLayout()
            row.addStretch()
            row.addWidget(button)
            row.addStretch()
            layout.addLayout(row)

        self._validation_label = QLabel()
        self._validation_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._validation_label.setStyleSheet("color: #dc2626;")
        self._validation_label.setVisible(False)
        layout.addWidget(self._validation_label)
        return card

    def _build_progress_card(self) -> QFrame:
        card = self._create_card()
        layout = QVBoxLayout(card)
        layout.setSpacing(8)

        header = QHBoxLayout()
        heading = QLabel("Progresso da Jornada")
        heading.setStyleSheet("font-size: 16px; font-weight: 600; color: #475569;")
        self._percent_label = QLabel("0%")
        self._percent_label.setStyleSheet("font-size: 16px; font-weight: 600; color: #3b82f6;")
        header.addWidget(heading)
        header.addStretch()
        header.addWidget(self._percent_label)
        layout.addLayout(header)

        self._progress_bar = QProgressBar()
        self._progress_bar.setRange(0, 100)
        self._progress_bar.setTextVisible(False)
        self._progress_bar.setFixedHeight(12)
        layout.addWidget(self._progress_bar)

        self._status_label = QLabel()
        self._status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._status_label.setStyleSheet("color: #64748b;")
        layout.addWidget(self._status_label)
        return card

    def _build_time_cards(self) -> QHBoxLayout:
        row = QHBoxLayout()
        row.setSpacing(12)

        self._worked_card = self._create_card()
        worked_layout = QVBoxLayout(self._worked_card)
        self._worked_value = QLabel("0h 0m")
        self._worked_caption = QLabel("Tempo Trabalhado")
        worked_layout.addWidget(self._worked_value, alignment=Qt.AlignmentFlag.AlignCenter)
        worked_layout.addWidget(self._worked_caption, alignment=Qt.AlignmentFlag.AlignCenter)

        self._remaining_card = self._create_card()
        remaining_layout = QVBoxLayout(self._remaining_card)
        self._remaining_value = QLabel("0h 0m")
        self._remaining_caption = QLabel("Tempo Restante")
        remaining_layout.addWidget(self._remaining_value, alignment=Qt.AlignmentFlag.AlignCenter)
        remaining_layout.addWidget(self._remaining_caption, alignment=Qt.AlignmentFlag.AlignCenter)

        for value in (self._worked_value, self._remaining_value):
            value.setStyleSheet("font-size: 28px; font-weight: 700; color: #1e293b;")
        for caption in (self._worked_caption, self._remaining_caption):
            caption.setStyleSheet("color: #64748b;")

        row.addWidget(self._worked_card)
        row.addWidget(self._remaining_card)
        return row

    def _build_help_section(self) -> QWidget:
        container = QWidget()
        layout = QVBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)

        toggle = QToolButton()
        toggle.setText("Como usar")
        toggle.setCheckable(True)
        toggle.setToolButtonStyle(Qt.ToolButtonStyle.ToolButtonTextBesideIcon)
        toggle.setArrowType(Qt.ArrowType.RightArrow)
        toggle.setStyleSheet("QToolButton { border: none; font-weight: 600; color: #475569; }")

        body = QLabel(_HELP_TEXT)
        body.setWordWrap(True)
        body.setStyleSheet("color: #64748b;")
        body.setVisible(False)

        def _on_toggled(checked: bool) -> None:
            toggle.setArrowType(Qt.ArrowType.DownArrow if checked else Qt.ArrowType.RightArrow)
            body.setVisible(checked)

        toggle.toggled.connect(_on_toggled)  # type: ignore[arg-type]
        layout.addWidget(toggle)
        layout.addWidget(body)
        return container

    def _create_card(self) -> QFrame:
        card = QFrame()
        card.setObjectName("Card")
        card.setStyleSheet(
            """
            QFrame#Card {
                background-color: #ffffff;
                border: 1px solid #e2e8f0;
                border-radius: 12px;
            }
            """
        )
        return card

    # ------------------------------------------------------------------#
    # Public API used by the coordinator
    # ------------------------------------------------------------------#

    def session_times(self) -> SessionTimes:
        return SessionTimes(**{name: editor.text() for name, editor in self._fields.items()})

    @property
    def is_monitoring(self) -> bool:
        return self._monitoring

    @property
    def invalid_fields(self) -> frozenset:
        """Names of the fields currently shown with an error border."""
        return self._invalid_fields

    def set_times(self, times: SessionTimes) -> None:
        """Load stored times, normalising anything that was saved half-typed."""
        for name, editor in self._fields.items():
            blocker = QSignalBlocker(editor)
            try:
                editor.setText(normalize(getattr(times, name)))
            finally:
                del blocker
        self._refresh_validation()

    def set_monitoring(self, active: bool) -> None:
        self._monitoring = active
        for editor in self._fields.values():
            editor.setEnabled(not active)
        if active:
            self._toggle_button.setText("Desativar Monitoramento")
            self._toggle_button.setStyleSheet("QPushButton { color: #dc2626; }")
        else:
            self._toggle_button.setText("Iniciar Monitoramento")
            self._toggle_button.setStyleSheet("")
        self._refresh_validation()

    def show_validation(self, validation: SequenceValidation) -> None:
        self._invalid_fields = validation.field_errors
        for name, editor in self._fields.items():
            editor.setStyleSheet(_INVALID_FIELD_STYLE if name in validation.field_errors else _VALID_FIELD_STYLE)
        if validation.field_errors:
            names = ", ".join(_FIELD_LABELS[name] for name in FIELD_NAMES if name in validation.field_errors)
            self._validation_label.setText(f"Verifique a sequência dos horários: {names}")
            self._validation_label.setVisible(True)
        else:
            self._validation_label.setVisible(False)

    def update_progress(self, snapshot: Optional[ProgressSnapshot]) -> None:
        percent = display_percent(snapshot)
        self._percent_label.setText(f"{percent}%")
        self._progress_bar.setValue(percent)
        color = "#10b981" if snapshot is not None and snapshot.is_complete else "#3b82f6"
        self._progress_bar.setStyleSheet(_BAR_STYLE.format(color=color))

        has_snapshot = snapshot is not None
        self._worked_card.setVisible(has_snapshot)
        self._remaining_card.setVisible(has_snapshot)
        if snapshot is None:
            self._status_label.setText("")
            return

        self._worked_value.setText(snapshot.worked_display)
        if snapshot.is_complete:
            self._status_label.setText(f"Jornada completa! Finalizada às {snapshot.projected_end_time}")
            self._remaining_value.setText(snapshot.projected_end_time)
            self._remaining_caption.setText("Finalizado às")
        else:
            self._status_label.setText(
                f"Faltam {snapshot.remaining_display} para completar {_target_text(self.target_minutes)}"
            )
            self._remaining_value.setText(snapshot.remaining_display)
            self._remaining_caption.setText("Tempo Restante")

    def bring_to_front(self) -> None:
        self.show()
        self.setWindowState((self.windowState() & ~Qt.WindowState.WindowMinimized) | Qt.WindowState.WindowActive)
        self.raise_()
        self.activateWindow()

    # ------------------------------------------------------------------#
    # Event handling
    # ------------------------------------------------------------------#

    def _on_field_edited(self, name: str, text: str) -> None:
        editor = self._fields[name]
        normalized = normalize(text)
        if normalized != text:
            blocker = QSignalBlocker(editor)
            try:
                editor.setText(normalized)
                editor.setCursorPosition(len(normalized))
            finally:
                del blocker
        self._refresh_validation()
        self.timesChanged.emit(self.session_times())

    def _refresh_validation(self) -> None:
        validation = validate_sequence(self.session_times())
        self.show_validation(validation)
        self._toggle_button.setEnabled(self._monitoring or validation.is_valid)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802
        if self.hide_on_close:
            event.ignore()
            self.hide()
            return
        super().closeEvent(event)
        self.quitRequested.emit()
