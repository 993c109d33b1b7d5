from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QCloseEvent, QKeyEvent
from PySide6.QtWidgets import (
    QButtonGroup,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from wpmhero.core.results import Identity, ResultStore, build_result
from wpmhero.core.session import DURATION_PRESETS, SessionState, TypingSession
from wpmhero.core.words import (
    DEFAULT_WORD_COUNT,
    DEFAULT_WORD_LIST,
    WordRepository,
    generate_word_sequence,
)
from wpmhero.ui.colors import Palette
from wpmhero.ui.models import StatsView
from wpmhero.ui.typing_widgets import ProgressStrip, StatPill, TypingTextWidget

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Single-screen typing test: duration presets, live stats, text area, and result sync.

    The window owns one ``TypingSession``. Keys go to the session, a one
    second ``QTimer`` drives ``tick`` while a test runs, and a completion
    listener hands the finished result to the ``ResultStore``. A failed save
    only changes the sync label; the final stats stay on screen.
    """

    def __init__(
        self,
        words: WordRepository,
        result_store: ResultStore,
        identity: Optional[Identity] = None,
        word_list: Optional[str] = None,
    ) -> None:
        super().__init__()
        self._words_repo = words
        self._result_store = result_store
        self._identity = identity
        keys = words.keys()
        if word_list not in keys:
            word_list = DEFAULT_WORD_LIST if DEFAULT_WORD_LIST in keys else keys[0]
        self._word_list_key = word_list

        self._session = TypingSession(words=self._generate_words())
        self._session.add_completion_listener(self._on_session_completed)

        self._text_widget: Optional[TypingTextWidget] = None
        self._progress_strip: Optional[ProgressStrip] = None
        self._time_label: Optional[QLabel] = None
        self._sync_label: Optional[QLabel] = None
        self._stat_pills: dict[str, StatPill] = {}
        self._duration_group: Optional[QButtonGroup] = None

        self._tick_timer = QTimer(self)
        self._tick_timer.setInterval(1000)
        self._tick_timer.timeout.connect(self._on_tick)

        self._build_ui()
        self._render()

    def _generate_words(self) -> list[str]:
        source = self._words_repo.get(self._word_list_key).words
        return generate_word_sequence(DEFAULT_WORD_COUNT, source=source)

    def _build_ui(self) -> None:
        self.setWindowTitle("WPMHero")
        central = QWidget()
        central.setStyleSheet(f"background: {Palette.BG}; color: {Palette.TEXT_PRIMARY};")
        root = QVBoxLayout(central)
        root.setContentsMargins(48, 24, 48, 24)
        root.setSpacing(20)

        header = QHBoxLayout()
        title = QLabel("WPMHero")
        title.setStyleSheet("font-size: 24px; font-weight: 600;")
        header.addWidget(title)
        header.addStretch(1)

        self._duration_group = QButtonGroup(self)
        self._duration_group.setExclusive(True)
        for preset in DURATION_PRESETS:
            button = QPushButton(f"{preset}s")
            button.setCheckable(True)
            button.setChecked(preset == self._session.state.duration)
            button.setFocusPolicy(Qt.NoFocus)
            button.setStyleSheet(self._pill_button_style())
            self._duration_group.addButton(button, preset)
            header.addWidget(button)
        self._duration_group.idClicked.connect(self._on_duration_selected)
        header.addStretch(1)

        user_label = QLabel(self._identity_text())
        user_label.setStyleSheet(f"color: {Palette.TEXT_MUTED}; letter-spacing: 2px;")
        header.addWidget(user_label)

        for text, slot in (("Reset", self._on_reset), ("Shuffle", self._on_shuffle)):
            button = QPushButton(text)
            button.setFocusPolicy(Qt.NoFocus)
            button.setStyleSheet(self._pill_button_style())
            button.clicked.connect(slot)
            header.addWidget(button)
        root.addLayout(header)

        stats_row = QHBoxLayout()
        stats_row.setSpacing(12)
        for key, caption, highlight in (
            ("wpm", "wpm", True),
            ("raw_wpm", "raw", False),
            ("accuracy", "accuracy", False),
            ("consistency", "consistency", False),
            ("errors", "errors", False),
        ):
            pill = StatPill(caption, highlight=highlight)
            self._stat_pills[key] = pill
            stats_row.addWidget(pill)
        root.addLayout(stats_row)

        timer_row = QHBoxLayout()
        self._time_label = QLabel()
        self._time_label.setStyleSheet(f"color: {Palette.PRIMARY}; font-size: 20px;")
        timer_row.addWidget(self._time_label)
        timer_row.addStretch(1)
        self._sync_label = QLabel()
        self._sync_label.setStyleSheet(f"color: {Palette.TEXT_MUTED};")
        timer_row.addWidget(self._sync_label)
        root.addLayout(timer_row)

        self._progress_strip = ProgressStrip()
        root.addWidget(self._progress_strip)

        self._text_widget = TypingTextWidget()
        root.addWidget(self._text_widget, 1)

        hint = QLabel("start typing to begin  ·  esc to reset")
        hint.setAlignment(Qt.AlignCenter)
        hint.setStyleSheet(f"color: {Palette.TEXT_MUTED};")
        root.addWidget(hint)

        self.setCentralWidget(central)
        self.setFocusPolicy(Qt.StrongFocus)

    def _pill_button_style(self) -> str:
        return f"""
            QPushButton {{
                background: {Palette.SURFACE};
                color: {Palette.TEXT_MUTED};
                border: 1px solid {Palette.BORDER};
                border-radius: 12px;
                padding: 4px 14px;
            }}
            QPushButton:checked {{
                color: {Palette.PRIMARY};
                border-color: {Palette.PRIMARY_DARK};
            }}
        """

    def _identity_text(self) -> str:
        if self._identity is None:
            return "SIGNED OUT"
        return (self._identity.display_name or self._identity.email or self._identity.user_id).upper()

    def _render(self) -> None:
        """Push the current session state into every widget."""
        state = self._session.state
        view = StatsView.from_state(state)
        self._stat_pills["wpm"].set_value(view.wpm)
        self._stat_pills["raw_wpm"].set_value(view.raw_wpm)
        self._stat_pills["accuracy"].set_value(view.accuracy)
        self._stat_pills["consistency"].set_value(view.consistency)
        self._stat_pills["errors"].set_value(view.errors)
        if self._time_label is not None:
            self._time_label.setText(f"{view.remaining}  ·  {view.elapsed} elapsed")
        if self._progress_strip is not None:
            self._progress_strip.set_progress(view.progress)
        if self._text_widget is not None:
            self._text_widget.set_state(state)

    def _sync_timer(self, state: SessionState) -> None:
        if state.is_running and not self._tick_timer.isActive():
            self._tick_timer.start()
        elif not state.is_running and self._tick_timer.isActive():
            self._tick_timer.stop()

    def _after_transition(self) -> None:
        self._sync_timer(self._session.state)
        self._render()

    def _set_sync_status(self, text: str, color: str) -> None:
        if self._sync_label is not None:
            self._sync_label.setText(text)
            self._sync_label.setStyleSheet(f"color: {color};")

    def _on_session_completed(self, state: SessionState) -> None:
        if not state.keypresses:
            self._set_sync_status("nothing typed", Palette.TEXT_MUTED)
            return
        result = build_result(state)
        if self._result_store.record(result, self._identity):
            logger.info("Saved result: %s wpm, %s%% accuracy", result.wpm, result.accuracy)
            self._set_sync_status("result saved", Palette.SYNC_OK)
        else:
            self._set_sync_status("result not saved", Palette.SYNC_FAILED)

    def _on_tick(self) -> None:
        self._session.tick()
        self._after_transition()

    def _on_duration_selected(self, seconds: int) -> None:
        self._session.set_duration(seconds)
        self._set_sync_status("", Palette.TEXT_MUTED)
        self._after_transition()

    def _on_reset(self) -> None:
        self._session.reset()
        self._set_sync_status("", Palette.TEXT_MUTED)
        self._after_transition()

    def _on_shuffle(self) -> None:
        self._session.set_text(self._generate_words())
        self._set_sync_status("", Palette.TEXT_MUTED)
        self._after_transition()

    def keyPressEvent(self, event: QKeyEvent) -> None:
        """Route physical keys into the session."""
        if self._handle_key(event):
            event.accept()
            return
        super().keyPressEvent(event)

    def _handle_key(self, event: QKeyEvent) -> bool:
        if event.modifiers() & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier):
            return False
        key = event.key()
        if key == Qt.Key_Escape:
            self._on_reset()
            return True
        if key == Qt.Key_Tab:
            return False
        if self._session.state.is_completed:
            return True
        if key == Qt.Key_Backspace:
            self._session.backspace()
        elif key in (Qt.Key_Return, Qt.Key_Enter):
            self._session.press("\n")
        else:
            text = event.text()
            if len(text) != 1 or not text.isprintable():
                return False
            self._session.press(text)
        self._after_transition()
        return True

    def closeEvent(self, event: QCloseEvent) -> None:
        self._tick_timer.stop()
        super().closeEvent(event)
