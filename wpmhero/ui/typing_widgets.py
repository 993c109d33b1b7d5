"""Typing practice UI: target text with caret, stat pills, and the progress bar."""

from __future__ import annotations

from typing import Optional

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QFont, QFontMetrics, QPainter
from PySide6.QtWidgets import QLabel, QVBoxLayout, QWidget

from wpmhero.core.session import CharStatus, SessionState
from wpmhero.ui.colors import Palette, progress_color


class TypingTextWidget(QWidget):
    """Target text laid out on a monospace grid: typed (correct/incorrect), caret, upcoming."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._state: Optional[SessionState] = None
        self._font = QFont("Monospace", 20)
        self._font.setStyleHint(QFont.TypeWriter)
        self.setMinimumHeight(180)
        self.setFocusPolicy(Qt.NoFocus)

    def set_state(self, state: SessionState) -> None:
        self._state = state
        self.update()

    def _line_starts(self, text: str, columns: int) -> list[int]:
        """Start offsets of each wrapped line, breaking after spaces where possible."""
        starts = [0]
        pos = 0
        while len(text) - pos > columns:
            cut = text.rfind(" ", pos, pos + columns)
            pos = cut + 1 if cut > pos else pos + columns
            starts.append(pos)
        return starts

    def paintEvent(self, event) -> None:
        """Paint each visible character in its status color, with the caret line scrolled into view."""
        super().paintEvent(event)
        state = self._state
        if state is None or not state.target_text:
            return
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing, True)
        painter.setFont(self._font)

        metrics = QFontMetrics(self._font)
        cell_w = max(1, metrics.horizontalAdvance("M"))
        cell_h = metrics.height() + 8
        columns = max(10, self.width() // cell_w)
        visible_lines = max(1, self.height() // cell_h)

        text = state.target_text
        starts = self._line_starts(text, columns)
        caret_line = 0
        for i, start in enumerate(starts):
            if start <= state.caret_index:
                caret_line = i
        first_line = max(0, caret_line - 1)

        for row, line_no in enumerate(range(first_line, min(len(starts), first_line + visible_lines))):
            start = starts[line_no]
            end = starts[line_no + 1] if line_no + 1 < len(starts) else len(text)
            y = row * cell_h
            for col, index in enumerate(range(start, end)):
                rect = QRectF(col * cell_w, y, cell_w, cell_h)
                char = text[index]
                if index == state.caret_index and state.is_running:
                    painter.fillRect(rect, QColor(Palette.CARET_BG))
                    painter.setPen(QColor(Palette.CARET_FG))
                else:
                    status = state.char_status(index)
                    if status is CharStatus.CORRECT:
                        painter.setPen(QColor(Palette.CORRECT))
                    elif status is CharStatus.INCORRECT:
                        painter.setPen(QColor(Palette.INCORRECT))
                        char = state.typed[index] if char == " " else char
                    else:
                        painter.setPen(QColor(Palette.TEXT_MUTED))
                painter.drawText(rect, Qt.AlignCenter, char)
        painter.end()


class ProgressStrip(QWidget):
    """Thin bar showing the share of the text matched correctly."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._progress = 0
        self.setFixedHeight(6)

    def set_progress(self, progress: int) -> None:
        self._progress = max(0, min(100, int(progress)))
        self.update()

    def paintEvent(self, event) -> None:
        super().paintEvent(event)
        painter = QPainter(self)
        painter.fillRect(self.rect(), QColor(Palette.BORDER))
        width = int(self.width() * self._progress / 100)
        if width > 0:
            painter.fillRect(0, 0, width, self.height(), QColor(progress_color(self._progress)))
        painter.end()


class StatPill(QWidget):
    """Caption over a large value."""

    def __init__(self, caption: str, highlight: bool = False, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 8, 16, 8)
        layout.setSpacing(2)
        self._caption = QLabel(caption.upper())
        self._caption.setAlignment(Qt.AlignCenter)
        self._caption.setStyleSheet(f"color: {Palette.TEXT_MUTED}; font-size: 11px; letter-spacing: 3px;")
        self._value = QLabel("0")
        self._value.setAlignment(Qt.AlignCenter)
        color = Palette.PRIMARY if highlight else Palette.TEXT_PRIMARY
        self._value.setStyleSheet(f"color: {color}; font-size: 28px; font-weight: 600;")
        layout.addWidget(self._caption)
        layout.addWidget(self._value)
        self.setStyleSheet(
            f"StatPill {{ background: {Palette.SURFACE}; border: 1px solid {Palette.BORDER}; border-radius: 14px; }}"
        )
        self.setAttribute(Qt.WA_StyledBackground, True)

    def set_value(self, value: str) -> None:
        self._value.setText(value)
