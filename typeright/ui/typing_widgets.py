"""Typing practice widgets: colored lesson text, key guard and the session ticker."""

from __future__ import annotations

import html
from typing import Callable, Optional

from PySide6.QtCore import QEvent, QObject, Qt, QTimer
from PySide6.QtWidgets import QLabel, QWidget

from typeright.core.metrics import CharState, character_states
from typeright.core.session import Ticker
from typeright.ui.colors import HomeColors

BLOCKED_EDIT_KEYS = (Qt.Key.Key_Backspace, Qt.Key.Key_Delete)


def is_blocked_key(key: int, backspace_enabled: bool) -> bool:
    """True if *key* must be swallowed before it can shorten the input."""
    return not backspace_enabled and key in BLOCKED_EDIT_KEYS


def accepts_edit(old_buffer: str, new_buffer: str, backspace_enabled: bool) -> bool:
    """True if the session may see *new_buffer* after *old_buffer*.

    With backspace disabled the input may only grow at the end; anything
    that removes or rewrites typed text is rejected.
    """
    return backspace_enabled or new_buffer.startswith(old_buffer)


class BackspaceGuard(QObject):
    """Event filter that drops Backspace/Delete while backspace is disabled.

    Installed on the input widget. Cut, undo and typing over a selection
    are caught afterwards by :func:`accepts_edit`.
    """

    def __init__(self, backspace_enabled: bool, parent: Optional[QObject] = None) -> None:
        super().__init__(parent)
        self.backspace_enabled = backspace_enabled

    def eventFilter(self, obj, event) -> bool:
        if event.type() in (QEvent.Type.KeyPress, QEvent.Type.ShortcutOverride):
            if is_blocked_key(event.key(), self.backspace_enabled):
                event.accept()
                return True
        return super().eventFilter(obj, event)


class QtTicker(Ticker):
    """One-second QTimer handed to a session, which starts and stops it."""

    def __init__(self, parent: Optional[QObject] = None, interval_ms: int = 1000) -> None:
        self._timer = QTimer(parent)
        self._timer.setInterval(interval_ms)
        self._callback: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        return self._timer.isActive()

    def start(self, callback: Callable[[], None]) -> None:
        self.stop()
        self._callback = callback
        self._timer.timeout.connect(callback)
        self._timer.start()

    def stop(self) -> None:
        self._timer.stop()
        if self._callback is not None:
            self._timer.timeout.disconnect(self._callback)
            self._callback = None


_STATE_STYLE = {
    CharState.PENDING: f"color:{HomeColors.PENDING};",
    CharState.CORRECT: f"color:{HomeColors.CORRECT};background:{HomeColors.CORRECT_BG};",
    CharState.INCORRECT: f"color:{HomeColors.INCORRECT};background:{HomeColors.INCORRECT_BG};",
}


def render_lesson_html(buffer: str, lesson_text: str) -> str:
    """Lesson text as HTML, each character colored by whether it was typed correctly."""
    parts = []
    for ch, state in zip(lesson_text, character_states(buffer, lesson_text)):
        parts.append(f'<span style="{_STATE_STYLE[state]}">{html.escape(ch)}</span>')
    return "".join(parts)


class LessonTextView(QLabel):
    """Reference text with per-character feedback."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self._text = ""
        self.setWordWrap(True)
        self.setTextFormat(Qt.TextFormat.RichText)
        self.setStyleSheet(
            f"""
            QLabel {{
                background: #F9FAFB;
                border-radius: 8px;
                padding: 18px;
                font-family: monospace;
                font-size: 22px;
                color: {HomeColors.TEXT_PRIMARY};
            }}
            """
        )

    def set_lesson_text(self, text: str) -> None:
        self._text = text
        self.show_progress("")

    def show_progress(self, buffer: str) -> None:
        self.setText(render_lesson_html(buffer, self._text))
