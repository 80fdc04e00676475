from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Callable, Optional, Union

from PySide6.QtCore import QUrl
from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import (
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from typeright.core.lessons import Lesson
from typeright.core.progress import ProgressSaveError, ProgressStore
from typeright.core.rankings import RankingService
from typeright.core.session import (
    LiveStats,
    PlacementOutcome,
    PlacementSession,
    SessionResult,
    TypingSession,
)
from typeright.core.speech import SpeechServiceError, TextToSpeech, decode_data_url
from typeright.ui.colors import HomeColors, accuracy_color, format_time
from typeright.ui.typing_widgets import BackspaceGuard, LessonTextView, QtTicker, accepts_edit

logger = logging.getLogger(__name__)

_BUTTON_STYLE = f"""
    QPushButton {{
        background: {HomeColors.PRIMARY};
        color: white;
        border-radius: 8px;
        padding: 10px 18px;
        font-weight: 600;
    }}
    QPushButton:hover {{ background: {HomeColors.PRIMARY_DARK}; }}
"""


def _stat_label(color: str) -> QLabel:
    label = QLabel("0")
    label.setStyleSheet(f"font-size: 28px; font-weight: 800; color: {color};")
    return label


class LessonScreen(QWidget):
    """Intro, typing and results pages for one lesson or the placement test.

    The screen owns the :class:`TypingSession` for the attempt in progress
    and forwards every text change to it. Once the session finishes, the
    input is made read-only so no more edits reach it.
    """

    def __init__(
        self,
        store: ProgressStore,
        rankings: RankingService,
        user_id: str,
        tts: Optional[TextToSpeech] = None,
        on_back: Optional[Callable[[], None]] = None,
        on_saved: Optional[Callable[[], None]] = None,
        parent: Optional[QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._rankings = rankings
        self._user_id = user_id
        self._tts = tts
        self._on_back = on_back
        self._on_saved = on_saved

        self._lesson: Optional[Lesson] = None
        self._session: Optional[TypingSession] = None
        self._result: Optional[Union[SessionResult, PlacementOutcome]] = None
        self._is_assessment = False
        self._player = None
        self._audio_file: Optional[Path] = None

        self._guard = BackspaceGuard(True, self)
        self._ticker = QtTicker(self)
        self._build_ui()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        self._pages = QStackedWidget(self)
        outer = QVBoxLayout(self)
        outer.addWidget(self._pages)

        # intro
        self._intro = QWidget()
        intro_layout = QVBoxLayout(self._intro)
        self._intro_title = QLabel()
        self._intro_title.setStyleSheet("font-size: 26px; font-weight: 800;")
        self._intro_body = QLabel()
        self._intro_body.setWordWrap(True)
        self._intro_meta = QLabel()
        self._replay_notice = QLabel("You've completed this lesson before. Replaying won't affect your ranking.")
        self._replay_notice.setStyleSheet(f"color: {HomeColors.WARNING};")
        self._intro_play = QPushButton("Play Audio")
        self._intro_play.clicked.connect(self._play_audio)
        start_button = QPushButton("Start")
        start_button.setStyleSheet(_BUTTON_STYLE)
        start_button.clicked.connect(self._start)
        back_button = QPushButton("Back to Dashboard")
        back_button.clicked.connect(self._back)
        for w in (back_button, self._intro_title, self._intro_body, self._intro_meta, self._replay_notice, self._intro_play, start_button):
            intro_layout.addWidget(w)
        intro_layout.addStretch(1)
        self._pages.addWidget(self._intro)

        # typing
        self._typing = QWidget()
        typing_layout = QVBoxLayout(self._typing)
        header = QHBoxLayout()
        self._typing_title = QLabel()
        self._typing_title.setStyleSheet("font-size: 20px; font-weight: 700;")
        header.addWidget(self._typing_title, 1)
        self._typing_play = QPushButton("Play")
        self._typing_play.clicked.connect(self._play_audio)
        header.addWidget(self._typing_play)
        typing_layout.addLayout(header)

        self._text_view = LessonTextView()
        typing_layout.addWidget(self._text_view)

        stats = QGridLayout()
        self._accuracy_value = _stat_label(HomeColors.CORRECT)
        self._time_value = _stat_label(HomeColors.TIME)
        self._wpm_value = _stat_label(HomeColors.WPM)
        for col, (caption, value) in enumerate(
            (("Accuracy", self._accuracy_value), ("Duration", self._time_value), ("Speed (wpm)", self._wpm_value))
        ):
            stats.addWidget(QLabel(caption), 0, col)
            stats.addWidget(value, 1, col)
        typing_layout.addLayout(stats)

        self._input = QPlainTextEdit()
        self._input.setPlaceholderText("Start typing...")
        self._input.installEventFilter(self._guard)
        self._input.textChanged.connect(self._on_text_changed)
        typing_layout.addWidget(self._input)

        footer = QHBoxLayout()
        self._progress_label = QLabel()
        footer.addWidget(self._progress_label, 1)
        finish_button = QPushButton("Finish Early")
        finish_button.setStyleSheet(_BUTTON_STYLE)
        finish_button.clicked.connect(self._finish_early)
        footer.addWidget(finish_button)
        typing_layout.addLayout(footer)
        self._pages.addWidget(self._typing)

        # results
        self._results = QWidget()
        results_layout = QVBoxLayout(self._results)
        self._results_title = QLabel("Lesson Complete!")
        self._results_title.setStyleSheet("font-size: 26px; font-weight: 800;")
        self._points_notice = QLabel()
        self._results_values = QLabel()
        self._results_values.setStyleSheet("font-size: 18px;")
        self._save_button = QPushButton("Save Progress")
        self._save_button.setStyleSheet(_BUTTON_STYLE)
        self._save_button.clicked.connect(self._save)
        results_back = QPushButton("Back to Dashboard")
        results_back.clicked.connect(self._back)
        for w in (self._results_title, self._points_notice, self._results_values, self._save_button, results_back):
            results_layout.addWidget(w)
        results_layout.addStretch(1)
        self._pages.addWidget(self._results)

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[TypingSession]:
        return self._session

    @property
    def result(self) -> Optional[Union[SessionResult, PlacementOutcome]]:
        return self._result

    def open_lesson(self, lesson: Lesson) -> None:
        """Show the intro page for *lesson* and prepare a fresh session."""
        self._teardown()
        self._lesson = lesson
        self._is_assessment = False
        first = not self._store.has_completed(self._user_id, lesson.key)
        self._session = TypingSession(
            lesson.content,
            scoring_mode=lesson.scoring_mode,
            backspace_enabled=lesson.backspace_enabled,
            is_first_completion=first,
            ticker=self._ticker,
            on_update=self._show_live_stats,
            on_finished=self._show_results,
        )
        self._guard.backspace_enabled = lesson.backspace_enabled
        self._input.setUndoRedoEnabled(lesson.backspace_enabled)
        self._intro_title.setText(lesson.title)
        if lesson.is_audio:
            self._intro_body.setText("This is an audio lesson. Listen carefully and type what you hear.")
        else:
            self._intro_body.setText(lesson.content)
        self._intro_meta.setText(
            f"Level: {lesson.level.capitalize()}    Type: {lesson.module_type.replace('_', ' ')}"
            + ("" if lesson.backspace_enabled else "    Backspace disabled")
        )
        self._replay_notice.setVisible(not first)
        self._intro_play.setVisible(lesson.is_audio)
        self._typing_play.setVisible(lesson.is_audio)
        self._typing_title.setText(lesson.title)
        self._pages.setCurrentWidget(self._intro)

    def open_assessment(self, text: str) -> None:
        """Show the placement test intro for *text*."""
        self._teardown()
        self._lesson = None
        self._is_assessment = True
        self._session = PlacementSession(
            text,
            ticker=self._ticker,
            on_update=self._show_live_stats,
            on_finished=self._show_results,
        )
        self._guard.backspace_enabled = True
        self._input.setUndoRedoEnabled(True)
        self._intro_title.setText("Initial Assessment")
        self._intro_body.setText(
            "Before you start, type the passage below so we can place you at the right level.\n\n" + text
        )
        self._intro_meta.setText("")
        self._replay_notice.setVisible(False)
        self._intro_play.setVisible(False)
        self._typing_play.setVisible(False)
        self._typing_title.setText("Initial Assessment")
        self._pages.setCurrentWidget(self._intro)

    # ------------------------------------------------------------------
    # Session events
    # ------------------------------------------------------------------

    def _start(self) -> None:
        if self._session is None:
            return
        self._text_view.set_lesson_text(self._session.lesson_text)
        self._text_view.setVisible(self._lesson is None or not self._lesson.is_audio)
        self._input.blockSignals(True)
        self._input.clear()
        self._input.blockSignals(False)
        self._input.setReadOnly(False)
        self._pages.setCurrentWidget(self._typing)
        self._session.start()
        self._show_live_stats(self._session.live_stats())
        self._input.setFocus()

    def _on_text_changed(self) -> None:
        if self._session is None or not self._session.is_running:
            return
        buffer = self._input.toPlainText()
        if not accepts_edit(self._session.buffer, buffer, self._session.backspace_enabled):
            # cut, undo or typing over a selection
            logger.debug("Reverting edit that would remove typed text")
            self._restore_input(self._session.buffer)
            return
        self._text_view.show_progress(buffer)
        self._session.apply_edit(buffer)

    def _restore_input(self, text: str) -> None:
        self._input.blockSignals(True)
        self._input.setPlainText(text)
        self._input.moveCursor(QTextCursor.MoveOperation.End)
        self._input.blockSignals(False)

    def _finish_early(self) -> None:
        if self._session is not None:
            self._session.finish_early()

    def _show_live_stats(self, stats: LiveStats) -> None:
        self._accuracy_value.setText(f"{stats.accuracy}%")
        self._accuracy_value.setStyleSheet(
            f"font-size: 28px; font-weight: 800; color: {accuracy_color(stats.accuracy)};"
        )
        self._time_value.setText(format_time(stats.elapsed_seconds))
        self._wpm_value.setText(f"{stats.wpm}")
        if self._session is not None:
            self._progress_label.setText(
                f"Progress: {len(self._session.buffer)} / {len(self._session.lesson_text)} characters"
            )

    def _show_results(self, result: Union[SessionResult, PlacementOutcome]) -> None:
        self._result = result
        self._input.setReadOnly(True)
        self._save_button.setEnabled(True)
        if isinstance(result, PlacementOutcome):
            self._results_title.setText("Assessment Complete!")
            self._points_notice.setText(f"Your level: {result.level.capitalize()}")
            self._results_values.setText(
                f"WPM: {result.wpm}    Accuracy: {result.accuracy}%    Time: {format_time(result.time_spent_seconds)}"
            )
            self._save_button.setText("Continue to Dashboard")
        else:
            self._results_title.setText("Lesson Complete!")
            if result.is_first_completion:
                self._points_notice.setText(f"+{result.score} points added to your ranking")
            else:
                self._points_notice.setText("Practice session - no points awarded")
            self._results_values.setText(
                f"Score: {result.score}    WPM: {result.wpm}    Accuracy: {result.accuracy}%    "
                f"Time: {format_time(result.time_spent_seconds)}"
            )
            self._save_button.setText("Save Progress")
        self._pages.setCurrentWidget(self._results)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _save(self) -> None:
        result = self._result
        if result is None:
            return
        try:
            if isinstance(result, PlacementOutcome):
                self._store.set_placement(self._user_id, result.level)
            elif self._lesson is not None:
                self._store.record_completion(self._user_id, self._lesson.key, result)
                self._rankings.recompute()
        except ProgressSaveError as e:
            logger.error("Error saving progress: %s", e)
            QMessageBox.warning(self, "Save failed", "Failed to save progress. Please try again.")
            return
        self._save_button.setEnabled(False)
        if self._on_saved is not None:
            self._on_saved()

    # ------------------------------------------------------------------
    # Audio
    # ------------------------------------------------------------------

    def _play_audio(self) -> None:
        if self._lesson is None or not self._lesson.is_audio:
            return
        try:
            url = self._audio_url_for(self._lesson)
        except SpeechServiceError as e:
            logger.warning("Could not prepare lesson audio: %s", e)
            QMessageBox.warning(self, "Audio unavailable", str(e))
            return
        if self._player is None:
            from PySide6.QtMultimedia import QAudioOutput, QMediaPlayer

            self._player = QMediaPlayer(self)
            self._audio_output = QAudioOutput(self)
            self._player.setAudioOutput(self._audio_output)
        self._player.setSource(url)
        self._player.play()

    def _audio_url_for(self, lesson: Lesson) -> QUrl:
        source = lesson.audio_url
        if not source:
            if self._tts is None:
                raise SpeechServiceError("This lesson has no audio and text-to-speech is not configured")
            source = self._tts.synthesize(lesson.content)
        if not source.startswith("data:"):
            return QUrl(source)
        if self._audio_file is None:
            with tempfile.NamedTemporaryFile(suffix=".mp3", delete=False) as f:
                f.write(decode_data_url(source))
                self._audio_file = Path(f.name)
        return QUrl.fromLocalFile(str(self._audio_file))

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def _teardown(self) -> None:
        if self._session is not None:
            self._session.close()
        self._session = None
        self._result = None
        if self._player is not None:
            self._player.stop()
        if self._audio_file is not None:
            self._audio_file.unlink(missing_ok=True)
            self._audio_file = None

    def _back(self) -> None:
        self._teardown()
        if self._on_back is not None:
            self._on_back()

    def closeEvent(self, event) -> None:
        self._teardown()
        super().closeEvent(event)
