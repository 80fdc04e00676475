from __future__ import annotations

import logging
from typing import List, Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QProgressBar,
    QPushButton,
    QScrollArea,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from typeright.core.lessons import LessonRepository, pick_assessment_text
from typeright.core.progress import ProgressStore
from typeright.core.rankings import RankingService, progress_to_next, rank_for_points
from typeright.core.speech import TextToSpeech
from typeright.ui.colors import HomeColors, background_gradient
from typeright.ui.lesson_screen import LessonScreen
from typeright.ui.models import LessonState, build_lesson_states

logger = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    """Dashboard with rank progress and the lesson list, plus the lesson screen.

    A learner without a placement level is sent to the assessment first;
    finishing it switches to the dashboard directly.
    """

    def __init__(
        self,
        lessons: LessonRepository,
        progress_store: ProgressStore,
        user_id: str,
        assessment_texts: List[str],
        tts: Optional[TextToSpeech] = None,
    ) -> None:
        super().__init__()
        self._lessons_repo = lessons
        self._progress_store = progress_store
        self._user_id = user_id
        self._assessment_texts = assessment_texts
        self._rankings = RankingService(progress_store)

        self.setWindowTitle("TypeRight")
        self._stack = QStackedWidget(self)
        self.setCentralWidget(self._stack)

        self._home_screen = self._build_home()
        self._lesson_screen = LessonScreen(
            progress_store,
            self._rankings,
            user_id,
            tts=tts,
            on_back=self._show_home_screen,
            on_saved=self._show_home_screen,
        )
        self._stack.addWidget(self._home_screen)
        self._stack.addWidget(self._lesson_screen)

        if self._progress_store.get_placement(user_id) is None and assessment_texts:
            QTimer.singleShot(0, self._start_assessment)
        else:
            self._show_home_screen()

    @property
    def lesson_screen(self) -> LessonScreen:
        return self._lesson_screen

    def _build_home(self) -> QWidget:
        home = QWidget()
        home.setObjectName("home")
        home.setAttribute(Qt.WidgetAttribute.WA_StyledBackground, True)
        home.setStyleSheet(f"QWidget#home {{ background: {background_gradient()}; }}")
        layout = QVBoxLayout(home)

        header = QHBoxLayout()
        title = QLabel(f"Welcome, {self._user_id}")
        title.setStyleSheet(f"font-size: 24px; font-weight: 800; color: {HomeColors.PRIMARY};")
        header.addWidget(title, 1)
        assessment_button = QPushButton("Retake Assessment")
        assessment_button.clicked.connect(self._start_assessment)
        header.addWidget(assessment_button)
        layout.addLayout(header)

        card = QWidget()
        card.setStyleSheet(
            f"background: {HomeColors.CARD_BG}; border: 1px solid {HomeColors.CARD_BORDER}; border-radius: 12px;"
        )
        card_layout = QVBoxLayout(card)
        self._rank_label = QLabel()
        self._rank_label.setStyleSheet("font-size: 20px; font-weight: 700;")
        self._points_label = QLabel()
        self._next_rank_label = QLabel()
        self._next_rank_label.setStyleSheet(f"color: {HomeColors.TEXT_SECONDARY};")
        self._rank_bar = QProgressBar()
        self._rank_bar.setRange(0, 100)
        self._averages_label = QLabel()
        self._averages_label.setStyleSheet(f"color: {HomeColors.TEXT_SECONDARY};")
        for w in (self._rank_label, self._points_label, self._next_rank_label, self._rank_bar, self._averages_label):
            card_layout.addWidget(w)
        layout.addWidget(card)

        self._lessons_summary_label = QLabel()
        self._lessons_summary_label.setStyleSheet(f"color: {HomeColors.TEXT_SECONDARY}; font-weight: 800;")
        layout.addWidget(self._lessons_summary_label)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        self._lessons_container = QWidget()
        self._lessons_layout = QVBoxLayout(self._lessons_container)
        scroll.setWidget(self._lessons_container)
        layout.addWidget(scroll, 1)
        return home

    def _refresh_home(self) -> None:
        standing = self._rankings.standing_for(self._user_id)
        points = standing.total_points if standing else 0
        tier = rank_for_points(points)
        percent, needed = progress_to_next(points)
        position = f"  (#{standing.position})" if standing else ""
        self._rank_label.setText(f"{tier.rank} · {tier.title}{position}")
        self._points_label.setText(f"{points} Total Points")
        self._next_rank_label.setText(
            f"{needed} points to the next rank" if needed else "Maximum Rank Achieved!"
        )
        self._rank_bar.setValue(int(percent))
        if standing and standing.lessons_completed:
            self._averages_label.setText(
                f"Average speed {standing.average_wpm} wpm · Average accuracy {standing.average_accuracy}%"
            )
        else:
            self._averages_label.setText("Complete a lesson to see your averages")

        while self._lessons_layout.count():
            item = self._lessons_layout.takeAt(0)
            w = item.widget()
            if w is not None:
                w.setParent(None)
                w.deleteLater()

        level = self._progress_store.get_placement(self._user_id)
        states = build_lesson_states(self._lessons_repo.for_level(level), self._progress_store, self._user_id)
        done = sum(1 for s in states if s.completed)
        level_text = level.capitalize() if level else "Not assessed"
        self._lessons_summary_label.setText(f"Level: {level_text} · {done}/{len(states)} lessons completed")
        for state in states:
            self._lessons_layout.addWidget(self._lesson_row(state))
        self._lessons_layout.addStretch(1)

    def _lesson_row(self, state: LessonState) -> QWidget:
        row = QWidget()
        layout = QHBoxLayout(row)
        kind = "Audio" if state.lesson.is_audio else "Text"
        label = QLabel(f"{state.lesson.title}  ·  {kind}  ·  {state.lesson.level.capitalize()}")
        layout.addWidget(label, 1)
        if state.completed:
            layout.addWidget(QLabel(f"Best: {state.best_score} pts / {state.best_wpm} wpm"))
        button = QPushButton("Practice" if state.completed else "Start")
        key = state.lesson.key
        button.clicked.connect(lambda _=False, k=key: self._open_lesson(k))
        layout.addWidget(button)
        return row

    def _open_lesson(self, key: str) -> None:
        self._lesson_screen.open_lesson(self._lessons_repo.get(key))
        self._stack.setCurrentWidget(self._lesson_screen)

    def _start_assessment(self) -> None:
        if not self._assessment_texts:
            return
        self._lesson_screen.open_assessment(pick_assessment_text(self._assessment_texts))
        self._stack.setCurrentWidget(self._lesson_screen)

    def _show_home_screen(self) -> None:
        self._refresh_home()
        self._stack.setCurrentWidget(self._home_screen)

    def closeEvent(self, event: QCloseEvent) -> None:
        self._lesson_screen.close()
        super().closeEvent(event)
