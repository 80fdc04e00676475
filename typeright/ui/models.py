"""Data models used by the UI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from typeright.core.lessons import Lesson
from typeright.core.progress import ProgressStore


@dataclass
class LessonState:
    """UI state for a single lesson row: completion history and best score."""

    lesson: Lesson
    completed: bool
    best_score: int = 0
    best_wpm: int = 0


def build_lesson_states(lessons: List[Lesson], store: ProgressStore, user_id: str) -> List[LessonState]:
    by_lesson: dict[str, list] = {}
    for c in store.completions(user_id):
        by_lesson.setdefault(c.lesson_key, []).append(c)
    states: List[LessonState] = []
    for lesson in lessons:
        records = by_lesson.get(lesson.key, [])
        states.append(
            LessonState(
                lesson=lesson,
                completed=bool(records),
                best_score=max((r.score for r in records), default=0),
                best_wpm=max((r.wpm for r in records), default=0),
            )
        )
    return states
