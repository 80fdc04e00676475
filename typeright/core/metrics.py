"""Speed, accuracy and score formulas shared by lessons and the placement test.

Every number shown to the learner is computed here:

  * **Gross WPM** – (keystrokes / 5) / elapsed minutes.
  * **Net WPM** – gross WPM minus ``unfixed errors / elapsed minutes``,
    floored at 0. The penalty is averaged over the whole session, not the
    current error rate.
  * **Accuracy** – correct keystrokes / total keystrokes, as a percentage.
  * **Score** – up to 25 points for speed plus 25 for accuracy, with a
    1.2x bonus at 60+ WPM and 95%+ accuracy.

All rounding is half-up so that ``46.5`` shows as ``47``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import List

CHARS_PER_WORD = 5

WPM_SCORE_FACTOR = 0.25
WPM_SCORE_CAP = 25.0
ACCURACY_SCORE_FACTOR = 0.25
BONUS_MULTIPLIER = 1.2
BONUS_MIN_WPM = 60
BONUS_MIN_ACCURACY = 95

ADVANCED_MIN_WPM = 60
INTERMEDIATE_MIN_WPM = 40


class ScoringMode(str, Enum):
    """How WPM is derived from the keystroke stream."""

    GROSS = "gross"  # listen-and-type lessons
    NET = "net"  # read-and-type lessons


class PlacementLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class CharState(str, Enum):
    PENDING = "pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"


@dataclass(frozen=True)
class Performance:
    """WPM and accuracy at one point in time."""

    wpm: int
    accuracy: int


@dataclass(frozen=True)
class PlacementResult:
    wpm: int
    accuracy: int
    level: PlacementLevel


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 going up."""
    return int(math.floor(value + 0.5))


def elapsed_minutes(start: float, now: float) -> float:
    """Minutes between two clock readings given in seconds."""
    return (now - start) / 60.0


def count_unfixed_errors(buffer: str, lesson_text: str) -> int:
    """Count positions in *buffer* that differ from *lesson_text*.

    Characters typed past the end of the lesson text count as mismatches.
    """
    errors = 0
    for i, ch in enumerate(buffer):
        if i >= len(lesson_text) or ch != lesson_text[i]:
            errors += 1
    return errors


def is_correct_at(buffer: str, lesson_text: str, index: int) -> bool:
    """True if ``buffer[index]`` matches the lesson text at the same index."""
    return index < len(lesson_text) and buffer[index] == lesson_text[index]


def compute_performance(
    correct: int,
    incorrect: int,
    unfixed_errors: int,
    minutes: float,
    mode: ScoringMode,
) -> Performance:
    """WPM and accuracy for a lesson session."""
    total = correct + incorrect
    if total == 0 or minutes <= 0:
        return Performance(wpm=0, accuracy=0)

    gross_wpm = (total / CHARS_PER_WORD) / minutes
    if ScoringMode(mode) is ScoringMode.GROSS:
        wpm = round_half_up(gross_wpm)
    else:
        net_wpm = max(0.0, gross_wpm - (unfixed_errors / minutes))
        wpm = round_half_up(net_wpm)

    accuracy = round_half_up((correct / total) * 100.0)
    return Performance(wpm=wpm, accuracy=accuracy)


def calculate_score(wpm: int, accuracy: int) -> int:
    """Lesson score in the range 0-60."""
    wpm_score = min(wpm * WPM_SCORE_FACTOR, WPM_SCORE_CAP)
    accuracy_score = accuracy * ACCURACY_SCORE_FACTOR
    multiplier = BONUS_MULTIPLIER if (wpm >= BONUS_MIN_WPM and accuracy >= BONUS_MIN_ACCURACY) else 1.0
    return round_half_up((wpm_score + accuracy_score) * multiplier)


def placement_level(wpm: int) -> PlacementLevel:
    if wpm >= ADVANCED_MIN_WPM:
        return PlacementLevel.ADVANCED
    if wpm >= INTERMEDIATE_MIN_WPM:
        return PlacementLevel.INTERMEDIATE
    return PlacementLevel.BEGINNER


def assess_placement(buffer: str, lesson_text: str, minutes: float) -> PlacementResult:
    """Score the one-off placement test.

    Speed is whole words (whitespace-delimited tokens) per minute with no
    error penalty; accuracy is position-wise matches over the full length
    of the reference text, so stopping early lowers it.
    """
    word_count = len(buffer.split())
    wpm = round_half_up(word_count / minutes) if minutes > 0 else 0

    matches = sum(1 for a, b in zip(buffer, lesson_text) if a == b)
    accuracy = round_half_up((matches / len(lesson_text)) * 100.0) if lesson_text else 0

    return PlacementResult(wpm=wpm, accuracy=accuracy, level=placement_level(wpm))


def character_states(buffer: str, lesson_text: str) -> List[CharState]:
    """Per-character state of *lesson_text* given what has been typed so far."""
    states: List[CharState] = []
    for i, expected in enumerate(lesson_text):
        if i >= len(buffer):
            states.append(CharState.PENDING)
        elif buffer[i] == expected:
            states.append(CharState.CORRECT)
        else:
            states.append(CharState.INCORRECT)
    return states
