from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from typeright.core.metrics import (
    Performance,
    PlacementResult,
    ScoringMode,
    assess_placement,
    calculate_score,
    compute_performance,
    count_unfixed_errors,
    elapsed_minutes,
    is_correct_at,
)

logger = logging.getLogger(__name__)


class LessonConfigError(ValueError):
    """Raised when a session is created with unusable lesson settings."""


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass
class KeystrokeTally:
    correct: int = 0
    incorrect: int = 0

    @property
    def total(self) -> int:
        return self.correct + self.incorrect


@dataclass(frozen=True)
class LiveStats:
    """Numbers shown while the learner is typing."""

    wpm: int
    accuracy: int
    elapsed_seconds: int


@dataclass(frozen=True)
class SessionResult:
    """Final outcome of a lesson, handed to the progress store."""

    wpm: int
    accuracy: int
    score: int
    time_spent_seconds: int
    is_first_completion: bool


class Ticker:
    """One-second display tick owned by a session.

    Subclasses wrap a real timer (see ``typeright.ui.typing_widgets.QtTicker``).
    """

    def start(self, callback: Callable[[], None]) -> None:
        raise NotImplementedError

    def stop(self) -> None:
        raise NotImplementedError


class TypingSession:
    """Measures one attempt at a lesson, edit by edit.

    The caller feeds the *whole* input buffer after every change through
    :meth:`apply_edit`. Insertions and deletions are told apart by length:

      * an insertion checks only the last character against the lesson text;
      * a deletion undoes whichever counter the removed character went to.

    Unfixed errors are recounted from scratch on every edit, so fixing a
    typo clears it from the net-WPM penalty as soon as it is deleted.

    The session finishes on its own once the buffer is as long as the lesson
    text, or when :meth:`finish_early` is called.
    """

    def __init__(
        self,
        lesson_text: str,
        scoring_mode: ScoringMode | str = ScoringMode.NET,
        backspace_enabled: bool = True,
        is_first_completion: bool = True,
        clock: Callable[[], float] = time.monotonic,
        ticker: Optional[Ticker] = None,
        on_update: Optional[Callable[[LiveStats], None]] = None,
        on_finished: Optional[Callable[[SessionResult], None]] = None,
    ) -> None:
        if not lesson_text:
            raise LessonConfigError("Lesson text must not be empty")
        try:
            self._mode = ScoringMode(scoring_mode)
        except ValueError:
            raise LessonConfigError(f"Unknown scoring mode: {scoring_mode!r}") from None
        self._text = lesson_text
        self._backspace_enabled = bool(backspace_enabled)
        self._is_first_completion = bool(is_first_completion)
        self._clock = clock
        self._ticker = ticker
        self._on_update = on_update
        self._on_finished = on_finished

        self._state = SessionState.NOT_STARTED
        self._buffer = ""
        self._tally = KeystrokeTally()
        self._unfixed_errors = 0
        self._start_time: Optional[float] = None
        self._end_time: Optional[float] = None
        self._live = Performance(wpm=0, accuracy=0)
        self._result: Optional[SessionResult] = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def lesson_text(self) -> str:
        return self._text

    @property
    def scoring_mode(self) -> ScoringMode:
        return self._mode

    @property
    def backspace_enabled(self) -> bool:
        return self._backspace_enabled

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def correct(self) -> int:
        return self._tally.correct

    @property
    def incorrect(self) -> int:
        return self._tally.incorrect

    @property
    def unfixed_errors(self) -> int:
        return self._unfixed_errors

    @property
    def current_wpm(self) -> int:
        return self._live.wpm

    @property
    def current_accuracy(self) -> int:
        return self._live.accuracy

    @property
    def elapsed_seconds(self) -> int:
        """Whole seconds since start; frozen once the session finishes."""
        if self._start_time is None:
            return 0
        end = self._end_time if self._end_time is not None else self._clock()
        return max(0, int(end - self._start_time))

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    @property
    def is_running(self) -> bool:
        return self._state is SessionState.RUNNING

    @property
    def is_finished(self) -> bool:
        return self._state is SessionState.FINISHED

    def live_stats(self) -> LiveStats:
        return LiveStats(
            wpm=self._live.wpm,
            accuracy=self._live.accuracy,
            elapsed_seconds=self.elapsed_seconds,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._state is not SessionState.NOT_STARTED:
            return
        self._start_time = self._clock()
        self._state = SessionState.RUNNING
        if self._ticker is not None:
            self._ticker.start(self._on_tick)
        logger.info("Session started (%d chars, %s mode)", len(self._text), self._mode.value)

    def apply_edit(self, new_buffer: str) -> None:
        """Account for one input change; *new_buffer* is the full content."""
        if self._state is not SessionState.RUNNING:
            return
        old_buffer = self._buffer

        if len(new_buffer) > len(old_buffer):
            if is_correct_at(new_buffer, self._text, len(new_buffer) - 1):
                self._tally.correct += 1
            else:
                self._tally.incorrect += 1
        elif len(new_buffer) < len(old_buffer):
            if not self._backspace_enabled:
                logger.debug("Buffer shrank while backspace is disabled")
            removed = len(new_buffer)
            if is_correct_at(old_buffer, self._text, removed):
                self._tally.correct = max(0, self._tally.correct - 1)
            else:
                self._tally.incorrect = max(0, self._tally.incorrect - 1)

        self._unfixed_errors = count_unfixed_errors(new_buffer, self._text)
        self._buffer = new_buffer
        self._live = self._performance()
        self._notify_update()

        if len(new_buffer) >= len(self._text):
            self._finish()

    def finish_early(self) -> None:
        if self._state is not SessionState.RUNNING:
            return
        self._finish()

    def close(self) -> None:
        """Release the ticker without producing a result."""
        self._release_ticker()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _elapsed_minutes(self) -> float:
        if self._start_time is None:
            return 0.0
        end = self._end_time if self._end_time is not None else self._clock()
        return elapsed_minutes(self._start_time, end)

    def _performance(self) -> Performance:
        return compute_performance(
            self._tally.correct,
            self._tally.incorrect,
            self._unfixed_errors,
            self._elapsed_minutes(),
            self._mode,
        )

    def _compute_result(self) -> SessionResult:
        perf = self._live
        return SessionResult(
            wpm=perf.wpm,
            accuracy=perf.accuracy,
            score=calculate_score(perf.wpm, perf.accuracy),
            time_spent_seconds=self.elapsed_seconds,
            is_first_completion=self._is_first_completion,
        )

    def _finish(self) -> None:
        self._end_time = self._clock()
        self._state = SessionState.FINISHED
        self._release_ticker()
        self._live = self._performance()
        self._result = self._compute_result()
        logger.info("Session finished: %s", self._result)
        if self._on_finished is not None:
            self._on_finished(self._result)

    def _release_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.stop()
            self._ticker = None

    def _on_tick(self) -> None:
        if self._state is SessionState.RUNNING:
            self._notify_update()

    def _notify_update(self) -> None:
        if self._on_update is not None:
            self._on_update(self.live_stats())


@dataclass(frozen=True)
class PlacementOutcome:
    """Result of the placement test, including the assigned level."""

    placement: PlacementResult
    time_spent_seconds: int

    @property
    def wpm(self) -> int:
        return self.placement.wpm

    @property
    def accuracy(self) -> int:
        return self.placement.accuracy

    @property
    def level(self) -> str:
        return self.placement.level.value


class PlacementSession(TypingSession):
    """The one-off assessment that decides a learner's starting level.

    Shares the lesson session's lifecycle but scores the final buffer by
    whole words per minute and position-wise accuracy instead of the
    keystroke tally.
    """

    def __init__(
        self,
        lesson_text: str,
        clock: Callable[[], float] = time.monotonic,
        ticker: Optional[Ticker] = None,
        on_update: Optional[Callable[[LiveStats], None]] = None,
        on_finished: Optional[Callable[[PlacementOutcome], None]] = None,
    ) -> None:
        super().__init__(
            lesson_text,
            scoring_mode=ScoringMode.GROSS,
            backspace_enabled=True,
            is_first_completion=False,
            clock=clock,
            ticker=ticker,
            on_update=on_update,
            on_finished=on_finished,
        )

    def _compute_result(self) -> PlacementOutcome:  # type: ignore[override]
        return PlacementOutcome(
            placement=assess_placement(self._buffer, self._text, self._elapsed_minutes()),
            time_spent_seconds=self.elapsed_seconds,
        )
