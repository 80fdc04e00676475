from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from typeright.core.session import SessionResult

logger = logging.getLogger(__name__)


class ProgressSaveError(OSError):
    """Raised when a completion could not be written; the caller may retry."""


@dataclass(frozen=True)
class CompletionRecord:
    user_id: str
    lesson_key: str
    score: int
    accuracy: int
    wpm: int
    time_spent: int
    is_first_completion: bool
    completed_at: str


@dataclass
class Profile:
    level: Optional[str] = None
    updated_at: Optional[str] = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProgressStore:
    """Lesson completions and learner profiles, persisted as JSON.

    Default file: ``~/.typeright/progress.json``. Each completed lesson is
    appended as its own record; replays are kept too, flagged with
    ``is_first_completion=False``.
    """

    def __init__(self, file_path: Optional[Path] = None) -> None:
        self._file_path = file_path if file_path is not None else Path.home() / ".typeright" / "progress.json"
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        self._completions, self._profiles = self._load()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def has_completed(self, user_id: str, lesson_key: str) -> bool:
        return any(c.user_id == user_id and c.lesson_key == lesson_key for c in self._completions)

    def completions(self, user_id: Optional[str] = None) -> List[CompletionRecord]:
        if user_id is None:
            return list(self._completions)
        return [c for c in self._completions if c.user_id == user_id]

    def user_ids(self) -> List[str]:
        seen: Dict[str, None] = {}
        for c in self._completions:
            seen.setdefault(c.user_id, None)
        for user_id in self._profiles:
            seen.setdefault(user_id, None)
        return list(seen)

    def record_completion(self, user_id: str, lesson_key: str, result: SessionResult) -> CompletionRecord:
        """Append *result* for (user, lesson) and write it to disk.

        Raises :class:`ProgressSaveError` if the file cannot be written; the
        record is not kept in memory in that case, so retrying is safe.
        """
        record = CompletionRecord(
            user_id=user_id,
            lesson_key=lesson_key,
            score=result.score,
            accuracy=result.accuracy,
            wpm=result.wpm,
            time_spent=result.time_spent_seconds,
            is_first_completion=result.is_first_completion,
            completed_at=_now_iso(),
        )
        self._completions.append(record)
        try:
            self._save()
        except OSError as e:
            self._completions.pop()
            raise ProgressSaveError(f"Failed to save progress: {e}") from e
        logger.info("Recorded completion of %s for %s (score %d)", lesson_key, user_id, record.score)
        return record

    def get_placement(self, user_id: str) -> Optional[str]:
        profile = self._profiles.get(user_id)
        return profile.level if profile else None

    def set_placement(self, user_id: str, level: str) -> None:
        previous = self._profiles.get(user_id)
        self._profiles[user_id] = Profile(level=level, updated_at=_now_iso())
        try:
            self._save()
        except OSError as e:
            if previous is None:
                self._profiles.pop(user_id, None)
            else:
                self._profiles[user_id] = previous
            raise ProgressSaveError(f"Failed to save results: {e}") from e

    def reset(self) -> None:
        """Clear all progress."""
        self._completions = []
        self._profiles = {}
        self._save()

    def _load(self) -> Tuple[List[CompletionRecord], Dict[str, Profile]]:
        completions: List[CompletionRecord] = []
        profiles: Dict[str, Profile] = {}
        if not self._file_path.exists():
            return completions, profiles
        try:
            payload = json.loads(self._file_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not load progress from %s: %s", self._file_path, e)
            return completions, profiles
        if not isinstance(payload, dict):
            logger.warning("Ignoring progress file %s: expected a JSON object", self._file_path)
            return completions, profiles

        for value in payload.get("completions", []):
            try:
                completions.append(
                    CompletionRecord(
                        user_id=str(value["user_id"]),
                        lesson_key=str(value["lesson_key"]),
                        score=int(value.get("score", 0)),
                        accuracy=int(value.get("accuracy", 0)),
                        wpm=int(value.get("wpm", 0)),
                        time_spent=int(value.get("time_spent", 0)),
                        is_first_completion=bool(value.get("is_first_completion", False)),
                        completed_at=str(value.get("completed_at", "")),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed completion in %s: %s", self._file_path, e)
        for user_id, value in payload.get("profiles", {}).items():
            if isinstance(value, dict):
                profiles[user_id] = Profile(level=value.get("level"), updated_at=value.get("updated_at"))
        return completions, profiles

    def _save(self) -> None:
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "completions": [asdict(c) for c in self._completions],
            "profiles": {key: asdict(value) for key, value in self._profiles.items()},
        }
        try:
            self._file_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Could not save progress to %s: %s", self._file_path, e)
            raise
