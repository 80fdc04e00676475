from __future__ import annotations

import random
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from typeright.core.metrics import ScoringMode

MODULE_TYPES = ("text", "audio_sentence", "audio_paragraph")
AUDIO_MODULE_TYPES = ("audio_sentence", "audio_paragraph")
LESSON_LEVELS = ("beginner", "intermediate", "advanced", "all")

_DATA_DIR = Path(__file__).resolve().parent.parent / "data"


@dataclass(frozen=True)
class Lesson:
    key: str
    title: str
    content: str
    level: str = "all"
    module_type: str = "text"
    backspace_enabled: bool = True
    audio_url: Optional[str] = None

    @property
    def is_audio(self) -> bool:
        return self.module_type in AUDIO_MODULE_TYPES

    @property
    def scoring_mode(self) -> ScoringMode:
        """Dictation lessons are scored on raw speed, visible text with a penalty."""
        return ScoringMode.GROSS if self.is_audio else ScoringMode.NET


class LessonRepository:
    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir if base_dir is not None else _DATA_DIR / "lessons"
        self._lessons = self._load_lessons()

    def all(self) -> List[Lesson]:
        return list(self._lessons.values())

    def get(self, key: str) -> Lesson:
        return self._lessons[key]

    def for_level(self, level: Optional[str]) -> List[Lesson]:
        """Lessons for *level* plus the ones open to every level."""
        if not level:
            return self.all()
        return [lesson for lesson in self._lessons.values() if lesson.level in (level, "all")]

    def _load_lessons(self) -> Dict[str, Lesson]:
        base_dir = self._base_dir
        if not base_dir.exists():
            raise FileNotFoundError(f"Lessons directory not found: {base_dir}")

        lessons: Dict[str, Lesson] = {}

        def _sort_key(p: Path) -> tuple[int, str]:
            m = re.match(r"^lesson(\d+)$", p.stem)
            if m:
                return (int(m.group(1)), p.stem)
            return (10**9, p.stem)

        for lesson_path in sorted(base_dir.glob("lesson*.yaml"), key=_sort_key):
            lessons[lesson_path.stem] = parse_lesson(lesson_path.stem, lesson_path.name, lesson_path.read_text(encoding="utf-8"))

        if not lessons:
            raise ValueError(f"No lesson files (lesson*.yaml) found in {base_dir}")
        return lessons


def parse_lesson(key: str, source_name: str, text: str) -> Lesson:
    raw = yaml.safe_load(text)
    if not raw or not isinstance(raw, dict):
        raise ValueError(f"{source_name}: expected YAML with 'title' and 'content'")
    title = raw.get("title")
    content = raw.get("content")
    if not title or not isinstance(title, str):
        raise ValueError(f"{source_name}: missing or invalid 'title'")
    if content is None:
        raise ValueError(f"{source_name}: missing 'content'")
    # folded multi-line content is typed as one line
    content = " ".join(str(content).split())
    if not content:
        raise ValueError(f"{source_name}: 'content' is empty")

    level = str(raw.get("level", "all")).strip().lower()
    if level not in LESSON_LEVELS:
        raise ValueError(f"{source_name}: unknown level {level!r}")
    module_type = str(raw.get("module_type", "text")).strip().lower()
    if module_type not in MODULE_TYPES:
        raise ValueError(f"{source_name}: unknown module_type {module_type!r}")
    backspace = raw.get("backspace_enabled", True)
    if not isinstance(backspace, bool):
        raise ValueError(f"{source_name}: 'backspace_enabled' must be true or false")
    audio_url = raw.get("audio_url")

    return Lesson(
        key=key,
        title=title.strip(),
        content=content,
        level=level,
        module_type=module_type,
        backspace_enabled=backspace,
        audio_url=str(audio_url) if audio_url else None,
    )


def load_assessment_texts(path: Optional[Path] = None) -> List[str]:
    """Read the placement-test passages."""
    file_path = path if path is not None else _DATA_DIR / "assessment.yaml"
    raw = yaml.safe_load(file_path.read_text(encoding="utf-8"))
    texts = raw.get("texts") if isinstance(raw, dict) else None
    if not isinstance(texts, list):
        raise ValueError(f"{file_path.name}: expected a 'texts' list")
    cleaned = [" ".join(str(t).split()) for t in texts]
    cleaned = [t for t in cleaned if t]
    if not cleaned:
        raise ValueError(f"{file_path.name}: 'texts' has no passages")
    return cleaned


def pick_assessment_text(texts: List[str], rng: Optional[random.Random] = None) -> str:
    return (rng or random).choice(texts)
