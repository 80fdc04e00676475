"""Tests for typeright.core.lessons – YAML-based lesson loading."""

from __future__ import annotations

import random
from pathlib import Path

import pytest
import yaml

from typeright.core.lessons import (
    Lesson,
    LessonRepository,
    load_assessment_texts,
    parse_lesson,
    pick_assessment_text,
)
from typeright.core.metrics import ScoringMode


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def lessons_dir(tmp_path: Path) -> Path:
    d = tmp_path / "lessons"
    d.mkdir()
    return d


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data, allow_unicode=True, default_flow_style=False), encoding="utf-8")


# ---------------------------------------------------------------------------
# Lesson dataclass
# ---------------------------------------------------------------------------

class TestLessonDataclass:
    def test_defaults(self):
        lesson = Lesson(key="lesson1", title="Basics", content="abc")
        assert lesson.level == "all"
        assert lesson.module_type == "text"
        assert lesson.backspace_enabled is True
        assert lesson.audio_url is None

    def test_frozen(self):
        lesson = Lesson(key="lesson1", title="Basics", content="abc")
        with pytest.raises(AttributeError):
            lesson.title = "Other"  # type: ignore[misc]

    def test_text_lessons_use_net_scoring(self):
        assert Lesson("k", "t", "c", module_type="text").scoring_mode is ScoringMode.NET

    @pytest.mark.parametrize("module_type", ["audio_sentence", "audio_paragraph"])
    def test_audio_lessons_use_gross_scoring(self, module_type):
        lesson = Lesson("k", "t", "c", module_type=module_type)
        assert lesson.is_audio
        assert lesson.scoring_mode is ScoringMode.GROSS


# ---------------------------------------------------------------------------
# parse_lesson
# ---------------------------------------------------------------------------

class TestParseLesson:
    def test_full_lesson(self):
        text = yaml.dump(
            {
                "title": " Imaging ",
                "content": "No abnormalities.",
                "level": "Intermediate",
                "module_type": "audio_sentence",
                "backspace_enabled": False,
                "audio_url": "https://example.org/a.mp3",
            }
        )
        lesson = parse_lesson("lesson3", "lesson3.yaml", text)
        assert lesson.title == "Imaging"
        assert lesson.level == "intermediate"
        assert lesson.module_type == "audio_sentence"
        assert lesson.backspace_enabled is False
        assert lesson.audio_url == "https://example.org/a.mp3"

    def test_multiline_content_joined(self):
        lesson = parse_lesson("k", "k.yaml", "title: T\ncontent: |\n  first line\n  second   line\n")
        assert lesson.content == "first line second line"

    def test_missing_title(self):
        with pytest.raises(ValueError, match="title"):
            parse_lesson("k", "k.yaml", "content: abc\n")

    def test_missing_content(self):
        with pytest.raises(ValueError, match="missing 'content'"):
            parse_lesson("k", "k.yaml", "title: T\n")

    def test_blank_content(self):
        with pytest.raises(ValueError, match="empty"):
            parse_lesson("k", "k.yaml", "title: T\ncontent: '   '\n")

    def test_not_a_mapping(self):
        with pytest.raises(ValueError, match="expected YAML"):
            parse_lesson("k", "k.yaml", "- a\n- b\n")

    def test_unknown_module_type(self):
        with pytest.raises(ValueError, match="module_type"):
            parse_lesson("k", "k.yaml", "title: T\ncontent: c\nmodule_type: video\n")

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="level"):
            parse_lesson("k", "k.yaml", "title: T\ncontent: c\nlevel: expert\n")

    def test_backspace_must_be_bool(self):
        with pytest.raises(ValueError, match="backspace_enabled"):
            parse_lesson("k", "k.yaml", "title: T\ncontent: c\nbackspace_enabled: maybe\n")


# ---------------------------------------------------------------------------
# LessonRepository
# ---------------------------------------------------------------------------

class TestLessonRepository:
    def test_loads_and_sorts_numerically(self, lessons_dir: Path):
        _write_yaml(lessons_dir / "lesson10.yaml", {"title": "Ten", "content": "x"})
        _write_yaml(lessons_dir / "lesson2.yaml", {"title": "Two", "content": "y"})
        repo = LessonRepository(lessons_dir)
        assert [lesson.key for lesson in repo.all()] == ["lesson2", "lesson10"]

    def test_get(self, lessons_dir: Path):
        _write_yaml(lessons_dir / "lesson1.yaml", {"title": "One", "content": "abc"})
        assert LessonRepository(lessons_dir).get("lesson1").content == "abc"

    def test_get_unknown_raises(self, lessons_dir: Path):
        _write_yaml(lessons_dir / "lesson1.yaml", {"title": "One", "content": "abc"})
        with pytest.raises(KeyError):
            LessonRepository(lessons_dir).get("lesson9")

    def test_for_level_includes_all_level(self, lessons_dir: Path):
        _write_yaml(lessons_dir / "lesson1.yaml", {"title": "A", "content": "a", "level": "beginner"})
        _write_yaml(lessons_dir / "lesson2.yaml", {"title": "B", "content": "b", "level": "advanced"})
        _write_yaml(lessons_dir / "lesson3.yaml", {"title": "C", "content": "c", "level": "all"})
        repo = LessonRepository(lessons_dir)
        assert [lesson.key for lesson in repo.for_level("beginner")] == ["lesson1", "lesson3"]

    def test_for_level_none_returns_everything(self, lessons_dir: Path):
        _write_yaml(lessons_dir / "lesson1.yaml", {"title": "A", "content": "a", "level": "beginner"})
        _write_yaml(lessons_dir / "lesson2.yaml", {"title": "B", "content": "b", "level": "advanced"})
        assert len(LessonRepository(lessons_dir).for_level(None)) == 2

    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            LessonRepository(tmp_path / "nope")

    def test_empty_directory(self, lessons_dir: Path):
        with pytest.raises(ValueError, match="No lesson files"):
            LessonRepository(lessons_dir)

    def test_ignores_other_files(self, lessons_dir: Path):
        _write_yaml(lessons_dir / "lesson1.yaml", {"title": "A", "content": "a"})
        (lessons_dir / "notes.txt").write_text("ignored", encoding="utf-8")
        assert len(LessonRepository(lessons_dir).all()) == 1

    def test_packaged_lessons_load(self):
        repo = LessonRepository()
        lessons = repo.all()
        assert lessons
        assert all(lesson.content for lesson in lessons)
        assert any(lesson.is_audio for lesson in lessons)
        assert any(not lesson.backspace_enabled for lesson in lessons)


# ---------------------------------------------------------------------------
# Assessment texts
# ---------------------------------------------------------------------------

class TestAssessmentTexts:
    def test_packaged_texts(self):
        texts = load_assessment_texts()
        assert len(texts) == 3
        assert texts[0].startswith("The quick brown fox")

    def test_custom_file(self, tmp_path: Path):
        path = tmp_path / "assessment.yaml"
        _write_yaml(path, {"texts": ["one  two", "", "three"]})
        assert load_assessment_texts(path) == ["one two", "three"]

    def test_missing_list(self, tmp_path: Path):
        path = tmp_path / "assessment.yaml"
        _write_yaml(path, {"passages": ["x"]})
        with pytest.raises(ValueError, match="texts"):
            load_assessment_texts(path)

    def test_pick_uses_rng(self):
        texts = ["a", "b", "c"]
        assert pick_assessment_text(texts, random.Random(1)) in texts
