"""Tests for typeright.core.rankings – points, leaderboard positions, rank tiers."""

from __future__ import annotations

from pathlib import Path

import pytest

from typeright.core.progress import ProgressStore
from typeright.core.rankings import (
    RANK_TIERS,
    RankingService,
    progress_to_next,
    rank_for_points,
)
from typeright.core.session import SessionResult


@pytest.fixture()
def store(tmp_path: Path) -> ProgressStore:
    return ProgressStore(tmp_path / "progress.json")


def _complete(store, user_id, lesson_key, score, wpm=40, accuracy=90, first=True):
    store.record_completion(
        user_id,
        lesson_key,
        SessionResult(wpm=wpm, accuracy=accuracy, score=score, time_spent_seconds=20, is_first_completion=first),
    )


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------

class TestRankForPoints:
    @pytest.mark.parametrize(
        "points, rank",
        [
            (0, "D-Rank"),
            (499, "D-Rank"),
            (500, "C-Rank"),
            (1499, "C-Rank"),
            (1500, "B-Rank"),
            (3000, "A-Rank"),
            (4999, "A-Rank"),
            (5000, "S-Rank"),
            (99999, "S-Rank"),
        ],
    )
    def test_boundaries(self, points, rank):
        assert rank_for_points(points).rank == rank

    def test_titles(self):
        assert [t.title for t in RANK_TIERS] == ["Beginner", "Intermediate", "Advanced", "Expert", "Master"]


class TestProgressToNext:
    def test_start_of_tier(self):
        assert progress_to_next(0) == (0.0, 500)

    def test_midway(self):
        percent, needed = progress_to_next(1000)
        assert percent == pytest.approx(50.0)
        assert needed == 500

    def test_top_tier(self):
        assert progress_to_next(6000) == (100.0, 0)


# ---------------------------------------------------------------------------
# RankingService
# ---------------------------------------------------------------------------

class TestRankingService:
    def test_empty(self, store):
        assert RankingService(store).recompute() == []

    def test_only_first_completions_earn_points(self, store):
        _complete(store, "ana", "lesson1", 40)
        _complete(store, "ana", "lesson1", 55, first=False)
        standing = RankingService(store).recompute()[0]
        assert standing.total_points == 40
        assert standing.lessons_completed == 2

    def test_positions_ordered_by_points(self, store):
        _complete(store, "ana", "lesson1", 30)
        _complete(store, "ben", "lesson1", 50)
        _complete(store, "ben", "lesson2", 20)
        standings = RankingService(store).recompute()
        assert [(s.user_id, s.position, s.total_points) for s in standings] == [
            ("ben", 1, 70),
            ("ana", 2, 30),
        ]

    def test_ties_broken_by_user_id(self, store):
        _complete(store, "zoe", "lesson1", 30)
        _complete(store, "amy", "lesson1", 30)
        assert [s.user_id for s in RankingService(store).recompute()] == ["amy", "zoe"]

    def test_averages_round_half_up(self, store):
        _complete(store, "ana", "lesson1", 10, wpm=40, accuracy=90)
        _complete(store, "ana", "lesson2", 10, wpm=41, accuracy=95)
        standing = RankingService(store).recompute()[0]
        assert standing.average_wpm == 41
        assert standing.average_accuracy == 93

    def test_placed_user_without_completions_listed(self, store):
        _complete(store, "ana", "lesson1", 30)
        store.set_placement("ben", "beginner")
        standings = RankingService(store).recompute()
        ben = next(s for s in standings if s.user_id == "ben")
        assert ben.position == 2
        assert ben.total_points == 0
        assert ben.average_wpm == 0

    def test_standing_for_computes_lazily(self, store):
        _complete(store, "ana", "lesson1", 30)
        standing = RankingService(store).standing_for("ana")
        assert standing is not None
        assert standing.tier.rank == "D-Rank"

    def test_standing_for_unknown_user(self, store):
        _complete(store, "ana", "lesson1", 30)
        assert RankingService(store).standing_for("nobody") is None

    def test_recompute_picks_up_new_completions(self, store):
        service = RankingService(store)
        _complete(store, "ana", "lesson1", 30)
        service.recompute()
        _complete(store, "ana", "lesson2", 25)
        service.recompute()
        assert service.standing_for("ana").total_points == 55
