"""Leaderboard positions and rank tiers derived from lesson completions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from typeright.core.metrics import round_half_up
from typeright.core.progress import ProgressStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankTier:
    rank: str
    title: str
    min_points: int
    max_points: Optional[int]


RANK_TIERS: Tuple[RankTier, ...] = (
    RankTier("D-Rank", "Beginner", 0, 499),
    RankTier("C-Rank", "Intermediate", 500, 1499),
    RankTier("B-Rank", "Advanced", 1500, 2999),
    RankTier("A-Rank", "Expert", 3000, 4999),
    RankTier("S-Rank", "Master", 5000, None),
)


@dataclass(frozen=True)
class Standing:
    user_id: str
    position: int
    total_points: int
    lessons_completed: int
    average_wpm: int
    average_accuracy: int

    @property
    def tier(self) -> RankTier:
        return rank_for_points(self.total_points)


def rank_for_points(points: int) -> RankTier:
    tier = RANK_TIERS[0]
    for candidate in RANK_TIERS:
        if points >= candidate.min_points:
            tier = candidate
    return tier


def progress_to_next(points: int) -> Tuple[float, int]:
    """Return (percent of the way to the next tier, points still needed).

    At the top tier this is ``(100.0, 0)``.
    """
    index = RANK_TIERS.index(rank_for_points(points))
    if index == len(RANK_TIERS) - 1:
        return 100.0, 0
    current, nxt = RANK_TIERS[index], RANK_TIERS[index + 1]
    span = nxt.min_points - current.min_points
    percent = ((points - current.min_points) / span) * 100.0
    return percent, nxt.min_points - points


class RankingService:
    """Recomputes every learner's points and leaderboard position.

    Only first completions earn points; replays still count toward the
    speed and accuracy averages.
    """

    def __init__(self, store: ProgressStore) -> None:
        self._store = store
        self._standings: Dict[str, Standing] = {}

    def recompute(self) -> List[Standing]:
        totals: Dict[str, List[int]] = {}
        for c in self._store.completions():
            # points, completed, wpm sum, accuracy sum
            t = totals.setdefault(c.user_id, [0, 0, 0, 0])
            if c.is_first_completion:
                t[0] += c.score
            t[1] += 1
            t[2] += c.wpm
            t[3] += c.accuracy
        for user_id in self._store.user_ids():
            totals.setdefault(user_id, [0, 0, 0, 0])

        ordered = sorted(totals.items(), key=lambda item: (-item[1][0], item[0]))
        standings: List[Standing] = []
        for position, (user_id, (points, completed, wpm_sum, acc_sum)) in enumerate(ordered, start=1):
            standings.append(
                Standing(
                    user_id=user_id,
                    position=position,
                    total_points=points,
                    lessons_completed=completed,
                    average_wpm=round_half_up(wpm_sum / completed) if completed else 0,
                    average_accuracy=round_half_up(acc_sum / completed) if completed else 0,
                )
            )
        self._standings = {s.user_id: s for s in standings}
        logger.info("Recomputed rankings for %d learners", len(standings))
        return standings

    def standing_for(self, user_id: str) -> Optional[Standing]:
        if not self._standings:
            self.recompute()
        return self._standings.get(user_id)
