"""
History Service — numeric summaries over the rolling day records.

Design philosophy:
  - Works with tiny histories (a new user has one or two records).
  - Returns None instead of guessing when there is not enough data.
  - Also builds the stats snapshot the achievement rules read.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import numpy as np

from maamulat.data.models import AchievementStats, DayRecord
from maamulat.services.completion_service import (
    PERFECT_DAY_KEY, CompletionService, category_key, task_key,
)
from maamulat.services.streak_service import COMPLETION_THRESHOLD, StreakService

logger = logging.getLogger(__name__)

MIN_SAMPLES_FOR_TREND = 3
WEEKDAY_LABELS = ("Mo", "Tu", "We", "Th", "Fr", "Sa", "Su")

TAHAJJUD_TASK = "tahajjud"
QURAN_CATEGORY = "quran"


class HistoryService:
    """Read-only views over completion history and streak state."""

    def __init__(self, completion: CompletionService, streak: StreakService) -> None:
        self.completion = completion
        self.streak = streak

    # ── Day-record statistics ───────────────────────────────────────────────

    @property
    def records(self) -> List[DayRecord]:
        return self.completion.state.day_records

    def _percents(self) -> np.ndarray:
        return np.array([r.completion_percent for r in self.records], dtype=float)

    def average_completion(self) -> Optional[float]:
        values = self._percents()
        if values.size == 0:
            return None
        return float(np.mean(values))

    def consistency_rate(self) -> Optional[float]:
        """Share (0-1) of recorded days that met the streak threshold."""
        values = self._percents()
        if values.size == 0:
            return None
        return float(np.mean(values >= COMPLETION_THRESHOLD))

    def completion_trend(self) -> Optional[float]:
        """
        Least-squares slope of completion percent per recorded day.

        Positive means the user is improving. None below MIN_SAMPLES_FOR_TREND.
        """
        values = self._percents()
        if values.size < MIN_SAMPLES_FOR_TREND:
            return None
        x = np.arange(values.size, dtype=float)
        A = np.vstack([x, np.ones(values.size)]).T
        slope, _ = np.linalg.lstsq(A, values, rcond=None)[0]
        return float(slope)

    def best_day(self) -> Optional[DayRecord]:
        if not self.records:
            return None
        idx = int(np.argmax(self._percents()))
        return self.records[idx]

    def weekly_summary(self) -> Dict[str, bool]:
        return dict(zip(WEEKDAY_LABELS, self.completion.state.weekly_progress))

    # ── Achievement snapshot ────────────────────────────────────────────────

    def achievement_stats(self) -> AchievementStats:
        """Current counters, including whatever today already earned."""
        live = self.completion.completed_tally_keys()

        def count(key: str) -> int:
            return self.completion.task_day_count(key) + (1 if key in live else 0)

        progress = self.streak.progress
        return AchievementStats(
            streak=progress.current_streak,
            total_hasanat=progress.total_hasanat,
            tahajjud_count=count(task_key(TAHAJJUD_TASK)),
            quran_days=count(category_key(QURAN_CATEGORY)),
            perfect_days=count(PERFECT_DAY_KEY),
        )

    def summary(self) -> dict:
        avg = self.average_completion()
        rate = self.consistency_rate()
        trend = self.completion_trend()
        best = self.best_day()
        return {
            "days_recorded": len(self.records),
            "average_completion": round(avg, 1) if avg is not None else None,
            "consistency_rate": round(rate, 2) if rate is not None else None,
            "trend_per_day": round(trend, 2) if trend is not None else None,
            "best_day": best.date if best else None,
            "week": self.weekly_summary(),
        }


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Turns the rolling 30-day record list into numbers for the history view,
#   and builds the AchievementStats snapshot the achievement rules read.
#
# Key pieces:
#   - completion_trend(): straight-line fit with np.linalg.lstsq; the slope is
#     percentage points gained (or lost) per recorded day.
#   - achievement_stats(): closed-day tallies from CompletionService plus
#     whatever today has already earned, so unlocks happen the same day.
#
# Data flow:
#   MaamulatState.day_records -> numpy arrays -> summary() -> CLI "history"
