"""
MaamulatApp — wires the repository and services together.

This is the caller the services are written for: it asks the reward
calculator for points, feeds the streak engine, records the day and
evaluates achievements in the order the stores expect.
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

from maamulat.data.database import Database
from maamulat.data.models import Achievement, DayRecord
from maamulat.data.repository import Repository
from maamulat.services.achievement_service import AchievementService
from maamulat.services.completion_service import CompletionService
from maamulat.services.history_service import HistoryService
from maamulat.services.rewards import format_hasanat, reward_for
from maamulat.services.rollover_service import DayRolloverService, RolloverResult
from maamulat.services.streak_service import COMPLETION_THRESHOLD, StreakService

logger = logging.getLogger(__name__)


class MaamulatApp:
    """Headless application object. One per process."""

    def __init__(
        self,
        repo: Repository,
        clock: Callable[[], datetime] = datetime.now,
        default_level: str = "beginner",
        user_name: str = "Your Name",
        database: Optional[Database] = None,
    ) -> None:
        self.repo = repo
        self.clock = clock
        self._db = database

        self.completion = CompletionService(repo, clock, default_level=default_level)
        self.streak = StreakService(repo, clock, default_name=user_name)
        self.achievements = AchievementService(repo, clock)
        self.history = HistoryService(self.completion, self.streak)
        self.rollover = DayRolloverService(
            self.completion, self.streak, on_rollover=self._on_rollover, clock=clock
        )
        self.last_rollover: Optional[RolloverResult] = None

    @classmethod
    def from_config(cls, config: dict) -> "MaamulatApp":
        db = Database(Path(config["db_path"]))
        conn = db.connect()
        return cls(
            Repository(conn),
            default_level=config.get("default_level", "beginner"),
            user_name=config.get("user_name", "Your Name"),
            database=db,
        )

    # ── Lifecycle ───────────────────────────────────────────────────────────

    def start(self) -> RolloverResult:
        """Launch / foreground: run the day checks and arm the midnight timer."""
        return self.rollover.handle_foreground()

    def shutdown(self) -> None:
        self.rollover.cancel()
        if self._db is not None:
            self._db.close()

    # ── Task actions ────────────────────────────────────────────────────────

    def toggle_item(self, category_id: str, item_id: str, in_congregation: bool = True) -> int:
        """Toggle a task. Returns the hasanat earned (0 when un-completing)."""
        # a tick after midnight belongs to the new day even if the timer is late
        self.rollover.ensure_day_rollover()
        item = self.completion.find_item(category_id, item_id)
        was_completed = item.completed if item else False

        new_state = self.completion.toggle_item(category_id, item_id)
        if new_state is None:
            return 0

        earned = 0
        if not was_completed and new_state:
            earned = reward_for(category_id, item_id, in_congregation)
            self.streak.add_hasanat(earned)

        self._close_day_if_complete()
        return earned

    def set_item_time(self, category_id: str, item_id: str, time_value: str) -> bool:
        self.rollover.ensure_day_rollover()
        if not self.completion.set_item_time(category_id, item_id, time_value):
            return False
        self._close_day_if_complete()
        return True

    def change_level(self, level: str) -> None:
        """Switch level. Destructive: the caller warns the user first."""
        self.completion.load_level_tasks(level)
        self.streak.set_level(self.completion.state.current_level)

    def check_achievements(self) -> List[Achievement]:
        ids = self.achievements.check_and_unlock(self.history.achievement_stats())
        return [a for a in self.achievements.achievements if a.id in ids]

    # ── Read model ──────────────────────────────────────────────────────────

    def status(self) -> dict:
        stats = self.completion.get_completion_stats()
        p = self.streak.progress
        return {
            "date": self.completion.state.current_date,
            "level": self.completion.state.current_level,
            "completed": stats.completed,
            "total": stats.total,
            "percent": stats.percent,
            "streak": p.current_streak,
            "longest_streak": p.longest_streak,
            "streak_broken": p.streak_broken,
            "chillah_day": p.chillah_day,
            "total_hasanat": format_hasanat(p.total_hasanat),
            "today_hasanat": p.today_hasanat,
        }

    # ── Internal ────────────────────────────────────────────────────────────

    def _close_day_if_complete(self) -> DayRecord:
        record = self.completion.record_day_end()
        if record.completion_percent >= COMPLETION_THRESHOLD:
            self.streak.record_day_completion(record.completion_percent)
        return record

    def _on_rollover(self, result: RolloverResult) -> None:
        self.last_rollover = result
        if result.streak_broken:
            logger.info("Streak alert raised for %s", result.date)


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   The caller the services are written for. The CLI and the seed script talk
#   only to MaamulatApp; it decides the order in which the stores are touched.
#
# Key pieces:
#   - toggle_item() / set_item_time() run the day-rollover check first, so an
#     action just after midnight never lands on the closing day.
#   - The reward is computed from the pre-toggle state and only when an item
#     goes from open to done.
#   - _close_day_if_complete() rewrites today's DayRecord after every action
#     and hands the day to the streak engine once it reaches 60%.
#
# Data flow:
#   toggle -> rollover check -> CompletionService -> reward_for()
#     -> StreakService.add_hasanat() -> record_day_end()
#     -> record_day_completion() (at 60% and above)
