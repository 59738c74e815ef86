"""
Streak Service — reconciles progress across calendar days.

Owns the user's running streak, the 40-day chillah counter and the hasanat
totals. Decides at each day boundary whether the streak continues, restarts
or breaks.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from maamulat.data.models import UserProgress
from maamulat.data.repository import USER_STORAGE, Repository
from maamulat.utils.dates import is_yesterday, today_string

logger = logging.getLogger(__name__)

COMPLETION_THRESHOLD = 60  # percent of tasks needed for a day to count
CHILLAH_LENGTH = 40


class StreakService:
    """
    Manages streak and chillah transitions.

    Both day-boundary entry points are idempotent per calendar day:
        record_day_completion() is guarded by last_completed_date,
        check_new_day() by last_day_check.
    """

    def __init__(
        self,
        repo: Repository,
        clock: Callable[[], datetime] = datetime.now,
        default_name: str = "Your Name",
    ) -> None:
        self.repo = repo
        self.clock = clock
        self.progress = self._load(default_name)

    # ── Profile ─────────────────────────────────────────────────────────────

    def set_name(self, name: str) -> None:
        self.progress.name = name
        self._persist()

    def set_level(self, level: str) -> None:
        self.progress.level = level
        self._persist()

    # ── Hasanat ─────────────────────────────────────────────────────────────

    def add_hasanat(self, amount: int) -> None:
        if amount < 0:
            logger.warning("Ignoring negative hasanat amount %d", amount)
            return
        self.progress.total_hasanat += amount
        self.progress.today_hasanat += amount
        self._persist()

    # ── Day boundary ────────────────────────────────────────────────────────

    def record_day_completion(self, completion_percent: int) -> bool:
        """Close today for streak purposes. Returns False if already recorded."""
        now = self.clock()
        today = today_string(now)
        p = self.progress

        if p.last_completed_date == today:
            logger.debug("Day %s already recorded.", today)
            return False

        if completion_percent >= COMPLETION_THRESHOLD:
            is_consecutive = (
                p.last_completed_date is not None
                and is_yesterday(p.last_completed_date, now)
            )
            new_streak = p.current_streak + 1 if is_consecutive else 1
            p.chillah_day = min(p.chillah_day + 1, CHILLAH_LENGTH) if is_consecutive else 1
            if not is_consecutive:
                p.chillah_start_date = today
            p.current_streak = new_streak
            p.longest_streak = max(p.longest_streak, new_streak)
            p.last_completed_date = today
            logger.info("Day %s complete (%d%%): streak %d, chillah day %d.",
                        today, completion_percent, new_streak, p.chillah_day)
        else:
            broke = p.current_streak > 0
            p.current_streak = 0
            p.chillah_day = 1
            p.chillah_start_date = None
            p.last_completed_date = today
            if broke:
                # only dismiss_streak_alert() lowers the flag
                p.streak_broken = True
                logger.info("Streak broken on %s (%d%%).", today, completion_percent)

        self._persist()
        return True

    def check_new_day(self) -> bool:
        """
        Detect a missed day. Returns True when the streak was broken.

        Runs at most once per calendar day; later calls the same day are no-ops.
        """
        now = self.clock()
        today = today_string(now)
        p = self.progress

        if p.last_day_check == today:
            return False
        p.last_day_check = today

        last = p.last_completed_date
        if (
            last is not None
            and last != today
            and not is_yesterday(last, now)
            and p.current_streak > 0
        ):
            logger.info("Missed day detected (last completed %s): streak %d lost.",
                        last, p.current_streak)
            p.streak_broken = True
            p.current_streak = 0
            p.chillah_day = 1
            p.today_hasanat = 0
            self._persist()
            return True

        if last != today:
            p.today_hasanat = 0
        self._persist()
        return False

    # ── UI acknowledgements ─────────────────────────────────────────────────

    def dismiss_streak_alert(self) -> None:
        self.progress.streak_broken = False
        self._persist()

    def reset_chillah(self) -> None:
        """Start the 40-day counter over from today."""
        self.progress.chillah_day = 1
        self.progress.chillah_start_date = today_string(self.clock())
        self._persist()
        logger.info("Chillah reset.")

    # ── Internal ────────────────────────────────────────────────────────────

    def _load(self, default_name: str) -> UserProgress:
        data = self.repo.load_document(USER_STORAGE)
        if data is not None:
            try:
                return UserProgress.from_dict(data)
            except (TypeError, ValueError):
                logger.warning("Bad %s document, starting fresh.", USER_STORAGE)
        progress = UserProgress(name=default_name, join_date=today_string(self.clock()))
        self.repo.save_document(USER_STORAGE, progress.to_dict())
        return progress

    def _persist(self) -> None:
        self.repo.save_document(USER_STORAGE, self.progress.to_dict())


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   The streak state machine. A day counts when at least 60% of tasks are
#   done. Consecutive counted days grow the streak and the chillah counter
#   (capped at 40); a recorded day under 60% or a whole missed day resets
#   both.
#
# Key pieces:
#   - record_day_completion(): the explicit daily close.
#   - check_new_day(): the passive missed-day detector, run on foreground
#     and at midnight. Guarded by last_day_check so today's hasanat is only
#     zeroed once per day.
#   - longest_streak only ever moves up; total_hasanat only ever grows.
#
# Data flow:
#   toggle reaches 60% -> record_day_completion() -> UserProgress -> save
#   midnight timer -> check_new_day() -> maybe streak_broken -> save
