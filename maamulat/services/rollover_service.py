"""
Day Rollover Service — runs the new-day checks at midnight and on foreground.

Both triggers funnel into ensure_day_rollover(), which processes each
calendar day once: the completion store resets first, then the streak
engine looks for a missed day.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from PySide6.QtCore import QTimer

from maamulat.services.completion_service import CompletionService
from maamulat.services.streak_service import StreakService
from maamulat.utils.dates import ms_until_midnight, today_string

logger = logging.getLogger(__name__)

# fire slightly after midnight so the clock is safely on the new day
MIDNIGHT_GRACE_MS = 1000


@dataclass(frozen=True)
class RolloverResult:
    date: str
    processed: bool
    tasks_reset: bool = False
    streak_broken: bool = False


class DayRolloverService:
    """
    Owns the midnight QTimer.

    Uses a single-shot QTimer so the callback runs on the Qt event loop and
    is re-armed for the following midnight every time it fires.
    """

    def __init__(
        self,
        completion: CompletionService,
        streak: StreakService,
        on_rollover: Optional[Callable[[RolloverResult], None]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.completion = completion
        self.streak = streak
        self.on_rollover = on_rollover
        self.clock = clock
        self._last_processed: Optional[str] = None

        self._timer = QTimer()
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._on_midnight)

    # ── Public API ──────────────────────────────────────────────────────────

    def ensure_day_rollover(self) -> RolloverResult:
        """Run the day checks once per calendar day."""
        today = today_string(self.clock())
        if self._last_processed == today:
            return RolloverResult(date=today, processed=False)
        self._last_processed = today

        tasks_reset = self.completion.check_and_reset_day()
        streak_broken = self.streak.check_new_day()
        result = RolloverResult(date=today, processed=True,
                                tasks_reset=tasks_reset, streak_broken=streak_broken)
        logger.info("Rollover for %s: reset=%s broken=%s", today, tasks_reset, streak_broken)

        if self.on_rollover:
            self.on_rollover(result)
        return result

    def handle_foreground(self) -> RolloverResult:
        """App came to the foreground: check the day and re-arm the timer."""
        result = self.ensure_day_rollover()
        self.arm()
        return result

    def arm(self) -> int:
        """(Re)schedule the midnight callback. Returns the delay in ms."""
        delay = ms_until_midnight(self.clock()) + MIDNIGHT_GRACE_MS
        self._timer.start(delay)
        logger.debug("Midnight timer armed: %d ms", delay)
        return delay

    def cancel(self) -> None:
        self._timer.stop()

    def is_armed(self) -> bool:
        return self._timer.isActive()

    # ── Timer callback ──────────────────────────────────────────────────────

    def _on_midnight(self) -> None:
        self.ensure_day_rollover()
        self.arm()


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Makes sure "a new day started" is handled exactly once, whichever
#   trigger notices it first: the midnight QTimer or the app returning to
#   the foreground.
#
# Key pieces:
#   - ensure_day_rollover(): the single guarded routine. The date check and
#     both store transitions run in one synchronous call.
#   - arm()/cancel(): the timer is single-shot; every firing re-arms it, and
#     handle_foreground() re-arms it too so a stale timer left over from a
#     suspended process is replaced.
#
# Data flow:
#   QTimer timeout -> _on_midnight() -> ensure_day_rollover()
#     -> CompletionService.check_and_reset_day()
#     -> StreakService.check_new_day()
#     -> on_rollover(result) -> arm()
