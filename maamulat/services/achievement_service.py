"""
Achievement Service — badges unlocked by crossing numeric targets.

Each achievement id is resolved once to an UnlockRule saying which counter it
compares against. Evaluation only ever flips locked badges to unlocked.
"""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from maamulat.data.models import Achievement, AchievementStats
from maamulat.data.repository import ACHIEVEMENT_STORAGE, Repository
from maamulat.utils.dates import today_string

logger = logging.getLogger(__name__)


class UnlockRule(Enum):
    STREAK = "streak"
    TOTAL_HASANAT = "total_hasanat"
    TAHAJJUD_COUNT = "tahajjud_count"
    QURAN_DAYS = "quran_days"
    PERFECT_DAYS = "perfect_days"
    MANUAL = "manual"  # never unlocks automatically


_PREFIX_RULES = {
    "streak-": UnlockRule.STREAK,
    "hasanat-": UnlockRule.TOTAL_HASANAT,
}
_ID_RULES = {
    "tahajjud-7": UnlockRule.TAHAJJUD_COUNT,
    "quran-30": UnlockRule.QURAN_DAYS,
    "perfect-1": UnlockRule.PERFECT_DAYS,
}


def resolve_rule(achievement_id: str) -> UnlockRule:
    if achievement_id in _ID_RULES:
        return _ID_RULES[achievement_id]
    for prefix, rule in _PREFIX_RULES.items():
        if achievement_id.startswith(prefix):
            return rule
    return UnlockRule.MANUAL


def stat_for(rule: UnlockRule, stats: AchievementStats) -> Optional[int]:
    if rule is UnlockRule.MANUAL:
        return None
    return getattr(stats, rule.value)


DEFAULT_ACHIEVEMENTS: List[Achievement] = [
    Achievement(
        id="streak-7", name="7 Day Streak", name_ur="سات دن مسلسل",
        description="Complete maamulat for 7 consecutive days",
        icon="flame", icon_color="#FF6B35", target=7,
    ),
    Achievement(
        id="streak-40", name="Chillah Complete", name_ur="چلہ مکمل",
        description="Complete a 40-day spiritual journey",
        icon="moon", icon_color="#9B59B6", target=40,
    ),
    Achievement(
        id="streak-100", name="Century", name_ur="سو دن",
        description="Maintain streak for 100 days",
        icon="ribbon", icon_color="#D4AF37", target=100,
    ),
    Achievement(
        id="hasanat-1000", name="Hasanat Hunter", name_ur="حسنات ہنٹر",
        description="Earn 1,000 total hasanat",
        icon="star", icon_color="#D4AF37", target=1000,
    ),
    Achievement(
        id="hasanat-10000", name="Hasanat Master", name_ur="حسنات ماسٹر",
        description="Earn 10,000 total hasanat",
        icon="star", icon_color="#D4AF37", target=10000,
    ),
    Achievement(
        id="tahajjud-7", name="Night Warrior", name_ur="رات کا سپاہی",
        description="Pray Tahajjud for 7 days",
        icon="cloudy-night", icon_color="#1A1A2E", target=7,
    ),
    Achievement(
        id="quran-30", name="Quran Journey", name_ur="قرآن سفر",
        description="Read Quran surahs daily for 30 days",
        icon="book", icon_color="#3498DB", target=30,
    ),
    Achievement(
        id="perfect-1", name="Perfect Day", name_ur="کامل دن",
        description="Complete all maamulat in a single day",
        icon="sparkles", icon_color="#D4AF37", target=1,
    ),
]


def check_and_unlock(
    achievements: List[Achievement],
    stats: AchievementStats,
    today: str,
    rules: Optional[Dict[str, UnlockRule]] = None,
) -> List[str]:
    """
    Unlock every locked achievement whose target is now met.

    Mutates the matching entries and returns their ids in catalog order.
    """
    newly_unlocked: List[str] = []
    for achievement in achievements:
        if achievement.unlocked:
            continue
        rule = (rules or {}).get(achievement.id) or resolve_rule(achievement.id)
        value = stat_for(rule, stats)
        if value is not None and value >= achievement.target:
            achievement.unlocked = True
            achievement.unlocked_date = today
            newly_unlocked.append(achievement.id)
    return newly_unlocked


def _copy(achievement: Achievement) -> Achievement:
    return Achievement.from_dict(achievement.to_dict())


class AchievementService:
    """Holds the persisted achievement list and evaluates it on demand."""

    def __init__(self, repo: Repository, clock: Callable[[], datetime] = datetime.now) -> None:
        self.repo = repo
        self.clock = clock
        self.achievements = self._load()
        self._rules = {a.id: resolve_rule(a.id) for a in self.achievements}

    def check_and_unlock(self, stats: AchievementStats) -> List[str]:
        unlocked = check_and_unlock(
            self.achievements, stats, today_string(self.clock()), self._rules
        )
        if unlocked:
            logger.info("Achievements unlocked: %s", ", ".join(unlocked))
            self._persist()
        return unlocked

    def get(self, achievement_id: str) -> Optional[Achievement]:
        for a in self.achievements:
            if a.id == achievement_id:
                return a
        return None

    def get_progress(self, achievement_id: str, current_value: int) -> float:
        """Percent (0-100) of the way to the target."""
        achievement = self.get(achievement_id)
        if achievement is None or achievement.target <= 0:
            return 0.0
        return min(max(current_value, 0) / achievement.target * 100, 100.0)

    def unlocked(self) -> List[Achievement]:
        return [a for a in self.achievements if a.unlocked]

    # ── Internal ────────────────────────────────────────────────────────────

    def _load(self) -> List[Achievement]:
        catalog = [_copy(a) for a in DEFAULT_ACHIEVEMENTS]
        data = self.repo.load_document(ACHIEVEMENT_STORAGE)
        if data is None:
            return catalog

        stored: Dict[str, Achievement] = {}
        for raw in data.get("achievements", []):
            try:
                a = Achievement.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping bad achievement entry: %r", raw)
                continue
            stored[a.id] = a

        # catalog text and targets win; unlock state comes from storage
        for a in catalog:
            saved = stored.pop(a.id, None)
            if saved is not None and saved.unlocked:
                a.unlocked = True
                a.unlocked_date = saved.unlocked_date
        # keep user entries the catalog no longer ships
        catalog.extend(stored.values())
        return catalog

    def _persist(self) -> None:
        self.repo.save_document(
            ACHIEVEMENT_STORAGE,
            {"achievements": [a.to_dict() for a in self.achievements]},
        )


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Keeps the badge list and flips badges to unlocked when their counter
#   reaches the target. Unlocks are permanent.
#
# Key pieces:
#   - resolve_rule(): achievement id -> UnlockRule, done once per id.
#   - check_and_unlock(): module-level and pure apart from mutating the list
#     it is given; the service wraps it with persistence.
#   - _load(): catalog text and targets always come from DEFAULT_ACHIEVEMENTS;
#     only unlock state is read back from storage.
#
# Data flow:
#   HistoryService.achievement_stats() -> check_and_unlock() -> save
