"""
Completion Service — owns today's task tree.

Handles: toggling tasks, logging sleep/wake times, the new-day reset, the
rolling day-record history, and user edits to categories and items.
Rewards are NOT computed here; the caller asks the reward calculator.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Set

from maamulat.data import catalog
from maamulat.data.models import (
    WEEK_LENGTH, CategoryDefinition, CompletionStats, DayRecord, MaamulatState,
    TaskDefinition, WorkingCategory, WorkingItem,
)
from maamulat.data.repository import MAAMULAT_STORAGE, Repository
from maamulat.services.streak_service import COMPLETION_THRESHOLD
from maamulat.utils.dates import (
    parse_day_key, today_string, week_start_string,
)

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 30  # day records kept

PERFECT_DAY_KEY = "day:perfect"


def task_key(item_id: str) -> str:
    return f"task:{item_id}"


def category_key(category_id: str) -> str:
    return f"category:{category_id}"


def _round_half_up(value: float) -> int:
    return int(value + 0.5)


class CompletionService:
    """
    Manages the per-day completion state.

    The only steady state is "loaded for a level and a date". Every public
    mutation writes the full snapshot back through the repository.
    """

    def __init__(
        self,
        repo: Repository,
        clock: Callable[[], datetime] = datetime.now,
        default_level: str = catalog.DEFAULT_LEVEL,
    ) -> None:
        self.repo = repo
        self.clock = clock
        self.state = self._load(default_level)

    # ── Queries ─────────────────────────────────────────────────────────────

    @property
    def categories(self) -> List[WorkingCategory]:
        return self.state.categories

    def find_category(self, category_id: str) -> Optional[WorkingCategory]:
        for cat in self.state.categories:
            if cat.id == category_id:
                return cat
        return None

    def find_item(self, category_id: str, item_id: str) -> Optional[WorkingItem]:
        cat = self.find_category(category_id)
        return cat.find_item(item_id) if cat else None

    def get_completion_stats(self) -> CompletionStats:
        completed = 0
        total = 0
        for cat in self.state.categories:
            for item in cat.items:
                total += 1
                if item.completed:
                    completed += 1
        percent = _round_half_up(100 * completed / total) if total > 0 else 0
        return CompletionStats(completed=completed, total=total, percent=percent)

    def completed_tally_keys(self) -> Set[str]:
        """Tally keys earned by the tree as it stands right now."""
        keys: Set[str] = set()
        all_done = True
        any_items = False
        for cat in self.state.categories:
            for item in cat.items:
                any_items = True
                if item.completed:
                    keys.add(task_key(item.id))
                    keys.add(category_key(cat.id))
                else:
                    all_done = False
        if any_items and all_done:
            keys.add(PERFECT_DAY_KEY)
        return keys

    def task_day_count(self, key: str) -> int:
        """Closed days on which ``key`` was earned (today not included)."""
        return self.state.task_day_counts.get(key, 0)

    # ── Completion transitions ──────────────────────────────────────────────

    def toggle_item(self, category_id: str, item_id: str) -> Optional[bool]:
        """Flip a checkbox task. Returns the new state, or None if ignored."""
        item = self.find_item(category_id, item_id)
        if item is None:
            logger.debug("toggle_item: %s/%s not found", category_id, item_id)
            return None
        if item.is_time:
            logger.debug("toggle_item: %s/%s is a time field", category_id, item_id)
            return None
        item.completed = not item.completed
        self._persist()
        return item.completed

    def set_item_time(self, category_id: str, item_id: str, time_value: str) -> bool:
        """Record a time of day; always marks the item completed."""
        item = self.find_item(category_id, item_id)
        if item is None:
            logger.debug("set_item_time: %s/%s not found", category_id, item_id)
            return False
        item.time_value = time_value
        item.completed = True
        self._persist()
        return True

    def check_and_reset_day(self) -> bool:
        """Reset the tree if the stored date is not today. Idempotent per day."""
        now = self.clock()
        today = today_string(now)
        state = self.state
        if state.current_date == today:
            return False

        self._tally_closing_day()
        for cat in state.categories:
            for item in cat.items:
                item.reset()

        previous = state.current_date
        state.current_date = today
        week_start = week_start_string(now)
        if state.week_start != week_start:
            state.weekly_progress = [False] * WEEK_LENGTH
            state.week_start = week_start
        self._persist()
        logger.info("New day %s (was %s): tasks reset.", today, previous)
        return True

    def record_day_end(self) -> DayRecord:
        """Write (or overwrite) the day record for the store's current date."""
        stats = self.get_completion_stats()
        state = self.state
        record = DayRecord(
            date=state.current_date,
            completed_count=stats.completed,
            total_count=stats.total,
            completion_percent=stats.percent,
        )
        index = parse_day_key(state.current_date).weekday()
        state.weekly_progress[index] = stats.percent >= COMPLETION_THRESHOLD

        records = [r for r in state.day_records if r.date != record.date]
        records.append(record)
        state.day_records = records[-HISTORY_LIMIT:]
        self._persist()
        return record

    def load_level_tasks(self, level: str) -> None:
        """Replace the whole tree from the catalog. Discards customizations."""
        level = catalog.normalize_level(level)
        self.state.current_level = level
        self.state.categories = self._categories_for(level)
        self._persist()
        logger.info("Loaded %s tasks (%d categories).", level, len(self.state.categories))

    # ── Editing: items ──────────────────────────────────────────────────────

    def add_item(self, category_id: str, task: TaskDefinition) -> bool:
        cat = self.find_category(category_id)
        if cat is None or cat.find_item(task.id) is not None:
            logger.debug("add_item: ignored %s/%s", category_id, task.id)
            return False
        cat.items.append(WorkingItem.from_definition(task))
        self._persist()
        return True

    def remove_item(self, category_id: str, item_id: str) -> bool:
        cat = self.find_category(category_id)
        if cat is None:
            return False
        before = len(cat.items)
        cat.items = [i for i in cat.items if i.id != item_id]
        if len(cat.items) == before:
            return False
        self._persist()
        return True

    def update_item(
        self,
        category_id: str,
        item_id: str,
        *,
        name: Optional[str] = None,
        name_en: Optional[str] = None,
        hasanat: Optional[int] = None,
        is_time: Optional[bool] = None,
    ) -> bool:
        item = self.find_item(category_id, item_id)
        if item is None:
            return False
        if name is not None:
            item.name = name
        if name_en is not None:
            item.name_en = name_en
        if hasanat is not None:
            item.hasanat = max(int(hasanat), 0)
        if is_time is not None and is_time != item.is_time:
            item.is_time = is_time
            if is_time:
                item.completed = item.time_value is not None
            else:
                item.time_value = None
        self._persist()
        return True

    def reorder_items(self, category_id: str, from_index: int, to_index: int) -> bool:
        cat = self.find_category(category_id)
        if cat is None or not self._move(cat.items, from_index, to_index):
            return False
        self._persist()
        return True

    # ── Editing: categories ─────────────────────────────────────────────────

    def add_category(self, category: CategoryDefinition) -> bool:
        if self.find_category(category.id) is not None:
            logger.debug("add_category: %s already exists", category.id)
            return False
        self.state.categories.append(WorkingCategory.from_definition(category))
        self._persist()
        return True

    def remove_category(self, category_id: str) -> bool:
        before = len(self.state.categories)
        self.state.categories = [c for c in self.state.categories if c.id != category_id]
        if len(self.state.categories) == before:
            return False
        self._persist()
        return True

    def update_category(
        self,
        category_id: str,
        *,
        name: Optional[str] = None,
        name_en: Optional[str] = None,
        color: Optional[str] = None,
        emoji: Optional[str] = None,
        bullet_emoji: Optional[str] = None,
    ) -> bool:
        cat = self.find_category(category_id)
        if cat is None:
            return False
        if name is not None:
            cat.name = name
        if name_en is not None:
            cat.name_en = name_en
        if color is not None:
            cat.color = color
        if emoji is not None:
            cat.emoji = emoji
        if bullet_emoji is not None:
            cat.bullet_emoji = bullet_emoji
        self._persist()
        return True

    def reorder_categories(self, from_index: int, to_index: int) -> bool:
        if not self._move(self.state.categories, from_index, to_index):
            return False
        self._persist()
        return True

    # ── Helpers ─────────────────────────────────────────────────────────────

    @staticmethod
    def _move(seq: list, from_index: int, to_index: int) -> bool:
        """Move one element; everything else keeps its relative order."""
        n = len(seq)
        if not (0 <= from_index < n and 0 <= to_index < n):
            return False
        seq.insert(to_index, seq.pop(from_index))
        return True

    @staticmethod
    def _categories_for(level: str) -> List[WorkingCategory]:
        return [WorkingCategory.from_definition(c) for c in catalog.all_categories(level)]

    def _tally_closing_day(self) -> None:
        counts = self.state.task_day_counts
        for key in self.completed_tally_keys():
            counts[key] = counts.get(key, 0) + 1

    def _load(self, default_level: str) -> MaamulatState:
        data = self.repo.load_document(MAAMULAT_STORAGE)
        if data is not None:
            try:
                return MaamulatState.from_dict(data)
            except (KeyError, TypeError, ValueError):
                logger.warning("Bad %s document, starting fresh.", MAAMULAT_STORAGE)

        now = self.clock()
        level = catalog.normalize_level(default_level)
        state = MaamulatState(
            current_date=today_string(now),
            current_level=level,
            categories=self._categories_for(level),
            week_start=week_start_string(now),
        )
        self.repo.save_document(MAAMULAT_STORAGE, state.to_dict())
        logger.info("Initialized %s with %s tasks.", MAAMULAT_STORAGE, level)
        return state

    def _persist(self) -> None:
        self.repo.save_document(MAAMULAT_STORAGE, self.state.to_dict())


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Owns today's checklist. The UI toggles items here; the day-rollover
#   service calls check_and_reset_day() at midnight and on foreground.
#
# Key pieces:
#   - toggle_item() ignores time fields; set_item_time() is their only path
#     to "completed".
#   - check_and_reset_day() first tallies the closing day into
#     task_day_counts (feeds tahajjud/quran/perfect-day achievements), then
#     clears completion but keeps every user edit.
#   - record_day_end() keeps at most one DayRecord per date and only the
#     latest HISTORY_LIMIT of them.
#
# Data flow:
#   toggle -> WorkingItem.completed flips -> _persist() -> Repository
#   midnight -> check_and_reset_day() -> tally + reset -> _persist()
