"""
Data models for Maamulat.

Plain dataclasses for the catalog definitions and the three persisted stores.
Each mutable model converts to and from the camelCase JSON layout that the
storage documents use, so the rest of the app never handles raw dicts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

WEEK_LENGTH = 7


# ── Catalog definitions (immutable) ─────────────────────────────────────────

@dataclass(frozen=True)
class TaskDefinition:
    """A single task as shipped in a level file."""
    id: str
    name: str
    name_en: str = ""
    hasanat: int = 0
    is_time: bool = False  # records a time of day instead of a checkbox

    @classmethod
    def from_dict(cls, data: dict) -> "TaskDefinition":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            name_en=data.get("nameEn", ""),
            hasanat=int(data.get("hasanat", 0)),
            is_time=bool(data.get("isTime", False)),
        )


@dataclass(frozen=True)
class CategoryDefinition:
    """An ordered group of tasks (e.g. 'Faraiz')."""
    id: str
    name: str
    name_en: str = ""
    color: str = ""
    emoji: Optional[str] = None
    bullet_emoji: Optional[str] = None
    items: Tuple[TaskDefinition, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "CategoryDefinition":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            name_en=data.get("nameEn", ""),
            color=data.get("color", ""),
            emoji=data.get("emoji"),
            bullet_emoji=data.get("bulletEmoji"),
            items=tuple(TaskDefinition.from_dict(i) for i in data.get("items", [])),
        )


@dataclass(frozen=True)
class Section:
    """A titled block of categories within a level."""
    id: str
    title: str
    title_ur: str = ""
    categories: Tuple[CategoryDefinition, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "Section":
        return cls(
            id=data["id"],
            title=data.get("title", data["id"]),
            title_ur=data.get("titleUr", ""),
            categories=tuple(
                CategoryDefinition.from_dict(c) for c in data.get("categories", [])
            ),
        )


# ── Working tree (mutable, per day) ─────────────────────────────────────────

@dataclass
class WorkingItem:
    """A task in today's tree with its completion state."""
    id: str
    name: str
    name_en: str = ""
    hasanat: int = 0
    is_time: bool = False
    completed: bool = False
    time_value: Optional[str] = None  # "HH:MM", only for time fields

    @classmethod
    def from_definition(cls, task: TaskDefinition) -> "WorkingItem":
        return cls(id=task.id, name=task.name, name_en=task.name_en,
                   hasanat=task.hasanat, is_time=task.is_time)

    def reset(self) -> None:
        self.completed = False
        self.time_value = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "nameEn": self.name_en,
            "hasanat": self.hasanat,
            "isTime": self.is_time,
            "completed": self.completed,
        }
        if self.time_value is not None:
            data["timeValue"] = self.time_value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "WorkingItem":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            name_en=data.get("nameEn", ""),
            hasanat=int(data.get("hasanat", 0)),
            is_time=bool(data.get("isTime", False)),
            completed=bool(data.get("completed", False)),
            time_value=data.get("timeValue"),
        )


@dataclass
class WorkingCategory:
    """A category in today's tree. Its shape survives day resets."""
    id: str
    name: str
    name_en: str = ""
    color: str = ""
    emoji: Optional[str] = None
    bullet_emoji: Optional[str] = None
    items: List[WorkingItem] = field(default_factory=list)

    @classmethod
    def from_definition(cls, category: CategoryDefinition) -> "WorkingCategory":
        return cls(
            id=category.id, name=category.name, name_en=category.name_en,
            color=category.color, emoji=category.emoji,
            bullet_emoji=category.bullet_emoji,
            items=[WorkingItem.from_definition(t) for t in category.items],
        )

    def find_item(self, item_id: str) -> Optional[WorkingItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "nameEn": self.name_en,
            "color": self.color,
            "emoji": self.emoji,
            "bulletEmoji": self.bullet_emoji,
            "items": [i.to_dict() for i in self.items],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WorkingCategory":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            name_en=data.get("nameEn", ""),
            color=data.get("color", ""),
            emoji=data.get("emoji"),
            bullet_emoji=data.get("bulletEmoji"),
            items=[WorkingItem.from_dict(i) for i in data.get("items", [])],
        )


# ── History ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class DayRecord:
    """Completion summary for one calendar day."""
    date: str
    completed_count: int
    total_count: int
    completion_percent: int

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "completedCount": self.completed_count,
            "totalCount": self.total_count,
            "completionPercent": self.completion_percent,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DayRecord":
        return cls(
            date=data["date"],
            completed_count=int(data.get("completedCount", 0)),
            total_count=int(data.get("totalCount", 0)),
            completion_percent=int(data.get("completionPercent", 0)),
        )


@dataclass(frozen=True)
class CompletionStats:
    completed: int
    total: int
    percent: int


# ── Persisted stores ────────────────────────────────────────────────────────

@dataclass
class MaamulatState:
    """Snapshot behind the ``maamulat-storage`` document."""
    current_date: str
    current_level: str
    categories: List[WorkingCategory] = field(default_factory=list)
    week_start: str = ""
    weekly_progress: List[bool] = field(default_factory=lambda: [False] * WEEK_LENGTH)
    day_records: List[DayRecord] = field(default_factory=list)
    # closed-day tallies: "task:<id>", "category:<id>", "day:perfect"
    task_day_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "currentDate": self.current_date,
            "currentLevel": self.current_level,
            "categories": [c.to_dict() for c in self.categories],
            "weekStart": self.week_start,
            "weeklyProgress": list(self.weekly_progress),
            "dayRecords": [r.to_dict() for r in self.day_records],
            "taskDayCounts": dict(self.task_day_counts),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "MaamulatState":
        weekly = [bool(v) for v in data.get("weeklyProgress", [])][:WEEK_LENGTH]
        weekly += [False] * (WEEK_LENGTH - len(weekly))
        return cls(
            current_date=data["currentDate"],
            current_level=data.get("currentLevel", "beginner"),
            categories=[WorkingCategory.from_dict(c) for c in data.get("categories", [])],
            week_start=data.get("weekStart", ""),
            weekly_progress=weekly,
            day_records=[DayRecord.from_dict(r) for r in data.get("dayRecords", [])],
            task_day_counts={k: int(v) for k, v in data.get("taskDayCounts", {}).items()},
        )


@dataclass
class UserProgress:
    """Snapshot behind the ``user-storage`` document."""
    name: str = "Your Name"
    level: str = "beginner"
    join_date: str = ""
    current_streak: int = 0
    longest_streak: int = 0
    last_completed_date: Optional[str] = None
    streak_broken: bool = False  # UI alert flag
    total_hasanat: int = 0
    today_hasanat: int = 0
    chillah_day: int = 1
    chillah_start_date: Optional[str] = None
    last_day_check: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "level": self.level,
            "joinDate": self.join_date,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "lastCompletedDate": self.last_completed_date,
            "streakBroken": self.streak_broken,
            "totalHasanat": self.total_hasanat,
            "todayHasanat": self.today_hasanat,
            "chillahDay": self.chillah_day,
            "chillahStartDate": self.chillah_start_date,
            "lastDayCheck": self.last_day_check,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserProgress":
        return cls(
            name=data.get("name", "Your Name"),
            level=data.get("level", "beginner"),
            join_date=data.get("joinDate", ""),
            current_streak=int(data.get("currentStreak", 0)),
            longest_streak=int(data.get("longestStreak", 0)),
            last_completed_date=data.get("lastCompletedDate"),
            streak_broken=bool(data.get("streakBroken", False)),
            total_hasanat=int(data.get("totalHasanat", 0)),
            today_hasanat=int(data.get("todayHasanat", 0)),
            chillah_day=int(data.get("chillahDay", 1)),
            chillah_start_date=data.get("chillahStartDate"),
            last_day_check=data.get("lastDayCheck"),
        )


@dataclass
class Achievement:
    """A badge with a numeric unlock target."""
    id: str
    name: str
    name_ur: str = ""
    description: str = ""
    icon: str = ""
    icon_color: str = ""
    target: int = 1
    unlocked: bool = False
    unlocked_date: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "nameUr": self.name_ur,
            "description": self.description,
            "icon": self.icon,
            "iconColor": self.icon_color,
            "target": self.target,
            "unlocked": self.unlocked,
            "unlockedDate": self.unlocked_date,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Achievement":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            name_ur=data.get("nameUr", ""),
            description=data.get("description", ""),
            icon=data.get("icon", ""),
            icon_color=data.get("iconColor", ""),
            target=int(data.get("target", 1)),
            unlocked=bool(data.get("unlocked", False)),
            unlocked_date=data.get("unlockedDate"),
        )


@dataclass(frozen=True)
class AchievementStats:
    """Counters the achievement rules compare against."""
    streak: int = 0
    total_hasanat: int = 0
    tahajjud_count: int = 0
    quran_days: int = 0
    perfect_days: int = 0


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Defines the shape of every object in the system. Catalog types are
#   frozen (they come from the level files and never change); the working
#   tree and the three store snapshots are mutable and know how to turn
#   themselves into the JSON documents the repository writes.
#
# Key classes:
#   - TaskDefinition / CategoryDefinition / Section: catalog seed data.
#   - WorkingItem / WorkingCategory: today's tree. Only completed and
#     time_value are per-day; everything else is user-editable structure.
#   - DayRecord: one row of the rolling 30-day history.
#   - MaamulatState / UserProgress / Achievement: the persisted stores.
#
# Data flow:
#   Level JSON -> *Definition -> Working* (at level load) -> MaamulatState
#   -> to_dict() -> Repository.save_document("maamulat-storage", ...)
