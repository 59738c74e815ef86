from .database import Database
from .models import (
    Achievement, AchievementStats, CategoryDefinition, CompletionStats,
    DayRecord, MaamulatState, Section, TaskDefinition, UserProgress,
    WorkingCategory, WorkingItem,
)
from .repository import Repository

__all__ = [
    "Database", "Repository", "Achievement", "AchievementStats",
    "CategoryDefinition", "CompletionStats", "DayRecord", "MaamulatState",
    "Section", "TaskDefinition", "UserProgress", "WorkingCategory", "WorkingItem",
]
