"""
Level catalog — the static task definitions for each difficulty level.

Levels are JSON files under ``levels/`` shipped with the package. They are
parsed once and cached; nothing mutates them at runtime. The daily
completion store copies them into its own working tree.
"""

from __future__ import annotations

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Tuple

from .models import CategoryDefinition, Section

logger = logging.getLogger(__name__)

LEVELS_DIR = Path(__file__).resolve().parent / "levels"

BEGINNER = "beginner"
INTERMEDIATE = "intermediate"
ADVANCED = "advanced"
LEVELS: Tuple[str, ...] = (BEGINNER, INTERMEDIATE, ADVANCED)
DEFAULT_LEVEL = BEGINNER

LEVEL_SUMMARIES: Dict[str, dict] = {
    BEGINNER: {
        "title": "Beginner",
        "title_ur": "مبتدی",
        "description": "Focus on Faraiz & basic Sunnah",
        "color": "#27AE60",
        "est_time": "15-20 min/day",
    },
    INTERMEDIATE: {
        "title": "Intermediate",
        "title_ur": "درمیانہ",
        "description": "Added Azkar & Nafl prayers",
        "color": "#D68910",
        "est_time": "30-40 min/day",
    },
    ADVANCED: {
        "title": "Advanced",
        "title_ur": "اعلیٰ",
        "description": "Complete spiritual routine",
        "color": "#E74C3C",
        "est_time": "60+ min/day",
    },
}


def normalize_level(level: str) -> str:
    """Map unknown level ids to the least demanding level."""
    if level in LEVELS:
        return level
    logger.warning("Unknown level %r, falling back to %s.", level, DEFAULT_LEVEL)
    return DEFAULT_LEVEL


@lru_cache(maxsize=None)
def _load_file(level: str) -> Tuple[int, Tuple[Section, ...]]:
    path = LEVELS_DIR / f"{level}.json"
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    sections = tuple(Section.from_dict(s) for s in raw.get("sections", []))
    logger.debug("Loaded level %s v%s (%d sections)", level,
                 raw.get("version"), len(sections))
    return int(raw.get("version", 1)), sections


def load_level(level: str) -> Tuple[Section, ...]:
    """Ordered sections for a level."""
    return _load_file(normalize_level(level))[1]


def level_version(level: str) -> int:
    return _load_file(normalize_level(level))[0]


def all_categories(level: str) -> List[CategoryDefinition]:
    """All categories of a level, sections concatenated in order."""
    return [cat for section in load_level(level) for cat in section.categories]


def total_tasks(level: str) -> int:
    return sum(len(cat.items) for cat in all_categories(level))


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Reads the shipped level files (beginner / intermediate / advanced) into
#   frozen Section / CategoryDefinition / TaskDefinition objects.
#
# Key pieces:
#   - _load_file() is cached; the definitions are immutable so sharing them
#     is safe.
#   - normalize_level() is the single place unknown level ids are handled.
#   - LEVEL_SUMMARIES backs the level descriptions in the CLI.
#
# Data flow:
#   levels/<level>.json -> Section tuple -> all_categories()
#     -> CompletionService.load_level_tasks()
