"""
Reward calculator — hasanat earned for completing a task.

The values follow commonly cited teachings on the reward for each act of
worship. Rules are declared once as a table of tagged entries and indexed at
import time, so a lookup is a dict hit plus a short substring scan.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

# Reward values for different actions
HASANAT_VALUES: Dict[str, Dict[str, int]] = {
    "fardh": {
        "alone": 1,
        "congregation": 27,
        "takbeer_oola": 50,  # bonus for the first takbeer
    },
    "nawafil": {
        "tahajjud": 100,
        "ishraq": 50,
        "chasht": 50,
        "awabeen": 50,
    },
    "quran": {
        "per_ayah": 10,
        "yaseen": 100,
        "waqiah": 100,
        "mulk": 100,
        "tilawat": 50,
    },
    "adhkar": {
        "tasbih": 1,       # per count
        "istighfar": 10,   # per 100
        "durood": 10,      # per 100
        "kalima": 10,      # per 100
    },
}

DEFAULT_REWARD = 10


class RuleKind(Enum):
    EXACT = "exact"                # fixed value for a category/task pair
    CONGREGATION = "congregation"  # value depends on the congregation flag
    CONTAINS = "contains"          # task id contains a known substring


@dataclass(frozen=True)
class RewardRule:
    kind: RuleKind
    categories: Tuple[str, ...]
    match: Tuple[str, ...]
    value: int
    alone_value: int = 0


FARDH_PRAYERS = ("fajr", "zuhr", "asr", "maghrib", "isha")
AZKAR_CATEGORIES = ("azkar-morning", "azkar-evening")

REWARD_RULES: List[RewardRule] = [
    RewardRule(RuleKind.CONGREGATION, ("faraiz",), FARDH_PRAYERS,
               HASANAT_VALUES["fardh"]["congregation"],
               alone_value=HASANAT_VALUES["fardh"]["alone"]),
    RewardRule(RuleKind.EXACT, ("faraiz",), ("takbeer",),
               HASANAT_VALUES["fardh"]["takbeer_oola"]),
    *[
        RewardRule(RuleKind.EXACT, ("quran",), (surah,), HASANAT_VALUES["quran"][surah])
        for surah in ("yaseen", "waqiah", "mulk", "tilawat")
    ],
    # first match wins for ids containing more than one keyword
    *[
        RewardRule(RuleKind.CONTAINS, AZKAR_CATEGORIES, (word,), HASANAT_VALUES["adhkar"][word])
        for word in ("istighfar", "durood", "kalima")
    ],
    *[
        RewardRule(RuleKind.EXACT, ("nawafil",), (prayer,), HASANAT_VALUES["nawafil"][prayer])
        for prayer in ("tahajjud", "ishraq", "chasht", "awabeen")
    ],
]


def _build_index(
    rules: List[RewardRule],
) -> Tuple[Dict[Tuple[str, str], RewardRule], Dict[str, List[RewardRule]]]:
    exact: Dict[Tuple[str, str], RewardRule] = {}
    contains: Dict[str, List[RewardRule]] = {}
    for rule in rules:
        for category in rule.categories:
            if rule.kind is RuleKind.CONTAINS:
                contains.setdefault(category, []).append(rule)
            else:
                for task in rule.match:
                    exact.setdefault((category, task), rule)
    return exact, contains


_EXACT_INDEX, _CONTAINS_INDEX = _build_index(REWARD_RULES)


def reward_for(category_id: str, task_id: str, in_congregation: bool = True) -> int:
    """Hasanat for completing ``task_id`` in ``category_id``. Never negative."""
    task_id = task_id or ""
    rule = _EXACT_INDEX.get((category_id, task_id))
    if rule is not None:
        if rule.kind is RuleKind.CONGREGATION and not in_congregation:
            return rule.alone_value
        return rule.value

    for rule in _CONTAINS_INDEX.get(category_id, ()):
        if any(word in task_id for word in rule.match):
            return rule.value

    return DEFAULT_REWARD


def tasbih_reward(count: int) -> int:
    """Hasanat for a tasbih counter session."""
    return max(count, 0) * HASANAT_VALUES["adhkar"]["tasbih"]


def format_hasanat(value: int) -> str:
    """Compact display: 999 -> '999', 1500 -> '1.5k', 2500000 -> '2.5M'."""
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1000:
        text = f"{value / 1000:.1f}"
        if float(text) >= 1000:
            # 999,960 would otherwise print as 1000.0k
            return f"{value / 1_000_000:.1f}M"
        return f"{text}k"
    return str(value)


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Answers "how many hasanat is this tick worth?" and formats totals for
#   display. Pure functions, no state.
#
# Key pieces:
#   - REWARD_RULES: one row per rule, tagged EXACT / CONGREGATION / CONTAINS.
#   - _build_index(): exact rules keyed by (category, task); substring rules
#     grouped by category and scanned in declaration order.
#   - format_hasanat(): "1.5k", "2.5M"; never prints "1000.0k".
#
# Data flow:
#   MaamulatApp.toggle_item() -> reward_for() -> StreakService.add_hasanat()
