"""
Calendar-day helpers.

Every "day" in Maamulat is a local calendar date rendered as a ``YYYY-MM-DD``
key. These helpers are pure: they take an optional reference instant and
default to the current local time.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

DAY_KEY_FORMAT = "%Y-%m-%d"
_DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

Reference = Union[date, datetime, None]


def _as_date(reference: Reference = None) -> date:
    if reference is None:
        return datetime.now().date()
    # datetime is a subclass of date, check it first
    if isinstance(reference, datetime):
        return reference.date()
    return reference


def day_key(reference: Reference = None) -> str:
    """Render a date as a ``YYYY-MM-DD`` key."""
    d = _as_date(reference)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_day_key(key: str) -> date:
    """Parse a ``YYYY-MM-DD`` key. Raises ValueError on anything else."""
    if not isinstance(key, str) or not _DAY_KEY_RE.match(key):
        raise ValueError(f"Malformed day key: {key!r}")
    return datetime.strptime(key, DAY_KEY_FORMAT).date()


def today_string(now: Reference = None) -> str:
    return day_key(now)


def yesterday_string(now: Reference = None) -> str:
    return day_key(_as_date(now) - timedelta(days=1))


def is_today(key: Optional[str], now: Reference = None) -> bool:
    return key == today_string(now)


def is_yesterday(key: Optional[str], now: Reference = None) -> bool:
    return key == yesterday_string(now)


def week_start_string(now: Reference = None) -> str:
    """Monday of the current week as a day key."""
    d = _as_date(now)
    return day_key(d - timedelta(days=d.weekday()))


def weekday_index(reference: Reference = None) -> int:
    """0 = Monday ... 6 = Sunday."""
    return _as_date(reference).weekday()


def days_between(first: str, second: str) -> int:
    """Absolute number of whole days between two day keys."""
    return abs((parse_day_key(second) - parse_day_key(first)).days)


def ms_until_midnight(now: Optional[datetime] = None) -> int:
    """Milliseconds from ``now`` until the next local midnight."""
    current = now or datetime.now()
    midnight = datetime.combine(current.date() + timedelta(days=1), time.min)
    if current.tzinfo is not None:
        midnight = midnight.replace(tzinfo=current.tzinfo)
    return int((midnight - current).total_seconds() * 1000)


# ---------------------------------------------------------------------------
# Explanation
# ---------------------------------------------------------------------------
# What this file does:
#   Calendar helpers shared by every store. A "day key" is the local
#   YYYY-MM-DD date; nothing here uses UTC.
#
# Key pieces:
#   - Every helper takes an optional reference time so services can pass
#     their injected clock.
#   - week_start_string() anchors weeks on Monday.
#   - ms_until_midnight() feeds the rollover timer.
