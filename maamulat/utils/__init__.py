from .dates import (
    day_key,
    days_between,
    is_today,
    is_yesterday,
    ms_until_midnight,
    parse_day_key,
    today_string,
    week_start_string,
    weekday_index,
    yesterday_string,
)

__all__ = [
    "day_key", "days_between", "is_today", "is_yesterday", "ms_until_midnight",
    "parse_day_key", "today_string", "week_start_string", "weekday_index",
    "yesterday_string",
]
