"""Rule-based translation of opening-hours text into meal-time categories."""

from __future__ import annotations

import re

from stall_sync.models.enums import TimeCategory

_OPEN_RE = re.compile(r"(\d{1,2})(?:\.(\d{2}))?\s*(am|pm)")
_ANY_TIME_RE = re.compile(r"(\d{1,2})(?:\.(\d{2}))?\s*(am|pm|mn)")


def _to_24h(hour: int, period: str) -> int:
    if period == "pm" and hour != 12:
        return hour + 12
    if period == "am" and hour == 12:
        return 0
    return hour


def parse_time_categories(opening_times: str) -> list[TimeCategory]:
    """Derive time categories from free-text opening hours.

    The first am/pm time is the opening hour and the last time mentioned is
    the closing hour. A close earlier than the open means the span crosses
    midnight. Text with no recognisable time falls back to "all-day" when
    it says "daily", otherwise to "lunch".

    Examples:
        "7am - 2pm" -> [early-morning, lunch]
        "6pm - 2am" -> [dinner, late-night, all-day]
    """
    text = opening_times.lower()
    all_times = _ANY_TIME_RE.findall(text)
    if not all_times:
        return [TimeCategory.ALL_DAY] if "daily" in text else [TimeCategory.LUNCH]

    open_hour = 0
    open_match = _OPEN_RE.search(text)
    if open_match:
        open_hour = _to_24h(int(open_match.group(1)), open_match.group(3))

    close_hour = open_hour
    if len(all_times) >= 2:
        last_hour, _, last_period = all_times[-1]
        close_hour = _to_24h(int(last_hour), last_period)
        if last_period == "mn" or "12mn" in text or "midnight" in text:
            close_hour = 24
        elif close_hour < open_hour:
            close_hour += 24

    categories: list[TimeCategory] = []
    if open_hour < 9:
        categories.append(TimeCategory.EARLY_MORNING)
    if (open_hour <= 11 and close_hour >= 14) or (open_hour <= 12 and close_hour >= 13):
        categories.append(TimeCategory.LUNCH)
    if (open_hour <= 17 and close_hour >= 20) or (open_hour >= 16 and close_hour >= 20):
        categories.append(TimeCategory.DINNER)
    if close_hour >= 22 or "12mn" in text or "midnight" in text:
        categories.append(TimeCategory.LATE_NIGHT)
    if close_hour - open_hour >= 8:
        categories.append(TimeCategory.ALL_DAY)

    return categories or [TimeCategory.LUNCH]
