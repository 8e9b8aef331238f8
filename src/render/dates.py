"""Date formatting with moment.js-style tokens.

Obsidian (and its daily-notes setting) describes formats like
``YYYY-MM-DD`` or ``dddd, MMMM Do YYYY``; this module renders a
``date`` under such a format. Text in square brackets is literal.
"""

from __future__ import annotations

import calendar
import re
from datetime import date

_TOKEN_RE = re.compile(
    r"\[[^\]]*\]|YYYY|YY|MMMM|MMM|MM|M|Do|DDDD|DDD|DD|D|dddd|ddd|dd|d|ww|w|Q"
)


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def _render_token(token: str, value: date) -> str:
    if token.startswith("["):
        return token[1:-1]
    day_of_year = value.timetuple().tm_yday
    week = value.isocalendar()[1]
    # moment: 0 = Sunday; Python: 0 = Monday
    weekday = (value.weekday() + 1) % 7
    return {
        "YYYY": f"{value.year:04d}",
        "YY": f"{value.year % 100:02d}",
        "MMMM": calendar.month_name[value.month],
        "MMM": calendar.month_abbr[value.month],
        "MM": f"{value.month:02d}",
        "M": str(value.month),
        "Do": _ordinal(value.day),
        "DDDD": f"{day_of_year:03d}",
        "DDD": str(day_of_year),
        "DD": f"{value.day:02d}",
        "D": str(value.day),
        "dddd": calendar.day_name[value.weekday()],
        "ddd": calendar.day_abbr[value.weekday()],
        "dd": calendar.day_abbr[value.weekday()][:2],
        "d": str(weekday),
        "ww": f"{week:02d}",
        "w": str(week),
        "Q": str((value.month - 1) // 3 + 1),
    }[token]


def format_date(value: date, fmt: str) -> str:
    """Format ``value`` under a moment-style format string.

    An empty format yields the ISO representation (``2024-01-05``).
    """
    if not fmt:
        return value.isoformat()
    return _TOKEN_RE.sub(lambda m: _render_token(m.group(0), value), fmt)
