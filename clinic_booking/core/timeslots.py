"""Calendar-day and wall-clock time helpers.

Times of day travel as zero-padded ``HH:MM`` strings at the edges (API, JSON
columns) and as :class:`datetime.time` everywhere comparisons happen.
"""

import re
from datetime import date, datetime, time

_TIME_OF_DAY = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def parse_time_of_day(value: str | time) -> time:
    """
    Parse a zero-padded ``HH:MM`` string.

    Args:
        value: String such as ``"09:30"`` or an existing time value

    Returns:
        Time of day with minute precision

    Raises:
        ValueError: If the value is not a zero-padded 24h ``HH:MM`` string
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)

    match = _TIME_OF_DAY.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Time must be zero-padded HH:MM, got {value!r}")

    return time(int(match.group(1)), int(match.group(2)))


def format_time_of_day(value: time) -> str:
    """Render a time of day as ``HH:MM``."""
    return value.strftime("%H:%M")


def parse_calendar_date(value: str | date | datetime) -> date:
    """
    Reduce a date-ish value to a calendar day.

    ISO timestamps are accepted and truncated to their date part, so
    ``"2024-06-01T00:00:00Z"`` and ``"2024-06-01"`` name the same day.

    Raises:
        ValueError: If the value cannot be read as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Not a date: {value!r}")

    text = value.strip()
    try:
        return date.fromisoformat(text)
    except ValueError:
        return datetime.fromisoformat(text).date()
