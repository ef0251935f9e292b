"""Relative time phrases ("3 days ago") for the %r date-format escape."""

import time
from typing import Optional

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY
MONTH = 30 * DAY
YEAR = 365 * DAY

_UNITS = (
    (YEAR, "year"),
    (MONTH, "month"),
    (WEEK, "week"),
    (DAY, "day"),
    (HOUR, "hour"),
    (MINUTE, "minute"),
)


def format_relative_time(timestamp: int, now: Optional[float] = None) -> str:
    """Describe how long ago ``timestamp`` was.

    Args:
        timestamp: Unix timestamp of the event
        now: Current unix time (defaults to time.time())

    Returns:
        "just now" for less than a minute (or a future timestamp), otherwise
        "<n> <unit>(s) ago" using the largest unit that fits.
    """
    if now is None:
        now = time.time()

    elapsed = int(now - timestamp)
    if elapsed < MINUTE:
        return "just now"

    for seconds, unit in _UNITS:
        if elapsed >= seconds:
            count = elapsed // seconds
            suffix = "" if count == 1 else "s"
            return f"{count} {unit}{suffix} ago"

    return "just now"
