"""Unit tests for relative time phrases."""

import pytest

from vcs_blame.utils.relative_time import DAY, HOUR, MINUTE, MONTH, WEEK, YEAR, format_relative_time

NOW = 1_700_000_000


@pytest.mark.parametrize(
    "elapsed,expected",
    [
        (0, "just now"),
        (59, "just now"),
        (MINUTE, "1 minute ago"),
        (5 * MINUTE + 30, "5 minutes ago"),
        (HOUR, "1 hour ago"),
        (23 * HOUR, "23 hours ago"),
        (DAY, "1 day ago"),
        (3 * DAY, "3 days ago"),
        (2 * WEEK, "2 weeks ago"),
        (MONTH, "1 month ago"),
        (11 * MONTH, "11 months ago"),
        (YEAR, "1 year ago"),
        (3 * YEAR + DAY, "3 years ago"),
    ],
)
def test_phrase_uses_largest_unit(elapsed, expected):
    assert format_relative_time(NOW - elapsed, now=NOW) == expected


def test_future_timestamp_is_just_now():
    assert format_relative_time(NOW + HOUR, now=NOW) == "just now"


def test_defaults_to_current_time():
    assert format_relative_time(0).endswith("years ago")
