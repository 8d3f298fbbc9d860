"""Longest daily streak over verified runs."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, timezone

_EPOCH = date(1970, 1, 1)


def to_day_number(dt: datetime) -> int:
    """Days since the Unix epoch of the UTC calendar date of ``dt``.

    Naive datetimes are taken to be UTC.
    """
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return (dt.date() - _EPOCH).days


def longest_consecutive(day_numbers: Iterable[int]) -> int:
    """Length of the longest run of consecutive integers in ``day_numbers``."""
    days = sorted(set(day_numbers))
    if not days:
        return 0

    longest = 1
    current = 1
    for prev, day in zip(days, days[1:]):
        current = current + 1 if day == prev + 1 else 1
        longest = max(longest, current)
    return longest


def longest_streak_days(end_times: Iterable[datetime]) -> int:
    """Longest streak of consecutive UTC days with at least one verified run.

    Recomputed from the full history, so the result does not depend on the
    order runs were submitted or verified in.
    """
    return longest_consecutive(to_day_number(dt) for dt in end_times)
