"""Calendar-date primitives shared by the cycle engine.

All engine dates are ``datetime.date`` values.  Strings are accepted at the
edges in ``YYYY-MM-DD`` form; parse failures raise ``ValueError`` and are
never masked.
"""

from __future__ import annotations

import math
from datetime import date, timedelta

ISO_FORMAT = "%Y-%m-%d"


def parse_date(value: date | str) -> date:
    """Coerce a ``date`` or ``YYYY-MM-DD`` string to a ``date``.

    Raises:
        ValueError: If ``value`` is a string that is not an ISO calendar date.
    """
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def format_date(value: date) -> str:
    return value.strftime(ISO_FORMAT)


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative if ``end`` is earlier)."""
    return (end - start).days


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with .5 going up, independent of the builtin's banker's rounding.

    ``round(28.5)`` is 28 in Python; cycle arithmetic needs 29 so that adding a
    whole day to any estimate always moves the rounded result by one day.
    """
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_days(value: float) -> int:
    """Round a fractional day count to a whole number of days (half up)."""
    return int(round_half_up(value))
