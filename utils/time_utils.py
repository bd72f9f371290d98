"""Time helpers.

Keep all timestamps consistent and timezone-aware.
Python 3.13 deprecates naive UTC helpers like datetime.utcnow(); use this module instead.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import settings


def utcnow() -> datetime:
    """Return the current time as a timezone-aware datetime in UTC (+00:00)."""

    return datetime.now(timezone.utc)


def utcnow_sa_default() -> datetime:
    """SQLAlchemy-friendly default callable for UTC timestamps."""

    return utcnow()


def epoch_date() -> date:
    """The fallback date used for posts whose date cannot be built (1900-01-01)."""

    return date(settings.EPOCH_YEAR, settings.EPOCH_MONTH, settings.EPOCH_DAY)


def assemble_date(
    year: int | None, month: int | None, day: int | None
) -> date:
    """Combine separate day/month/year parts into a `datetime.date`.

    Each missing part falls back to its epoch component (year 1900, month 1,
    day 1). A combination that is not a real calendar date (e.g. 2023-02-30)
    falls back to the whole epoch date.
    """

    y = settings.EPOCH_YEAR if year is None else year
    m = settings.EPOCH_MONTH if month is None else month
    d = settings.EPOCH_DAY if day is None else day
    try:
        return date(y, m, d)
    except (TypeError, ValueError, OverflowError):
        return epoch_date()
