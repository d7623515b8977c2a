"""Workday calendar helpers for the expected-hours baseline."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo

from workforce_engine.calculators.types import LeaveSpan, PeriodWindow

WEEKDAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")
DEFAULT_WORKWEEK = "mon,tue,wed,thu,fri"


def parse_workweek(value: str) -> frozenset[int]:
    """Parse ``"mon,tue,..."`` into a set of ``date.weekday()`` numbers."""
    days: set[int] = set()
    for token in value.split(","):
        name = token.strip().lower()[:3]
        if not name:
            continue
        if name not in WEEKDAY_NAMES:
            raise ValueError(f"Unknown weekday: {token.strip()!r}")
        days.add(WEEKDAY_NAMES.index(name))
    return frozenset(days)


def format_workweek(days: Iterable[int]) -> str:
    """Inverse of :func:`parse_workweek`."""
    return ",".join(WEEKDAY_NAMES[d] for d in sorted(set(days)))


def resolve_timezone(name: str) -> tzinfo:
    """Resolve an IANA zone name; ``UTC`` needs no tz database."""
    if name.upper() in ("UTC", "Z", "ETC/UTC"):
        return timezone.utc
    return ZoneInfo(name)


def as_utc(value: datetime) -> datetime:
    """Normalize a stored timestamp to an aware UTC datetime.

    Some backends (SQLite) hand back naive values; those were written as UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_midnight(day: date, tz: tzinfo) -> datetime:
    """Start of ``day`` in ``tz`` expressed in UTC."""
    return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)


def period_window(start_date: date, end_date: date, tz: tzinfo) -> PeriodWindow:
    """Instants bounding an inclusive local date range: [start 00:00, end+1 00:00)."""
    return PeriodWindow(
        start_date=start_date,
        end_date=end_date,
        starts_at=local_midnight(start_date, tz),
        ends_at=local_midnight(end_date + timedelta(days=1), tz),
    )


def iter_days(start_date: date, end_date: date) -> Iterator[date]:
    day = start_date
    while day <= end_date:
        yield day
        day += timedelta(days=1)


def workdays_between(start_date: date, end_date: date, workdays: frozenset[int]) -> list[date]:
    """Workdays in the inclusive range, in calendar order."""
    return [d for d in iter_days(start_date, end_date) if d.weekday() in workdays]


def leave_workdays(
    window: PeriodWindow, leave: Iterable[LeaveSpan], workdays: frozenset[int]
) -> set[date]:
    """Workdays inside the window covered by at least one leave span.

    Overlapping spans count each day once; weekends inside a span are ignored.
    """
    covered: set[date] = set()
    for span in leave:
        start = max(span.start_date, window.start_date)
        end = min(span.end_date, window.end_date)
        if start > end:
            continue
        covered.update(workdays_between(start, end, workdays))
    return covered


def dates_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Inclusive overlap test for two date ranges."""
    return a_start <= b_end and b_start <= a_end
