"""Human-readable countdowns between two instants.

Short form: ``1y, 2mo, 5d``. Long form: ``1 year, 2 months, 5 days``.
"""

import calendar
from datetime import datetime, timedelta, timezone

# (short label, singular, plural)
_UNITS = (
    ("y", " year", " years"),
    ("mo", " month", " months"),
    ("d", " day", " days"),
    ("h", " hour", " hours"),
    ("m", " minute", " minutes"),
)


def _local(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone().replace(tzinfo=None)


def _add_months(ts: datetime, months: int) -> datetime:
    total = ts.month - 1 + months
    year, month = ts.year + total // 12, total % 12 + 1
    day = min(ts.day, calendar.monthrange(year, month)[1])
    return ts.replace(year=year, month=month, day=day)


def _period(start: datetime, end: datetime) -> tuple[int, int, int, int, int]:
    """Calendar-aware (years, months, days, hours, minutes) from start to end."""
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if _add_months(start, months) > end:
        months -= 1
    rest = end - _add_months(start, months)
    return (
        months // 12,
        months % 12,
        rest.days,
        rest.seconds // 3600,
        rest.seconds % 3600 // 60,
    )


def format_period(start: datetime | None, end: datetime | None, long_format: bool = False) -> str | None:
    """Format the time between start and end in the local time zone.

    Returns None if either instant is None or end is before start. Zero units
    are dropped; minutes are shown when nothing else is.
    """
    if start is None or end is None or end < start:
        return None

    parts = []
    quantities = _period(_local(start), _local(end))
    for (short, singular, plural), qty in zip(_UNITS, quantities):
        if qty > 0 or (short == "m" and not parts):
            label = (singular if qty == 1 else plural) if long_format else short
            parts.append(f"{qty}{label}")
    return ", ".join(parts)


def format_duration(duration: timedelta | None, long_format: bool = False) -> str | None:
    """Format a duration as the period from now to now + duration."""
    if duration is None:
        return None
    now = datetime.now(timezone.utc)
    return format_period(now, now + duration, long_format)
