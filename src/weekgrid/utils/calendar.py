"""Calendar helpers for week keys and ISO dates."""

from datetime import date, datetime, timedelta

WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def parse_iso_date(value: str) -> date:
    """Parse a ``YYYY-MM-DD`` string, ignoring any trailing time part."""
    try:
        return date.fromisoformat(value.strip()[:10])
    except (AttributeError, ValueError) as e:
        raise ValueError(f"Not an ISO date: {value!r}") from e


def _as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_iso_date(value)


def monday_of(value: date | datetime | str) -> date:
    """Get the Monday starting the week that contains ``value``.

    Sunday belongs to the week that started six days earlier. Datetimes are
    truncated to their calendar date (midnight).
    """
    d = _as_date(value)
    day_of_week = d.isoweekday()  # 1 Mon .. 7 Sun
    if day_of_week == 7:
        return d - timedelta(days=6)
    return d - timedelta(days=day_of_week - 1)


def to_iso_date(value: date | datetime) -> str:
    """Format as zero-padded ``YYYY-MM-DD``."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def add_days(value: date | datetime | str, n: int) -> date:
    """Add ``n`` calendar days (negative to go back)."""
    return _as_date(value) + timedelta(days=n)


def week_key(value: date | datetime | str) -> str:
    """Get the week key (ISO date of the Monday) for any date."""
    return to_iso_date(monday_of(value))


def week_dates(monday: date | str) -> list[date]:
    """Get the seven dates of the week starting at ``monday``."""
    start = _as_date(monday)
    return [start + timedelta(days=i) for i in range(7)]


def week_offset(key: str, weeks: int) -> str:
    """Get the week key ``weeks`` weeks after (or before) ``key``."""
    return to_iso_date(add_days(monday_of(key), 7 * weeks))


def is_monday(value: date | str) -> bool:
    """Check whether a date falls on a Monday."""
    return _as_date(value).isoweekday() == 1


def date_from_timestamp(ms: int | float) -> date:
    """Get the local calendar date of an epoch-millisecond timestamp."""
    return datetime.fromtimestamp(ms / 1000).date()


def weekday_label(value: date | str) -> str:
    """Get a short weekday label ("Mon" .. "Sun")."""
    return WEEKDAY_LABELS[_as_date(value).weekday()]
