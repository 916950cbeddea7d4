"""Weekly document model.

A weekly document holds one week of the workout grid: seven day records in
Monday-first order plus the week's benchmark and type configuration. The
Monday-first order is the one invariant everything downstream relies on, so
documents read from storage are checked with ``is_canonical_order`` and
repaired with ``normalize_order`` before use.
"""

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum

from ..utils.calendar import (
    is_monday,
    parse_iso_date,
    to_iso_date,
    week_dates,
)
from .issues import IncompleteTypeMetadata, OutOfRangeDate
from .session import SessionSummary, unique_names


class BenchmarkStatus(str, Enum):
    """How a type's weekly count compares with its benchmark."""

    MET = "met"
    CLOSE = "close"  # one day short
    BEHIND = "behind"


@dataclass
class DayRecord:
    """One calendar day of the weekly grid."""

    date_iso: str
    types: dict[str, bool] = field(default_factory=dict)
    session_count: int = 0
    sessions_list: list[SessionSummary] = field(default_factory=list)
    comments: dict[str, str] = field(default_factory=dict)

    @property
    def performed(self) -> list[str]:
        """Types marked as done, in insertion order."""
        return [t for t, done in self.types.items() if done]

    @property
    def is_empty(self) -> bool:
        return not self.performed and self.session_count == 0

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "dateISO": self.date_iso,
            "types": dict(self.types),
            "sessions": self.session_count,
            "sessionsList": [s.to_dict() for s in self.sessions_list],
            "comments": dict(self.comments),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DayRecord":
        """Create from dictionary."""
        sessions_list = [
            SessionSummary.from_dict(s) for s in data.get("sessionsList") or []
        ]
        count = data.get("sessions", data.get("sessionCount"))
        return cls(
            date_iso=data["dateISO"],
            types=dict(data.get("types") or {}),
            session_count=count if isinstance(count, int) else len(sessions_list),
            sessions_list=sessions_list,
            comments=dict(data.get("comments") or {}),
        )


@dataclass
class WeeklyDocument:
    """State of one week, keyed by the ISO date of its Monday."""

    week_of_iso: str
    days: list[DayRecord]
    week_number: int = 1
    benchmarks: dict[str, int] = field(default_factory=dict)
    custom_types: list[str] = field(default_factory=list)
    type_categories: dict[str, str] = field(default_factory=dict)

    def day_for(self, date_iso: str) -> DayRecord | None:
        """Get the day record for a date, if it is in this week."""
        for day in self.days:
            if day.date_iso == date_iso:
                return day
        return None

    def type_counts(self) -> dict[str, int]:
        """Count the days each type was marked done.

        Every custom type is present, with zero when never marked.
        """
        counts = {t: 0 for t in self.custom_types}
        for day in self.days:
            for t in day.performed:
                counts[t] = counts.get(t, 0) + 1
        return counts

    def benchmark_status(self, type_name: str) -> BenchmarkStatus:
        """Compare a type's weekly count with its benchmark."""
        target = self.benchmarks.get(type_name, 0)
        count = self.type_counts().get(type_name, 0)
        if target > 0 and count >= target:
            return BenchmarkStatus.MET
        if target > 0 and count == target - 1:
            return BenchmarkStatus.CLOSE
        return BenchmarkStatus.BEHIND

    def category_counts(self) -> dict[str, int]:
        """Sum marks per category. Uncategorized types are skipped."""
        counts: dict[str, int] = {}
        for type_name, count in self.type_counts().items():
            category = self.type_categories.get(type_name)
            if not category or category == "None":
                continue
            counts[category] = counts.get(category, 0) + count
        return counts

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "weekOfISO": self.week_of_iso,
            "weekNumber": self.week_number,
            "days": [d.to_dict() for d in self.days],
            "benchmarks": dict(self.benchmarks),
            "customTypes": list(self.custom_types),
            "typeCategories": dict(self.type_categories),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WeeklyDocument":
        """Create from dictionary.

        Accepts the document either bare or wrapped as ``{"weekly": {...}}``.

        Raises:
            ValueError: If the document is missing required fields or has
                the wrong shape
        """
        try:
            if "weekly" in data and isinstance(data["weekly"], dict):
                data = data["weekly"]
            return cls(
                week_of_iso=data["weekOfISO"],
                week_number=data.get("weekNumber", 1),
                days=[DayRecord.from_dict(d) for d in data.get("days") or []],
                benchmarks=dict(data.get("benchmarks") or {}),
                custom_types=list(data.get("customTypes") or []),
                type_categories=dict(data.get("typeCategories") or {}),
            )
        except (KeyError, TypeError, AttributeError) as e:
            raise ValueError(f"Malformed weekly document: missing or invalid {e}") from e


@dataclass
class NormalizeResult:
    """Outcome of ``normalize_order``.

    On failure ``weekly`` is the untouched input and ``error`` says why.
    """

    weekly: WeeklyDocument
    changed: bool = False
    error: OutOfRangeDate | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def default_weekly(
    week_key: str,
    *,
    week_number: int = 1,
    benchmarks: dict[str, int] | None = None,
    custom_types: list[str] | None = None,
    type_categories: dict[str, str] | None = None,
) -> WeeklyDocument:
    """Build an empty week starting at ``week_key``.

    Args:
        week_key: ISO date of the week's Monday
        week_number: User-facing week number
        benchmarks: Target count per type (copied)
        custom_types: Display order of user types (copied)
        type_categories: Category per type (copied)

    Returns:
        A canonical document with seven empty days
    """
    if not is_monday(week_key):
        raise ValueError(f"Week key must be a Monday: {week_key}")

    days = [DayRecord(date_iso=to_iso_date(d)) for d in week_dates(week_key)]
    return WeeklyDocument(
        week_of_iso=to_iso_date(parse_iso_date(week_key)),
        week_number=week_number,
        days=days,
        benchmarks=dict(benchmarks or {}),
        custom_types=list(custom_types or []),
        type_categories=dict(type_categories or {}),
    )


def _day_dates(weekly: WeeklyDocument) -> list[date] | None:
    try:
        return [parse_iso_date(d.date_iso) for d in weekly.days]
    except ValueError:
        return None


def is_canonical_order(weekly: WeeklyDocument) -> bool:
    """Check that the days run Monday to Sunday with no gaps."""
    dates = _day_dates(weekly)
    if dates is None or len(dates) != 7:
        return False
    if dates[0].isoweekday() != 1:
        return False
    if to_iso_date(dates[0]) != weekly.week_of_iso:
        return False
    return dates == week_dates(dates[0])


def normalize_order(weekly: WeeklyDocument) -> NormalizeResult:
    """Rotate a week's days so Monday comes first.

    Only a rotation of the right seven days is repaired. A document holding
    dates from another week, a missing Monday or repeated days is reported
    as ``OutOfRangeDate`` and left as it is; the caller should rebuild it
    from the session log instead.
    """
    if is_canonical_order(weekly):
        return NormalizeResult(weekly=weekly)

    key = weekly.week_of_iso
    if len(weekly.days) != 7:
        return NormalizeResult(
            weekly=weekly,
            error=OutOfRangeDate(key, None, f"expected 7 days, found {len(weekly.days)}"),
        )

    dates = _day_dates(weekly)
    if dates is None:
        return NormalizeResult(
            weekly=weekly, error=OutOfRangeDate(key, None, "unparseable day date")
        )

    mondays = [i for i, d in enumerate(dates) if d.isoweekday() == 1]
    if len(mondays) != 1:
        return NormalizeResult(
            weekly=weekly,
            error=OutOfRangeDate(key, None, f"expected one Monday, found {len(mondays)}"),
        )

    m = mondays[0]
    monday = to_iso_date(dates[m])
    if monday != key:
        return NormalizeResult(
            weekly=weekly,
            error=OutOfRangeDate(key, monday, "days belong to another week"),
        )

    span = set(week_dates(dates[m]))
    for d in dates:
        if d not in span:
            return NormalizeResult(
                weekly=weekly,
                error=OutOfRangeDate(key, to_iso_date(d), "outside the 7-day span"),
            )
    if len(set(dates)) != 7:
        return NormalizeResult(weekly=weekly, error=OutOfRangeDate(key, None, "repeated day"))

    rotated = weekly.days[m:] + weekly.days[:m]
    # shuffled (not rotated) days still fail here
    if [parse_iso_date(d.date_iso) for d in rotated] != week_dates(dates[m]):
        return NormalizeResult(
            weekly=weekly, error=OutOfRangeDate(key, None, "days are not a rotation")
        )

    return NormalizeResult(weekly=replace(weekly, days=rotated), changed=True)


def clean_weekly(weekly: WeeklyDocument) -> WeeklyDocument:
    """Tidy type names, flags and per-day session lists.

    Custom types are trimmed and de-duplicated, each gets a benchmark entry,
    day type flags become booleans, repeated session entries are dropped and
    session counts follow the cleaned lists. Day order is not touched.
    """
    custom_types = unique_names(weekly.custom_types)
    benchmarks = dict(weekly.benchmarks)
    for t in custom_types:
        benchmarks.setdefault(t, 0)

    days = []
    for day in weekly.days:
        types = {}
        for name, done in day.types.items():
            name = str(name).strip()
            if name:
                types[name] = bool(done)

        seen = set()
        sessions_list = []
        for summary in day.sessions_list:
            if summary.dedupe_key in seen:
                continue
            seen.add(summary.dedupe_key)
            sessions_list.append(summary)

        days.append(
            replace(
                day,
                types=types,
                sessions_list=sessions_list,
                session_count=len(sessions_list),
            )
        )

    return replace(weekly, custom_types=custom_types, benchmarks=benchmarks, days=days)


def check_type_metadata(weekly: WeeklyDocument) -> list[IncompleteTypeMetadata]:
    """Report custom types that have no category."""
    return [
        IncompleteTypeMetadata(t)
        for t in weekly.custom_types
        if not weekly.type_categories.get(t)
    ]


def next_weekly(previous: WeeklyDocument | None, week_key: str, **defaults) -> WeeklyDocument:
    """Create the document for a new week.

    Benchmarks, custom types and categories carry over from ``previous`` and
    the week number advances by one. Without a previous week, ``defaults``
    are passed to ``default_weekly``.
    """
    if previous is None:
        return default_weekly(week_key, **defaults)
    return default_weekly(
        week_key,
        week_number=previous.week_number + 1,
        benchmarks=previous.benchmarks,
        custom_types=unique_names(previous.custom_types),
        type_categories=previous.type_categories,
    )
