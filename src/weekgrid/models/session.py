"""Session event model (one logged workout occurrence)."""

from dataclasses import dataclass, field
from datetime import datetime

from ..utils.calendar import date_from_timestamp, parse_iso_date, to_iso_date

# Timestamp fields seen in stored events, in order of preference
TIMESTAMP_FIELDS = ("completedAt", "ts", "createdAt", "timestamp")


def unique_names(items) -> list[str]:
    """Trim names and drop blanks and repeats, keeping first-seen order."""
    seen: list[str] = []
    for item in items or []:
        name = str(item).strip()
        if name and name not in seen:
            seen.append(name)
    return seen


@dataclass
class SessionEvent:
    """A completed workout session from the session log.

    Events are never edited after they are written; they are only deleted
    during cleanup.
    """

    session_types: list[str]
    date_iso: str | None = None
    completed_at: int | None = None  # epoch milliseconds
    manual: bool = False
    exercise_count: int | None = None
    session_name: str = ""
    duration_sec: int | None = None
    id: str | None = None

    def __post_init__(self):
        self.session_types = unique_names(self.session_types)

    @property
    def signature(self) -> frozenset[str]:
        """The set of types performed, ignoring order."""
        return frozenset(self.session_types)

    @property
    def placement_date(self) -> str | None:
        """The calendar day this session belongs to, if it can be derived.

        An unparseable ``date_iso`` falls back to the completion time. A
        timestamp outside the platform's date range gives no date.
        """
        if self.date_iso:
            try:
                return to_iso_date(parse_iso_date(self.date_iso))
            except ValueError:
                pass
        if self.completed_at is not None:
            try:
                return to_iso_date(date_from_timestamp(self.completed_at))
            except (ValueError, OverflowError, OSError):
                return None
        return None

    @property
    def completed_datetime(self) -> datetime | None:
        """Local completion time."""
        if self.completed_at is None:
            return None
        try:
            return datetime.fromtimestamp(self.completed_at / 1000)
        except (ValueError, OverflowError, OSError):
            return None

    def get_types_display(self) -> str:
        """Get a human-readable list of types."""
        return " + ".join(self.session_types) if self.session_types else "(none)"

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        data = {
            "sessionTypes": list(self.session_types),
            "dateISO": self.date_iso,
            "completedAt": self.completed_at,
            "manual": self.manual,
            "sessionName": self.session_name,
        }
        if self.exercise_count is not None:
            data["exerciseCount"] = self.exercise_count
        if self.duration_sec is not None:
            data["durationSec"] = self.duration_sec
        return data

    @classmethod
    def from_dict(cls, data: dict, id: str | None = None) -> "SessionEvent":
        """Create from a stored document.

        Accepts the looser shapes older clients wrote: ``date`` instead of
        ``dateISO`` and any of several timestamp field names.
        """
        completed_at = None
        for key in TIMESTAMP_FIELDS:
            value = data.get(key)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                completed_at = int(value)
                break

        exercise_count = data.get("exerciseCount")
        if exercise_count is None and isinstance(data.get("exercises"), list) and data["exercises"]:
            exercise_count = len(data["exercises"])

        session_name = data.get("sessionName") or ""
        return cls(
            id=id if id is not None else data.get("id"),
            session_types=data.get("sessionTypes") or [],
            date_iso=data.get("dateISO") or data.get("date") or None,
            completed_at=completed_at,
            manual=bool(data.get("manual", session_name == "Manual")),
            exercise_count=exercise_count,
            session_name=session_name,
            duration_sec=data.get("durationSec"),
        )


@dataclass
class SessionSummary:
    """Per-session entry inside a day record."""

    session_types: list[str] = field(default_factory=list)
    id: str | None = None

    @property
    def dedupe_key(self) -> str:
        """Identity used to drop repeated entries within a day."""
        if self.id:
            return f"id:{self.id}"
        return "types:" + "|".join(self.session_types)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data: dict = {"sessionTypes": list(self.session_types)}
        if self.id:
            data["id"] = self.id
        return data

    @classmethod
    def from_dict(cls, data: dict | list) -> "SessionSummary":
        """Create from dictionary (a bare list of types is also accepted)."""
        if isinstance(data, list):
            return cls(session_types=unique_names(data))
        return cls(
            session_types=unique_names(data.get("sessionTypes") or []),
            id=str(data["id"]) if data.get("id") else None,
        )

    @classmethod
    def from_event(cls, event: SessionEvent) -> "SessionSummary":
        """Project a session event to its summary."""
        return cls(session_types=list(event.session_types), id=event.id)
