"""Data problems reported by normalization and reconciliation.

These are returned as values inside result objects rather than raised, so the
caller can decide whether to rebuild, prompt the user, or carry on with a
partial result.
"""

from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    """How serious a reported issue is."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class OutOfRangeDate:
    """A day falls outside the 7-day span its week implies."""

    week_key: str | None
    date_iso: str | None
    reason: str

    severity = Severity.ERROR

    @property
    def message(self) -> str:
        where = f"week {self.week_key}" if self.week_key else "unknown week"
        if self.date_iso:
            return f"{self.date_iso} does not belong to {where}: {self.reason}"
        return f"Cannot order days of {where}: {self.reason}"


@dataclass(frozen=True)
class UnplaceableSession:
    """A session event with no date and no timestamp to derive one from."""

    session_id: str | None
    reason: str = "no dateISO and no completion timestamp"

    severity = Severity.ERROR

    @property
    def message(self) -> str:
        return f"Session {self.session_id or '<no id>'} cannot be placed: {self.reason}"


@dataclass(frozen=True)
class IncompleteTypeMetadata:
    """A custom workout type has no category assigned."""

    type_name: str

    severity = Severity.WARNING

    @property
    def message(self) -> str:
        return f"Workout type '{self.type_name}' has no category"


Issue = OutOfRangeDate | UnplaceableSession | IncompleteTypeMetadata
