"""Data models for weekgrid."""

from .issues import IncompleteTypeMetadata, OutOfRangeDate, UnplaceableSession
from .session import SessionEvent, SessionSummary
from .weekly import (
    BenchmarkStatus,
    DayRecord,
    NormalizeResult,
    WeeklyDocument,
    default_weekly,
    is_canonical_order,
    normalize_order,
)

__all__ = [
    "BenchmarkStatus",
    "DayRecord",
    "default_weekly",
    "IncompleteTypeMetadata",
    "is_canonical_order",
    "normalize_order",
    "NormalizeResult",
    "OutOfRangeDate",
    "SessionEvent",
    "SessionSummary",
    "UnplaceableSession",
    "WeeklyDocument",
]
