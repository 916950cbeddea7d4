"""Builders shared by the test modules."""

from datetime import datetime

from weekgrid.models.session import SessionEvent


def ms(date_iso: str, clock: str = "12:00:00") -> int:
    """Epoch milliseconds for a local date and time."""
    return int(datetime.fromisoformat(f"{date_iso}T{clock}").timestamp() * 1000)


def event(
    id: str,
    date_iso: str | None,
    types: list[str],
    clock: str | None = "12:00:00",
    **kwargs,
) -> SessionEvent:
    """Build a session event; ``clock=None`` leaves it without a timestamp."""
    completed_at = kwargs.pop("completed_at", None)
    if date_iso and clock:
        completed_at = ms(date_iso, clock)
    return SessionEvent(
        id=id,
        date_iso=date_iso,
        session_types=types,
        completed_at=completed_at,
        **kwargs,
    )
