"""Session reconciliation: de-duplicate session events and fold them into weeks."""

from dataclasses import dataclass, field

from loguru import logger

from ..models.issues import UnplaceableSession
from ..models.session import SessionEvent, SessionSummary
from ..models.weekly import DayRecord, WeeklyDocument, default_weekly
from ..utils.calendar import to_iso_date, week_dates

# Duplicate entries from a double-tap or a re-sent save land within the same
# minute of each other.
DEFAULT_BURST_WINDOW_MS = 60_000


@dataclass
class ReconciliationPolicy:
    """Rules for deciding which session events are the same logical session."""

    burst_window_ms: int = DEFAULT_BURST_WINDOW_MS
    collapse_supersets: bool = False


@dataclass
class DedupeResult:
    """Split of a session log into events to keep and events to delete."""

    retained: list[SessionEvent] = field(default_factory=list)
    discarded: list[SessionEvent] = field(default_factory=list)
    unplaceable: list[UnplaceableSession] = field(default_factory=list)


@dataclass
class ReconcileResult(DedupeResult):
    """De-duplicated events plus the week rebuilt from them."""

    weekly: WeeklyDocument | None = None

    @property
    def issues(self) -> list[UnplaceableSession]:
        return list(self.unplaceable)


def _chronological_key(event: SessionEvent) -> tuple[int, str]:
    return (event.completed_at if event.completed_at is not None else -1, event.id or "")


def _unplaceable_reason(event: SessionEvent) -> str:
    if event.date_iso is None and event.completed_at is None:
        return UnplaceableSession.reason
    date_part = f"invalid dateISO {event.date_iso!r}" if event.date_iso else "no dateISO"
    if event.completed_at is None:
        return f"{date_part} and no completion timestamp"
    return f"{date_part} and completion timestamp {event.completed_at} is out of range"


class SessionReconciler:
    """Reconciles raw session events into de-duplicated days and weeks."""

    def __init__(self, policy: ReconciliationPolicy | None = None):
        """Initialize the reconciler.

        Args:
            policy: Duplicate detection rules (defaults to a one-minute burst
                window with superset collapse off)
        """
        self.policy = policy or ReconciliationPolicy()

    def place(
        self, events: list[SessionEvent]
    ) -> tuple[dict[str, list[SessionEvent]], list[UnplaceableSession]]:
        """Group events by calendar day.

        Returns:
            Events keyed by ISO date, and the events that have no date
        """
        by_date: dict[str, list[SessionEvent]] = {}
        unplaceable: list[UnplaceableSession] = []

        for event in events:
            date_iso = event.placement_date
            if date_iso is None:
                unplaceable.append(UnplaceableSession(event.id, _unplaceable_reason(event)))
                continue
            by_date.setdefault(date_iso, []).append(event)

        for issue in unplaceable:
            logger.warning(issue.message)
        return by_date, unplaceable

    def _bursts(self, events: list[SessionEvent]) -> list[list[SessionEvent]]:
        """Split same-signature events into bursts of near-simultaneous saves."""
        bursts: list[list[SessionEvent]] = []
        previous: SessionEvent | None = None

        for event in sorted(events, key=_chronological_key):
            if previous is not None and self._same_burst(previous, event):
                bursts[-1].append(event)
            else:
                bursts.append([event])
            previous = event
        return bursts

    def _same_burst(self, earlier: SessionEvent, later: SessionEvent) -> bool:
        if earlier.completed_at is None or later.completed_at is None:
            return earlier.completed_at is None and later.completed_at is None
        return later.completed_at - earlier.completed_at <= self.policy.burst_window_ms

    def dedupe_day(
        self, events: list[SessionEvent]
    ) -> tuple[list[SessionEvent], list[SessionEvent]]:
        """De-duplicate the events of a single day.

        Events with the same set of types saved within one burst are copies
        of one session; the latest survives, ties going to the largest id.
        With ``collapse_supersets`` on, a session whose types are a strict
        subset of another session's that day is dropped as well.

        Returns:
            (kept, discarded), each in chronological order
        """
        by_signature: dict[frozenset[str], list[SessionEvent]] = {}
        for event in events:
            by_signature.setdefault(event.signature, []).append(event)

        kept: list[SessionEvent] = []
        discarded: list[SessionEvent] = []
        for group in by_signature.values():
            for burst in self._bursts(group):
                survivor = max(burst, key=_chronological_key)
                kept.append(survivor)
                discarded.extend(e for e in burst if e is not survivor)

        if self.policy.collapse_supersets:
            collapsed = []
            for event in kept:
                if any(event.signature < other.signature for other in kept):
                    discarded.append(event)
                else:
                    collapsed.append(event)
            kept = collapsed

        kept.sort(key=_chronological_key)
        discarded.sort(key=_chronological_key)
        return kept, discarded

    def find_duplicates(self, events: list[SessionEvent]) -> DedupeResult:
        """De-duplicate a whole session log, day by day."""
        by_date, unplaceable = self.place(events)
        result = DedupeResult(unplaceable=unplaceable)

        for date_iso in sorted(by_date):
            kept, discarded = self.dedupe_day(by_date[date_iso])
            if discarded:
                logger.debug(
                    f"{date_iso}: keeping {len(kept)} of {len(kept) + len(discarded)} sessions"
                )
            result.retained.extend(kept)
            result.discarded.extend(discarded)
        return result

    def aggregate_day(self, date_iso: str, events: list[SessionEvent]) -> DayRecord:
        """Fold a day's retained events into a day record."""
        ordered = sorted(events, key=lambda e: (e.completed_at or 0, e.id or ""))
        types: dict[str, bool] = {}
        for event in ordered:
            for t in event.session_types:
                types[t] = True
        return DayRecord(
            date_iso=date_iso,
            types=types,
            session_count=len(ordered),
            sessions_list=[SessionSummary.from_event(e) for e in ordered],
        )

    def reconcile(
        self,
        events: list[SessionEvent],
        week_key: str,
        *,
        base: WeeklyDocument | None = None,
        week_number: int | None = None,
        benchmarks: dict[str, int] | None = None,
        custom_types: list[str] | None = None,
        type_categories: dict[str, str] | None = None,
    ) -> ReconcileResult:
        """De-duplicate events and rebuild one week from them.

        The week is built from scratch in Monday-first order, so it needs no
        normalization. Week number, benchmarks, types, categories and day
        comments come from ``base`` unless given explicitly.

        Args:
            events: Session events (any dates; only the week's are folded in)
            week_key: ISO date of the Monday of the week to rebuild
            base: The stored document being replaced, if any

        Returns:
            Retained, discarded and unplaceable events plus the rebuilt week
        """
        dedupe = self.find_duplicates(events)

        def pick(explicit, attr, fallback):
            if explicit is not None:
                return explicit
            if base is not None:
                return getattr(base, attr)
            return fallback

        weekly = default_weekly(
            week_key,
            week_number=pick(week_number, "week_number", 1),
            benchmarks=pick(benchmarks, "benchmarks", {}),
            custom_types=pick(custom_types, "custom_types", []),
            type_categories=pick(type_categories, "type_categories", {}),
        )

        by_date: dict[str, list[SessionEvent]] = {}
        for event in dedupe.retained:
            by_date.setdefault(event.placement_date, []).append(event)

        days = []
        for d in week_dates(week_key):
            date_iso = to_iso_date(d)
            day = self.aggregate_day(date_iso, by_date.get(date_iso, []))
            if base is not None:
                previous = base.day_for(date_iso)
                if previous is not None:
                    day.comments = dict(previous.comments)
            days.append(day)
        weekly.days = days

        logger.info(
            f"Rebuilt week {week_key}: "
            f"{sum(d.session_count for d in days)} sessions, "
            f"{len(dedupe.discarded)} duplicates, {len(dedupe.unplaceable)} unplaceable"
        )
        return ReconcileResult(
            retained=dedupe.retained,
            discarded=dedupe.discarded,
            unplaceable=dedupe.unplaceable,
            weekly=weekly,
        )


def reconcile(
    events: list[SessionEvent],
    week_key: str,
    *,
    base: WeeklyDocument | None = None,
    policy: ReconciliationPolicy | None = None,
) -> ReconcileResult:
    """De-duplicate events and rebuild the week starting at ``week_key``."""
    return SessionReconciler(policy).reconcile(events, week_key, base=base)


def rebuild_week(
    week_key: str,
    events: list[SessionEvent],
    *,
    base: WeeklyDocument | None = None,
    policy: ReconciliationPolicy | None = None,
) -> WeeklyDocument:
    """Rebuild one week from the session log, keeping ``base`` configuration."""
    return reconcile(events, week_key, base=base, policy=policy).weekly
