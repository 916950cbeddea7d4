"""Repair, rebuild and cleanup of stored weekly state."""

from dataclasses import dataclass, field
from enum import Enum

from loguru import logger

from ..db.repositories import StateRepository
from ..models.issues import IncompleteTypeMetadata, OutOfRangeDate, UnplaceableSession
from ..models.session import SessionEvent, SessionSummary
from ..models.weekly import (
    WeeklyDocument,
    check_type_metadata,
    clean_weekly,
    next_weekly,
    normalize_order,
)
from ..utils.calendar import week_key as week_key_of
from ..utils.calendar import week_offset
from .reconcile import DedupeResult, ReconciliationPolicy, SessionReconciler


class RepairAction(str, Enum):
    """What a repair did to the stored week."""

    UNCHANGED = "unchanged"
    REORDERED = "reordered"
    REBUILT = "rebuilt"


@dataclass
class RepairOutcome:
    """Result of repairing or rebuilding one week."""

    week_key: str
    action: RepairAction
    weekly: WeeklyDocument
    issues: list[OutOfRangeDate | UnplaceableSession | IncompleteTypeMetadata] = field(
        default_factory=list
    )




class MaintenanceService:
    """Read-modify-write operations against one user's stored state.

    Every write is a single full-document replace.
    """

    def __init__(
        self,
        repo: StateRepository,
        policy: ReconciliationPolicy | None = None,
    ):
        self.repo = repo
        self.reconciler = SessionReconciler(policy)

    async def _read_week(
        self, week_key: str
    ) -> tuple[WeeklyDocument | None, OutOfRangeDate | None]:
        """Fetch a stored week, reporting an unreadable document instead of raising."""
        try:
            return await self.repo.get_weekly(week_key), None
        except ValueError as e:
            issue = OutOfRangeDate(week_key, None, f"unreadable document ({e})")
            logger.warning(issue.message)
            return None, issue

    async def _new_week(self, week_key: str) -> WeeklyDocument:
        """Start a week from the previous one, or from the user's type settings."""
        previous, _ = await self._read_week(week_offset(week_key, -1))
        types, categories = await self.repo.get_type_settings()
        return next_weekly(
            previous,
            week_key,
            benchmarks={t: 0 for t in types},
            custom_types=types,
            type_categories=categories,
        )

    async def load_week(
        self, week_key: str
    ) -> tuple[WeeklyDocument | None, list[OutOfRangeDate | IncompleteTypeMetadata]]:
        """Load a week for display, putting its days in order in memory.

        Nothing is written. If the days cannot be ordered the stored document
        is returned as it is, along with the error. An unreadable document
        gives ``None`` and the error.
        """
        weekly, unreadable = await self._read_week(week_key)
        if weekly is None:
            return None, [unreadable] if unreadable else []

        issues: list[OutOfRangeDate | IncompleteTypeMetadata] = []
        result = normalize_order(weekly)
        if result.error:
            issues.append(result.error)
        weekly = clean_weekly(result.weekly)
        issues.extend(check_type_metadata(weekly))
        return weekly, issues

    async def rebuild_week(self, week_key: str, **overrides) -> RepairOutcome:
        """Rebuild a week from the session log and store it.

        Benchmarks, custom types and categories are kept from the stored
        document unless passed in ``overrides``. Without a readable stored
        document they come from the previous week or the type settings.
        """
        base, unreadable = await self._read_week(week_key)
        if base is None:
            base = await self._new_week(week_key)

        events = await self.repo.list_sessions()
        result = self.reconciler.reconcile(events, week_key, base=base, **overrides)
        await self.repo.set_weekly(week_key, result.weekly)

        issues: list = [unreadable] if unreadable else []
        issues.extend(result.unplaceable)
        issues.extend(check_type_metadata(result.weekly))
        return RepairOutcome(week_key, RepairAction.REBUILT, result.weekly, issues)

    async def repair_week(self, week_key: str) -> RepairOutcome:
        """Put a stored week's days back in Monday-first order.

        A rotated week is reordered in place. A week that cannot be reordered
        (days from another week, missing days), cannot be read, or does not
        exist is rebuilt from the session log.
        """
        weekly, unreadable = await self._read_week(week_key)
        if weekly is None:
            if not unreadable:
                logger.info(f"Week {week_key} not stored, rebuilding from session log")
            return await self.rebuild_week(week_key)

        result = normalize_order(weekly)
        if result.error:
            logger.warning(f"{result.error.message}; rebuilding from session log")
            outcome = await self.rebuild_week(week_key)
            outcome.issues.insert(0, result.error)
            return outcome

        issues = list(check_type_metadata(result.weekly))
        if not result.changed:
            return RepairOutcome(week_key, RepairAction.UNCHANGED, result.weekly, issues)

        await self.repo.set_weekly(week_key, result.weekly)
        logger.info(f"Reordered days of week {week_key}")
        return RepairOutcome(week_key, RepairAction.REORDERED, result.weekly, issues)

    async def cleanup_sessions(self, dry_run: bool = True) -> DedupeResult:
        """Delete duplicate events from the session log.

        Args:
            dry_run: Only report what would be deleted

        Returns:
            Retained and discarded events, and events without a date
        """
        events = await self.repo.list_sessions()
        result = self.reconciler.find_duplicates(events)

        if dry_run:
            return result

        for event in result.discarded:
            deleted = await self.repo.delete_session(event.id)
            if deleted:
                logger.info(
                    f"Deleted duplicate session {event.id} "
                    f"({event.placement_date}: {event.get_types_display()})"
                )
            else:
                logger.warning(f"Session {event.id} was already gone")
        return result

    async def record_session(self, event: SessionEvent) -> WeeklyDocument:
        """Append a session to the log and fold it into its week.

        The week is created on its first session, carrying configuration over
        from the previous week or from the user's type settings.

        ``event`` is updated in place: ``date_iso`` is set to its placement
        date and ``id`` to the id it was stored under.

        Raises:
            ValueError: If no date can be derived for the event
        """
        date_iso = event.placement_date
        if date_iso is None:
            raise ValueError("Session needs a dateISO or a completion time")
        event.date_iso = date_iso

        await self.repo.add_session(event)
        key = week_key_of(date_iso)

        weekly, unreadable = await self._read_week(key)
        if unreadable:
            logger.warning(f"Rebuilding week {key} from session log")
            return (await self.rebuild_week(key)).weekly
        if weekly is None:
            weekly = await self._new_week(key)
            logger.info(f"Started week {key} (week {weekly.week_number})")
        else:
            result = normalize_order(weekly)
            if result.error:
                logger.warning(f"{result.error.message}; rebuilding from session log")
                return (await self.rebuild_week(key)).weekly
            weekly = result.weekly

        day = weekly.day_for(date_iso)
        for t in event.session_types:
            day.types[t] = True
        day.sessions_list.append(SessionSummary.from_event(event))
        day.session_count = len(day.sessions_list)

        await self.repo.set_weekly(key, weekly)
        return weekly
