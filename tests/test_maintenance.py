"""Tests for the maintenance service."""

import json

import aiosqlite
import pytest

from weekgrid.models.issues import IncompleteTypeMetadata, OutOfRangeDate
from weekgrid.models.session import SessionEvent
from weekgrid.models.weekly import WeeklyDocument, default_weekly, is_canonical_order
from weekgrid.services.maintenance import MaintenanceService, RepairAction
from weekgrid.services.reconcile import ReconciliationPolicy

from helpers import event, ms


def rotated(weekly: WeeklyDocument, r: int) -> WeeklyDocument:
    weekly.days = weekly.days[r:] + weekly.days[:r]
    return weekly


async def store_raw(repo, week_key: str, document: dict) -> None:
    """Store a week document as-is, bypassing the model."""
    async with aiosqlite.connect(repo.db_path) as db:
        await db.execute(
            "INSERT OR REPLACE INTO weekly_state (user_id, week_key, document) VALUES (?, ?, ?)",
            (repo.user_id, week_key, json.dumps(document)),
        )
        await db.commit()


MISSING_DATES = {"weekly": {"weekOfISO": "2025-09-22", "days": [{"types": {}}] * 7}}


@pytest.fixture
def service(repo):
    return MaintenanceService(repo)


class TestRepairWeek:
    """Tests for repair_week."""

    @pytest.mark.asyncio
    async def test_canonical_week_is_left_alone(self, repo, service, sample_config):
        await repo.set_weekly("2025-09-22", default_weekly("2025-09-22", **sample_config))
        outcome = await service.repair_week("2025-09-22")
        assert outcome.action == RepairAction.UNCHANGED
        assert outcome.issues == []

    @pytest.mark.asyncio
    async def test_rotated_week_is_reordered(self, repo, service, sample_config):
        weekly = default_weekly("2025-09-22", **sample_config)
        weekly.days[6].types = {"Calves": True}
        await repo.set_weekly("2025-09-22", rotated(weekly, 6))

        outcome = await service.repair_week("2025-09-22")
        assert outcome.action == RepairAction.REORDERED

        stored = await repo.get_weekly("2025-09-22")
        assert is_canonical_order(stored)
        assert stored.days[6].types == {"Calves": True}

    @pytest.mark.asyncio
    async def test_wrong_week_falls_back_to_rebuild(
        self, repo, service, sample_config, previous_week_events
    ):
        for e in previous_week_events:
            await repo.add_session(e)
        corrupt = default_weekly("2025-09-22", week_number=2, **sample_config)
        corrupt.days = default_weekly("2025-09-29").days
        await repo.set_weekly("2025-09-22", corrupt)

        outcome = await service.repair_week("2025-09-22")
        assert outcome.action == RepairAction.REBUILT
        assert isinstance(outcome.issues[0], OutOfRangeDate)

        stored = await repo.get_weekly("2025-09-22")
        assert is_canonical_order(stored)
        assert stored.week_number == 2
        assert stored.benchmarks == sample_config["benchmarks"]
        assert stored.days[6].types == {"Calves": True, "Bike": True}

    @pytest.mark.asyncio
    async def test_missing_week_is_rebuilt(self, repo, service, previous_week_events):
        for e in previous_week_events:
            await repo.add_session(e)
        outcome = await service.repair_week("2025-09-22")
        assert outcome.action == RepairAction.REBUILT
        assert (await repo.get_weekly("2025-09-22")).days[1].types == {"Bike": True}

    @pytest.mark.asyncio
    async def test_uncategorized_types_are_flagged(self, repo, service):
        weekly = default_weekly("2025-09-22", custom_types=["Piano Practice"])
        await repo.set_weekly("2025-09-22", weekly)
        outcome = await service.repair_week("2025-09-22")
        assert outcome.issues == [IncompleteTypeMetadata("Piano Practice")]

    @pytest.mark.asyncio
    async def test_unreadable_week_is_rebuilt(self, repo, service, previous_week_events):
        """A stored week whose days have no dates is reported and rebuilt."""
        for e in previous_week_events:
            await repo.add_session(e)
        await store_raw(repo, "2025-09-22", MISSING_DATES)

        outcome = await service.repair_week("2025-09-22")
        assert outcome.action == RepairAction.REBUILT
        assert isinstance(outcome.issues[0], OutOfRangeDate)
        assert "unreadable" in outcome.issues[0].reason

        stored = await repo.get_weekly("2025-09-22")
        assert is_canonical_order(stored)
        assert stored.days[1].types == {"Bike": True}
        assert stored.days[6].types == {"Calves": True, "Bike": True}


class TestRebuildWeek:
    """Tests for rebuild_week."""

    @pytest.mark.asyncio
    async def test_carries_over_previous_week(self, repo, service, sample_config, previous_week_events):
        await repo.set_weekly(
            "2025-09-15", default_weekly("2025-09-15", week_number=6, **sample_config)
        )
        for e in previous_week_events:
            await repo.add_session(e)

        outcome = await service.rebuild_week("2025-09-22")
        assert outcome.weekly.week_number == 7
        assert outcome.weekly.custom_types == sample_config["custom_types"]

    @pytest.mark.asyncio
    async def test_reports_unplaceable(self, repo, service):
        await repo.add_session(SessionEvent(["Bike"], id="lost"))
        outcome = await service.rebuild_week("2025-09-22")
        assert [i.session_id for i in outcome.issues] == ["lost"]

    @pytest.mark.asyncio
    async def test_first_week_uses_type_settings(self, repo, service, previous_week_events):
        await repo.set_type_settings(["Bike", "Calves"], {"Bike": "Cardio"})
        for e in previous_week_events:
            await repo.add_session(e)

        outcome = await service.rebuild_week("2025-09-22")
        assert outcome.weekly.week_number == 1
        assert outcome.weekly.custom_types == ["Bike", "Calves"]
        assert outcome.weekly.benchmarks == {"Bike": 0, "Calves": 0}
        assert outcome.weekly.type_categories == {"Bike": "Cardio"}
        assert outcome.issues == [IncompleteTypeMetadata("Calves")]

    @pytest.mark.asyncio
    async def test_unreadable_week_is_replaced(self, repo, service, previous_week_events):
        for e in previous_week_events:
            await repo.add_session(e)
        await store_raw(repo, "2025-09-22", MISSING_DATES)

        outcome = await service.rebuild_week("2025-09-22")
        assert isinstance(outcome.issues[0], OutOfRangeDate)
        assert (await repo.get_weekly("2025-09-22")).days[2].types == {"Resistance": True}


class TestCleanupSessions:
    """Tests for cleanup_sessions."""

    @pytest.fixture
    def duplicated(self):
        return [
            event("m1", "2025-09-23", ["Meditation"], "22:06:08"),
            event("m2", "2025-09-23", ["Meditation"], "22:06:09"),
            event("m3", "2025-09-23", ["Meditation"], "22:06:11"),
            event("solo", "2025-09-29", ["Bike"], "17:50:00"),
            event("combo", "2025-09-29", ["Calves", "Bike"], "17:51:12"),
        ]

    @pytest.mark.asyncio
    async def test_dry_run_deletes_nothing(self, repo, service, duplicated):
        for e in duplicated:
            await repo.add_session(e)
        result = await service.cleanup_sessions(dry_run=True)
        assert sorted(e.id for e in result.discarded) == ["m1", "m2"]
        assert len(await repo.list_sessions()) == 5

    @pytest.mark.asyncio
    async def test_deletes_duplicates(self, repo, duplicated):
        for e in duplicated:
            await repo.add_session(e)
        service = MaintenanceService(repo, ReconciliationPolicy(collapse_supersets=True))
        await service.cleanup_sessions(dry_run=False)
        remaining = sorted(e.id for e in await repo.list_sessions())
        assert remaining == ["combo", "m3"]


class TestRecordSession:
    """Tests for record_session."""

    @pytest.mark.asyncio
    async def test_creates_week_from_type_settings(self, repo, service):
        await repo.set_type_settings(["Bike", "Calves"], {"Bike": "Cardio"})
        weekly = await service.record_session(event(None, "2025-09-28", ["Calves", "Bike"]))

        assert weekly.week_of_iso == "2025-09-22"
        assert weekly.custom_types == ["Bike", "Calves"]
        assert weekly.benchmarks == {"Bike": 0, "Calves": 0}
        sunday = weekly.days[6]
        assert sunday.types == {"Calves": True, "Bike": True}
        assert sunday.session_count == 1
        assert sunday.sessions_list[0].id is not None

        assert await repo.get_weekly("2025-09-22") == weekly
        assert len(await repo.list_sessions()) == 1

    @pytest.mark.asyncio
    async def test_new_week_continues_previous(self, repo, service, sample_config):
        await repo.set_weekly(
            "2025-09-22", default_weekly("2025-09-22", week_number=3, **sample_config)
        )
        weekly = await service.record_session(event("x", "2025-09-29", ["Bike"]))
        assert weekly.week_number == 4
        assert weekly.benchmarks == sample_config["benchmarks"]

    @pytest.mark.asyncio
    async def test_appends_to_existing_day(self, repo, service):
        await service.record_session(event("a", "2025-09-23", ["Bike"], "07:00:00"))
        weekly = await service.record_session(event("b", "2025-09-23", ["Rings"], "19:00:00"))
        day = weekly.days[1]
        assert day.session_count == 2
        assert [s.id for s in day.sessions_list] == ["a", "b"]
        assert day.types == {"Bike": True, "Rings": True}

    @pytest.mark.asyncio
    async def test_repairs_rotated_week_first(self, repo, service):
        await repo.set_weekly("2025-09-22", rotated(default_weekly("2025-09-22"), 3))
        weekly = await service.record_session(event("a", "2025-09-23", ["Bike"]))
        assert is_canonical_order(weekly)
        assert weekly.days[1].types == {"Bike": True}

    @pytest.mark.asyncio
    async def test_fills_in_date_and_id(self, service):
        """The recorded event gets its placement date and storage id."""
        new = SessionEvent(["Bike"], completed_at=ms("2025-09-23", "07:00:00"))
        await service.record_session(new)
        assert new.date_iso == "2025-09-23"
        assert new.id is not None

    @pytest.mark.asyncio
    async def test_unreadable_week_is_rebuilt(self, repo, service):
        await store_raw(repo, "2025-09-22", MISSING_DATES)
        weekly = await service.record_session(event("a", "2025-09-23", ["Bike"]))
        assert is_canonical_order(weekly)
        assert weekly.days[1].types == {"Bike": True}
        assert await repo.get_weekly("2025-09-22") == weekly

    @pytest.mark.asyncio
    async def test_needs_a_date(self, service):
        with pytest.raises(ValueError):
            await service.record_session(SessionEvent(["Bike"]))


class TestLoadWeek:
    """Tests for load_week."""

    @pytest.mark.asyncio
    async def test_orders_in_memory_only(self, repo, service):
        await repo.set_weekly("2025-09-22", rotated(default_weekly("2025-09-22"), 2))
        weekly, issues = await service.load_week("2025-09-22")
        assert is_canonical_order(weekly)
        assert issues == []
        assert not is_canonical_order(await repo.get_weekly("2025-09-22"))

    @pytest.mark.asyncio
    async def test_missing(self, service):
        assert await service.load_week("2025-09-22") == (None, [])

    @pytest.mark.asyncio
    async def test_unreadable(self, repo, service):
        await store_raw(repo, "2025-09-22", MISSING_DATES)
        weekly, issues = await service.load_week("2025-09-22")
        assert weekly is None
        assert len(issues) == 1
        assert isinstance(issues[0], OutOfRangeDate)
