"""Tests for the state repository."""

import json

import aiosqlite
import pytest

from weekgrid.db import StateRepository
from weekgrid.models.session import SessionEvent
from weekgrid.models.weekly import default_weekly

from helpers import event


class TestWeeklyDocuments:
    """Tests for weekly document storage."""

    @pytest.mark.asyncio
    async def test_missing_week(self, repo):
        assert await repo.get_weekly("2025-09-22") is None

    @pytest.mark.asyncio
    async def test_round_trip(self, repo, sample_config):
        weekly = default_weekly("2025-09-22", week_number=3, **sample_config)
        weekly.days[2].types = {"Resistance": True}
        await repo.set_weekly("2025-09-22", weekly)

        loaded = await repo.get_weekly("2025-09-22")
        assert loaded == weekly

    @pytest.mark.asyncio
    async def test_set_replaces_whole_document(self, repo, sample_config):
        await repo.set_weekly("2025-09-22", default_weekly("2025-09-22", **sample_config))
        await repo.set_weekly("2025-09-22", default_weekly("2025-09-22"))

        loaded = await repo.get_weekly("2025-09-22")
        assert loaded.benchmarks == {}
        assert await repo.list_weeks() == ["2025-09-22"]

    @pytest.mark.asyncio
    async def test_key_must_match(self, repo):
        with pytest.raises(ValueError):
            await repo.set_weekly("2025-09-29", default_weekly("2025-09-22"))

    @pytest.mark.asyncio
    async def test_users_are_separate(self, repo, temp_db_path):
        await repo.set_weekly("2025-09-22", default_weekly("2025-09-22"))
        other = StateRepository(temp_db_path, user_id="someone-else")
        assert await other.get_weekly("2025-09-22") is None

    @pytest.mark.asyncio
    async def test_malformed_document_raises_value_error(self, repo):
        async with aiosqlite.connect(repo.db_path) as db:
            await db.execute(
                "INSERT INTO weekly_state (user_id, week_key, document) VALUES (?, ?, ?)",
                (repo.user_id, "2025-09-22", json.dumps({"weekly": {"days": [{}]}})),
            )
            await db.commit()
        with pytest.raises(ValueError):
            await repo.get_weekly("2025-09-22")


class TestSessionLog:
    """Tests for the session log."""

    @pytest.mark.asyncio
    async def test_add_assigns_id(self, repo):
        new = SessionEvent(["Bike"], date_iso="2025-09-23", completed_at=1)
        session_id = await repo.add_session(new)
        assert session_id
        assert new.id == session_id

        loaded = await repo.get_session(session_id)
        assert loaded.session_types == ["Bike"]
        assert loaded.date_iso == "2025-09-23"

    @pytest.mark.asyncio
    async def test_add_keeps_given_id(self, repo):
        assert await repo.add_session(event("abc", "2025-09-23", ["Bike"])) == "abc"

    @pytest.mark.asyncio
    async def test_list_and_delete(self, repo, previous_week_events):
        for e in previous_week_events:
            await repo.add_session(e)

        listed = await repo.list_sessions()
        assert sorted(e.id for e in listed) == ["a1", "b2", "c3"]
        assert next(e for e in listed if e.id == "b2").exercise_count == 5

        assert await repo.delete_session("b2") is True
        assert await repo.delete_session("b2") is False
        assert await repo.get_session("b2") is None
        assert len(await repo.list_sessions()) == 2


class TestTypeSettings:
    """Tests for global type settings."""

    @pytest.mark.asyncio
    async def test_defaults_empty(self, repo):
        assert await repo.get_type_settings() == ([], {})

    @pytest.mark.asyncio
    async def test_round_trip(self, repo):
        await repo.set_type_settings(["Bike", "Rings"], {"Bike": "Cardio"})
        assert await repo.get_type_settings() == (["Bike", "Rings"], {"Bike": "Cardio"})
