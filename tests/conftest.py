"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path

import pytest
import pytest_asyncio

from weekgrid.db import StateRepository, init_db

from helpers import event


@pytest.fixture
def temp_db_path():
    """Create a temporary database path."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir) / "test.db"


@pytest_asyncio.fixture
async def repo(temp_db_path):
    """A state repository over a freshly initialized database."""
    await init_db(temp_db_path)
    return StateRepository(temp_db_path, user_id="tester")


@pytest.fixture
def previous_week_events():
    """Sessions logged during the week of 2025-09-22."""
    return [
        event("a1", "2025-09-23", ["Bike"], "18:10:00"),
        event("b2", "2025-09-24", ["Resistance"], "07:30:00", exercise_count=5),
        event("c3", "2025-09-28", ["Calves", "Bike"], "17:51:12"),
    ]


@pytest.fixture
def sample_config():
    """Benchmark and type configuration for a week."""
    return {
        "benchmarks": {"Bike": 3, "Calves": 3, "Resistance": 3, "Mindfulness": 3},
        "custom_types": ["Bike", "Calves", "Resistance", "Mindfulness"],
        "type_categories": {
            "Bike": "Cardio",
            "Calves": "Resistance",
            "Resistance": "Resistance",
            "Mindfulness": "Mindfulness",
        },
    }
