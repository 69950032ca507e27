import os
import sys
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add the project root directory to Python path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.database import HabitDatabase
from core.models import HabitDraft, HabitReminder
from services.habit_store import HabitStore

# Thursday; weekday index 4
FIXED_TODAY = date(2024, 1, 4)


@pytest.fixture
def database(tmp_path):
    db = HabitDatabase(tmp_path / "data" / "habits.json", backup_dir=tmp_path / "backups", max_backups=3)
    yield db
    db.close()


@pytest.fixture
def scheduler():
    mock_scheduler = MagicMock()
    mock_scheduler.schedule = AsyncMock(return_value="habit-reminder:x")
    mock_scheduler.cancel = AsyncMock(return_value=None)
    mock_scheduler.clear_all = AsyncMock(return_value=None)
    return mock_scheduler


@pytest.fixture
def store(database, scheduler):
    return HabitStore(database, scheduler, today_provider=lambda: FIXED_TODAY)


@pytest.fixture
def draft():
    return HabitDraft(
        name="Drink water",
        days=[1, 3, 4],
        description="Eight glasses",
        color="#00F5A0",
    )


@pytest.fixture
def reminder_draft():
    return HabitDraft(
        name="Meditate",
        days=[0, 1, 2, 3, 4, 5, 6],
        reminder=HabitReminder(time="06:30", enabled=True),
    )
