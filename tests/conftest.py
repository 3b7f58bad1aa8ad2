"""
Pytest configuration and shared fixtures.
"""

from datetime import date, time
from unittest.mock import MagicMock

import pytest

from db.memory import InMemoryLedgerRepository, InMemoryScheduleRepository
from models.schedule import DoctorProfile, WeekDay, WeeklyTemplate, WorkingDayRule
from scheduling import SlotCache, build_engine

DOCTOR_ID = "doc_1"
OTHER_DOCTOR_ID = "doc_2"

# 2024-07-08 is a Monday, 2024-07-04 a Thursday
MONDAY = date(2024, 7, 8)
TUESDAY = date(2024, 7, 9)
THURSDAY = date(2024, 7, 4)


def nine_to_five(*weekdays: WeekDay) -> WeeklyTemplate:
    return WeeklyTemplate.from_rules(
        WorkingDayRule(weekday=day, is_working=True, start=time(9, 0), end=time(17, 0))
        for day in weekdays
    )


def make_profile(doctor_id: str = DOCTOR_ID, **overrides) -> DoctorProfile:
    data = {
        "doctor_id": doctor_id,
        "template": nine_to_five(WeekDay.MONDAY, WeekDay.THURSDAY),
        "slot_duration": 30,
        "max_appointments_per_day": None,
        "timezone": "UTC",
    }
    data.update(overrides)
    return DoctorProfile(**data)


@pytest.fixture
def profile() -> DoctorProfile:
    return make_profile()


@pytest.fixture
def schedule_repo() -> InMemoryScheduleRepository:
    return InMemoryScheduleRepository()


@pytest.fixture
def ledger_repo() -> InMemoryLedgerRepository:
    return InMemoryLedgerRepository()


@pytest.fixture
def engine(schedule_repo, ledger_repo):
    """Engine over empty in-memory stores, with a slot cache."""
    return build_engine(schedule_repo, ledger_repo, cache=SlotCache(ttl_seconds=300))


@pytest.fixture
async def seeded_engine(engine, schedule_repo, profile):
    """Engine with the default Monday/Thursday 09:00-17:00 doctor stored."""
    await schedule_repo.save_profile(profile)
    return engine


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_client.table.return_value = mock_table
    return mock_client, mock_table
