"""
Unit tests for the break registry.
"""

from datetime import time

import pytest

from models.schedule import BreakInterval, WeekDay
from tests.conftest import DOCTOR_ID, MONDAY, THURSDAY
from utils.exceptions import (
    BreakNotFoundError,
    BreakOverlapError,
    DoctorNotFoundError,
    OutOfWorkingHoursError,
)


def monday_break(start: time, end: time, label: str = "Lunch") -> BreakInterval:
    return BreakInterval(
        doctor_id=DOCTOR_ID, weekday=WeekDay.MONDAY, start=start, end=end, label=label
    )


@pytest.mark.asyncio
async def test_add_break(seeded_engine):
    break_id = await seeded_engine.breaks.add(monday_break(time(13, 0), time(14, 0)))

    breaks = await seeded_engine.breaks.list(DOCTOR_ID)
    assert [b.id for b in breaks] == [break_id]
    assert breaks[0].label == "Lunch"


@pytest.mark.asyncio
async def test_add_break_outside_working_hours(seeded_engine):
    with pytest.raises(OutOfWorkingHoursError):
        await seeded_engine.breaks.add(monday_break(time(16, 30), time(17, 30)))


@pytest.mark.asyncio
async def test_add_break_on_day_off(seeded_engine):
    tuesday_break = BreakInterval(
        doctor_id=DOCTOR_ID, weekday=WeekDay.TUESDAY, start=time(12, 0), end=time(13, 0)
    )

    with pytest.raises(OutOfWorkingHoursError):
        await seeded_engine.breaks.add(tuesday_break)


@pytest.mark.asyncio
async def test_break_at_span_edges_is_contained(seeded_engine):
    await seeded_engine.breaks.add(monday_break(time(9, 0), time(9, 30), "Rounds"))
    await seeded_engine.breaks.add(monday_break(time(16, 30), time(17, 0), "Notes"))

    assert len(await seeded_engine.breaks.list(DOCTOR_ID)) == 2


@pytest.mark.asyncio
async def test_overlapping_break_rejected(seeded_engine):
    await seeded_engine.breaks.add(monday_break(time(13, 0), time(14, 0)))

    with pytest.raises(BreakOverlapError) as exc_info:
        await seeded_engine.breaks.add(monday_break(time(13, 30), time(14, 30)))

    assert exc_info.value.code == "Overlap"


@pytest.mark.asyncio
async def test_adjacent_breaks_allowed(seeded_engine):
    await seeded_engine.breaks.add(monday_break(time(13, 0), time(14, 0)))
    await seeded_engine.breaks.add(monday_break(time(14, 0), time(14, 15), "Coffee"))

    assert len(await seeded_engine.breaks.list(DOCTOR_ID)) == 2


@pytest.mark.asyncio
async def test_same_time_on_other_weekday_allowed(seeded_engine):
    await seeded_engine.breaks.add(monday_break(time(13, 0), time(14, 0)))
    await seeded_engine.breaks.add(
        BreakInterval(
            doctor_id=DOCTOR_ID, weekday=WeekDay.THURSDAY, start=time(13, 0), end=time(14, 0)
        )
    )

    assert len(await seeded_engine.breaks.list(DOCTOR_ID)) == 2


@pytest.mark.asyncio
async def test_dated_break_overlapping_weekly_break_rejected(seeded_engine):
    await seeded_engine.breaks.add(monday_break(time(13, 0), time(14, 0)))

    with pytest.raises(BreakOverlapError):
        await seeded_engine.breaks.add(
            BreakInterval(
                doctor_id=DOCTOR_ID, on_date=MONDAY, start=time(13, 30), end=time(13, 45)
            )
        )


@pytest.mark.asyncio
async def test_dated_break_checked_against_its_weekday(seeded_engine):
    with pytest.raises(OutOfWorkingHoursError):
        await seeded_engine.breaks.add(
            BreakInterval(
                doctor_id=DOCTOR_ID, on_date=THURSDAY, start=time(8, 0), end=time(9, 30)
            )
        )


@pytest.mark.asyncio
async def test_add_break_unknown_doctor(engine):
    with pytest.raises(DoctorNotFoundError):
        await engine.breaks.add(monday_break(time(13, 0), time(14, 0)))


@pytest.mark.asyncio
async def test_remove_break(seeded_engine):
    break_id = await seeded_engine.breaks.add(monday_break(time(13, 0), time(14, 0)))

    await seeded_engine.breaks.remove(DOCTOR_ID, break_id)

    assert await seeded_engine.breaks.list(DOCTOR_ID) == []


@pytest.mark.asyncio
async def test_remove_missing_break(seeded_engine):
    with pytest.raises(BreakNotFoundError):
        await seeded_engine.breaks.remove(DOCTOR_ID, "brk_missing")


@pytest.mark.asyncio
async def test_break_changes_slot_list(seeded_engine):
    before = await seeded_engine.availability.generate(DOCTOR_ID, MONDAY)
    break_id = await seeded_engine.breaks.add(monday_break(time(13, 0), time(14, 0)))
    during = await seeded_engine.availability.generate(DOCTOR_ID, MONDAY)
    await seeded_engine.breaks.remove(DOCTOR_ID, break_id)
    after = await seeded_engine.availability.generate(DOCTOR_ID, MONDAY)

    assert len(before) == 16
    assert len(during) == 14
    assert after == before
