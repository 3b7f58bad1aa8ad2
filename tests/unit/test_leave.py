"""
Unit tests for the leave store.
"""

from datetime import date

import pytest

from models.leave import LeaveGranularity
from models.slot import NoAvailabilityReason
from tests.conftest import DOCTOR_ID, MONDAY, OTHER_DOCTOR_ID, THURSDAY
from utils.datetime_utils import iter_dates
from utils.exceptions import InvalidRangeError, LeaveNotFoundError


@pytest.mark.asyncio
async def test_add_range(seeded_engine):
    leave_id = await seeded_engine.leaves.add_range(
        DOCTOR_ID, date(2024, 7, 1), date(2024, 7, 5), "Vacation"
    )

    history = await seeded_engine.leaves.history(DOCTOR_ID)
    assert [lv.id for lv in history] == [leave_id]
    assert history[0].granularity == LeaveGranularity.FULL_DAY
    assert history[0].created_at is not None


@pytest.mark.asyncio
async def test_add_range_rejects_reversed_dates(seeded_engine):
    with pytest.raises(InvalidRangeError) as exc_info:
        await seeded_engine.leaves.add_range(
            DOCTOR_ID, date(2024, 7, 5), date(2024, 7, 1), "Vacation"
        )

    assert exc_info.value.code == "InvalidRange"
    assert await seeded_engine.leaves.history(DOCTOR_ID) == []


@pytest.mark.asyncio
async def test_add_range_sanitizes_text(seeded_engine):
    await seeded_engine.leaves.add_range(
        DOCTOR_ID, MONDAY, MONDAY, "  Sick\x00 leave ", notes="   "
    )

    leave = (await seeded_engine.leaves.history(DOCTOR_ID))[0]
    assert leave.reason == "Sick leave"
    assert leave.notes is None


@pytest.mark.asyncio
async def test_add_dates_creates_single_day_ranges(seeded_engine):
    ids = await seeded_engine.leaves.add_dates(
        DOCTOR_ID,
        [date(2024, 7, 10), date(2024, 7, 8), date(2024, 7, 10)],
        "Training",
        LeaveGranularity.MORNING,
    )

    history = await seeded_engine.leaves.history(DOCTOR_ID)
    assert len(ids) == 2
    assert [(lv.start_date, lv.end_date) for lv in history] == [
        (date(2024, 7, 8), date(2024, 7, 8)),
        (date(2024, 7, 10), date(2024, 7, 10)),
    ]


@pytest.mark.asyncio
async def test_covering(seeded_engine):
    await seeded_engine.leaves.add_range(
        DOCTOR_ID, date(2024, 7, 1), date(2024, 7, 4), "Vacation"
    )

    assert len(await seeded_engine.leaves.covering(DOCTOR_ID, THURSDAY)) == 1
    assert await seeded_engine.leaves.covering(DOCTOR_ID, MONDAY) == []


@pytest.mark.asyncio
async def test_remove(seeded_engine):
    leave_id = await seeded_engine.leaves.add_range(DOCTOR_ID, MONDAY, MONDAY, "Sick")

    await seeded_engine.leaves.remove(DOCTOR_ID, leave_id)

    assert await seeded_engine.leaves.history(DOCTOR_ID) == []


@pytest.mark.asyncio
async def test_remove_missing(seeded_engine):
    with pytest.raises(LeaveNotFoundError):
        await seeded_engine.leaves.remove(DOCTOR_ID, "lv_missing")


@pytest.mark.asyncio
async def test_remove_other_doctors_leave_needs_override(seeded_engine):
    leave_id = await seeded_engine.leaves.add_range(
        OTHER_DOCTOR_ID, MONDAY, MONDAY, "Sick"
    )

    with pytest.raises(LeaveNotFoundError):
        await seeded_engine.leaves.remove(DOCTOR_ID, leave_id)

    await seeded_engine.leaves.remove("admin", leave_id, admin_override=True)
    assert await seeded_engine.leaves.history(OTHER_DOCTOR_ID) == []


@pytest.mark.asyncio
async def test_bulk_remove_tolerates_bad_ids(seeded_engine):
    first = await seeded_engine.leaves.add_range(DOCTOR_ID, MONDAY, MONDAY, "Sick")
    second = await seeded_engine.leaves.add_range(DOCTOR_ID, THURSDAY, THURSDAY, "Sick")

    result = await seeded_engine.leaves.bulk_remove(
        DOCTOR_ID, [first, "lv_missing", second]
    )

    assert result.removed == [first, second]
    assert [(f.id, f.reason) for f in result.failed] == [("lv_missing", "NotFound")]
    assert not result.all_removed
    assert await seeded_engine.leaves.history(DOCTOR_ID) == []


@pytest.mark.asyncio
async def test_summarize(seeded_engine):
    as_of = date(2024, 7, 15)
    leaves = seeded_engine.leaves
    await leaves.add_range(DOCTOR_ID, date(2024, 6, 3), date(2024, 6, 7), "Vacation")
    await leaves.add_range(DOCTOR_ID, date(2024, 6, 28), date(2024, 7, 2), "Conference")
    await leaves.add_range(
        DOCTOR_ID, date(2024, 7, 15), date(2024, 7, 15), "Sick", LeaveGranularity.HALF_DAY
    )
    await leaves.add_range(DOCTOR_ID, date(2024, 8, 1), date(2024, 8, 9), "Vacation")

    summary = await leaves.summarize(DOCTOR_ID, as_of)

    assert summary.total == 4
    assert summary.past == 2
    assert summary.upcoming == 2
    assert summary.this_month == 2
    assert summary.by_reason == {"Vacation": 2, "Conference": 1, "Sick": 1}
    assert summary.by_granularity == {
        LeaveGranularity.FULL_DAY: 3,
        LeaveGranularity.HALF_DAY: 1,
    }


@pytest.mark.asyncio
async def test_summarize_december_month_boundary(seeded_engine):
    await seeded_engine.leaves.add_range(
        DOCTOR_ID, date(2024, 12, 30), date(2025, 1, 2), "Holidays"
    )

    summary = await seeded_engine.leaves.summarize(DOCTOR_ID, date(2024, 12, 5))

    assert summary.this_month == 1
    assert summary.upcoming == 1


@pytest.mark.asyncio
async def test_leave_round_trip_restores_slots(seeded_engine):
    """Adding then removing a leave restores every date in its range."""
    start, end = date(2024, 7, 1), date(2024, 7, 14)
    before = {
        day: await seeded_engine.availability.generate(DOCTOR_ID, day)
        for day in iter_dates(start, end)
    }

    leave_id = await seeded_engine.leaves.add_range(DOCTOR_ID, start, end, "Vacation")
    during = await seeded_engine.availability.generate(DOCTOR_ID, MONDAY)
    await seeded_engine.leaves.remove(DOCTOR_ID, leave_id)

    after = {
        day: await seeded_engine.availability.generate(DOCTOR_ID, day)
        for day in iter_dates(start, end)
    }
    assert during.reason == NoAvailabilityReason.ON_LEAVE
    assert after == before
