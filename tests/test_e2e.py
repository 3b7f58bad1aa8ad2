"""
End-to-end tests through the wired engine.
Tests the complete flow: schedule → breaks → leave → book → cancel.
"""

from datetime import date, time

import pytest

from models.leave import LeaveGranularity
from models.schedule import BreakInterval, WeekDay, WorkingDayRule
from models.slot import NoAvailabilityReason
from tests.conftest import THURSDAY
from utils.exceptions import DoctorOnLeaveError, SlotNoLongerAvailableError


def working(weekday: WeekDay, start: time, end: time) -> WorkingDayRule:
    return WorkingDayRule(weekday=weekday, is_working=True, start=start, end=end)


@pytest.mark.asyncio
async def test_doctor_week(engine):
    """
    Test a doctor's week:
    1. Create schedule
    2. Add lunch break
    3. Add afternoon leave
    4. Book and race for a slot
    5. Cancel and rebook
    """
    doctor_id = "doc_e2e"
    friday = date(2024, 7, 5)

    await engine.templates.create_profile(
        doctor_id,
        rules=[
            working(WeekDay.THURSDAY, time(8, 0), time(16, 0)),
            working(WeekDay.FRIDAY, time(8, 0), time(12, 0)),
        ],
        slot_duration=60,
        max_appointments_per_day=5,
        timezone="Europe/Prague",
    )
    await engine.breaks.add(
        BreakInterval(
            doctor_id=doctor_id,
            weekday=WeekDay.THURSDAY,
            start=time(12, 0),
            end=time(13, 0),
            label="Lunch",
        )
    )

    thursday = await engine.availability.generate(doctor_id, THURSDAY)
    assert [s.start for s in thursday.slots] == [
        time(8, 0),
        time(9, 0),
        time(10, 0),
        time(11, 0),
        time(13, 0),
        time(14, 0),
        time(15, 0),
    ]
    assert thursday.slots[0].capacity_remaining == 5

    await engine.leaves.add_range(
        doctor_id, THURSDAY, friday, "Conference", LeaveGranularity.AFTERNOON
    )
    thursday = await engine.availability.generate(doctor_id, THURSDAY)
    assert [s.start for s in thursday.slots] == [time(8, 0), time(9, 0), time(10, 0), time(11, 0)]
    friday_result = await engine.availability.generate(doctor_id, friday)
    assert [s.start for s in friday_result.slots] == [time(8, 0), time(9, 0)]

    slot = thursday.slots[1]
    appointment_id = await engine.coordinator.book(doctor_id, slot, "pat_1")
    with pytest.raises(SlotNoLongerAvailableError):
        await engine.coordinator.book(doctor_id, slot, "pat_2")

    appointment = await engine.ledger.get(appointment_id)
    assert appointment.start.isoformat() == "2024-07-04T09:00:00+02:00"

    await engine.coordinator.cancel(appointment_id)
    assert await engine.coordinator.book(doctor_id, slot, "pat_2")

    remaining = await engine.availability.generate(doctor_id, THURSDAY)
    assert len(remaining) == 3
    assert remaining.slots[0].capacity_remaining == 4


@pytest.mark.asyncio
async def test_full_leave_blocks_booking_of_listed_slot(seeded_engine):
    monday = date(2024, 7, 8)
    listed = await seeded_engine.availability.generate("doc_1", monday)

    leave_id = await seeded_engine.leaves.add_range("doc_1", monday, monday, "Sick")

    with pytest.raises(DoctorOnLeaveError) as exc_info:
        await seeded_engine.coordinator.book("doc_1", listed.slots[0], "pat_1")
    assert exc_info.value.details["leave_id"] == leave_id

    result = await seeded_engine.availability.generate("doc_1", monday)
    assert result.reason == NoAvailabilityReason.ON_LEAVE
    assert result.unavailable.leave_id == leave_id
