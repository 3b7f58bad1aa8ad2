"""
Slot generation.

``SlotGenerator.generate`` is a pure function of a ``ScheduleContext``
snapshot: it never touches storage, so it can run concurrently and its
output can be cached.

Times inside a day are handled as minutes since midnight with half-open
intervals [start, end); a break ending at 13:00 does not touch a slot
starting at 13:00.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple

from models.appointment import Appointment
from models.leave import LeaveGranularity, LeaveRange
from models.schedule import BreakInterval, DoctorProfile, WeekDay, WorkingDayRule
from models.slot import AvailableSlot, NoAvailabilityReason, SlotResult
from utils.datetime_utils import from_minutes, local_date_of, to_instant, to_minutes

Span = Tuple[int, int]


@dataclass(frozen=True)
class ScheduleContext:
    """Everything slot generation needs for one doctor, read at one moment."""

    profile: DoctorProfile
    breaks: Sequence[BreakInterval] = field(default_factory=tuple)
    leaves: Sequence[LeaveRange] = field(default_factory=tuple)
    appointments: Sequence[Appointment] = field(default_factory=tuple)

    @property
    def timezone(self) -> str:
        return self.profile.timezone

    def occupying(self) -> List[Appointment]:
        return [a for a in self.appointments if a.occupies_slot]

    def booked_on(self, day: date) -> int:
        """Occupying appointments starting on ``day`` in the doctor's timezone."""
        return sum(
            1
            for a in self.occupying()
            if local_date_of(a.start, self.timezone) == day
        )


def half_day_midpoint(rule: WorkingDayRule) -> int:
    """
    Boundary between the morning and afternoon halves of a working span.

    Whole minutes, rounded down: a 09:00-16:59 span splits at 12:59.
    """
    start, end = to_minutes(rule.start), to_minutes(rule.end)
    return start + (end - start) // 2


def leave_cut(leave: LeaveRange, rule: WorkingDayRule) -> Span:
    """The part of the working span a covering leave removes."""
    start, end = to_minutes(rule.start), to_minutes(rule.end)
    midpoint = half_day_midpoint(rule)
    if leave.granularity == LeaveGranularity.FULL_DAY:
        return start, end
    if leave.granularity == LeaveGranularity.MORNING:
        return start, midpoint
    # half-day and afternoon both take the second half
    return midpoint, end


def subtract(spans: Iterable[Span], cut_start: int, cut_end: int) -> List[Span]:
    """Remove [cut_start, cut_end) from each span, keeping order."""
    remaining = []
    for start, end in spans:
        if cut_end <= start or end <= cut_start:
            remaining.append((start, end))
            continue
        if start < cut_start:
            remaining.append((start, cut_start))
        if cut_end < end:
            remaining.append((cut_end, end))
    return remaining


def walk(spans: Iterable[Span], duration: int) -> Iterator[Span]:
    """Fixed-length steps through each span; a short tail is dropped."""
    for start, end in spans:
        cursor = start
        while cursor + duration <= end:
            yield cursor, cursor + duration
            cursor += duration


def blocking_leave(
    leaves: Iterable[LeaveRange], rule: WorkingDayRule, day: date, start: int, end: int
) -> Optional[LeaveRange]:
    """First leave covering ``day`` whose removed part overlaps [start, end)."""
    for leave in leaves:
        if not leave.covers(day):
            continue
        cut_start, cut_end = leave_cut(leave, rule)
        if start < cut_end and cut_start < end:
            return leave
    return None


class SlotGenerator:
    """Computes ordered bookable slots for a doctor on a date."""

    def generate(self, doctor_id: str, day: date, context: ScheduleContext) -> SlotResult:
        profile = context.profile

        if not profile.is_available:
            return SlotResult.none(NoAvailabilityReason.DOCTOR_UNAVAILABLE)

        rule = profile.template.rule_for(WeekDay.of(day))
        if not rule.is_working:
            return SlotResult.none(NoAvailabilityReason.NOT_A_WORKING_DAY)

        spans = self.open_spans(rule, day, context)
        if not spans:
            covering = [lv for lv in context.leaves if lv.covers(day)]
            if covering:
                return SlotResult.none(
                    NoAvailabilityReason.ON_LEAVE, leave_id=covering[0].id
                )
            return SlotResult()

        cap = profile.max_appointments_per_day
        booked = context.booked_on(day)
        if cap is not None and booked >= cap:
            return SlotResult.none(NoAvailabilityReason.DAILY_CAPACITY_REACHED)
        remaining = cap - booked if cap is not None else None

        tz = context.timezone
        occupying = context.occupying()
        slots = []
        for start, end in walk(spans, profile.slot_duration):
            start_clock, end_clock = from_minutes(start), from_minutes(end)
            starts_at = to_instant(day, start_clock, tz)
            ends_at = to_instant(day, end_clock, tz)
            if any(a.overlaps(starts_at, ends_at) for a in occupying):
                continue
            slots.append(
                AvailableSlot(
                    doctor_id=doctor_id,
                    date=day,
                    start=start_clock,
                    end=end_clock,
                    capacity_remaining=remaining,
                )
            )

        slots.sort(key=lambda s: s.start)
        return SlotResult(slots=slots)

    def open_spans(
        self, rule: WorkingDayRule, day: date, context: ScheduleContext
    ) -> List[Span]:
        """Working span minus leave halves and breaks, before slotting."""
        spans = [(to_minutes(rule.start), to_minutes(rule.end))]

        for leave in context.leaves:
            if leave.covers(day):
                spans = subtract(spans, *leave_cut(leave, rule))

        for break_interval in context.breaks:
            if break_interval.applies_to(day):
                spans = subtract(
                    spans,
                    to_minutes(break_interval.start),
                    to_minutes(break_interval.end),
                )
        return spans
