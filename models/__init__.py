"""Pydantic models for schedules, leave, appointments and slots."""

from .appointment import (
    ALLOWED_TRANSITIONS,
    Appointment,
    AppointmentStatus,
    AppointmentType,
    BookingSource,
    PaymentStatus,
    can_transition,
    ensure_transition,
)
from .leave import BulkRemoveResult, FailedRemoval, LeaveGranularity, LeaveRange, LeaveSummary
from .schedule import BreakInterval, DoctorProfile, WeekDay, WeeklyTemplate, WorkingDayRule
from .slot import AvailableSlot, NoAvailability, NoAvailabilityReason, SlotResult

__all__ = [
    "ALLOWED_TRANSITIONS",
    "Appointment",
    "AppointmentStatus",
    "AppointmentType",
    "AvailableSlot",
    "BookingSource",
    "BreakInterval",
    "BulkRemoveResult",
    "DoctorProfile",
    "FailedRemoval",
    "LeaveGranularity",
    "LeaveRange",
    "LeaveSummary",
    "NoAvailability",
    "NoAvailabilityReason",
    "PaymentStatus",
    "SlotResult",
    "WeekDay",
    "WeeklyTemplate",
    "WorkingDayRule",
    "can_transition",
    "ensure_transition",
]
