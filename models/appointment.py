"""Appointment models and the status state machine."""

from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, Optional

from pydantic import BaseModel, Field

from utils.exceptions import InvalidTransitionError


class AppointmentStatus(str, Enum):
    """Appointment lifecycle status."""

    SCHEDULED = "scheduled"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class AppointmentType(str, Enum):
    CONSULTATION = "consultation"
    FOLLOW_UP = "follow-up"
    EMERGENCY = "emergency"
    ROUTINE_CHECKUP = "routine-checkup"
    PROCEDURE = "procedure"


class BookingSource(str, Enum):
    WEBSITE = "website"
    MOBILE_APP = "mobile-app"
    PHONE_CALL = "phone-call"
    IN_PERSON = "in-person"
    API = "api"


ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {
            AppointmentStatus.IN_PROGRESS,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.NO_SHOW,
        }
    ),
    AppointmentStatus.IN_PROGRESS: frozenset({AppointmentStatus.COMPLETED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: AppointmentStatus, target: AppointmentStatus) -> None:
    """
    Check a status change against the transition table.

    Raises:
        InvalidTransitionError: If the change is not in the table
    """
    if not can_transition(current, target):
        raise InvalidTransitionError(
            f"Cannot move appointment from {current.value} to {target.value}",
            current=current.value,
            target=target.value,
        )


class Appointment(BaseModel):
    """Committed appointment as recorded in the ledger."""

    id: Optional[str] = None
    doctor_id: str
    patient_id: str
    start: datetime
    end: datetime
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    payment_status: PaymentStatus = PaymentStatus.PENDING
    request_token: Optional[str] = None
    appointment_type: AppointmentType = AppointmentType.CONSULTATION
    booking_source: BookingSource = BookingSource.API
    notes: Optional[str] = Field(default=None, max_length=1000)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def occupies_slot(self) -> bool:
        """Every appointment except a cancelled one holds its time."""
        return self.status != AppointmentStatus.CANCELLED

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return start < self.end and self.start < end
