"""Computed availability models."""

from datetime import date, datetime, time
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from utils.datetime_utils import to_instant


class NoAvailabilityReason(str, Enum):
    """Why a date offers no slots. Informational, not an error."""

    NOT_A_WORKING_DAY = "NotAWorkingDay"
    ON_LEAVE = "OnLeave"
    DAILY_CAPACITY_REACHED = "DailyCapacityReached"
    DOCTOR_UNAVAILABLE = "DoctorUnavailable"


class NoAvailability(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: NoAvailabilityReason
    leave_id: Optional[str] = None


class AvailableSlot(BaseModel):
    """A bookable slot on a calendar date. Computed, never stored."""

    model_config = ConfigDict(frozen=True)

    doctor_id: str
    date: date
    start: time
    end: time
    capacity_remaining: Optional[int] = None

    def starts_at(self, tz: str) -> datetime:
        return to_instant(self.date, self.start, tz)

    def ends_at(self, tz: str) -> datetime:
        return to_instant(self.date, self.end, tz)

    def same_window(self, other: "AvailableSlot") -> bool:
        return (
            self.doctor_id == other.doctor_id
            and self.date == other.date
            and self.start == other.start
            and self.end == other.end
        )


class SlotResult(BaseModel):
    """Ordered slots for a date, or the reason there are none."""

    model_config = ConfigDict(frozen=True)

    slots: List[AvailableSlot] = Field(default_factory=list)
    unavailable: Optional[NoAvailability] = None

    @classmethod
    def none(
        cls, reason: NoAvailabilityReason, leave_id: Optional[str] = None
    ) -> "SlotResult":
        return cls(unavailable=NoAvailability(reason=reason, leave_id=leave_id))

    @property
    def reason(self) -> Optional[NoAvailabilityReason]:
        return self.unavailable.reason if self.unavailable else None

    def __bool__(self) -> bool:
        return bool(self.slots)

    def __len__(self) -> int:
        return len(self.slots)
