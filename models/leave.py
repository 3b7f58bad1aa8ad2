"""Leave (unavailable date) models."""

from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from utils.exceptions import InvalidRangeError


class LeaveGranularity(str, Enum):
    """How much of each covered day a leave removes."""

    FULL_DAY = "full-day"
    HALF_DAY = "half-day"
    MORNING = "morning"
    AFTERNOON = "afternoon"


class LeaveRange(BaseModel):
    """Inclusive date range during which a doctor is unavailable.

    Immutable once created; edits are done by removing and re-creating.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    doctor_id: str
    start_date: date
    end_date: date
    reason: str
    granularity: LeaveGranularity = LeaveGranularity.FULL_DAY
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _check_range(self) -> "LeaveRange":
        if self.start_date > self.end_date:
            raise InvalidRangeError(
                f"Leave start {self.start_date} is after end {self.end_date}",
                start_date=self.start_date.isoformat(),
                end_date=self.end_date.isoformat(),
            )
        return self

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def intersects(self, first: date, last: date) -> bool:
        return self.start_date <= last and first <= self.end_date


class LeaveSummary(BaseModel):
    """Counts of leave ranges relative to a reference date."""

    total: int = 0
    upcoming: int = 0
    past: int = 0
    this_month: int = 0
    by_granularity: Dict[LeaveGranularity, int] = Field(default_factory=dict)
    by_reason: Dict[str, int] = Field(default_factory=dict)


class FailedRemoval(BaseModel):
    id: str
    reason: str


class BulkRemoveResult(BaseModel):
    """Partial-success outcome of removing many leaves at once."""

    removed: List[str] = Field(default_factory=list)
    failed: List[FailedRemoval] = Field(default_factory=list)

    @property
    def all_removed(self) -> bool:
        return not self.failed
