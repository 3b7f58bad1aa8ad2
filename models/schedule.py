"""Weekly schedule models: working days, breaks and doctor profile."""

from datetime import date, time
from enum import Enum
from typing import Dict, Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from utils.constants import MAX_SLOT_DURATION_MINUTES, MIN_SLOT_DURATION_MINUTES
from utils.exceptions import InvalidRangeError, ValidationError


class WeekDay(str, Enum):
    """Calendar weekday, Monday first."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def of(cls, day: date) -> "WeekDay":
        """Weekday of a calendar date."""
        return list(cls)[day.weekday()]


class WorkingDayRule(BaseModel):
    """Working hours for one weekday."""

    model_config = ConfigDict(frozen=True)

    weekday: WeekDay
    is_working: bool = False
    start: time = time(9, 0)
    end: time = time(17, 0)

    @model_validator(mode="after")
    def _check_span(self) -> "WorkingDayRule":
        if self.is_working and not self.start < self.end:
            raise InvalidRangeError(
                f"{self.weekday.value}: start {self.start} must be before end {self.end}",
                weekday=self.weekday.value,
            )
        return self

    @classmethod
    def day_off(cls, weekday: WeekDay) -> "WorkingDayRule":
        return cls(weekday=weekday, is_working=False)

    def contains(self, start: time, end: time) -> bool:
        """True if [start, end) lies inside the working span."""
        return self.is_working and self.start <= start and end <= self.end


class WeeklyTemplate(BaseModel):
    """One working-day rule per weekday; missing weekdays are days off."""

    rules: Dict[WeekDay, WorkingDayRule] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _fill_week(self) -> "WeeklyTemplate":
        for weekday, rule in self.rules.items():
            if rule.weekday != weekday:
                raise InvalidRangeError(
                    f"Rule for {rule.weekday.value} stored under {weekday.value}"
                )
        for weekday in WeekDay:
            self.rules.setdefault(weekday, WorkingDayRule.day_off(weekday))
        return self

    @classmethod
    def from_rules(cls, rules: Iterable[WorkingDayRule]) -> "WeeklyTemplate":
        return cls(rules={rule.weekday: rule for rule in rules})

    def rule_for(self, weekday: WeekDay) -> WorkingDayRule:
        return self.rules[weekday]

    def with_rule(self, rule: WorkingDayRule) -> "WeeklyTemplate":
        rules = dict(self.rules)
        rules[rule.weekday] = rule
        return WeeklyTemplate(rules=rules)

    def working_days(self) -> list[WeekDay]:
        return [day for day in WeekDay if self.rules[day].is_working]


class BreakInterval(BaseModel):
    """A named break on a weekday, or on one specific date (quick-add)."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    doctor_id: str
    weekday: Optional[WeekDay] = None
    on_date: Optional[date] = None
    start: time
    end: time
    label: str = ""

    @model_validator(mode="after")
    def _check_interval(self) -> "BreakInterval":
        if (self.weekday is None) == (self.on_date is None):
            raise InvalidRangeError(
                "Break must be scoped to exactly one of weekday or on_date"
            )
        if not self.start < self.end:
            raise InvalidRangeError(
                f"Break start {self.start} must be before end {self.end}"
            )
        return self

    @property
    def effective_weekday(self) -> WeekDay:
        """Weekday whose working rule must contain this break."""
        if self.weekday is not None:
            return self.weekday
        return WeekDay.of(self.on_date)

    def applies_to(self, day: date) -> bool:
        if self.on_date is not None:
            return self.on_date == day
        return self.weekday == WeekDay.of(day)

    def same_scope(self, other: "BreakInterval") -> bool:
        """Breaks compete for the same time if they can apply to one date."""
        if self.on_date is not None and other.on_date is not None:
            return self.on_date == other.on_date
        return self.effective_weekday == other.effective_weekday

    def overlaps(self, other: "BreakInterval") -> bool:
        return self.start < other.end and other.start < self.end


class DoctorProfile(BaseModel):
    """Doctor-level scheduling settings and weekly template."""

    doctor_id: str
    template: WeeklyTemplate = Field(default_factory=WeeklyTemplate)
    slot_duration: int = Field(
        default=30, ge=MIN_SLOT_DURATION_MINUTES, le=MAX_SLOT_DURATION_MINUTES
    )
    max_appointments_per_day: Optional[int] = Field(default=None, ge=1)
    is_available: bool = True
    timezone: str = "UTC"

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValidationError(f"Unknown timezone: {value}", timezone=value) from e
        return value

    class Config:
        json_schema_extra = {
            "example": {
                "doctor_id": "doc_123",
                "template": {
                    "rules": {
                        "monday": {
                            "weekday": "monday",
                            "is_working": True,
                            "start": "09:00",
                            "end": "17:00",
                        }
                    }
                },
                "slot_duration": 30,
                "max_appointments_per_day": 12,
                "timezone": "Europe/Prague",
            }
        }
