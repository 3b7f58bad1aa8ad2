"""
Weekly template editing.

An edit session works on a ``ScheduleDraft``; nothing reaches storage until
``TemplateService.save`` writes the whole profile in one replace. Discarding
a draft never touches storage.
"""

from datetime import time
from typing import Iterable, Optional

from config import settings
from db.base import ScheduleRepository
from models.schedule import DoctorProfile, WeekDay, WeeklyTemplate, WorkingDayRule
from scheduling.cache import VersionClock
from scheduling.locks import DoctorLocks
from utils.exceptions import (
    DoctorNotFoundError,
    OutOfWorkingHoursError,
    StaleDraftError,
    ValidationError,
)
from utils.logging_config import get_logger

logger = get_logger(__name__)


class ScheduleDraft:
    """Local working copy of a doctor's schedule settings."""

    def __init__(self, profile: DoctorProfile):
        self.base = profile
        self.template = profile.template
        self.slot_duration = profile.slot_duration
        self.max_appointments_per_day = profile.max_appointments_per_day
        self.is_available = profile.is_available
        self.discarded = False

    @property
    def doctor_id(self) -> str:
        return self.base.doctor_id

    def set_day(self, weekday: WeekDay, start: time, end: time) -> "ScheduleDraft":
        self.template = self.template.with_rule(
            WorkingDayRule(weekday=weekday, is_working=True, start=start, end=end)
        )
        return self

    def set_day_off(self, weekday: WeekDay) -> "ScheduleDraft":
        self.template = self.template.with_rule(WorkingDayRule.day_off(weekday))
        return self

    def set_slot_duration(self, minutes: int) -> "ScheduleDraft":
        self.slot_duration = minutes
        return self

    def set_capacity(self, max_per_day: Optional[int]) -> "ScheduleDraft":
        self.max_appointments_per_day = max_per_day
        return self

    def set_accepting_bookings(self, accepting: bool) -> "ScheduleDraft":
        self.is_available = accepting
        return self

    def build(self) -> DoctorProfile:
        """Validated profile the draft would save."""
        return DoctorProfile(
            doctor_id=self.doctor_id,
            template=self.template,
            slot_duration=self.slot_duration,
            max_appointments_per_day=self.max_appointments_per_day,
            is_available=self.is_available,
            timezone=self.base.timezone,
        )

    @property
    def dirty(self) -> bool:
        return self.build() != self.base

    def discard(self) -> None:
        self.template = self.base.template
        self.slot_duration = self.base.slot_duration
        self.max_appointments_per_day = self.base.max_appointments_per_day
        self.is_available = self.base.is_available
        self.discarded = True


class TemplateService:
    def __init__(
        self,
        repository: ScheduleRepository,
        versions: VersionClock,
        locks: DoctorLocks,
    ):
        self.repository = repository
        self.versions = versions
        self.locks = locks

    async def get_profile(self, doctor_id: str) -> DoctorProfile:
        profile = await self.repository.get_profile(doctor_id)
        if profile is None:
            raise DoctorNotFoundError(f"Doctor {doctor_id} not found")
        return profile

    async def create_profile(
        self,
        doctor_id: str,
        rules: Iterable[WorkingDayRule] = (),
        slot_duration: Optional[int] = None,
        max_appointments_per_day: Optional[int] = None,
        timezone: Optional[str] = None,
    ) -> DoctorProfile:
        """Create a profile, falling back to configured defaults."""
        profile = DoctorProfile(
            doctor_id=doctor_id,
            template=WeeklyTemplate.from_rules(rules),
            slot_duration=slot_duration or settings.default_slot_duration_minutes,
            max_appointments_per_day=(
                max_appointments_per_day
                if max_appointments_per_day is not None
                else settings.default_max_appointments_per_day
            ),
            timezone=timezone or settings.timezone,
        )
        async with self.locks.for_doctor(doctor_id):
            if await self.repository.get_profile(doctor_id) is not None:
                raise ValidationError(f"Doctor {doctor_id} already has a schedule")
            saved = await self.repository.save_profile(profile)
            self.versions.bump_schedule(doctor_id)

        logger.info(f"Schedule created for doctor {doctor_id}")
        return saved

    async def open_draft(self, doctor_id: str) -> ScheduleDraft:
        return ScheduleDraft(await self.get_profile(doctor_id))

    async def save(self, draft: ScheduleDraft) -> DoctorProfile:
        """
        Replace the stored profile with the draft.

        Raises:
            ValidationError: If the draft was discarded
            StaleDraftError: If the profile changed since the draft was opened
            OutOfWorkingHoursError: If an existing break no longer fits
        """
        if draft.discarded:
            raise ValidationError("Cannot save a discarded draft")

        profile = draft.build()
        doctor_id = profile.doctor_id

        async with self.locks.for_doctor(doctor_id):
            current = await self.repository.get_profile(doctor_id)
            if current is None:
                raise DoctorNotFoundError(f"Doctor {doctor_id} not found")
            if current != draft.base:
                raise StaleDraftError(
                    f"Schedule of doctor {doctor_id} changed since the draft was opened"
                )

            stranded = [
                b.id
                for b in await self.repository.list_breaks(doctor_id)
                if not profile.template.rule_for(b.effective_weekday).contains(
                    b.start, b.end
                )
            ]
            if stranded:
                raise OutOfWorkingHoursError(
                    f"Breaks {', '.join(stranded)} fall outside the new working hours",
                    break_ids=stranded,
                )

            saved = await self.repository.save_profile(profile)
            self.versions.bump_schedule(doctor_id)

        logger.info(f"Schedule saved for doctor {doctor_id}")
        return saved
