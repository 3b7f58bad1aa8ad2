"""Break registry: named break intervals on a weekday or a single date."""

from typing import List

from db.base import ScheduleRepository
from models.schedule import BreakInterval, WeekDay
from scheduling.cache import VersionClock
from scheduling.locks import DoctorLocks
from utils.constants import MAX_BREAK_LABEL_LENGTH
from utils.exceptions import (
    BreakNotFoundError,
    BreakOverlapError,
    DoctorNotFoundError,
    OutOfWorkingHoursError,
)
from utils.logging_config import get_logger
from utils.validation import sanitize_text

logger = get_logger(__name__)


class BreakRegistry:
    def __init__(
        self,
        repository: ScheduleRepository,
        versions: VersionClock,
        locks: DoctorLocks,
    ):
        self.repository = repository
        self.versions = versions
        self.locks = locks

    async def list(self, doctor_id: str) -> List[BreakInterval]:
        breaks = await self.repository.list_breaks(doctor_id)
        return sorted(
            breaks,
            key=lambda b: (
                b.on_date is not None,
                list(WeekDay).index(b.effective_weekday),
                b.start,
            ),
        )

    async def add(self, break_interval: BreakInterval) -> str:
        """
        Register a break.

        Args:
            break_interval: Break scoped to a weekday or a single date

        Returns:
            ID of the stored break

        Raises:
            DoctorNotFoundError: If the doctor has no profile
            OutOfWorkingHoursError: If the break leaves the working span
            BreakOverlapError: If it overlaps a break of the same scope
        """
        doctor_id = break_interval.doctor_id
        async with self.locks.for_doctor(doctor_id):
            profile = await self.repository.get_profile(doctor_id)
            if profile is None:
                raise DoctorNotFoundError(f"Doctor {doctor_id} not found")

            weekday = break_interval.effective_weekday
            rule = profile.template.rule_for(weekday)
            if not rule.contains(break_interval.start, break_interval.end):
                raise OutOfWorkingHoursError(
                    f"Break {break_interval.start}-{break_interval.end} is outside "
                    f"working hours on {weekday.value}",
                    weekday=weekday.value,
                )

            for existing in await self.repository.list_breaks(doctor_id):
                if existing.same_scope(break_interval) and existing.overlaps(
                    break_interval
                ):
                    raise BreakOverlapError(
                        f"Break overlaps existing break {existing.id}",
                        conflicting_id=existing.id,
                    )

            label = sanitize_text(break_interval.label, MAX_BREAK_LABEL_LENGTH)
            stored = await self.repository.insert_break(
                break_interval.model_copy(update={"label": label})
            )
            self.versions.bump_schedule(doctor_id)

        logger.info(
            f"Break {stored.id} added for doctor {doctor_id} "
            f"({stored.start}-{stored.end}, {stored.label or 'unlabelled'})"
        )
        return stored.id

    async def remove(self, doctor_id: str, break_id: str) -> None:
        """
        Remove a break.

        Raises:
            BreakNotFoundError: If the doctor has no break with that id
        """
        async with self.locks.for_doctor(doctor_id):
            deleted = await self.repository.delete_break(doctor_id, break_id)
            if not deleted:
                raise BreakNotFoundError(f"Break {break_id} not found")
            self.versions.bump_schedule(doctor_id)

        logger.info(f"Break {break_id} removed for doctor {doctor_id}")
