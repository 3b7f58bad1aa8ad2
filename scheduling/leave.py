"""
Leave store: explicit date-range exclusions ("unavailable dates").

Ranges are immutable; a correction is a remove followed by a new add.
Past ranges are kept for reporting and never expire on their own.
"""

from collections import Counter
from datetime import date
from typing import Iterable, List, Optional

from db.base import ScheduleRepository
from models.leave import (
    BulkRemoveResult,
    FailedRemoval,
    LeaveGranularity,
    LeaveRange,
    LeaveSummary,
)
from scheduling.cache import VersionClock
from scheduling.locks import DoctorLocks
from utils.constants import MAX_BULK_LEAVE_IDS, MAX_NOTES_LENGTH, MAX_REASON_LENGTH
from utils.exceptions import LeaveNotFoundError, ValidationError
from utils.logging_config import get_logger
from utils.validation import sanitize_text

logger = get_logger(__name__)


class LeaveStore:
    def __init__(
        self,
        repository: ScheduleRepository,
        versions: VersionClock,
        locks: DoctorLocks,
    ):
        self.repository = repository
        self.versions = versions
        self.locks = locks

    async def add_range(
        self,
        doctor_id: str,
        start_date: date,
        end_date: date,
        reason: str,
        granularity: LeaveGranularity = LeaveGranularity.FULL_DAY,
        notes: Optional[str] = None,
    ) -> str:
        """
        Record a leave covering ``start_date`` to ``end_date`` inclusive.

        Raises:
            InvalidRangeError: If start_date is after end_date
        """
        leave = LeaveRange(
            doctor_id=doctor_id,
            start_date=start_date,
            end_date=end_date,
            reason=sanitize_text(reason, MAX_REASON_LENGTH),
            granularity=granularity,
            notes=sanitize_text(notes, MAX_NOTES_LENGTH) or None,
        )

        async with self.locks.for_doctor(doctor_id):
            stored = await self.repository.insert_leave(leave)
            self.versions.bump_schedule(doctor_id)

        logger.info(
            f"Leave {stored.id} added for doctor {doctor_id}: "
            f"{start_date}..{end_date} ({granularity.value})"
        )
        return stored.id

    async def add_dates(
        self,
        doctor_id: str,
        dates: Iterable[date],
        reason: str,
        granularity: LeaveGranularity = LeaveGranularity.FULL_DAY,
        notes: Optional[str] = None,
    ) -> List[str]:
        """Record one single-day leave per distinct date, in date order."""
        return [
            await self.add_range(doctor_id, day, day, reason, granularity, notes)
            for day in sorted(set(dates))
        ]

    async def remove(
        self, doctor_id: str, leave_id: str, admin_override: bool = False
    ) -> None:
        """
        Delete a whole leave range.

        Another doctor's leave is reported as missing unless
        ``admin_override`` is set.

        Raises:
            LeaveNotFoundError: If no visible leave has that id
        """
        leave = await self.repository.get_leave(leave_id)
        if leave is None or (leave.doctor_id != doctor_id and not admin_override):
            raise LeaveNotFoundError(f"Leave {leave_id} not found")

        async with self.locks.for_doctor(leave.doctor_id):
            if not await self.repository.delete_leave(leave_id):
                raise LeaveNotFoundError(f"Leave {leave_id} not found")

            self.versions.bump_schedule(leave.doctor_id)

        if leave.doctor_id != doctor_id:
            logger.warning(
                f"Leave {leave_id} of doctor {leave.doctor_id} removed "
                f"by admin override (acting as {doctor_id})"
            )
        else:
            logger.info(f"Leave {leave_id} removed for doctor {doctor_id}")

    async def bulk_remove(
        self, doctor_id: str, leave_ids: Iterable[str], admin_override: bool = False
    ) -> BulkRemoveResult:
        """Remove many leaves; a failing id is reported, never fatal."""
        leave_ids = list(leave_ids)
        if len(leave_ids) > MAX_BULK_LEAVE_IDS:
            raise ValidationError(
                f"At most {MAX_BULK_LEAVE_IDS} leaves can be removed at once"
            )

        result = BulkRemoveResult()
        for leave_id in leave_ids:
            try:
                await self.remove(doctor_id, leave_id, admin_override=admin_override)
            except LeaveNotFoundError as e:
                result.failed.append(FailedRemoval(id=leave_id, reason=e.code))
            else:
                result.removed.append(leave_id)

        logger.info(
            f"Bulk leave removal for doctor {doctor_id}: "
            f"{len(result.removed)} removed, {len(result.failed)} failed"
        )
        return result

    async def covering(self, doctor_id: str, day: date) -> List[LeaveRange]:
        return [lv for lv in await self.repository.list_leaves(doctor_id) if lv.covers(day)]

    async def history(self, doctor_id: str) -> List[LeaveRange]:
        """All leaves of a doctor, past included, ordered by start date."""
        leaves = await self.repository.list_leaves(doctor_id)
        return sorted(leaves, key=lambda lv: (lv.start_date, lv.end_date))

    async def summarize(self, doctor_id: str, as_of: date) -> LeaveSummary:
        return summarize_leaves(await self.repository.list_leaves(doctor_id), as_of)


def summarize_leaves(leaves: Iterable[LeaveRange], as_of: date) -> LeaveSummary:
    """
    Classify every leave against ``as_of`` in one pass.

    A leave is upcoming while its last day is today or later, past
    otherwise, and counts for this month when it touches the calendar month
    of ``as_of``.
    """
    month_start = as_of.replace(day=1)
    if as_of.month == 12:
        next_month = date(as_of.year + 1, 1, 1)
    else:
        next_month = date(as_of.year, as_of.month + 1, 1)
    month_end = date.fromordinal(next_month.toordinal() - 1)

    summary = LeaveSummary()
    by_granularity: Counter = Counter()
    by_reason: Counter = Counter()

    for leave in leaves:
        summary.total += 1
        if leave.end_date >= as_of:
            summary.upcoming += 1
        else:
            summary.past += 1
        if leave.intersects(month_start, month_end):
            summary.this_month += 1
        by_granularity[leave.granularity] += 1
        by_reason[leave.reason] += 1

    summary.by_granularity = dict(by_granularity)
    summary.by_reason = dict(by_reason)
    return summary
