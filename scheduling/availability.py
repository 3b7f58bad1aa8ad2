"""
Availability service: read path from storage to slot lists.

Slot lists returned here are advisory snapshots. Booking re-checks
everything at commit time.
"""

from datetime import date
from typing import Dict, Optional

from db.base import ScheduleRepository
from models.slot import SlotResult
from scheduling.cache import SlotCache, VersionClock
from scheduling.ledger import BookingLedger
from scheduling.slots import ScheduleContext, SlotGenerator
from utils.datetime_utils import iter_dates
from utils.exceptions import DoctorNotFoundError, InvalidRangeError
from utils.logging_config import get_logger

logger = get_logger(__name__)

MAX_RANGE_DAYS = 92


class AvailabilityService:
    def __init__(
        self,
        repository: ScheduleRepository,
        ledger: BookingLedger,
        versions: VersionClock,
        cache: Optional[SlotCache] = None,
        generator: Optional[SlotGenerator] = None,
    ):
        self.repository = repository
        self.ledger = ledger
        self.versions = versions
        self.cache = cache
        self.generator = generator or SlotGenerator()

    async def load_context(self, doctor_id: str, day: date) -> ScheduleContext:
        """
        Read a consistent-enough snapshot for one doctor and date.

        Raises:
            DoctorNotFoundError: If the doctor has no profile
        """
        profile = await self.repository.get_profile(doctor_id)
        if profile is None:
            raise DoctorNotFoundError(f"Doctor {doctor_id} not found")

        breaks = await self.repository.list_breaks(doctor_id)
        leaves = [
            lv for lv in await self.repository.list_leaves(doctor_id) if lv.covers(day)
        ]
        appointments = await self.ledger.for_day(doctor_id, day, profile.timezone)

        return ScheduleContext(
            profile=profile,
            breaks=tuple(breaks),
            leaves=tuple(leaves),
            appointments=tuple(appointments),
        )

    async def generate(self, doctor_id: str, day: date) -> SlotResult:
        """Bookable slots for ``day``, served from cache when unchanged."""
        key = self.versions.key(doctor_id, day)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        context = await self.load_context(doctor_id, day)
        result = self.generator.generate(doctor_id, day, context)

        if self.cache is not None:
            self.cache.set(key, result)

        logger.debug(
            f"Generated {len(result)} slots for doctor {doctor_id} on {day}"
            + (f" ({result.reason.value})" if result.reason else "")
        )
        return result

    async def generate_range(
        self, doctor_id: str, start_date: date, end_date: date
    ) -> Dict[date, SlotResult]:
        """Slots for every date from start_date to end_date inclusive."""
        if start_date > end_date:
            raise InvalidRangeError(f"Range start {start_date} is after end {end_date}")
        if (end_date - start_date).days >= MAX_RANGE_DAYS:
            raise InvalidRangeError(f"Range longer than {MAX_RANGE_DAYS} days")

        return {
            day: await self.generate(doctor_id, day)
            for day in iter_dates(start_date, end_date)
        }
