"""Doctor availability and appointment booking engine."""

from dataclasses import dataclass
from typing import Optional

from config import settings
from db import get_repositories
from db.base import LedgerRepository, ScheduleRepository

from .availability import AvailabilityService
from .breaks import BreakRegistry
from .cache import SlotCache, VersionClock
from .coordinator import BookingCoordinator
from .leave import LeaveStore
from .ledger import BookingLedger
from .locks import DoctorLocks
from .slots import ScheduleContext, SlotGenerator
from .template import ScheduleDraft, TemplateService

__all__ = [
    "AvailabilityService",
    "BookingCoordinator",
    "BookingLedger",
    "BreakRegistry",
    "DoctorLocks",
    "LeaveStore",
    "ScheduleContext",
    "ScheduleDraft",
    "SchedulingEngine",
    "SlotCache",
    "SlotGenerator",
    "TemplateService",
    "VersionClock",
    "build_engine",
    "get_engine",
]


@dataclass
class SchedulingEngine:
    """All engine components wired to one pair of repositories."""

    templates: TemplateService
    breaks: BreakRegistry
    leaves: LeaveStore
    ledger: BookingLedger
    availability: AvailabilityService
    coordinator: BookingCoordinator
    cache: Optional[SlotCache]


def build_engine(
    schedule_repository: ScheduleRepository,
    ledger_repository: LedgerRepository,
    cache: Optional[SlotCache] = None,
    timeout_seconds: Optional[float] = None,
) -> SchedulingEngine:
    versions = VersionClock()
    locks = DoctorLocks()
    ledger = BookingLedger(ledger_repository, versions)
    availability = AvailabilityService(schedule_repository, ledger, versions, cache)

    return SchedulingEngine(
        templates=TemplateService(schedule_repository, versions, locks),
        breaks=BreakRegistry(schedule_repository, versions, locks),
        leaves=LeaveStore(schedule_repository, versions, locks),
        ledger=ledger,
        availability=availability,
        coordinator=BookingCoordinator(availability, ledger, locks, timeout_seconds),
        cache=cache,
    )


_engine: Optional[SchedulingEngine] = None


def get_engine() -> SchedulingEngine:
    """Get or create the engine for the configured backend."""
    global _engine
    if _engine is None:
        schedule_repository, ledger_repository = get_repositories()
        _engine = build_engine(
            schedule_repository,
            ledger_repository,
            cache=SlotCache(settings.slot_cache_ttl_seconds),
            timeout_seconds=settings.booking_timeout_seconds,
        )
    return _engine
