"""Storage backends for the scheduling engine."""

from typing import Optional, Tuple

from config import settings

from .base import LedgerRepository, ScheduleRepository
from .memory import InMemoryLedgerRepository, InMemoryScheduleRepository

__all__ = [
    "InMemoryLedgerRepository",
    "InMemoryScheduleRepository",
    "LedgerRepository",
    "ScheduleRepository",
    "get_repositories",
]

_repositories: Optional[Tuple[ScheduleRepository, LedgerRepository]] = None


def get_repositories() -> Tuple[ScheduleRepository, LedgerRepository]:
    """Get or create the repositories for the configured backend."""
    global _repositories
    if _repositories is None:
        if settings.store_backend == "supabase":
            from .supabase_client import (
                SupabaseLedgerRepository,
                SupabaseScheduleRepository,
            )

            schedule = SupabaseScheduleRepository()
            _repositories = (schedule, SupabaseLedgerRepository(schedule.client))
        else:
            _repositories = (InMemoryScheduleRepository(), InMemoryLedgerRepository())
    return _repositories
