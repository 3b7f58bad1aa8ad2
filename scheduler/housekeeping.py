"""
Background housekeeping using APScheduler.
Periodically drops expired slot cache entries so long-running processes do
not keep every (doctor, date, version) key they ever generated.
"""

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import settings
from scheduling.cache import SlotCache
from utils.logging_config import get_logger

logger = get_logger(__name__, log_file="housekeeping.log", log_dir=settings.log_dir)

scheduler = AsyncIOScheduler()

# Cache instance - injected via setup_scheduler
_cache_instance: Optional[SlotCache] = None


def set_cache_instance(cache: SlotCache) -> None:
    """Set the slot cache the cleanup job works on."""
    global _cache_instance
    _cache_instance = cache
    logger.info("Slot cache set for housekeeping")


async def prune_slot_cache() -> int:
    """Drop expired slot cache entries. Returns how many were removed."""
    if _cache_instance is None:
        logger.warning("No slot cache configured - skipping cleanup")
        return 0

    removed = _cache_instance.cleanup_expired()
    if removed:
        logger.info(
            f"Pruned {removed} expired slot cache entries, {len(_cache_instance)} left"
        )
    else:
        logger.debug("No expired slot cache entries")
    return removed


def setup_scheduler(cache: Optional[SlotCache] = None) -> None:
    """Setup and start the scheduler.

    Args:
        cache: Optional cache to inject. If None, must be set later via
            set_cache_instance()
    """
    if cache is not None:
        set_cache_instance(cache)

    scheduler.add_job(
        prune_slot_cache,
        trigger=IntervalTrigger(minutes=settings.cache_cleanup_interval_minutes),
        id="prune_slot_cache",
        name="Prune expired slot cache entries",
        replace_existing=True,
    )

    scheduler.start()
    logger.info("Scheduler started")


def shutdown_scheduler() -> None:
    """Shutdown the scheduler."""
    scheduler.shutdown()
    logger.info("Scheduler stopped")
