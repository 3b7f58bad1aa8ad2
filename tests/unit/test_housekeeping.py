"""
Unit tests for background housekeeping.
Tests slot cache pruning with a patched scheduler.
"""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest

from scheduler import housekeeping
from scheduler.housekeeping import prune_slot_cache, setup_scheduler, shutdown_scheduler
from scheduling.cache import SlotCache
from tests.conftest import DOCTOR_ID, MONDAY, TUESDAY
from utils.datetime_utils import utc_now


@pytest.fixture
def cache():
    cache = SlotCache(ttl_seconds=60)
    cache.set((DOCTOR_ID, MONDAY, 0, 0), "fresh")
    return cache


@pytest.mark.asyncio
async def test_prune_slot_cache_no_cache():
    """Test pruning is skipped when no cache is set."""
    with patch("scheduler.housekeeping._cache_instance", None):
        assert await prune_slot_cache() == 0


@pytest.mark.asyncio
async def test_prune_slot_cache_keeps_fresh_entries(cache):
    with patch("scheduler.housekeeping._cache_instance", cache):
        removed = await prune_slot_cache()

    assert removed == 0
    assert len(cache) == 1


@pytest.mark.asyncio
async def test_prune_slot_cache_drops_expired(cache):
    cache.set((DOCTOR_ID, TUESDAY, 0, 0), "fresh")

    with patch("scheduler.housekeeping._cache_instance", cache), patch(
        "scheduling.cache.utc_now"
    ) as mock_now:
        mock_now.return_value = utc_now() + timedelta(minutes=5)
        removed = await prune_slot_cache()

    assert removed == 2
    assert len(cache) == 0


def test_setup_scheduler(cache):
    """Test scheduler setup."""
    with patch("scheduler.housekeeping.scheduler") as mock_scheduler, patch(
        "scheduler.housekeeping._cache_instance", None
    ):
        mock_scheduler.add_job = MagicMock()
        mock_scheduler.start = MagicMock()

        setup_scheduler(cache=cache)

        mock_scheduler.add_job.assert_called_once()
        assert mock_scheduler.add_job.call_args.kwargs["id"] == "prune_slot_cache"
        mock_scheduler.start.assert_called_once()


def test_shutdown_scheduler():
    with patch("scheduler.housekeeping.scheduler") as mock_scheduler:
        shutdown_scheduler()

        mock_scheduler.shutdown.assert_called_once()


def test_setup_scheduler_injects_empty_cache():
    """Test that a fresh cache with no entries is still used by the job."""
    empty = SlotCache(ttl_seconds=60)

    with patch("scheduler.housekeeping.scheduler"), patch(
        "scheduler.housekeeping._cache_instance", None
    ):
        setup_scheduler(cache=empty)

        assert housekeeping._cache_instance is empty
