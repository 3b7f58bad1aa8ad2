"""Background jobs for the scheduling engine."""

from .housekeeping import prune_slot_cache, setup_scheduler, shutdown_scheduler

__all__ = ["prune_slot_cache", "setup_scheduler", "shutdown_scheduler"]
