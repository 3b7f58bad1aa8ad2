"""
Version counters and the slot cache.

Generated slot lists are cached per (doctor, date, ledger version, schedule
version). A write bumps the matching counter, so stale entries are never
hit again and simply age out through the TTL.
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Dict, Optional, Tuple

from models.slot import SlotResult
from utils.datetime_utils import utc_now

CacheKey = Tuple[str, date, int, int]


class VersionClock:
    """Per-doctor monotonically increasing write counters."""

    def __init__(self):
        self._ledger: Dict[str, int] = defaultdict(int)
        self._schedule: Dict[str, int] = defaultdict(int)

    def ledger_version(self, doctor_id: str) -> int:
        return self._ledger[doctor_id]

    def schedule_version(self, doctor_id: str) -> int:
        return self._schedule[doctor_id]

    def bump_ledger(self, doctor_id: str) -> int:
        self._ledger[doctor_id] += 1
        return self._ledger[doctor_id]

    def bump_schedule(self, doctor_id: str) -> int:
        self._schedule[doctor_id] += 1
        return self._schedule[doctor_id]

    def key(self, doctor_id: str, day: date) -> CacheKey:
        return (
            doctor_id,
            day,
            self.ledger_version(doctor_id),
            self.schedule_version(doctor_id),
        )


class SlotCache:
    """TTL cache of generated slot results."""

    def __init__(self, ttl_seconds: int = 300):
        # Format: {cache_key: (result, expiry_time)}
        self._entries: Dict[CacheKey, Tuple[SlotResult, datetime]] = {}
        self._ttl = timedelta(seconds=ttl_seconds)

    def get(self, key: CacheKey) -> Optional[SlotResult]:
        """Get value from cache if not expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        result, expiry = entry
        if utc_now() > expiry:
            del self._entries[key]
            return None

        return result

    def set(self, key: CacheKey, result: SlotResult) -> None:
        self._entries[key] = (result, utc_now() + self._ttl)

    def invalidate(self, doctor_id: Optional[str] = None) -> int:
        """Drop entries for one doctor, or everything if doctor_id is None."""
        if doctor_id is None:
            count = len(self._entries)
            self._entries.clear()
            return count

        keys = [k for k in self._entries if k[0] == doctor_id]
        for k in keys:
            del self._entries[k]
        return len(keys)

    def cleanup_expired(self) -> int:
        """Remove expired cache entries. Returns how many were dropped."""
        now = utc_now()
        expired = [k for k, (_, expiry) in self._entries.items() if now > expiry]
        for k in expired:
            del self._entries[k]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)
