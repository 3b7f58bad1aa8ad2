"""Per-doctor write serialization."""

import asyncio
from typing import Dict


class DoctorLocks:
    """One asyncio.Lock per doctor id.

    Writes for the same doctor run one at a time; different doctors never
    share a lock.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def for_doctor(self, doctor_id: str) -> asyncio.Lock:
        lock = self._locks.get(doctor_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[doctor_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
