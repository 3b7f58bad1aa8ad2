"""
In-process repositories.

Default backend for single-instance deployments and the test double for
the engine. Every call yields to the event loop once so concurrent callers
interleave the way they would against a remote store.
"""

import asyncio
import uuid
from datetime import datetime
from typing import Dict, List, Optional

from db.base import LedgerRepository, ScheduleRepository
from models.appointment import Appointment, AppointmentStatus
from models.leave import LeaveRange
from models.schedule import BreakInterval, DoctorProfile
from utils.datetime_utils import utc_now


def generate_id(prefix: str) -> str:
    """Generate a prefixed UUID."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


class InMemoryScheduleRepository(ScheduleRepository):
    def __init__(self):
        self._profiles: Dict[str, DoctorProfile] = {}
        self._breaks: Dict[str, BreakInterval] = {}
        self._leaves: Dict[str, LeaveRange] = {}

    async def get_profile(self, doctor_id: str) -> Optional[DoctorProfile]:
        await asyncio.sleep(0)
        profile = self._profiles.get(doctor_id)
        return profile.model_copy(deep=True) if profile else None

    async def save_profile(self, profile: DoctorProfile) -> DoctorProfile:
        await asyncio.sleep(0)
        self._profiles[profile.doctor_id] = profile.model_copy(deep=True)
        return profile

    async def list_breaks(self, doctor_id: str) -> List[BreakInterval]:
        await asyncio.sleep(0)
        return [b for b in self._breaks.values() if b.doctor_id == doctor_id]

    async def insert_break(self, break_interval: BreakInterval) -> BreakInterval:
        await asyncio.sleep(0)
        stored = break_interval.model_copy(
            update={"id": break_interval.id or generate_id("brk")}
        )
        self._breaks[stored.id] = stored
        return stored

    async def delete_break(self, doctor_id: str, break_id: str) -> bool:
        await asyncio.sleep(0)
        existing = self._breaks.get(break_id)
        if existing is None or existing.doctor_id != doctor_id:
            return False
        del self._breaks[break_id]
        return True

    async def list_leaves(self, doctor_id: str) -> List[LeaveRange]:
        await asyncio.sleep(0)
        leaves = [lv for lv in self._leaves.values() if lv.doctor_id == doctor_id]
        return sorted(leaves, key=lambda lv: (lv.start_date, lv.end_date))

    async def get_leave(self, leave_id: str) -> Optional[LeaveRange]:
        await asyncio.sleep(0)
        return self._leaves.get(leave_id)

    async def insert_leave(self, leave: LeaveRange) -> LeaveRange:
        await asyncio.sleep(0)
        stored = leave.model_copy(
            update={
                "id": leave.id or generate_id("lv"),
                "created_at": leave.created_at or utc_now(),
            }
        )
        self._leaves[stored.id] = stored
        return stored

    async def delete_leave(self, leave_id: str) -> bool:
        await asyncio.sleep(0)
        return self._leaves.pop(leave_id, None) is not None


class InMemoryLedgerRepository(LedgerRepository):
    def __init__(self):
        self._appointments: Dict[str, Appointment] = {}

    async def list_for_doctor(
        self,
        doctor_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Appointment]:
        await asyncio.sleep(0)
        found = []
        for appt in self._appointments.values():
            if appt.doctor_id != doctor_id:
                continue
            if start is not None and appt.end <= start:
                continue
            if end is not None and appt.start >= end:
                continue
            found.append(appt)
        return sorted(found, key=lambda a: a.start)

    async def get(self, appointment_id: str) -> Optional[Appointment]:
        await asyncio.sleep(0)
        return self._appointments.get(appointment_id)

    async def insert(self, appointment: Appointment) -> Appointment:
        await asyncio.sleep(0)
        now = utc_now()
        stored = appointment.model_copy(
            update={
                "id": appointment.id or generate_id("appt"),
                "created_at": appointment.created_at or now,
                "updated_at": now,
            }
        )
        self._appointments[stored.id] = stored
        return stored

    async def update_status(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Optional[Appointment]:
        await asyncio.sleep(0)
        existing = self._appointments.get(appointment_id)
        if existing is None:
            return None
        updated = existing.model_copy(
            update={"status": status, "updated_at": utc_now()}
        )
        self._appointments[appointment_id] = updated
        return updated

    async def find_by_request_token(
        self, doctor_id: str, request_token: str
    ) -> Optional[Appointment]:
        await asyncio.sleep(0)
        for appt in self._appointments.values():
            if appt.doctor_id == doctor_id and appt.request_token == request_token:
                return appt
        return None
