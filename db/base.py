"""
Storage contracts the scheduling engine talks to.

The engine never reaches a database directly; each backend implements
these two repositories.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from models.appointment import Appointment, AppointmentStatus
from models.leave import LeaveRange
from models.schedule import BreakInterval, DoctorProfile


class ScheduleRepository(ABC):
    """Doctor profile, breaks and leave ranges."""

    # ========== Profile ==========

    @abstractmethod
    async def get_profile(self, doctor_id: str) -> Optional[DoctorProfile]:
        ...

    @abstractmethod
    async def save_profile(self, profile: DoctorProfile) -> DoctorProfile:
        """Replace the whole profile (template included) in one write."""

    # ========== Breaks ==========

    @abstractmethod
    async def list_breaks(self, doctor_id: str) -> List[BreakInterval]:
        ...

    @abstractmethod
    async def insert_break(self, break_interval: BreakInterval) -> BreakInterval:
        ...

    @abstractmethod
    async def delete_break(self, doctor_id: str, break_id: str) -> bool:
        ...

    # ========== Leave ==========

    @abstractmethod
    async def list_leaves(self, doctor_id: str) -> List[LeaveRange]:
        ...

    @abstractmethod
    async def get_leave(self, leave_id: str) -> Optional[LeaveRange]:
        ...

    @abstractmethod
    async def insert_leave(self, leave: LeaveRange) -> LeaveRange:
        ...

    @abstractmethod
    async def delete_leave(self, leave_id: str) -> bool:
        ...


class LedgerRepository(ABC):
    """System of record for committed appointments."""

    @abstractmethod
    async def list_for_doctor(
        self,
        doctor_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Appointment]:
        """Appointments of a doctor overlapping [start, end), ordered by start."""

    @abstractmethod
    async def get(self, appointment_id: str) -> Optional[Appointment]:
        ...

    @abstractmethod
    async def insert(self, appointment: Appointment) -> Appointment:
        ...

    @abstractmethod
    async def update_status(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Optional[Appointment]:
        ...

    @abstractmethod
    async def find_by_request_token(
        self, doctor_id: str, request_token: str
    ) -> Optional[Appointment]:
        ...
