"""Booking ledger: committed appointments for each doctor."""

from datetime import date, datetime
from typing import List, Optional

from db.base import LedgerRepository
from models.appointment import Appointment, AppointmentStatus, ensure_transition
from scheduling.cache import VersionClock
from utils.datetime_utils import day_bounds
from utils.exceptions import (
    AppointmentNotFoundError,
    DatabaseError,
    SlotNoLongerAvailableError,
)
from utils.logging_config import get_logger

logger = get_logger(__name__)


class BookingLedger:
    """Read access for slot generation, write access for the coordinator.

    Every write bumps the doctor's ledger version so cached slot lists built
    before the write are no longer served.
    """

    def __init__(self, repository: LedgerRepository, versions: VersionClock):
        self.repository = repository
        self.versions = versions

    def version(self, doctor_id: str) -> int:
        return self.versions.ledger_version(doctor_id)

    async def for_day(self, doctor_id: str, day: date, tz: str) -> List[Appointment]:
        """Appointments touching ``day`` in the doctor's timezone."""
        start, end = day_bounds(day, tz)
        return await self.repository.list_for_doctor(doctor_id, start, end)

    async def history(
        self,
        doctor_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Appointment]:
        """Read-only enumeration for reports and exports."""
        return await self.repository.list_for_doctor(doctor_id, start, end)

    async def get(self, appointment_id: str) -> Appointment:
        appointment = await self.repository.get(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    async def find_by_request_token(
        self, doctor_id: str, request_token: str
    ) -> Optional[Appointment]:
        return await self.repository.find_by_request_token(doctor_id, request_token)

    async def append(self, appointment: Appointment) -> Appointment:
        try:
            stored = await self.repository.insert(appointment)
        except SlotNoLongerAvailableError:
            # Another worker committed first; drop cached lists that predate it
            self.versions.bump_ledger(appointment.doctor_id)
            raise
        self.versions.bump_ledger(appointment.doctor_id)
        logger.info(
            f"Appointment {stored.id} recorded for doctor {stored.doctor_id} "
            f"at {stored.start.isoformat()}"
        )
        return stored

    async def transition(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Appointment:
        """
        Move an appointment to ``status``.

        Raises:
            AppointmentNotFoundError: If the appointment does not exist
            InvalidTransitionError: If the change is not allowed; nothing
                is written in that case
        """
        current = await self.get(appointment_id)
        ensure_transition(current.status, status)

        updated = await self.repository.update_status(appointment_id, status)
        if updated is None:
            raise DatabaseError(
                f"Appointment {appointment_id} disappeared during status update"
            )
        self.versions.bump_ledger(current.doctor_id)

        logger.info(
            f"Appointment {appointment_id}: {current.status.value} -> {status.value}"
        )
        return updated
