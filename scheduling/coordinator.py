"""
Booking coordinator: the only path that writes appointments.

A slot list handed to a patient is a snapshot. ``book`` takes the doctor's
lock, rebuilds the schedule context from storage and only commits when the
requested slot is still offered, so two patients racing for one slot get
one appointment and one ``SlotNoLongerAvailableError``.
"""

import asyncio
import uuid
from typing import Optional

from models.appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    BookingSource,
)
from models.schedule import WeekDay
from models.slot import AvailableSlot, NoAvailabilityReason, SlotResult
from scheduling.availability import AvailabilityService
from scheduling.ledger import BookingLedger
from scheduling.locks import DoctorLocks
from scheduling.slots import ScheduleContext, blocking_leave
from utils.datetime_utils import to_minutes
from utils.exceptions import (
    BookingOutcomeUnknownError,
    DailyCapacityReachedError,
    DoctorOnLeaveError,
    SlotNoLongerAvailableError,
    ValidationError,
)
from utils.logging_config import get_logger

logger = get_logger(__name__)


class BookingCoordinator:
    def __init__(
        self,
        availability: AvailabilityService,
        ledger: BookingLedger,
        locks: DoctorLocks,
        timeout_seconds: Optional[float] = None,
    ):
        self.availability = availability
        self.ledger = ledger
        self.locks = locks
        self.timeout_seconds = timeout_seconds

    async def book(
        self,
        doctor_id: str,
        slot: AvailableSlot,
        patient_id: str,
        request_token: Optional[str] = None,
        appointment_type: AppointmentType = AppointmentType.CONSULTATION,
        booking_source: BookingSource = BookingSource.API,
        notes: Optional[str] = None,
    ) -> str:
        """
        Commit an appointment for ``slot``.

        Args:
            doctor_id: Doctor to book
            slot: Slot picked from an earlier ``generate`` call
            patient_id: Patient the appointment is for
            request_token: Idempotency key; a retry with the same token
                returns the appointment created by the first attempt

        Returns:
            Appointment ID

        Raises:
            SlotNoLongerAvailableError: If the slot is no longer offered
            DailyCapacityReachedError: If the doctor's day is full
            DoctorOnLeaveError: If a leave now covers the slot
            BookingOutcomeUnknownError: If the commit timed out; call
                ``recheck`` with the token before trying again
        """
        if slot.doctor_id != doctor_id:
            raise ValidationError(
                f"Slot belongs to doctor {slot.doctor_id}, not {doctor_id}"
            )

        token = request_token or uuid.uuid4().hex
        try:
            appointment = await asyncio.wait_for(
                self._commit(
                    doctor_id,
                    slot,
                    patient_id,
                    token,
                    appointment_type,
                    booking_source,
                    notes,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            logger.error(
                f"Booking for doctor {doctor_id} timed out after "
                f"{self.timeout_seconds}s (request {token}), outcome unknown"
            )
            raise BookingOutcomeUnknownError(token) from e

        return appointment.id

    async def recheck(self, doctor_id: str, request_token: str) -> Optional[Appointment]:
        """Resolve an unknown booking outcome by reading the ledger."""
        return await self.ledger.find_by_request_token(doctor_id, request_token)

    async def cancel(self, appointment_id: str) -> Appointment:
        """
        Cancel an appointment; its time becomes bookable again.

        Raises:
            AppointmentNotFoundError: If the appointment does not exist
            InvalidTransitionError: If it is already past cancellation
        """
        return await self.transition(appointment_id, AppointmentStatus.CANCELLED)

    async def transition(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Appointment:
        """Apply a status change under the doctor's lock."""
        appointment = await self.ledger.get(appointment_id)
        async with self.locks.for_doctor(appointment.doctor_id):
            return await self.ledger.transition(appointment_id, status)

    async def _commit(
        self,
        doctor_id: str,
        slot: AvailableSlot,
        patient_id: str,
        token: str,
        appointment_type: AppointmentType,
        booking_source: BookingSource,
        notes: Optional[str],
    ) -> Appointment:
        async with self.locks.for_doctor(doctor_id):
            existing = await self.ledger.find_by_request_token(doctor_id, token)
            if existing is not None:
                logger.info(
                    f"Request {token} already booked as appointment {existing.id}"
                )
                return existing

            context = await self.availability.load_context(doctor_id, slot.date)
            result = self.availability.generator.generate(doctor_id, slot.date, context)
            self._ensure_offered(slot, context, result)

            appointment = Appointment(
                doctor_id=doctor_id,
                patient_id=patient_id,
                start=slot.starts_at(context.timezone),
                end=slot.ends_at(context.timezone),
                status=AppointmentStatus.SCHEDULED,
                request_token=token,
                appointment_type=appointment_type,
                booking_source=booking_source,
                notes=notes,
            )
            return await self.ledger.append(appointment)

    @staticmethod
    def _ensure_offered(
        slot: AvailableSlot, context: ScheduleContext, result: SlotResult
    ) -> None:
        if result.reason == NoAvailabilityReason.ON_LEAVE:
            raise DoctorOnLeaveError(
                f"Doctor {slot.doctor_id} is on leave on {slot.date}",
                leave_id=result.unavailable.leave_id,
            )
        if result.reason == NoAvailabilityReason.DAILY_CAPACITY_REACHED:
            raise DailyCapacityReachedError(
                f"Doctor {slot.doctor_id} is fully booked on {slot.date}"
            )

        if any(offered.same_window(slot) for offered in result.slots):
            return

        rule = context.profile.template.rule_for(WeekDay.of(slot.date))
        if rule.is_working:
            leave = blocking_leave(
                context.leaves,
                rule,
                slot.date,
                to_minutes(slot.start),
                to_minutes(slot.end),
            )
            if leave is not None:
                raise DoctorOnLeaveError(
                    f"Leave {leave.id} covers {slot.start}-{slot.end} on {slot.date}",
                    leave_id=leave.id,
                )

        logger.warning(
            f"Slot {slot.date} {slot.start}-{slot.end} for doctor "
            f"{slot.doctor_id} is no longer available"
        )
        raise SlotNoLongerAvailableError(
            f"Slot {slot.start}-{slot.end} on {slot.date} is no longer available"
        )
