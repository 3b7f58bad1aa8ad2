"""
Supabase-backed repositories for schedules, leave and the appointment ledger.

Tables:
    doctor_profiles  (doctor_id PK, template jsonb, slot_duration,
                      max_appointments_per_day, is_available, timezone)
    doctor_breaks    (id uuid PK, doctor_id, weekday, on_date,
                      start_time, end_time, label)
    doctor_leaves    (id uuid PK, doctor_id, start_date, end_date,
                      reason, type, notes, created_at)
    appointments     (id uuid PK, doctor_id, patient_id, start_time,
                      end_time, status, payment_status, request_token,
                      appointment_type, booking_source, notes,
                      created_at, updated_at)

A unique index on appointments(doctor_id, request_token) backs idempotent
booking retries. Overlapping live appointments are rejected by the store
itself, so workers that do not share a process lock still cannot double
book a doctor:

    create extension if not exists btree_gist;
    alter table appointments add constraint appointments_no_overlap
        exclude using gist (
            doctor_id with =,
            tstzrange(start_time, end_time) with &&
        ) where (status <> 'cancelled');

This client uses the service key which bypasses RLS. Doctors editing their
own schedule should go through RLS policies at the database level.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from supabase import Client as SupabaseClientType
from supabase import create_client

from config import settings
from db.base import LedgerRepository, ScheduleRepository
from models.appointment import Appointment, AppointmentStatus
from models.leave import LeaveRange
from models.schedule import BreakInterval, DoctorProfile, WeeklyTemplate
from utils.datetime_utils import parse_iso_datetime, to_iso_string, utc_now
from utils.exceptions import DatabaseError, SlotNoLongerAvailableError
from utils.logging_config import get_logger

logger = get_logger(__name__)

# Postgres error codes raised by the appointments constraints
UNIQUE_VIOLATION = "23505"
EXCLUSION_VIOLATION = "23P01"


class _SupabaseRepository:
    """Shared connection handling."""

    def __init__(self, client: Optional[SupabaseClientType] = None):
        self.client: SupabaseClientType = client or create_client(
            settings.supabase_url, settings.supabase_key
        )

    @staticmethod
    def _fail(action: str, error: Exception) -> DatabaseError:
        logger.error(f"Failed to {action}: {error}", exc_info=True)
        return DatabaseError(f"Failed to {action}: {error}")


class SupabaseScheduleRepository(_SupabaseRepository, ScheduleRepository):
    """Doctor profiles, breaks and leaves stored in Supabase."""

    # ========== Profile ==========

    async def get_profile(self, doctor_id: str) -> Optional[DoctorProfile]:
        try:
            response = (
                self.client.table("doctor_profiles")
                .select("*")
                .eq("doctor_id", doctor_id)
                .execute()
            )
        except Exception as e:
            raise self._fail("get doctor profile", e) from e

        if not response.data:
            return None
        return self._parse_profile(response.data[0])

    async def save_profile(self, profile: DoctorProfile) -> DoctorProfile:
        data = profile.model_dump(mode="json")
        data["updated_at"] = to_iso_string(utc_now())
        try:
            response = (
                self.client.table("doctor_profiles")
                .upsert(data, on_conflict="doctor_id")
                .execute()
            )
        except Exception as e:
            raise self._fail("save doctor profile", e) from e

        if not response.data:
            raise DatabaseError("Failed to save doctor profile: no data returned")
        return self._parse_profile(response.data[0])

    # ========== Breaks ==========

    async def list_breaks(self, doctor_id: str) -> List[BreakInterval]:
        try:
            response = (
                self.client.table("doctor_breaks")
                .select("*")
                .eq("doctor_id", doctor_id)
                .order("start_time", desc=False)
                .execute()
            )
        except Exception as e:
            raise self._fail("list breaks", e) from e

        return [self._parse_break(item) for item in response.data]

    async def insert_break(self, break_interval: BreakInterval) -> BreakInterval:
        data = break_interval.model_dump(mode="json", exclude_none=True)
        data["start_time"] = data.pop("start")
        data["end_time"] = data.pop("end")
        try:
            response = self.client.table("doctor_breaks").insert(data).execute()
        except Exception as e:
            raise self._fail("create break", e) from e

        if not response.data:
            raise DatabaseError("Failed to create break: no data returned")
        return self._parse_break(response.data[0])

    async def delete_break(self, doctor_id: str, break_id: str) -> bool:
        try:
            response = (
                self.client.table("doctor_breaks")
                .delete()
                .eq("id", break_id)
                .eq("doctor_id", doctor_id)
                .execute()
            )
        except Exception as e:
            raise self._fail("delete break", e) from e

        return len(response.data) > 0

    # ========== Leave ==========

    async def list_leaves(self, doctor_id: str) -> List[LeaveRange]:
        try:
            response = (
                self.client.table("doctor_leaves")
                .select("*")
                .eq("doctor_id", doctor_id)
                .order("start_date", desc=False)
                .execute()
            )
        except Exception as e:
            raise self._fail("list leaves", e) from e

        return [self._parse_leave(item) for item in response.data]

    async def get_leave(self, leave_id: str) -> Optional[LeaveRange]:
        try:
            response = (
                self.client.table("doctor_leaves")
                .select("*")
                .eq("id", leave_id)
                .execute()
            )
        except Exception as e:
            raise self._fail("get leave", e) from e

        if not response.data:
            return None
        return self._parse_leave(response.data[0])

    async def insert_leave(self, leave: LeaveRange) -> LeaveRange:
        data = leave.model_dump(mode="json", exclude_none=True)
        data["type"] = data.pop("granularity")
        try:
            response = self.client.table("doctor_leaves").insert(data).execute()
        except Exception as e:
            raise self._fail("create leave", e) from e

        if not response.data:
            raise DatabaseError("Failed to create leave: no data returned")
        return self._parse_leave(response.data[0])

    async def delete_leave(self, leave_id: str) -> bool:
        try:
            response = (
                self.client.table("doctor_leaves")
                .delete()
                .eq("id", leave_id)
                .execute()
            )
        except Exception as e:
            raise self._fail("delete leave", e) from e

        return len(response.data) > 0

    # ========== Helper Methods ==========

    def _parse_profile(self, item: Dict[str, Any]) -> DoctorProfile:
        item = item.copy()
        item.pop("updated_at", None)
        item["template"] = WeeklyTemplate.model_validate(item.get("template") or {})
        return DoctorProfile(**item)

    def _parse_break(self, item: Dict[str, Any]) -> BreakInterval:
        item = item.copy()
        item["start"] = item.pop("start_time")
        item["end"] = item.pop("end_time")
        item.pop("created_at", None)
        return BreakInterval(**item)

    def _parse_leave(self, item: Dict[str, Any]) -> LeaveRange:
        item = item.copy()
        item["granularity"] = item.pop("type")
        if item.get("created_at"):
            item["created_at"] = parse_iso_datetime(item["created_at"])
        item.pop("updated_at", None)
        return LeaveRange(**item)


class SupabaseLedgerRepository(_SupabaseRepository, LedgerRepository):
    """Appointment ledger stored in Supabase."""

    async def list_for_doctor(
        self,
        doctor_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Appointment]:
        try:
            query = (
                self.client.table("appointments")
                .select("*")
                .eq("doctor_id", doctor_id)
            )
            if start:
                query = query.gt("end_time", to_iso_string(start))
            if end:
                query = query.lt("start_time", to_iso_string(end))

            response = query.order("start_time", desc=False).execute()
        except Exception as e:
            raise self._fail("list appointments", e) from e

        return [self._parse_appointment(item) for item in response.data]

    async def get(self, appointment_id: str) -> Optional[Appointment]:
        try:
            response = (
                self.client.table("appointments")
                .select("*")
                .eq("id", appointment_id)
                .execute()
            )
        except Exception as e:
            raise self._fail("get appointment", e) from e

        if not response.data:
            return None
        return self._parse_appointment(response.data[0])

    async def insert(self, appointment: Appointment) -> Appointment:
        data = appointment.model_dump(mode="json", exclude_none=True)
        data["start_time"] = to_iso_string(appointment.start)
        data["end_time"] = to_iso_string(appointment.end)
        del data["start"], data["end"]
        try:
            response = self.client.table("appointments").insert(data).execute()
        except Exception as e:
            code = getattr(e, "code", None)
            if code == EXCLUSION_VIOLATION:
                logger.warning(
                    f"Appointment for doctor {appointment.doctor_id} at "
                    f"{data['start_time']} overlaps a committed appointment"
                )
                raise SlotNoLongerAvailableError(
                    f"Slot starting {data['start_time']} is no longer available"
                ) from e
            if code == UNIQUE_VIOLATION and appointment.request_token:
                existing = await self.find_by_request_token(
                    appointment.doctor_id, appointment.request_token
                )
                if existing is not None:
                    return existing
            raise self._fail("create appointment", e) from e

        if not response.data:
            raise DatabaseError("Failed to create appointment: no data returned")
        return self._parse_appointment(response.data[0])

    async def update_status(
        self, appointment_id: str, status: AppointmentStatus
    ) -> Optional[Appointment]:
        update_data = {
            "status": status.value,
            "updated_at": to_iso_string(utc_now()),
        }
        try:
            response = (
                self.client.table("appointments")
                .update(update_data)
                .eq("id", appointment_id)
                .execute()
            )
        except Exception as e:
            raise self._fail("update appointment status", e) from e

        if not response.data:
            return None
        return self._parse_appointment(response.data[0])

    async def find_by_request_token(
        self, doctor_id: str, request_token: str
    ) -> Optional[Appointment]:
        try:
            response = (
                self.client.table("appointments")
                .select("*")
                .eq("doctor_id", doctor_id)
                .eq("request_token", request_token)
                .execute()
            )
        except Exception as e:
            raise self._fail("find appointment by request token", e) from e

        if not response.data:
            return None
        return self._parse_appointment(response.data[0])

    def _parse_appointment(self, item: Dict[str, Any]) -> Appointment:
        """
        Parse appointment data from database response.

        Args:
            item: Raw appointment row

        Returns:
            Parsed Appointment object
        """
        item = item.copy()
        item["start"] = parse_iso_datetime(item.pop("start_time"))
        item["end"] = parse_iso_datetime(item.pop("end_time"))
        for field in ["created_at", "updated_at"]:
            if item.get(field):
                item[field] = parse_iso_datetime(item[field])
        return Appointment(**item)
