import logging
from datetime import date
from typing import Iterable, List, Optional
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from .....db.models import Appointment
from .....exceptions import InvalidState, NotFound, SlotConflict
from .....application.policy import ACTIVE_STATUSES
from .....application.time_slots import slot_sort_key
from .....application.ports.appointments_repo import (
    AppointmentsRepository,
    AppointmentDto,
)

logger = logging.getLogger(__name__)

_ACTIVE = [s.value for s in ACTIVE_STATUSES]

SLOT_INDEX = "uq_appointments_active_slot"
SLOT_COLUMNS = "appointments.doctor_id, appointments.appointment_date, appointments.appointment_time"


def _is_slot_violation(e: IntegrityError) -> bool:
    # Postgres names the index; SQLite lists the indexed columns instead
    message = str(e.orig)
    return SLOT_INDEX in message or SLOT_COLUMNS in message


def _append_note(existing: str, note: str) -> str:
    return f"{existing}\n{note}" if existing else note


class SqlAppointmentsRepository(AppointmentsRepository):
    def __init__(self, session: Session):
        self.session = session

    def _appt_to_dto(self, a: Appointment) -> AppointmentDto:
        return AppointmentDto(
            id=a.id,
            doctor_id=a.doctor_id,
            patient_id=a.patient_id,
            doctor_name=a.doctor_name,
            patient_name=a.patient_name,
            appointment_date=a.appointment_date,
            appointment_time=a.appointment_time,
            symptoms=a.symptoms,
            status=a.status,
            notes=a.notes or "",
            created_at=a.created_at,
            updated_at=a.updated_at,
        )

    def _sorted(self, rows) -> List[AppointmentDto]:
        rows = sorted(rows, key=lambda r: (r.appointment_date, slot_sort_key(r.appointment_time)))
        return [self._appt_to_dto(r) for r in rows]

    def _load(self, appointment_id: int) -> Appointment:
        a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        if not a:
            raise NotFound("Appointment not found")
        return a

    def _commit_slot_write(self, a: Appointment) -> AppointmentDto:
        """Commit an insert or slot change, letting the unique index decide conflicts."""
        self.session.add(a)
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if _is_slot_violation(e):
                logger.info(f"Slot conflict rejected by store for doctor {a.doctor_id} on {a.appointment_date} at {a.appointment_time}")
                raise SlotConflict() from e
            raise
        self.session.refresh(a)
        return self._appt_to_dto(a)

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        a = self.session.exec(select(Appointment).where(Appointment.id == appointment_id)).first()
        return self._appt_to_dto(a) if a else None

    def find_conflict(self, doctor_id: str, appointment_date: date, appointment_time: str, exclude_id: Optional[int] = None) -> bool:
        query = (
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_date == appointment_date)
            .where(Appointment.appointment_time == appointment_time)
            .where(Appointment.status.in_(_ACTIVE))
        )
        if exclude_id is not None:
            query = query.where(Appointment.id != exclude_id)
        return self.session.exec(query).first() is not None

    def create(self, doctor_id: str, patient_id: str, doctor_name: str, patient_name: str, appointment_date: date, appointment_time: str, symptoms: Optional[str]) -> AppointmentDto:
        appt = Appointment(
            doctor_id=doctor_id,
            patient_id=patient_id,
            doctor_name=doctor_name,
            patient_name=patient_name,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            symptoms=symptoms,
            status="pending",
        )
        return self._commit_slot_write(appt)

    def reschedule(self, appointment_id: int, appointment_date: date, appointment_time: str, symptoms: Optional[str] = None) -> AppointmentDto:
        a = self._load(appointment_id)
        a.appointment_date = appointment_date
        a.appointment_time = appointment_time
        if symptoms is not None:
            a.symptoms = symptoms
        return self._commit_slot_write(a)

    def update_status(self, appointment_id: int, status: str, note: Optional[str] = None, from_statuses: Optional[Iterable[str]] = None) -> AppointmentDto:
        a = self._load(appointment_id)
        values = {"status": status}
        if note:
            values["notes"] = _append_note(a.notes or "", note)
        stmt = update(Appointment).where(Appointment.id == appointment_id)
        if from_statuses is not None:
            # Compare-and-set: a row that changed status since it was read is left alone
            stmt = stmt.where(Appointment.status.in_(list(from_statuses)))
        try:
            result = self.session.execute(stmt.values(**values))
            applied = result.rowcount > 0
            if applied:
                self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        if not applied:
            self.session.rollback()
            raise InvalidState(f"Appointment {appointment_id} is no longer in an updatable status")
        self.session.refresh(a)
        return self._appt_to_dto(a)

    def list(self, patient_id: Optional[str] = None, doctor_id: Optional[str] = None, status: Optional[str] = None) -> List[AppointmentDto]:
        query = select(Appointment)
        if patient_id is not None:
            query = query.where(Appointment.patient_id == patient_id)
        if doctor_id is not None:
            query = query.where(Appointment.doctor_id == doctor_id)
        if status is not None:
            query = query.where(Appointment.status == status)
        return self._sorted(self.session.exec(query).all())

    def list_active_for_doctor(self, doctor_id: str) -> List[AppointmentDto]:
        rows = self.session.exec(
            select(Appointment)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.status.in_(_ACTIVE))
        ).all()
        return self._sorted(rows)

    def booked_times(self, doctor_id: str, appointment_date: date, exclude_id: Optional[int] = None) -> List[str]:
        query = (
            select(Appointment.appointment_time)
            .where(Appointment.doctor_id == doctor_id)
            .where(Appointment.appointment_date == appointment_date)
            .where(Appointment.status.in_(_ACTIVE))
        )
        if exclude_id is not None:
            query = query.where(Appointment.id != exclude_id)
        return sorted(self.session.exec(query).all(), key=slot_sort_key)
