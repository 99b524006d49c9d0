import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional

from ...exceptions import (
    Forbidden,
    InvalidSlot,
    InvalidState,
    InvalidTransition,
    NotFound,
    SlotConflict,
)
from ..policy import (
    ACTIVE_STATUSES,
    Actor,
    AppointmentStatus,
    DoctorStatus,
    Policy,
)
from ..ports.appointments_repo import AppointmentsRepository, AppointmentDto
from ..ports.directory import Directory
from ..time_slots import TIME_SLOTS, is_valid_slot
from .notification_dispatcher import NotificationDispatcher

logger = logging.getLogger(__name__)

SUSPENSION_REASON = "Doctor has been suspended"

_ACTIVE = [s.value for s in ACTIVE_STATUSES]


@dataclass
class AppointmentsService:
    repo: AppointmentsRepository
    directory: Directory
    notifications: NotificationDispatcher
    clock: Callable[[], date] = field(default=date.today)

    # ------------------------
    # Booking
    # ------------------------
    def book(self, actor: Actor, doctor_id: str, appointment_date: date, appointment_time: str, symptoms: Optional[str] = None) -> AppointmentDto:
        if not Policy.may_invoke(actor, "book"):
            raise Forbidden("Only patients can book appointments")
        self._validate_slot(appointment_date, appointment_time)

        doctor = self.directory.get_doctor(doctor_id)
        if not doctor or doctor.status != DoctorStatus.ACTIVE.value:
            raise NotFound("Doctor not found")
        patient = self.directory.get_user(actor.id)
        if not patient:
            raise NotFound("Patient not found")

        if self.repo.find_conflict(doctor_id, appointment_date, appointment_time):
            raise SlotConflict()

        appt = self.repo.create(
            doctor_id=doctor_id,
            patient_id=actor.id,
            doctor_name=doctor.name,
            patient_name=patient.name,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            symptoms=symptoms,
        )
        logger.info(f"Appointment {appt.id} booked with doctor {doctor_id} on {appointment_date} at {appointment_time}")

        self.notifications.dispatch(
            patient.email,
            "Appointment Confirmation",
            f"Your appointment has been scheduled with Dr. {doctor.name} on {appointment_date.isoformat()} "
            f"at {appointment_time}. Please arrive 10 minutes before your scheduled time.",
        )
        return appt

    # ------------------------
    # Reschedule / edit
    # ------------------------
    def update(
        self,
        appointment_id: int,
        actor: Actor,
        appointment_date: Optional[date] = None,
        appointment_time: Optional[str] = None,
        symptoms: Optional[str] = None,
    ) -> AppointmentDto:
        """Edit a pending appointment.

        A missing date or time keeps the current value; the slot is validated
        and conflict-checked only when it actually moves. ``symptoms`` is
        replaced when given.
        """
        appt = self._get_for_mutation(appointment_id, actor, "reschedule")
        if appt.status != AppointmentStatus.PENDING.value:
            raise InvalidState(f"Only pending appointments can be rescheduled (current status: {appt.status})")

        new_date = appointment_date or appt.appointment_date
        new_time = appointment_time or appt.appointment_time
        moved = (new_date, new_time) != (appt.appointment_date, appt.appointment_time)
        if moved:
            self._validate_slot(new_date, new_time)
            if self.repo.find_conflict(appt.doctor_id, new_date, new_time, exclude_id=appt.id):
                raise SlotConflict()

        updated = self.repo.reschedule(appt.id, new_date, new_time, symptoms=symptoms)
        logger.info(f"Appointment {appt.id} updated ({new_date} at {new_time}) by {actor.role.value} {actor.id}")

        if moved:
            self._notify_patient(
                updated,
                "Appointment Rescheduled",
                f"Your appointment has been rescheduled to {updated.appointment_date.isoformat()} at {updated.appointment_time}.",
            )
        return updated

    def reschedule(self, appointment_id: int, actor: Actor, new_date: date, new_time: str) -> AppointmentDto:
        return self.update(appointment_id, actor, appointment_date=new_date, appointment_time=new_time)

    # ------------------------
    # Status transitions
    # ------------------------
    def set_status(self, appointment_id: int, actor: Actor, new_status: AppointmentStatus, reason: Optional[str] = None) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        if not Policy.may_invoke(actor, "set_status"):
            raise Forbidden("Not authorized to update this appointment")

        current = AppointmentStatus(appt.status)
        if not Policy.can_transition(current, new_status):
            raise InvalidTransition(f"Cannot change appointment status from {current.value} to {new_status.value}")
        if not Policy.may_set_status(actor, new_status):
            raise Forbidden(f"A {actor.role.value} cannot mark an appointment as {new_status.value}")
        if not Policy.is_party(actor, appt.patient_id, appt.doctor_id):
            raise Forbidden("Not authorized to update this appointment")

        note = reason if new_status is AppointmentStatus.CANCELLED else None
        updated = self.repo.update_status(appt.id, new_status.value, note=note, from_statuses=[current.value])
        logger.info(f"Appointment {appt.id} moved {current.value} -> {new_status.value} by {actor.role.value} {actor.id}")

        if new_status is AppointmentStatus.CANCELLED:
            self._notify_patient(updated, "Appointment Cancelled", self._cancellation_message(updated, reason))
        return updated

    def cancel(self, appointment_id: int, actor: Actor, reason: Optional[str] = None) -> AppointmentDto:
        return self.set_status(appointment_id, actor, AppointmentStatus.CANCELLED, reason=reason)

    def complete(self, appointment_id: int, actor: Actor) -> AppointmentDto:
        return self.set_status(appointment_id, actor, AppointmentStatus.COMPLETED)

    # ------------------------
    # Cascading cancellation
    # ------------------------
    def cancel_all_for_doctor(self, doctor_id: str, reason: str = SUSPENSION_REASON) -> int:
        """Cancel every pending or confirmed appointment of a doctor.

        Each appointment is handled on its own: a failure on one is logged and
        the rest are still processed. Already-cancelled appointments are not
        selected, so re-running is harmless. Returns how many were cancelled.
        """
        cancelled = 0
        for appt in self.repo.list_active_for_doctor(doctor_id):
            try:
                updated = self.repo.update_status(
                    appt.id, AppointmentStatus.CANCELLED.value, note=reason, from_statuses=_ACTIVE
                )
            except InvalidState:
                logger.info(f"Appointment {appt.id} left active state before it could be cancelled; skipping")
                continue
            except Exception:
                logger.exception(f"Failed to cancel appointment {appt.id} for doctor {doctor_id}")
                continue
            cancelled += 1
            self._notify_patient(
                updated,
                "Appointment Cancelled",
                self._cancellation_message(updated, reason)
                + " Please contact our support team for assistance in rebooking with another doctor.",
            )
        logger.info(f"Cancelled {cancelled} appointments for doctor {doctor_id}")
        return cancelled

    # ------------------------
    # Queries
    # ------------------------
    def list_for(self, actor: Actor, status: Optional[AppointmentStatus] = None) -> List[AppointmentDto]:
        if not Policy.may_invoke(actor, "list"):
            raise Forbidden("Not authorized to list appointments")
        return self.repo.list(status=status.value if status else None, **Policy.scope(actor))

    def get(self, appointment_id: int, actor: Actor) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        if not Policy.may_invoke(actor, "get") or not Policy.is_party(actor, appt.patient_id, appt.doctor_id):
            raise Forbidden("Not authorized to view this appointment")
        return appt

    def available_slots(self, doctor_id: str, appointment_date: date, exclude_id: Optional[int] = None) -> List[str]:
        if not self.directory.get_doctor(doctor_id):
            raise NotFound("Doctor not found")
        booked = set(self.repo.booked_times(doctor_id, appointment_date, exclude_id=exclude_id))
        return [slot for slot in TIME_SLOTS if slot not in booked]

    # ------------------------
    # Helpers
    # ------------------------
    def _get_for_mutation(self, appointment_id: int, actor: Actor, operation: str) -> AppointmentDto:
        appt = self.repo.get_by_id(appointment_id)
        if not appt:
            raise NotFound("Appointment not found")
        if not Policy.may_invoke(actor, operation) or not Policy.is_party(actor, appt.patient_id, appt.doctor_id):
            raise Forbidden("Not authorized to update this appointment")
        return appt

    def _validate_slot(self, appointment_date: date, appointment_time: str) -> None:
        if not is_valid_slot(appointment_time):
            raise InvalidSlot(f"Invalid appointment time '{appointment_time}'. Use one of: {', '.join(TIME_SLOTS)}")
        if appointment_date < self.clock():
            raise InvalidSlot("Appointment date cannot be in the past")

    def _notify_patient(self, appt: AppointmentDto, subject: str, message: str) -> None:
        try:
            patient = self.directory.get_user(appt.patient_id)
        except Exception as e:
            logger.warning(f"Could not resolve patient {appt.patient_id} for '{subject}' notification: {e}")
            return
        self.notifications.dispatch(patient.email if patient else None, subject, message)

    @staticmethod
    def _cancellation_message(appt: AppointmentDto, reason: Optional[str]) -> str:
        message = (
            f"Your appointment with Dr. {appt.doctor_name} scheduled for "
            f"{appt.appointment_date.isoformat()} at {appt.appointment_time} has been cancelled."
        )
        if reason:
            message += f" Reason: {reason}."
        return message
