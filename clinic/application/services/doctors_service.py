import logging
from dataclasses import dataclass
from typing import Tuple

from ...exceptions import Forbidden, NotFound
from ..policy import Actor, DoctorStatus, Policy
from ..ports.directory import Directory, DoctorDto
from .appointments_service import AppointmentsService, SUSPENSION_REASON

logger = logging.getLogger(__name__)


@dataclass
class DoctorsService:
    directory: Directory
    appointments: AppointmentsService

    def update_status(self, actor: Actor, doctor_id: str, status: DoctorStatus) -> Tuple[DoctorDto, int]:
        """Change a doctor's account status.

        Moving a doctor into ``suspended`` cancels their active appointments.
        The returned count is informational; the status change stands even
        when some cancellations fail.
        """
        if not Policy.may_invoke(actor, "update_doctor_status"):
            raise Forbidden("Only administrators can change a doctor's status")
        doctor = self.directory.get_doctor(doctor_id)
        if not doctor:
            raise NotFound("Doctor not found")

        previous = doctor.status
        updated = self.directory.update_doctor_status(doctor_id, status.value)
        if not updated:
            raise NotFound("Doctor not found")
        logger.info(f"Doctor {doctor_id} status changed {previous} -> {status.value} by admin {actor.id}")

        cancelled = 0
        if status is DoctorStatus.SUSPENDED and previous != DoctorStatus.SUSPENDED.value:
            cancelled = self.appointments.cancel_all_for_doctor(doctor_id, SUSPENSION_REASON)
        return updated, cancelled
