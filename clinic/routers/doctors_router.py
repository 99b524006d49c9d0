from fastapi import APIRouter, Depends

from ..application.policy import Actor, DoctorStatus, Role
from ..application.services.doctors_service import DoctorsService
from ..schemas.doctors.doctor import DoctorResponse, DoctorStatusResponse, DoctorStatusUpdate
from ..services.auth import require_roles
from .dependencies import get_doctors_service


router = APIRouter(prefix="/doctors", tags=["Doctors"])


@router.patch("/{doctor_id}/status", response_model=DoctorStatusResponse)
def update_doctor_status(
    doctor_id: str,
    data: DoctorStatusUpdate,
    actor: Actor = Depends(require_roles(Role.ADMIN)),
    doctors_service: DoctorsService = Depends(get_doctors_service),
):
    doctor, cancelled = doctors_service.update_status(actor, doctor_id, data.status)
    return DoctorStatusResponse(
        message="Doctor status updated successfully",
        doctor=DoctorResponse(
            id=doctor.id,
            name=doctor.name,
            status=DoctorStatus(doctor.status),
            specialization=doctor.specialization,
        ),
        cancelled_appointments=cancelled,
    )
