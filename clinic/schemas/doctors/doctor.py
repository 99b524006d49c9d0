# clinic/schemas/doctors/doctor.py
from pydantic import BaseModel
from typing import Optional

from ...application.policy import DoctorStatus

class DoctorStatusUpdate(BaseModel):
    status: DoctorStatus

class DoctorResponse(BaseModel):
    id: str
    name: str
    status: DoctorStatus
    specialization: Optional[str] = None

class DoctorStatusResponse(BaseModel):
    message: str
    doctor: DoctorResponse
    cancelled_appointments: int = 0
