# clinic/schemas/appointments/appointment.py
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime

from ...application.policy import AppointmentStatus

class AppointmentCreate(BaseModel):
    doctor_id: str
    appointment_date: date  # YYYY-MM-DD
    appointment_time: str = Field(..., description="Half-hour slot label, e.g. '9:30 AM'")
    symptoms: Optional[str] = Field(None, max_length=2000)

class AppointmentReschedule(BaseModel):
    # Omitted fields keep their current value
    appointment_date: Optional[date] = None
    appointment_time: Optional[str] = Field(None, description="Half-hour slot label, e.g. '9:30 AM'")
    symptoms: Optional[str] = Field(None, max_length=2000)

class AppointmentStatusUpdate(BaseModel):
    status: AppointmentStatus
    reason: Optional[str] = Field(None, max_length=500)

class AppointmentCancel(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)

class AppointmentResponse(BaseModel):
    id: int
    doctor_id: str
    patient_id: str
    doctor_name: str
    patient_name: str
    appointment_date: date
    appointment_time: str
    symptoms: Optional[str] = None
    status: AppointmentStatus
    notes: str = ""
    created_at: datetime
    updated_at: datetime

class AvailableSlotsResponse(BaseModel):
    doctor_id: str
    appointment_date: date
    available_times: List[str]
