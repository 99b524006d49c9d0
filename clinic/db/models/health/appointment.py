# clinic/db/models/health/appointment.py
from typing import Optional
from sqlmodel import SQLModel, Field
from sqlalchemy import Index, text
from ..common import utcnow
from datetime import datetime, date

# Only pending/confirmed rows occupy a slot; cancelled and completed rows may repeat it.
ACTIVE_SLOT_CLAUSE = "status IN ('pending', 'confirmed')"

class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_active_slot",
            "doctor_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            sqlite_where=text(ACTIVE_SLOT_CLAUSE),
            postgresql_where=text(ACTIVE_SLOT_CLAUSE),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    doctor_id: str = Field(foreign_key="doctors.id", index=True)
    patient_id: str = Field(foreign_key="users.id", index=True)
    doctor_name: str
    patient_name: str
    appointment_date: date
    appointment_time: str = Field(max_length=8)
    symptoms: Optional[str] = None
    status: str = Field(default="pending", index=True)
    notes: str = Field(default="")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})
