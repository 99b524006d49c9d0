# clinic/db/models/health/doctor.py
from typing import Optional
from sqlmodel import SQLModel, Field
from ..common import utcnow
from datetime import datetime
import uuid

class Doctor(SQLModel, table=True):
    __tablename__ = "doctors"
    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    name: str = Field(max_length=100)
    email: Optional[str] = Field(max_length=100, default=None)
    specialization: str = Field(default="")
    status: str = Field(default="pending", index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow, sa_column_kwargs={"onupdate": utcnow})
