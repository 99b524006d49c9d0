from typing import Optional
from sqlmodel import Session, select

from .....db.models import Doctor, User
from .....application.ports.directory import Directory, DoctorDto, UserDto


class SqlDirectory(Directory):
    """Read-mostly view over the user and doctor tables."""

    def __init__(self, session: Session):
        self.session = session

    def _doctor_to_dto(self, d: Doctor) -> DoctorDto:
        return DoctorDto(
            id=d.id,
            name=d.name,
            status=d.status,
            email=d.email,
            specialization=d.specialization,
        )

    def get_doctor(self, doctor_id: str) -> Optional[DoctorDto]:
        d = self.session.exec(select(Doctor).where(Doctor.id == doctor_id)).first()
        return self._doctor_to_dto(d) if d else None

    def get_user(self, user_id: str) -> Optional[UserDto]:
        u = self.session.exec(select(User).where(User.id == user_id)).first()
        if not u:
            return None
        return UserDto(id=u.id, name=u.name, email=u.email, role=u.role)

    def update_doctor_status(self, doctor_id: str, status: str) -> Optional[DoctorDto]:
        d = self.session.exec(select(Doctor).where(Doctor.id == doctor_id)).first()
        if not d:
            return None
        d.status = status
        self.session.add(d)
        self.session.commit()
        self.session.refresh(d)
        return self._doctor_to_dto(d)
