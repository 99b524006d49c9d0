from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class DoctorDto:
    id: str
    name: str
    status: str
    email: Optional[str] = None
    specialization: Optional[str] = None


@dataclass
class UserDto:
    id: str
    name: str
    email: Optional[str]
    role: str


class Directory(Protocol):
    def get_doctor(self, doctor_id: str) -> Optional[DoctorDto]:
        ...

    def get_user(self, user_id: str) -> Optional[UserDto]:
        ...

    def update_doctor_status(self, doctor_id: str, status: str) -> Optional[DoctorDto]:
        ...
