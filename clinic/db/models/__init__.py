# Models package (re-export feature modules for stable imports)
from .users.user import User
from .health.appointment import Appointment
from .health.doctor import Doctor

__all__ = [
    "User",
    "Appointment",
    "Doctor",
]
