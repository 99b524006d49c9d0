from dataclasses import dataclass
from typing import Iterable, List, Optional, Protocol
from datetime import datetime, date


@dataclass
class AppointmentDto:
    id: int
    doctor_id: str
    patient_id: str
    doctor_name: str
    patient_name: str
    appointment_date: date
    appointment_time: str
    symptoms: Optional[str]
    status: str
    notes: str
    created_at: datetime
    updated_at: datetime


class AppointmentsRepository(Protocol):
    """Persistence contract for appointments.

    Implementations must make the store the final arbiter of slot
    exclusivity: ``create`` and ``reschedule`` raise ``SlotConflict`` when a
    second active appointment would occupy the same doctor/date/time.
    """

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        ...

    def find_conflict(self, doctor_id: str, appointment_date: date, appointment_time: str, exclude_id: Optional[int] = None) -> bool:
        ...

    def create(self, doctor_id: str, patient_id: str, doctor_name: str, patient_name: str, appointment_date: date, appointment_time: str, symptoms: Optional[str]) -> AppointmentDto:
        ...

    def reschedule(self, appointment_id: int, appointment_date: date, appointment_time: str, symptoms: Optional[str] = None) -> AppointmentDto:
        ...

    def update_status(self, appointment_id: int, status: str, note: Optional[str] = None, from_statuses: Optional[Iterable[str]] = None) -> AppointmentDto:
        """Set ``status``, appending ``note`` to the notes.

        With ``from_statuses`` the write only applies while the stored status
        is one of them; otherwise ``InvalidState`` is raised and nothing changes.
        """
        ...

    def list(self, patient_id: Optional[str] = None, doctor_id: Optional[str] = None, status: Optional[str] = None) -> List[AppointmentDto]:
        ...

    def list_active_for_doctor(self, doctor_id: str) -> List[AppointmentDto]:
        ...

    def booked_times(self, doctor_id: str, appointment_date: date, exclude_id: Optional[int] = None) -> List[str]:
        ...
