import os

# Settings are read at import time; keep tests off the real database and secret
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date, datetime, timezone
from typing import Dict, List, Optional

import pytest

from clinic.application.policy import ACTIVE_STATUSES, Actor, Role
from clinic.application.ports.appointments_repo import AppointmentDto
from clinic.application.ports.directory import DoctorDto, UserDto
from clinic.application.services.appointments_service import AppointmentsService
from clinic.application.services.doctors_service import DoctorsService
from clinic.application.services.notification_dispatcher import NotificationDispatcher
from clinic.application.time_slots import slot_sort_key
from clinic.exceptions import InvalidState, NotFound, NotifierFailure, SlotConflict

TODAY = date(2025, 5, 1)
_ACTIVE = {s.value for s in ACTIVE_STATUSES}


class FakeApptRepo:
    """In-memory store that enforces active-slot uniqueness on write."""

    def __init__(self):
        self._id = 1
        self.appts: Dict[int, AppointmentDto] = {}
        self.precheck_enabled = True
        self.fail_updates_for = set()

    def _slot_taken(self, doctor_id, d, t, exclude_id=None) -> bool:
        return any(
            a.doctor_id == doctor_id and a.appointment_date == d and a.appointment_time == t
            and a.status in _ACTIVE and a.id != exclude_id
            for a in self.appts.values()
        )

    def get_by_id(self, appointment_id: int) -> Optional[AppointmentDto]:
        return self.appts.get(appointment_id)

    def find_conflict(self, doctor_id, appointment_date, appointment_time, exclude_id=None) -> bool:
        if not self.precheck_enabled:
            return False
        return self._slot_taken(doctor_id, appointment_date, appointment_time, exclude_id)

    def create(self, doctor_id, patient_id, doctor_name, patient_name, appointment_date, appointment_time, symptoms):
        if self._slot_taken(doctor_id, appointment_date, appointment_time):
            raise SlotConflict()
        now = datetime.now(timezone.utc)
        a = AppointmentDto(self._id, doctor_id, patient_id, doctor_name, patient_name, appointment_date,
                           appointment_time, symptoms, "pending", "", now, now)
        self.appts[a.id] = a
        self._id += 1
        return a

    def reschedule(self, appointment_id, appointment_date, appointment_time, symptoms=None):
        a = self.appts.get(appointment_id)
        if not a:
            raise NotFound("Appointment not found")
        if self._slot_taken(a.doctor_id, appointment_date, appointment_time, exclude_id=a.id):
            raise SlotConflict()
        a.appointment_date = appointment_date
        a.appointment_time = appointment_time
        if symptoms is not None:
            a.symptoms = symptoms
        a.updated_at = datetime.now(timezone.utc)
        return a

    def update_status(self, appointment_id, status, note=None, from_statuses=None):
        if appointment_id in self.fail_updates_for:
            raise RuntimeError("store unavailable")
        a = self.appts.get(appointment_id)
        if not a:
            raise NotFound("Appointment not found")
        if from_statuses is not None and a.status not in from_statuses:
            raise InvalidState(f"Appointment {appointment_id} is no longer in an updatable status")
        a.status = status
        if note:
            a.notes = f"{a.notes}\n{note}" if a.notes else note
        return a

    def list(self, patient_id=None, doctor_id=None, status=None) -> List[AppointmentDto]:
        rows = [
            a for a in self.appts.values()
            if (patient_id is None or a.patient_id == patient_id)
            and (doctor_id is None or a.doctor_id == doctor_id)
            and (status is None or a.status == status)
        ]
        return sorted(rows, key=lambda a: (a.appointment_date, slot_sort_key(a.appointment_time)))

    def list_active_for_doctor(self, doctor_id):
        return [a for a in self.list(doctor_id=doctor_id) if a.status in _ACTIVE]

    def booked_times(self, doctor_id, appointment_date, exclude_id=None):
        return [
            a.appointment_time for a in self.appts.values()
            if a.doctor_id == doctor_id and a.appointment_date == appointment_date
            and a.status in _ACTIVE and a.id != exclude_id
        ]

    def set_status(self, appointment_id, status):
        self.appts[appointment_id].status = status


class FakeDirectory:
    def __init__(self):
        self.doctors = {
            "doc-1": DoctorDto(id="doc-1", name="House", status="active", specialization="Diagnostics"),
            "doc-2": DoctorDto(id="doc-2", name="Wilson", status="active", specialization="Oncology"),
            "doc-off": DoctorDto(id="doc-off", name="Absent", status="suspended"),
        }
        self.users = {
            "pat-1": UserDto(id="pat-1", name="Pat Smith", email="pat@example.com", role="patient"),
            "pat-2": UserDto(id="pat-2", name="Quinn Jones", email="quinn@example.com", role="patient"),
            "pat-3": UserDto(id="pat-3", name="No Mail", email=None, role="patient"),
        }

    def get_doctor(self, doctor_id):
        return self.doctors.get(doctor_id)

    def get_user(self, user_id):
        return self.users.get(user_id)

    def update_doctor_status(self, doctor_id, status):
        d = self.doctors.get(doctor_id)
        if not d:
            return None
        d.status = status
        return d


class FakeNotifier:
    def __init__(self):
        self.sent = []
        self.fail_for = set()

    def send(self, email, subject, message):
        if email in self.fail_for:
            raise NotifierFailure("smtp down", recipient=email)
        self.sent.append((email, subject, message))
        return True


@pytest.fixture
def repo() -> FakeApptRepo:
    return FakeApptRepo()


@pytest.fixture
def directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture
def service(repo, directory, notifier) -> AppointmentsService:
    return AppointmentsService(
        repo=repo,
        directory=directory,
        notifications=NotificationDispatcher(notifier=notifier),
        clock=lambda: TODAY,
    )


@pytest.fixture
def doctors_service(directory, service) -> DoctorsService:
    return DoctorsService(directory=directory, appointments=service)


@pytest.fixture
def patient() -> Actor:
    return Actor(id="pat-1", role=Role.PATIENT)


@pytest.fixture
def other_patient() -> Actor:
    return Actor(id="pat-2", role=Role.PATIENT)


@pytest.fixture
def doctor() -> Actor:
    return Actor(id="doc-1", role=Role.DOCTOR)


@pytest.fixture
def admin() -> Actor:
    return Actor(id="admin-1", role=Role.ADMIN)
