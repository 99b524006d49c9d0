from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

from clinic.application.policy import Role
from clinic.database import get_session
from clinic.db.models import Doctor, User
from clinic.main import app
from clinic.routers.dependencies import get_notifier
from clinic.services.auth import create_actor_token

SLOT_DAY = (date.today() + timedelta(days=7)).isoformat()


class RecordingNotifier:
    def __init__(self):
        self.sent = []

    def send(self, email, subject, message):
        self.sent.append((email, subject))
        return True


def auth(actor_id: str, role: Role) -> dict:
    return {"Authorization": f"Bearer {create_actor_token(actor_id, role)}"}


PATIENT = auth("pat-1", Role.PATIENT)
OTHER_PATIENT = auth("pat-2", Role.PATIENT)
DOCTOR = auth("doc-1", Role.DOCTOR)
ADMIN = auth("admin-1", Role.ADMIN)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def client(notifier):
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as s:
        s.add(Doctor(id="doc-1", name="House", status="active"))
        s.add(Doctor(id="doc-2", name="Wilson", status="active"))
        s.add(User(id="pat-1", name="Pat Smith", email="pat@example.com"))
        s.add(User(id="pat-2", name="Quinn Jones", email="quinn@example.com"))
        s.add(User(id="admin-1", name="Ada Admin", email="admin@example.com", role="admin"))
        s.commit()

    def override_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()


def book(client, headers=PATIENT, time="10:00 AM", doctor_id="doc-1"):
    return client.post(
        "/appointments/",
        json={"doctor_id": doctor_id, "appointment_date": SLOT_DAY, "appointment_time": time, "symptoms": "cough"},
        headers=headers,
    )


def test_booking_conflict_and_rebooking_after_cancel(client, notifier):
    first = book(client)
    assert first.status_code == 201
    body = first.json()
    assert body["status"] == "pending"
    assert body["doctor_name"] == "House"
    assert body["patient_name"] == "Pat Smith"

    clash = book(client, headers=OTHER_PATIENT)
    assert clash.status_code == 400
    assert clash.json()["kind"] == "slot_conflict"
    assert clash.json()["success"] is False

    cancel = client.delete(f"/appointments/{body['id']}", headers=PATIENT)
    assert cancel.status_code == 200
    assert cancel.json()["message"] == "Appointment cancelled successfully"

    retry = book(client, headers=OTHER_PATIENT)
    assert retry.status_code == 201
    assert retry.json()["status"] == "pending"

    subjects = [s for _, s in notifier.sent]
    assert subjects == ["Appointment Confirmation", "Appointment Cancelled", "Appointment Confirmation"]


def test_only_patients_book(client):
    resp = book(client, headers=DOCTOR)
    assert resp.status_code == 403
    assert resp.json()["kind"] == "forbidden"


def test_missing_token_is_unauthorized(client):
    assert client.get("/appointments/").status_code == 401


def test_unknown_doctor_is_404(client):
    resp = book(client, doctor_id="nobody")
    assert resp.status_code == 404
    assert resp.json()["kind"] == "not_found"


def test_invalid_time_label_uses_error_envelope(client):
    resp = book(client, time="10:15 AM")
    assert resp.status_code == 400
    assert resp.json()["success"] is False
    assert resp.json()["kind"] == "invalid_slot"


def test_doctor_lifecycle_ends_in_terminal_state(client):
    appt_id = book(client).json()["id"]

    confirmed = client.patch(f"/appointments/{appt_id}/status", json={"status": "confirmed"}, headers=DOCTOR)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "confirmed"

    rescheduled = client.put(
        f"/appointments/{appt_id}",
        json={"appointment_date": SLOT_DAY, "appointment_time": "11:00 AM"},
        headers=PATIENT,
    )
    assert rescheduled.status_code == 400
    assert rescheduled.json()["kind"] == "invalid_state"

    completed = client.patch(f"/appointments/{appt_id}/complete", headers=DOCTOR)
    assert completed.json()["status"] == "completed"

    again = client.patch(f"/appointments/{appt_id}/status", json={"status": "cancelled"}, headers=ADMIN)
    assert again.status_code == 400
    assert again.json()["kind"] == "invalid_transition"


def test_reschedule_pending(client):
    appt_id = book(client).json()["id"]
    resp = client.put(
        f"/appointments/{appt_id}",
        json={"appointment_date": SLOT_DAY, "appointment_time": "2:30 PM"},
        headers=PATIENT,
    )
    assert resp.status_code == 200
    assert resp.json()["id"] == appt_id
    assert resp.json()["appointment_time"] == "2:30 PM"


def test_edit_updates_symptoms(client):
    appt_id = book(client).json()["id"]
    resp = client.put(
        f"/appointments/{appt_id}",
        json={"appointment_date": SLOT_DAY, "appointment_time": "10:00 AM", "symptoms": "fever"},
        headers=PATIENT,
    )
    assert resp.status_code == 200
    assert resp.json()["symptoms"] == "fever"

    only_symptoms = client.put(f"/appointments/{appt_id}", json={"symptoms": "rash"}, headers=PATIENT)
    assert only_symptoms.status_code == 200
    assert only_symptoms.json()["symptoms"] == "rash"
    assert only_symptoms.json()["appointment_time"] == "10:00 AM"


def test_get_is_scoped(client):
    appt_id = book(client).json()["id"]
    assert client.get(f"/appointments/{appt_id}", headers=PATIENT).status_code == 200
    assert client.get(f"/appointments/{appt_id}", headers=OTHER_PATIENT).status_code == 403
    assert client.get("/appointments/999", headers=ADMIN).status_code == 404


def test_list_sorted_and_scoped(client):
    book(client, time="10:00 AM")
    book(client, time="9:30 AM")
    book(client, headers=OTHER_PATIENT, time="1:00 PM")

    mine = client.get("/appointments/", headers=PATIENT).json()
    assert [a["appointment_time"] for a in mine] == ["9:30 AM", "10:00 AM"]
    assert len(client.get("/appointments/", headers=DOCTOR).json()) == 3
    assert len(client.get("/appointments/", params={"status": "cancelled"}, headers=ADMIN).json()) == 0


def test_available_slots(client):
    book(client, time="9:00 AM")
    resp = client.get(
        "/appointments/available-slots",
        params={"doctor_id": "doc-1", "appointment_date": SLOT_DAY},
        headers=OTHER_PATIENT,
    )
    assert resp.status_code == 200
    times = resp.json()["available_times"]
    assert "9:00 AM" not in times
    assert times[0] == "9:30 AM"


def test_suspending_doctor_cancels_active_appointments(client, notifier):
    appt_id = book(client).json()["id"]
    other_id = book(client, headers=OTHER_PATIENT, time="11:00 AM").json()["id"]
    client.patch(f"/appointments/{other_id}/status", json={"status": "confirmed"}, headers=DOCTOR)

    resp = client.patch("/doctors/doc-1/status", json={"status": "suspended"}, headers=ADMIN)
    assert resp.status_code == 200
    assert resp.json()["cancelled_appointments"] == 2
    assert resp.json()["doctor"]["status"] == "suspended"

    appt = client.get(f"/appointments/{appt_id}", headers=ADMIN).json()
    assert appt["status"] == "cancelled"
    assert "Doctor has been suspended" in appt["notes"]

    # suspended doctors no longer take bookings
    assert book(client, time="3:00 PM").status_code == 404


def test_doctor_status_requires_admin(client):
    resp = client.patch("/doctors/doc-1/status", json={"status": "suspended"}, headers=DOCTOR)
    assert resp.status_code == 403


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["service"] == "Clinic Appointments API"
