"""Roles, appointment statuses and the authorization tables that gate them.

All role checks for appointment operations are answered from the tables in
this module; services ask ``Policy`` instead of branching on role strings.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional


class Role(str, Enum):
    PATIENT = "patient"
    DOCTOR = "doctor"
    ADMIN = "admin"


class AppointmentStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DoctorStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


ACTIVE_STATUSES: FrozenSet[AppointmentStatus] = frozenset(
    {AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED}
)


TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

# Roles allowed to move an appointment into a given status.
STATUS_ROLES: Dict[AppointmentStatus, FrozenSet[Role]] = {
    AppointmentStatus.CONFIRMED: frozenset({Role.DOCTOR, Role.ADMIN}),
    AppointmentStatus.COMPLETED: frozenset({Role.DOCTOR, Role.ADMIN}),
    AppointmentStatus.CANCELLED: frozenset({Role.PATIENT, Role.DOCTOR, Role.ADMIN}),
}

# Roles allowed to invoke each operation at all.
OPERATION_ROLES: Dict[str, FrozenSet[Role]] = {
    "list": frozenset({Role.PATIENT, Role.DOCTOR, Role.ADMIN}),
    "get": frozenset({Role.PATIENT, Role.DOCTOR, Role.ADMIN}),
    "book": frozenset({Role.PATIENT}),
    "reschedule": frozenset({Role.PATIENT, Role.DOCTOR, Role.ADMIN}),
    "set_status": frozenset({Role.PATIENT, Role.DOCTOR, Role.ADMIN}),
    "update_doctor_status": frozenset({Role.ADMIN}),
}

# Appointment field that ties a role to the appointments it may see and touch.
# None means every appointment.
PARTY_FIELDS: Dict[Role, Optional[str]] = {
    Role.PATIENT: "patient_id",
    Role.DOCTOR: "doctor_id",
    Role.ADMIN: None,
}


@dataclass(frozen=True)
class Actor:
    id: str
    role: Role


class Policy:
    @staticmethod
    def may_invoke(actor: Actor, operation: str) -> bool:
        return actor.role in OPERATION_ROLES.get(operation, frozenset())

    @staticmethod
    def scope(actor: Actor) -> Dict[str, str]:
        """Store filter limiting a listing to the actor's own appointments."""
        party_field = PARTY_FIELDS[actor.role]
        return {party_field: actor.id} if party_field else {}

    @staticmethod
    def is_party(actor: Actor, patient_id: str, doctor_id: str) -> bool:
        """True when the actor is an admin or one of the appointment's parties."""
        parties = {"patient_id": patient_id, "doctor_id": doctor_id}
        return all(parties[k] == v for k, v in Policy.scope(actor).items())

    @staticmethod
    def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
        return target in TRANSITIONS.get(current, frozenset())

    @staticmethod
    def may_set_status(actor: Actor, target: AppointmentStatus) -> bool:
        return actor.role in STATUS_ROLES.get(target, frozenset())
