from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, Query, Body

from ..application.policy import Actor, AppointmentStatus, Role
from ..application.ports.appointments_repo import AppointmentDto
from ..application.services.appointments_service import AppointmentsService
from ..schemas.appointments.appointment import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
    AppointmentStatusUpdate,
    AvailableSlotsResponse,
)
from ..schemas.common.common import ErrorResponse, MessageResponse
from ..services.auth import get_current_actor, require_roles
from .dependencies import get_appointments_service


router = APIRouter(
    prefix="/appointments",
    tags=["Appointments"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


def _to_response(a: AppointmentDto) -> AppointmentResponse:
    return AppointmentResponse(
        id=a.id,
        doctor_id=a.doctor_id,
        patient_id=a.patient_id,
        doctor_name=a.doctor_name,
        patient_name=a.patient_name,
        appointment_date=a.appointment_date,
        appointment_time=a.appointment_time,
        symptoms=a.symptoms,
        status=AppointmentStatus(a.status),
        notes=a.notes,
        created_at=a.created_at,
        updated_at=a.updated_at,
    )


@router.get("/", response_model=List[AppointmentResponse])
def list_appointments(
    status: Optional[AppointmentStatus] = Query(None),
    actor: Actor = Depends(get_current_actor),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return [_to_response(a) for a in appt_service.list_for(actor, status=status)]


@router.get("/available-slots", response_model=AvailableSlotsResponse)
def get_available_slots(
    doctor_id: str = Query(...),
    appointment_date: date = Query(...),
    exclude_id: Optional[int] = Query(None, description="Appointment being rescheduled"),
    actor: Actor = Depends(get_current_actor),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    times = appt_service.available_slots(doctor_id, appointment_date, exclude_id=exclude_id)
    return AvailableSlotsResponse(doctor_id=doctor_id, appointment_date=appointment_date, available_times=times)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    actor: Actor = Depends(get_current_actor),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return _to_response(appt_service.get(appointment_id, actor))


@router.post("/", response_model=AppointmentResponse, status_code=201)
def book_appointment(
    appointment_data: AppointmentCreate,
    actor: Actor = Depends(require_roles(Role.PATIENT)),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = appt_service.book(
        actor,
        doctor_id=appointment_data.doctor_id,
        appointment_date=appointment_data.appointment_date,
        appointment_time=appointment_data.appointment_time,
        symptoms=appointment_data.symptoms,
    )
    return _to_response(appt)


@router.put("/{appointment_id}", response_model=AppointmentResponse)
def update_appointment(
    appointment_id: int,
    data: AppointmentReschedule,
    actor: Actor = Depends(require_roles(Role.PATIENT, Role.DOCTOR, Role.ADMIN)),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = appt_service.update(
        appointment_id,
        actor,
        appointment_date=data.appointment_date,
        appointment_time=data.appointment_time,
        symptoms=data.symptoms,
    )
    return _to_response(appt)


@router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: AppointmentStatusUpdate,
    actor: Actor = Depends(require_roles(Role.PATIENT, Role.DOCTOR, Role.ADMIN)),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt = appt_service.set_status(appointment_id, actor, data.status, reason=data.reason)
    return _to_response(appt)


@router.patch("/{appointment_id}/complete", response_model=AppointmentResponse)
def complete_appointment(
    appointment_id: int,
    actor: Actor = Depends(require_roles(Role.DOCTOR)),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    return _to_response(appt_service.complete(appointment_id, actor))


@router.delete("/{appointment_id}", response_model=MessageResponse)
def cancel_appointment(
    appointment_id: int,
    data: Optional[AppointmentCancel] = Body(None),
    actor: Actor = Depends(require_roles(Role.PATIENT, Role.ADMIN)),
    appt_service: AppointmentsService = Depends(get_appointments_service),
):
    appt_service.cancel(appointment_id, actor, reason=data.reason if data else None)
    return MessageResponse(message="Appointment cancelled successfully")
