# hospital_scheduler/api/v1/appointment_router.py
from fastapi import APIRouter, Depends, status
from hospital_scheduler.services.v1 import BookingEngine
from hospital_scheduler.store.schemas import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentReschedule,
    AppointmentResponse,
)
from .deps import get_booking_engine

appointment_router = APIRouter(
    prefix="/appointments",
    tags=["Appointments"],
)


@appointment_router.post(
    "",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a slot",
    description="""
    Availability is re-derived at commit time, so a slot that was free when
    listed may be gone by now.
    """,
    responses={
        404: {"description": "Patient or doctor not found"},
        409: {"description": "Slot not available"},
        503: {"description": "Appointment could not be persisted"},
    },
)
def schedule_appointment(
    body: AppointmentCreate, engine: BookingEngine = Depends(get_booking_engine)
):
    return engine.schedule_appointment(
        body.patient_id,
        body.doctor_id,
        body.appointment_date,
        body.on(body.appointment_date),
    )


@appointment_router.post(
    "/requests",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request a slot; the doctor accepts or declines it",
    responses={409: {"description": "Slot not available"}},
)
def request_appointment(
    body: AppointmentCreate, engine: BookingEngine = Depends(get_booking_engine)
):
    return engine.request_appointment(
        body.patient_id,
        body.doctor_id,
        body.appointment_date,
        body.on(body.appointment_date),
    )


@appointment_router.get(
    "/{appointment_id}",
    response_model=AppointmentResponse,
    responses={404: {"description": "Appointment not found"}},
)
def get_appointment(
    appointment_id: int, engine: BookingEngine = Depends(get_booking_engine)
):
    return engine.get_appointment(appointment_id)


@appointment_router.post(
    "/{appointment_id}/reschedule",
    response_model=AppointmentResponse,
    summary="Move an appointment, optionally to another doctor",
    responses={
        400: {"description": "Past date or appointment no longer active"},
        403: {"description": "Appointment belongs to another patient"},
        409: {"description": "Slot not available"},
    },
)
def reschedule_appointment(
    appointment_id: int,
    body: AppointmentReschedule,
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.reschedule_appointment(
        body.patient_id,
        appointment_id,
        body.new_date,
        body.on(body.new_date),
        doctor_id=body.doctor_id,
    )


@appointment_router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentResponse,
    responses={403: {"description": "Appointment belongs to another patient"}},
)
def cancel_appointment(
    appointment_id: int,
    body: AppointmentCancel,
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.cancel_appointment(body.patient_id, appointment_id)


__all__ = ["appointment_router"]
