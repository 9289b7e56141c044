# hospital_scheduler/api/v1/doctor_router.py
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from common.api_error import NotFoundError
from hospital_scheduler.services.v1 import AvailabilityResolver, BookingEngine
from hospital_scheduler.store import RecordStore, get_store
from hospital_scheduler.store.models import AppointmentStatus, Role
from hospital_scheduler.store.schemas import (
    AppointmentComplete,
    AppointmentResponse,
    AvailabilityResponse,
    AvailabilityUpdate,
    TimeSlotResponse,
)
from .deps import get_booking_engine, get_resolver

doctor_router = APIRouter(
    prefix="/doctors",
    tags=["Doctors"],
)


def _availability(
    store: RecordStore, resolver: AvailabilityResolver, doctor_id: str, day: date
) -> AvailabilityResponse:
    with store.lock:
        return AvailabilityResponse(
            doctor_id=doctor_id,
            day=day,
            declared=[
                TimeSlotResponse.model_validate(s)
                for s in store.declared_slots(doctor_id, day)
            ],
            available=[
                TimeSlotResponse.model_validate(s)
                for s in resolver.available_slots(doctor_id, day)
            ],
        )


@doctor_router.get(
    "/{doctor_id}/availability",
    response_model=AvailabilityResponse,
    summary="Declared and bookable slots of a doctor on one date",
    description="""
    `declared` is what the doctor published; `available` drops every slot
    held by a Pending, Scheduled or Rescheduled appointment.
    An empty `declared` list means nothing was published for the date.
    """,
    responses={404: {"description": "Doctor not found"}},
)
def get_availability(
    doctor_id: str,
    day: date = Query(..., alias="date", description="YYYY-MM-DD"),
    store: RecordStore = Depends(get_store),
    resolver: AvailabilityResolver = Depends(get_resolver),
):
    store.require_user(doctor_id, Role.DOCTOR)
    return _availability(store, resolver, doctor_id, day)


@doctor_router.put(
    "/{doctor_id}/availability/{day}",
    response_model=AvailabilityResponse,
    summary="Replace the declared slots of one date",
    responses={
        400: {"description": "Slots overlap or fall outside the date"},
        404: {"description": "Doctor not found"},
    },
)
def put_availability(
    doctor_id: str,
    day: date,
    body: AvailabilityUpdate,
    store: RecordStore = Depends(get_store),
    resolver: AvailabilityResolver = Depends(get_resolver),
):
    with store.lock:
        store.set_availability(doctor_id, day, [w.on(day) for w in body.slots])
        return _availability(store, resolver, doctor_id, day)


@doctor_router.delete(
    "/{doctor_id}/availability/{day}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Forget the declared slots of one date",
    responses={404: {"description": "Doctor or declared date not found"}},
)
def delete_availability(
    doctor_id: str, day: date, store: RecordStore = Depends(get_store)
) -> None:
    if not store.clear_availability(doctor_id, day):
        raise NotFoundError(
            f"Doctor {doctor_id} has no availability on {day.isoformat()}"
        )


@doctor_router.get(
    "/{doctor_id}/appointments",
    response_model=list[AppointmentResponse],
    summary="Appointments of a doctor, oldest first",
)
def list_doctor_appointments(
    doctor_id: str,
    appointment_status: Optional[AppointmentStatus] = Query(None, alias="status"),
    engine: BookingEngine = Depends(get_booking_engine),
):
    appointments = engine.appointments_for_doctor(doctor_id)
    if appointment_status is not None:
        appointments = [a for a in appointments if a.status is appointment_status]
    return appointments


@doctor_router.post(
    "/{doctor_id}/appointments/{appointment_id}/accept",
    response_model=AppointmentResponse,
    summary="Confirm a pending appointment",
)
def accept_appointment(
    doctor_id: str,
    appointment_id: int,
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.accept_appointment(doctor_id, appointment_id)


@doctor_router.post(
    "/{doctor_id}/appointments/{appointment_id}/decline",
    response_model=AppointmentResponse,
    summary="Doctor-side cancellation",
)
def decline_appointment(
    doctor_id: str,
    appointment_id: int,
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.decline_appointment(doctor_id, appointment_id)


@doctor_router.post(
    "/{doctor_id}/appointments/{appointment_id}/complete",
    response_model=AppointmentResponse,
    summary="Close an appointment with its outcome",
)
def complete_appointment(
    doctor_id: str,
    appointment_id: int,
    body: AppointmentComplete,
    engine: BookingEngine = Depends(get_booking_engine),
):
    return engine.complete_appointment(doctor_id, appointment_id, body.outcome)


__all__ = ["doctor_router"]
