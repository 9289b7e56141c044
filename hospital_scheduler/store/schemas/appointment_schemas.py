# hospital_scheduler/store/schemas/appointment_schemas.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import date
from typing import Optional
from ..models import AppointmentStatus
from .slot_schemas import SlotWindow, TimeSlotResponse


class AppointmentCreate(SlotWindow):
    patient_id: str = Field(..., min_length=1, examples=["P1"])
    doctor_id: str = Field(..., min_length=1, examples=["D1"])
    appointment_date: date = Field(..., description="Day of the appointment")


class AppointmentReschedule(SlotWindow):
    patient_id: str = Field(..., min_length=1)
    new_date: date
    # keep the current doctor when omitted
    doctor_id: Optional[str] = Field(None, min_length=1)


class AppointmentCancel(BaseModel):
    patient_id: str = Field(..., min_length=1)


class AppointmentComplete(BaseModel):
    outcome: str = Field("", max_length=1000, description="Outcome record")


class AppointmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    patient_id: str
    doctor_id: str
    time_slot: TimeSlotResponse
    status: AppointmentStatus
    outcome_record: str


__all__ = [
    "AppointmentCancel",
    "AppointmentComplete",
    "AppointmentCreate",
    "AppointmentReschedule",
    "AppointmentResponse",
]
