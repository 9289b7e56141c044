# hospital_scheduler/store/schemas/schedule_schemas.py
from pydantic import BaseModel, Field
from datetime import date
from .slot_schemas import SlotWindow, TimeSlotResponse


class AvailabilityUpdate(BaseModel):
    slots: list[SlotWindow] = Field(
        default_factory=list, description="Declared slots; empty means none"
    )


class AvailabilityResponse(BaseModel):
    doctor_id: str
    day: date
    declared: list[TimeSlotResponse]
    available: list[TimeSlotResponse]


__all__ = ["AvailabilityResponse", "AvailabilityUpdate"]
