# hospital_scheduler/store/schemas/slot_schemas.py
from datetime import date, datetime, time
from pydantic import BaseModel, ConfigDict, Field, model_validator
from ..models import TimeSlot


class SlotWindow(BaseModel):
    """A start/end pair on a date given elsewhere in the request."""

    start: time = Field(..., description="Start time, HH:MM")
    end: time = Field(..., description="End time, HH:MM")

    @model_validator(mode="after")
    def validate_order(self) -> "SlotWindow":
        if self.start >= self.end:
            raise ValueError("start must be before end")
        return self

    def on(self, day: date) -> TimeSlot:
        return TimeSlot.on(day, self.start, self.end)


class TimeSlotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    start: datetime
    end: datetime
    available: bool


__all__ = ["SlotWindow", "TimeSlotResponse"]
