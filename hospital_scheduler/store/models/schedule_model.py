# hospital_scheduler/store/models/schedule_model.py
from datetime import date
from typing import Iterator
from pydantic import BaseModel, Field
from common.api_error import ValidationError
from .time_slot import TimeSlot


class ScheduleEntry(BaseModel):
    """One line of schedules.txt: a doctor's declared slots for one date."""

    doctor_id: str = Field(..., min_length=1)
    day: date
    slots: list[TimeSlot] = Field(default_factory=list)


class Schedule(BaseModel):
    """Declared availability of one doctor, keyed by calendar date."""

    doctor_id: str = Field(..., min_length=1)
    availability: dict[date, list[TimeSlot]] = Field(default_factory=dict)

    @staticmethod
    def normalize_slots(day: date, slots: list[TimeSlot]) -> list[TimeSlot]:
        """
        Sort ``slots`` by start and check they sit on ``day`` without overlap.

        Raises:
            ValidationError: slot on another date, or two slots overlap
        """
        ordered = sorted(slots, key=lambda s: (s.start, s.end))

        for slot in ordered:
            if slot.start.date() != day or slot.end.date() != day:
                raise ValidationError(
                    f"Slot {slot} does not fall on {day.isoformat()}",
                    code="SLOT_OUTSIDE_DATE",
                )
        for previous, current in zip(ordered, ordered[1:]):
            if previous.overlaps(current):
                raise ValidationError(
                    f"Slots {previous} and {current} overlap",
                    code="OVERLAPPING_SLOTS",
                )
        return ordered

    def slots_on(self, day: date) -> list[TimeSlot]:
        return list(self.availability.get(day, []))

    def set_availability(self, day: date, slots: list[TimeSlot]) -> None:
        self.availability[day] = self.normalize_slots(day, slots)

    def clear(self, day: date) -> bool:
        return self.availability.pop(day, None) is not None

    def dates(self) -> list[date]:
        return sorted(self.availability)

    def entries(self) -> Iterator[ScheduleEntry]:
        for day in self.dates():
            yield ScheduleEntry(
                doctor_id=self.doctor_id, day=day, slots=self.availability[day]
            )


__all__ = ["Schedule", "ScheduleEntry"]
