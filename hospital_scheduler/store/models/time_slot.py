# hospital_scheduler/store/models/time_slot.py
from __future__ import annotations
from datetime import date, datetime, time
from typing import Any
from pydantic import BaseModel, Field, model_validator


class TimeSlot(BaseModel):
    """
    Half-open interval ``[start, end)``.

    Two slots are equal when start and end match; the ``available`` flag is
    bookkeeping and takes no part in equality or hashing.
    """

    start: datetime
    end: datetime
    available: bool = Field(default=True)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_order(self) -> "TimeSlot":
        if self.start >= self.end:
            raise ValueError(
                f"Slot start must be before end: {self.start.isoformat()} >= "
                f"{self.end.isoformat()}"
            )
        return self

    @classmethod
    def on(
        cls, day: date, start: time, end: time, available: bool = True
    ) -> "TimeSlot":
        return cls(
            start=datetime.combine(day, start),
            end=datetime.combine(day, end),
            available=available,
        )

    @property
    def date(self) -> date:
        return self.start.date()

    def overlaps(self, other: "TimeSlot") -> bool:
        return self.start < other.end and other.start < self.end

    def same_interval(self, other: "TimeSlot") -> bool:
        return self.start == other.start and self.end == other.end

    def as_booked(self) -> "TimeSlot":
        return self.model_copy(update={"available": False})

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, TimeSlot):
            return NotImplemented
        return self.same_interval(other)

    def __hash__(self) -> int:
        return hash((self.start, self.end))

    def __str__(self) -> str:
        return (
            f"{self.start:%Y-%m-%d} {self.start:%H:%M}-{self.end:%H:%M}"
            if self.start.date() == self.end.date()
            else f"{self.start:%Y-%m-%d %H:%M}-{self.end:%Y-%m-%d %H:%M}"
        )


__all__ = ["TimeSlot"]
