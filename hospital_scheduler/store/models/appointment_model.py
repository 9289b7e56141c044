# hospital_scheduler/store/models/appointment_model.py
from enum import Enum
from datetime import date
from pydantic import BaseModel, Field
from common.api_error import ValidationError
from .time_slot import TimeSlot


class AppointmentStatus(str, Enum):
    PENDING = "Pending"  # Requested, waiting for the doctor
    SCHEDULED = "Scheduled"  # Booked
    RESCHEDULED = "Rescheduled"  # Moved to another slot and/or doctor
    CANCELLED = "Cancelled"  # Withdrawn by the patient
    DECLINED = "Declined"  # Withdrawn by the doctor
    COMPLETED = "Completed"  # Took place, outcome recorded

    @classmethod
    def parse(cls, value: str) -> "AppointmentStatus":
        lowered = value.strip().lower()
        for status in cls:
            if status.value.lower() == lowered:
                return status
        raise ValueError(f"Unknown appointment status: {value!r}")

    @property
    def is_active(self) -> bool:
        """Active appointments occupy their slot."""
        return self in ACTIVE_STATUSES


ACTIVE_STATUSES = frozenset(
    {
        AppointmentStatus.PENDING,
        AppointmentStatus.SCHEDULED,
        AppointmentStatus.RESCHEDULED,
    }
)

ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset(
        {
            AppointmentStatus.SCHEDULED,
            AppointmentStatus.DECLINED,
            AppointmentStatus.CANCELLED,
        }
    ),
    AppointmentStatus.SCHEDULED: frozenset(
        {
            AppointmentStatus.RESCHEDULED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.DECLINED,
            AppointmentStatus.COMPLETED,
        }
    ),
    AppointmentStatus.RESCHEDULED: frozenset(
        {
            AppointmentStatus.RESCHEDULED,
            AppointmentStatus.CANCELLED,
            AppointmentStatus.DECLINED,
            AppointmentStatus.COMPLETED,
        }
    ),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.DECLINED: frozenset(),
    AppointmentStatus.COMPLETED: frozenset(),
}


class Appointment(BaseModel):
    id: int = Field(..., ge=1)
    patient_id: str = Field(..., min_length=1)
    doctor_id: str = Field(..., min_length=1)
    time_slot: TimeSlot
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    outcome_record: str = ""

    model_config = {"validate_assignment": True}

    @property
    def date(self) -> date:
        return self.time_slot.date

    @property
    def is_active(self) -> bool:
        return self.status.is_active

    def can_transition(self, target: AppointmentStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def check_transition(self, target: AppointmentStatus) -> None:
        if not self.can_transition(target):
            raise ValidationError(
                f"Appointment {self.id} cannot go from {self.status.value} "
                f"to {target.value}",
                code="INVALID_STATUS_TRANSITION",
            )

    def summary(self) -> str:
        return (
            f"Appointment #{self.id} patient={self.patient_id} "
            f"doctor={self.doctor_id} at {self.time_slot} [{self.status.value}]"
        )


__all__ = [
    "Appointment",
    "AppointmentStatus",
    "ACTIVE_STATUSES",
    "ALLOWED_TRANSITIONS",
]
