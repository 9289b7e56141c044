# hospital_scheduler/store/models/user_model.py
from enum import Enum
from datetime import date
from pydantic import BaseModel, Field


class Role(str, Enum):
    ADMINISTRATOR = "Administrator"
    DOCTOR = "Doctor"
    PATIENT = "Patient"
    PHARMACIST = "Pharmacist"

    @classmethod
    def parse(cls, value: str) -> "Role":
        """Case-insensitive lookup; users.txt has been written both ways."""
        lowered = value.strip().lower()
        for role in cls:
            if role.value.lower() == lowered:
                return role
        raise ValueError(f"Unknown role: {value!r}")


class User(BaseModel):
    """
    A hospital account. The role is a closed tag; the scheduler only cares
    whether a user is a doctor (owns a schedule) or a patient (owns a
    medical record and appointments).
    """

    hospital_id: str = Field(..., min_length=1)
    password_hash: str
    name: str
    date_of_birth: date
    gender: str = ""
    phone: str = ""
    email: str = ""
    role: Role = Field(..., frozen=True)

    model_config = {"validate_assignment": True}

    @property
    def is_doctor(self) -> bool:
        return self.role is Role.DOCTOR

    @property
    def is_patient(self) -> bool:
        return self.role is Role.PATIENT


__all__ = ["Role", "User"]
