# hospital_scheduler/store/models/medical_record_model.py
from enum import Enum
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class PrescriptionStatus(str, Enum):
    PENDING = "Pending"
    DISPENSED = "Dispensed"

    @classmethod
    def parse(cls, value: str) -> "PrescriptionStatus":
        lowered = value.strip().lower()
        for status in cls:
            if status.value.lower() == lowered:
                return status
        raise ValueError(f"Unknown prescription status: {value!r}")


class Prescription(BaseModel):
    medication: str = Field(..., min_length=1)
    dosage: str = ""
    status: PrescriptionStatus = PrescriptionStatus.PENDING


class Diagnosis(BaseModel):
    description: str
    diagnosed_on: date


class Treatment(BaseModel):
    description: str
    started_on: date
    prescriptions: list[Prescription] = Field(default_factory=list)


class MedicalRecord(BaseModel):
    """
    Per-patient record. Demographics are copied from the patient account at
    creation; ``assigned_doctor_id`` links at most one doctor.
    """

    patient_id: str = Field(..., min_length=1)
    name: str
    date_of_birth: date
    gender: str = ""
    phone: str = ""
    email: str = ""
    blood_type: str = ""
    diagnoses: list[Diagnosis] = Field(default_factory=list)
    treatments: list[Treatment] = Field(default_factory=list)
    assigned_doctor_id: Optional[str] = Field(None, min_length=1)

    def add_diagnosis(self, diagnosis: Diagnosis) -> None:
        self.diagnoses.append(diagnosis)

    def add_treatment(self, treatment: Treatment) -> None:
        self.treatments.append(treatment)

    def add_prescription(self, prescription: Prescription, prescribed_on: date) -> None:
        """Attach to the latest treatment, opening one if there is none."""
        if not self.treatments:
            self.treatments.append(
                Treatment(description="Prescription", started_on=prescribed_on)
            )
        self.treatments[-1].prescriptions.append(prescription)


__all__ = [
    "Diagnosis",
    "MedicalRecord",
    "Prescription",
    "PrescriptionStatus",
    "Treatment",
]
