# hospital_scheduler/store/schemas/medical_record_schemas.py
from pydantic import BaseModel, ConfigDict
from datetime import date
from typing import Optional
from ..models import Diagnosis, Treatment


class MedicalRecordResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    patient_id: str
    name: str
    date_of_birth: date
    gender: str
    phone: str
    email: str
    blood_type: str
    diagnoses: list[Diagnosis]
    treatments: list[Treatment]
    assigned_doctor_id: Optional[str]


class AssignmentResponse(BaseModel):
    changed: bool
    reason: str
    record: Optional[MedicalRecordResponse] = None

    @classmethod
    def from_result(cls, result) -> "AssignmentResponse":
        record = result.record
        return cls(
            changed=result.changed,
            reason=result.reason,
            record=(
                MedicalRecordResponse.model_validate(record)
                if record is not None
                else None
            ),
        )


__all__ = ["AssignmentResponse", "MedicalRecordResponse"]
