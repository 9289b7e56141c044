# hospital_scheduler/services/v1/medical_record_service.py
from datetime import date
from typing import Optional
from common.api_error import NotFoundError, ValidationError
from common.logger import get_app_logger
from hospital_scheduler.store import RecordStore
from hospital_scheduler.store.models import (
    Diagnosis,
    MedicalRecord,
    Prescription,
    PrescriptionStatus,
    Role,
    Treatment,
)

logger = get_app_logger(__name__)


class MedicalRecordService:
    def __init__(self, store: RecordStore):
        self.store = store

    def get_record(self, patient_id: str) -> MedicalRecord:
        record = self.store.get_medical_record(patient_id)
        if record is None:
            raise NotFoundError(f"Medical record for patient {patient_id} not found")
        return record

    def create_record(self, patient_id: str, blood_type: str = "") -> MedicalRecord:
        """Open a record with demographics copied from the patient account."""
        with self.store.lock:
            patient = self.store.require_user(patient_id, Role.PATIENT)
            record = self.store.add_medical_record(
                MedicalRecord(
                    patient_id=patient.hospital_id,
                    name=patient.name,
                    date_of_birth=patient.date_of_birth,
                    gender=patient.gender,
                    phone=patient.phone,
                    email=patient.email,
                    blood_type=blood_type,
                )
            )
        logger.info("Medical record created", patient_id=patient_id)
        return record

    def add_diagnosis(
        self, patient_id: str, description: str, diagnosed_on: date
    ) -> MedicalRecord:
        with self.store.lock:
            record = self.get_record(patient_id)
            record.add_diagnosis(
                Diagnosis(description=description, diagnosed_on=diagnosed_on)
            )
            return self.store.update_medical_record(record)

    def add_treatment(
        self, patient_id: str, description: str, started_on: date
    ) -> MedicalRecord:
        with self.store.lock:
            record = self.get_record(patient_id)
            record.add_treatment(
                Treatment(description=description, started_on=started_on)
            )
            return self.store.update_medical_record(record)

    def add_prescription(
        self,
        patient_id: str,
        medication: str,
        dosage: str,
        prescribed_on: date,
        status: PrescriptionStatus = PrescriptionStatus.PENDING,
    ) -> MedicalRecord:
        with self.store.lock:
            record = self.get_record(patient_id)
            record.add_prescription(
                Prescription(medication=medication, dosage=dosage, status=status),
                prescribed_on,
            )
            record = self.store.update_medical_record(record)
        logger.info(
            "Prescription added", patient_id=patient_id, medication=medication
        )
        return record

    def update_prescription_status(
        self,
        patient_id: str,
        medication: str,
        status: PrescriptionStatus,
        treatment_index: Optional[int] = None,
    ) -> MedicalRecord:
        """
        Set the status of the most recent prescription of ``medication``,
        searching one treatment when ``treatment_index`` is given.
        """
        with self.store.lock:
            record = self.get_record(patient_id)
            if treatment_index is not None:
                if not 0 <= treatment_index < len(record.treatments):
                    raise ValidationError(
                        f"Treatment {treatment_index} does not exist for {patient_id}",
                        code="UNKNOWN_TREATMENT",
                    )
                treatments = [record.treatments[treatment_index]]
            else:
                treatments = list(reversed(record.treatments))

            for treatment in treatments:
                for prescription in reversed(treatment.prescriptions):
                    if prescription.medication == medication:
                        prescription.status = status
                        record = self.store.update_medical_record(record)
                        logger.info(
                            "Prescription status updated",
                            patient_id=patient_id,
                            medication=medication,
                            status=status.value,
                        )
                        return record

        raise NotFoundError(
            f"No prescription of {medication} for patient {patient_id}"
        )


__all__ = ["MedicalRecordService"]
