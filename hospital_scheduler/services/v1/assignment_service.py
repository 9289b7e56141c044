# hospital_scheduler/services/v1/assignment_service.py
from typing import NamedTuple, Optional
from common.logger import get_app_logger
from hospital_scheduler.store import RecordStore
from hospital_scheduler.store.models import MedicalRecord, Role

logger = get_app_logger(__name__)


class AssignmentResult(NamedTuple):
    changed: bool
    reason: str
    record: Optional[MedicalRecord] = None


class DoctorAssignmentService:
    """Links a patient's medical record to at most one doctor."""

    def __init__(self, store: RecordStore):
        self.store = store

    def assign(self, doctor_id: str, patient_id: str) -> AssignmentResult:
        """
        Assign ``doctor_id`` to the patient's record. No-op when there is no
        record or the record already has a doctor; ``unassign`` first to
        change it.

        Raises:
            NotFoundError / ValidationError: ``doctor_id`` is not a doctor
        """
        with self.store.lock:
            self.store.require_user(doctor_id, Role.DOCTOR)
            record = self.store.get_medical_record(patient_id)
            if record is None:
                return AssignmentResult(
                    False, f"No medical record for patient {patient_id}"
                )
            if record.assigned_doctor_id is not None:
                return AssignmentResult(
                    False,
                    f"Patient {patient_id} already has doctor "
                    f"{record.assigned_doctor_id} assigned",
                    record,
                )

            record.assigned_doctor_id = doctor_id
            record = self.store.update_medical_record(record)

        logger.info("Doctor assigned", doctor_id=doctor_id, patient_id=patient_id)
        return AssignmentResult(
            True, f"Doctor {doctor_id} assigned to {patient_id}", record
        )

    def unassign(self, doctor_id: str, patient_id: str) -> AssignmentResult:
        """Clear the assignment, but only if ``doctor_id`` is the one assigned."""
        with self.store.lock:
            record = self.store.get_medical_record(patient_id)
            if record is None:
                return AssignmentResult(
                    False, f"No medical record for patient {patient_id}"
                )
            if record.assigned_doctor_id is None:
                return AssignmentResult(
                    False, f"No doctor is assigned to {patient_id}", record
                )
            if record.assigned_doctor_id != doctor_id:
                return AssignmentResult(
                    False,
                    f"Doctor {doctor_id} is not assigned to {patient_id}",
                    record,
                )

            record.assigned_doctor_id = None
            record = self.store.update_medical_record(record)

        logger.info("Doctor unassigned", doctor_id=doctor_id, patient_id=patient_id)
        return AssignmentResult(
            True, f"Doctor {doctor_id} unassigned from {patient_id}", record
        )


__all__ = ["AssignmentResult", "DoctorAssignmentService"]
