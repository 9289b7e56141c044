# hospital_scheduler/api/v1/patient_router.py
from fastapi import APIRouter, Depends, status
from hospital_scheduler.services.v1 import (
    BookingEngine,
    DoctorAssignmentService,
    MedicalRecordService,
)
from hospital_scheduler.store.schemas import (
    AppointmentResponse,
    AssignmentResponse,
    MedicalRecordResponse,
)
from .deps import (
    get_assignment_service,
    get_booking_engine,
    get_medical_record_service,
)

patient_router = APIRouter(
    prefix="/patients",
    tags=["Patients"],
)


@patient_router.get(
    "/{patient_id}/appointments",
    response_model=list[AppointmentResponse],
    status_code=status.HTTP_200_OK,
    summary="Appointments of a patient, oldest first",
    responses={404: {"description": "Patient not found"}},
)
def list_patient_appointments(
    patient_id: str, engine: BookingEngine = Depends(get_booking_engine)
):
    return engine.appointments_for_patient(patient_id)


@patient_router.get(
    "/{patient_id}/medical-record",
    response_model=MedicalRecordResponse,
    responses={404: {"description": "Medical record not found"}},
)
def get_medical_record(
    patient_id: str,
    service: MedicalRecordService = Depends(get_medical_record_service),
):
    return service.get_record(patient_id)


@patient_router.put(
    "/{patient_id}/assigned-doctor/{doctor_id}",
    response_model=AssignmentResponse,
    summary="Assign a doctor to the patient's record",
    description="""
    `changed` is false when the patient has no record or the record already
    has a doctor; `reason` says which.
    """,
    responses={404: {"description": "Doctor not found"}},
)
def assign_doctor(
    patient_id: str,
    doctor_id: str,
    service: DoctorAssignmentService = Depends(get_assignment_service),
):
    return AssignmentResponse.from_result(service.assign(doctor_id, patient_id))


@patient_router.delete(
    "/{patient_id}/assigned-doctor/{doctor_id}",
    response_model=AssignmentResponse,
    summary="Remove a doctor from the patient's record",
)
def unassign_doctor(
    patient_id: str,
    doctor_id: str,
    service: DoctorAssignmentService = Depends(get_assignment_service),
):
    return AssignmentResponse.from_result(service.unassign(doctor_id, patient_id))


__all__ = ["patient_router"]
