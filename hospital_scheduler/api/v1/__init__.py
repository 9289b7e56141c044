# hospital_scheduler/api/v1/__init__.py
from fastapi import APIRouter
from .appointment_router import appointment_router
from .doctor_router import doctor_router
from .patient_router import patient_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(appointment_router)
api_router.include_router(doctor_router)
api_router.include_router(patient_router)

__all__ = ["api_router", "appointment_router", "doctor_router", "patient_router"]
