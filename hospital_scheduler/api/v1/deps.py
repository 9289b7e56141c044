# hospital_scheduler/api/v1/deps.py
from fastapi import Depends, Request
from hospital_scheduler.services.v1 import (
    AvailabilityResolver,
    BookingEngine,
    DoctorAssignmentService,
    LogNotifier,
    MedicalRecordService,
    Notifier,
)
from hospital_scheduler.store import RecordStore, get_store


def get_resolver(
    request: Request, store: RecordStore = Depends(get_store)
) -> AvailabilityResolver:
    # app.state.clock lets tests pin "today"
    return AvailabilityResolver(store, clock=getattr(request.app.state, "clock", None))


def get_notifier(request: Request) -> Notifier:
    notifier = getattr(request.app.state, "notifier", None)
    return notifier if notifier is not None else LogNotifier()


def get_booking_engine(
    store: RecordStore = Depends(get_store),
    resolver: AvailabilityResolver = Depends(get_resolver),
    notifier: Notifier = Depends(get_notifier),
) -> BookingEngine:
    return BookingEngine(store, resolver=resolver, notifier=notifier)


def get_assignment_service(
    store: RecordStore = Depends(get_store),
) -> DoctorAssignmentService:
    return DoctorAssignmentService(store)


def get_medical_record_service(
    store: RecordStore = Depends(get_store),
) -> MedicalRecordService:
    return MedicalRecordService(store)


__all__ = [
    "get_assignment_service",
    "get_booking_engine",
    "get_medical_record_service",
    "get_notifier",
    "get_resolver",
]
