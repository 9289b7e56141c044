# hospital_scheduler/services/v1/availability_service.py
from datetime import date, datetime
from typing import Callable, Optional
from hospital_scheduler.store import RecordStore
from hospital_scheduler.store.models import TimeSlot

Clock = Callable[[], datetime]


class AvailabilityResolver:
    """
    Bookable slots = declared slots minus slots held by active appointments.

    Conflicts are exact start/end matches; a declared slot that only
    partially overlaps a booking stays bookable.
    """

    def __init__(self, store: RecordStore, clock: Optional[Clock] = None):
        self.store = store
        self._clock = clock or datetime.now

    def now(self) -> datetime:
        return self._clock()

    def today(self) -> date:
        return self._clock().date()

    def available_slots(self, doctor_id: str, day: date) -> list[TimeSlot]:
        """
        Declared order is kept. An empty list means either nothing declared
        or everything booked; use ``store.declared_slots`` to tell them apart.
        """
        with self.store.lock:
            declared = self.store.declared_slots(doctor_id, day)
            if not declared:
                return []
            booked = {
                a.time_slot for a in self.store.appointments_on(doctor_id, day)
            }
            return [s for s in declared if s not in booked]

    def is_available(self, doctor_id: str, day: date, slot: TimeSlot) -> bool:
        return slot in self.available_slots(doctor_id, day)


__all__ = ["AvailabilityResolver", "Clock"]
