# hospital_scheduler/services/v1/booking_service.py
"""
Appointment lifecycle.

Every check runs under ``RecordStore.lock`` together with the commit, so
availability is derived from the same state the new appointment is written
into. Two requests for one slot serialize; the second sees it taken.
"""

from datetime import date
from typing import Optional
from common.api_error import OwnershipError, SlotUnavailableError, ValidationError
from common.logger import get_app_logger
from hospital_scheduler.store import RecordStore
from hospital_scheduler.store.models import (
    Appointment,
    AppointmentStatus,
    Role,
    TimeSlot,
)
from .availability_service import AvailabilityResolver
from .notifier import LogNotifier, Notifier

logger = get_app_logger(__name__)


class BookingEngine:
    def __init__(
        self,
        store: RecordStore,
        resolver: Optional[AvailabilityResolver] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.store = store
        self.resolver = resolver or AvailabilityResolver(store)
        self.notifier = notifier or LogNotifier()

    # ------------------------------------------------------------------
    # Patient side
    # ------------------------------------------------------------------

    def schedule_appointment(
        self, patient_id: str, doctor_id: str, day: date, slot: TimeSlot
    ) -> Appointment:
        """
        Book ``slot`` with ``doctor_id`` on ``day``.

        Raises:
            NotFoundError: unknown patient or doctor
            ValidationError: wrong role, slot not on ``day``
            SlotUnavailableError: slot not declared or already taken
            PersistenceError: appointments file could not be written
        """
        return self._book(
            patient_id, doctor_id, day, slot, AppointmentStatus.SCHEDULED
        )

    def request_appointment(
        self, patient_id: str, doctor_id: str, day: date, slot: TimeSlot
    ) -> Appointment:
        """Like ``schedule_appointment`` but waits for the doctor to accept."""
        return self._book(patient_id, doctor_id, day, slot, AppointmentStatus.PENDING)

    def reschedule_appointment(
        self,
        patient_id: str,
        appointment_id: int,
        new_date: date,
        slot: TimeSlot,
        doctor_id: Optional[str] = None,
    ) -> Appointment:
        """
        Move an active appointment to another slot, optionally with another
        doctor. Id and patient stay the same; status becomes Rescheduled.
        """
        today = self.resolver.today()
        if new_date < today:
            raise ValidationError(
                f"Cannot reschedule to {new_date.isoformat()}, "
                f"which is before {today.isoformat()}",
                code="DATE_IN_PAST",
            )

        with self.store.lock:
            appointment = self._owned_by_patient(appointment_id, patient_id)
            self._require_active(appointment)
            appointment.check_transition(AppointmentStatus.RESCHEDULED)

            target_doctor = doctor_id or appointment.doctor_id
            self.store.require_user(target_doctor, Role.DOCTOR)
            self._require_on_date(slot, new_date)
            self._require_available(target_doctor, new_date, slot)

            previous = appointment.time_slot
            updated = self.store.update_appointment(
                appointment.model_copy(
                    update={
                        "doctor_id": target_doctor,
                        "time_slot": slot.as_booked(),
                        "status": AppointmentStatus.RESCHEDULED,
                    }
                )
            )

        logger.info(
            "Appointment rescheduled",
            appointment_id=updated.id,
            patient_id=patient_id,
            doctor_id=updated.doctor_id,
            from_slot=str(previous),
            to_slot=str(updated.time_slot),
        )
        self._notify(
            f"Appointment #{updated.id} rescheduled to {updated.time_slot} "
            f"with doctor {updated.doctor_id}"
        )
        return updated

    def cancel_appointment(self, patient_id: str, appointment_id: int) -> Appointment:
        """Soft delete: the appointment stays on file as Cancelled."""
        with self.store.lock:
            appointment = self._owned_by_patient(appointment_id, patient_id)
            updated = self._transition(appointment, AppointmentStatus.CANCELLED)

        logger.info(
            "Appointment cancelled", appointment_id=updated.id, patient_id=patient_id
        )
        self._notify(f"Appointment #{updated.id} on {updated.time_slot} cancelled")
        return updated

    # ------------------------------------------------------------------
    # Doctor side
    # ------------------------------------------------------------------

    def accept_appointment(self, doctor_id: str, appointment_id: int) -> Appointment:
        with self.store.lock:
            appointment = self._owned_by_doctor(appointment_id, doctor_id)
            updated = self._transition(appointment, AppointmentStatus.SCHEDULED)

        logger.info("Appointment accepted", appointment_id=updated.id, doctor_id=doctor_id)
        self._notify(f"Appointment #{updated.id} on {updated.time_slot} confirmed")
        return updated

    def decline_appointment(self, doctor_id: str, appointment_id: int) -> Appointment:
        with self.store.lock:
            appointment = self._owned_by_doctor(appointment_id, doctor_id)
            updated = self._transition(appointment, AppointmentStatus.DECLINED)

        logger.info("Appointment declined", appointment_id=updated.id, doctor_id=doctor_id)
        self._notify(
            f"Appointment #{updated.id} on {updated.time_slot} declined by "
            f"doctor {doctor_id}"
        )
        return updated

    def complete_appointment(
        self, doctor_id: str, appointment_id: int, outcome: str
    ) -> Appointment:
        with self.store.lock:
            appointment = self._owned_by_doctor(appointment_id, doctor_id)
            # pending appointments must be accepted first
            updated = self._transition(
                appointment, AppointmentStatus.COMPLETED, outcome_record=outcome
            )

        logger.info(
            "Appointment completed", appointment_id=updated.id, doctor_id=doctor_id
        )
        return updated

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def appointments_for_doctor(self, doctor_id: str) -> list[Appointment]:
        self.store.require_user(doctor_id, Role.DOCTOR)
        return _chronological(self.store.appointments_by_doctor(doctor_id))

    def appointments_for_patient(self, patient_id: str) -> list[Appointment]:
        self.store.require_user(patient_id, Role.PATIENT)
        return _chronological(self.store.appointments_by_patient(patient_id))

    def get_appointment(self, appointment_id: int) -> Appointment:
        return self.store.require_appointment(appointment_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _book(
        self,
        patient_id: str,
        doctor_id: str,
        day: date,
        slot: TimeSlot,
        status: AppointmentStatus,
    ) -> Appointment:
        with self.store.lock:
            self.store.require_user(patient_id, Role.PATIENT)
            self.store.require_user(doctor_id, Role.DOCTOR)
            self._require_on_date(slot, day)
            self._require_available(doctor_id, day, slot)

            appointment = self.store.add_appointment(
                Appointment(
                    id=self.store.next_appointment_id(),
                    patient_id=patient_id,
                    doctor_id=doctor_id,
                    time_slot=slot.as_booked(),
                    status=status,
                )
            )

        logger.info(
            "Appointment booked",
            appointment_id=appointment.id,
            patient_id=patient_id,
            doctor_id=doctor_id,
            slot=str(appointment.time_slot),
            status=status.value,
        )
        self._notify(
            f"Appointment #{appointment.id} {status.value.lower()} with doctor "
            f"{doctor_id} on {appointment.time_slot}"
        )
        return appointment

    def _owned_by_patient(self, appointment_id: int, patient_id: str) -> Appointment:
        appointment = self.store.require_appointment(appointment_id)
        if appointment.patient_id != patient_id:
            raise OwnershipError(
                f"Appointment {appointment_id} does not belong to patient {patient_id}"
            )
        return appointment

    def _owned_by_doctor(self, appointment_id: int, doctor_id: str) -> Appointment:
        appointment = self.store.require_appointment(appointment_id)
        if appointment.doctor_id != doctor_id:
            raise OwnershipError(
                f"Appointment {appointment_id} is not with doctor {doctor_id}"
            )
        return appointment

    @staticmethod
    def _require_active(appointment: Appointment) -> None:
        if not appointment.is_active:
            raise ValidationError(
                f"Appointment {appointment.id} is {appointment.status.value}",
                code="APPOINTMENT_NOT_ACTIVE",
            )

    @staticmethod
    def _require_on_date(slot: TimeSlot, day: date) -> None:
        if slot.start.date() != day or slot.end.date() != day:
            raise ValidationError(
                f"Slot {slot} does not fall on {day.isoformat()}",
                code="SLOT_OUTSIDE_DATE",
            )

    def _require_available(self, doctor_id: str, day: date, slot: TimeSlot) -> None:
        if not self.resolver.is_available(doctor_id, day, slot):
            raise SlotUnavailableError(
                f"Slot {slot} is not available for doctor {doctor_id}"
            )

    def _transition(
        self, appointment: Appointment, target: AppointmentStatus, **changes
    ) -> Appointment:
        self._require_active(appointment)
        appointment.check_transition(target)
        return self.store.update_appointment(
            appointment.model_copy(update={"status": target, **changes})
        )

    def _notify(self, message: str) -> None:
        try:
            self.notifier.notify(message)
        except Exception as e:
            logger.error("Notification failed", error=str(e), notification=message)


def _chronological(appointments: list[Appointment]) -> list[Appointment]:
    return sorted(appointments, key=lambda a: (a.time_slot.start, a.id))


__all__ = ["BookingEngine"]
