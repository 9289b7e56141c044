# hospital_scheduler/store/record_store.py
"""
In-memory record cache mirrored to flat files.

Design principles:
- One instance per process, built at startup and passed around explicitly
- Every mutation rewrites exactly the affected collection's file before it
  returns; if that fails the in-memory change is undone
- Loading never aborts on a bad line: it is skipped and logged
- One re-entrant lock serializes all mutations (and the booking engine's
  check-then-commit sequences)
"""

import threading
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, Iterable, Optional

from common import StorageConfig
from common.api_error import AppError, NotFoundError, ValidationError
from common.logger import get_app_logger
from .codec import (
    DecodeError,
    decode_appointment,
    decode_medical_record,
    decode_schedule_entry,
    decode_user,
    encode_appointment,
    encode_medical_record,
    encode_schedule_entry,
    encode_user,
)
from .file_store import FileStore
from .models import (
    Appointment,
    AppointmentStatus,
    MedicalRecord,
    Role,
    Schedule,
    TimeSlot,
    User,
)

logger = get_app_logger(__name__)


class Collection(str, Enum):
    USERS = "users"
    APPOINTMENTS = "appointments"
    MEDICAL_RECORDS = "medical_records"
    SCHEDULES = "schedules"


# load order matters: schedules attach to already-loaded doctors
LOAD_ORDER = (
    Collection.USERS,
    Collection.APPOINTMENTS,
    Collection.MEDICAL_RECORDS,
    Collection.SCHEDULES,
)


@dataclass
class SkippedLine:
    file: str
    line_number: int
    line: str
    reason: str


@dataclass
class LoadReport:
    loaded: dict[str, int] = field(default_factory=dict)
    skipped: list[SkippedLine] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


class RecordStore:
    """
    Users, appointments, medical records and doctor schedules.

    Usage:
        # Startup
        store = RecordStore.from_config(config.storage)
        store.load()

        # Runtime
        with store.lock:
            ...

    Getters hand out copies; change entities through the mutation methods.
    """

    def __init__(
        self,
        files: FileStore,
        *,
        users_file: str = "users.txt",
        appointments_file: str = "appts.txt",
        medical_records_file: str = "medical_records.txt",
        schedules_file: str = "schedules.txt",
    ):
        self._files = files
        self._file_names: dict[Collection, str] = {
            Collection.USERS: users_file,
            Collection.APPOINTMENTS: appointments_file,
            Collection.MEDICAL_RECORDS: medical_records_file,
            Collection.SCHEDULES: schedules_file,
        }
        self.lock = threading.RLock()

        self._users: list[User] = []
        self._users_by_id: dict[str, User] = {}
        self._appointments: list[Appointment] = []
        self._appointments_by_id: dict[int, Appointment] = {}
        self._records: list[MedicalRecord] = []
        self._records_by_patient: dict[str, MedicalRecord] = {}
        self._schedules: dict[str, Schedule] = {}

        # highest id ever handed out, so ids never repeat within a process
        self._appointment_high_water = 0

    @classmethod
    def from_config(cls, config: StorageConfig) -> "RecordStore":
        files = FileStore.open(config.data_dir, fsync=config.fsync)
        return cls(
            files,
            users_file=config.users_file,
            appointments_file=config.appointments_file,
            medical_records_file=config.medical_records_file,
            schedules_file=config.schedules_file,
        )

    @property
    def files(self) -> FileStore:
        return self._files

    def file_name(self, collection: Collection) -> str:
        return self._file_names[collection]

    # ------------------------------------------------------------------
    # Loading and persistence
    # ------------------------------------------------------------------

    def load(self) -> LoadReport:
        """Replace memory with the contents of the four files."""
        report = LoadReport()
        with self.lock:
            self._reset()
            loaders: dict[Collection, Callable[[LoadReport], int]] = {
                Collection.USERS: self._load_users,
                Collection.APPOINTMENTS: self._load_appointments,
                Collection.MEDICAL_RECORDS: self._load_medical_records,
                Collection.SCHEDULES: self._load_schedules,
            }
            for collection in LOAD_ORDER:
                report.loaded[collection.value] = loaders[collection](report)

        logger.info(
            "Record store loaded",
            directory=str(self._files.directory),
            skipped=report.skipped_count,
            **report.loaded,
        )
        return report

    def flush(self) -> None:
        """Rewrite every collection file from memory."""
        with self.lock:
            for collection in LOAD_ORDER:
                self._persist(collection)

    def _reset(self) -> None:
        self._users.clear()
        self._users_by_id.clear()
        self._appointments.clear()
        self._appointments_by_id.clear()
        self._records.clear()
        self._records_by_patient.clear()
        self._schedules.clear()
        self._appointment_high_water = 0

    def _iter_lines(self, collection: Collection) -> Iterable[tuple[int, str]]:
        for number, line in enumerate(
            self._files.read_lines(self._file_names[collection]), start=1
        ):
            if line.strip():
                yield number, line

    def _skip(
        self,
        report: LoadReport,
        collection: Collection,
        number: int,
        line: str,
        reason: str,
        **context,
    ) -> None:
        name = self._file_names[collection]
        logger.warning(
            "Skipping stored record",
            file=name,
            line_number=number,
            line=line,
            reason=reason,
            **context,
        )
        report.skipped.append(SkippedLine(name, number, line, reason))

    def _load_users(self, report: LoadReport) -> int:
        for number, line in self._iter_lines(Collection.USERS):
            try:
                user = decode_user(line)
            except DecodeError as e:
                self._skip(report, Collection.USERS, number, line, e.message)
                continue
            if user.hospital_id in self._users_by_id:
                self._skip(
                    report,
                    Collection.USERS,
                    number,
                    line,
                    f"Duplicate hospital ID {user.hospital_id}",
                )
                continue
            self._insert_user(user)
        return len(self._users)

    def _load_appointments(self, report: LoadReport) -> int:
        for number, line in self._iter_lines(Collection.APPOINTMENTS):
            try:
                appointment = decode_appointment(line)
            except DecodeError as e:
                self._skip(report, Collection.APPOINTMENTS, number, line, e.message)
                continue
            if appointment.id in self._appointments_by_id:
                self._skip(
                    report,
                    Collection.APPOINTMENTS,
                    number,
                    line,
                    f"Duplicate appointment ID {appointment.id}",
                )
                continue
            # kept so history survives a removed account
            for user_id, role in (
                (appointment.patient_id, Role.PATIENT),
                (appointment.doctor_id, Role.DOCTOR),
            ):
                user = self._users_by_id.get(user_id)
                if user is None or user.role is not role:
                    logger.warning(
                        "Appointment references unknown user",
                        appointment_id=appointment.id,
                        user_id=user_id,
                        expected_role=role.value,
                    )
            self._insert_appointment(appointment)
        return len(self._appointments)

    def _load_medical_records(self, report: LoadReport) -> int:
        for number, line in self._iter_lines(Collection.MEDICAL_RECORDS):
            try:
                record = decode_medical_record(line)
            except DecodeError as e:
                self._skip(report, Collection.MEDICAL_RECORDS, number, line, e.message)
                continue
            if record.patient_id in self._records_by_patient:
                self._skip(
                    report,
                    Collection.MEDICAL_RECORDS,
                    number,
                    line,
                    f"Duplicate medical record for patient {record.patient_id}",
                )
                continue
            self._records.append(record)
            self._records_by_patient[record.patient_id] = record
        return len(self._records)

    def _load_schedules(self, report: LoadReport) -> int:
        entries = 0
        for number, line in self._iter_lines(Collection.SCHEDULES):
            try:
                entry = decode_schedule_entry(line)
            except DecodeError as e:
                self._skip(report, Collection.SCHEDULES, number, line, e.message)
                continue

            doctor = self._users_by_id.get(entry.doctor_id)
            if doctor is None or not doctor.is_doctor:
                self._skip(
                    report,
                    Collection.SCHEDULES,
                    number,
                    line,
                    f"Doctor with ID {entry.doctor_id} not found",
                    doctor_id=entry.doctor_id,
                )
                continue

            schedule = self._schedules.setdefault(
                entry.doctor_id, Schedule(doctor_id=entry.doctor_id)
            )
            if entry.day in schedule.availability:
                self._skip(
                    report,
                    Collection.SCHEDULES,
                    number,
                    line,
                    f"Duplicate schedule date {entry.day.isoformat()}",
                    doctor_id=entry.doctor_id,
                )
                continue
            try:
                schedule.set_availability(entry.day, entry.slots)
            except ValidationError as e:
                self._skip(
                    report,
                    Collection.SCHEDULES,
                    number,
                    line,
                    e.message,
                    doctor_id=entry.doctor_id,
                )
                continue
            entries += 1
        return entries

    def _encode_collection(self, collection: Collection) -> list[str]:
        if collection is Collection.USERS:
            return [encode_user(u) for u in self._users]
        if collection is Collection.APPOINTMENTS:
            return [encode_appointment(a) for a in self._appointments]
        if collection is Collection.MEDICAL_RECORDS:
            return [encode_medical_record(r) for r in self._records]

        lines = []
        # doctors in account order, dates ascending
        for user in self._users:
            schedule = self._schedules.get(user.hospital_id)
            if schedule is not None:
                lines.extend(encode_schedule_entry(e) for e in schedule.entries())
        return lines

    def _persist(self, collection: Collection) -> None:
        self._files.write_lines(
            self._file_names[collection], self._encode_collection(collection)
        )

    def _commit(self, collection: Collection, undo: Callable[[], None]) -> None:
        """Persist ``collection``; on any failure run ``undo`` and re-raise."""
        try:
            self._persist(collection)
        except AppError as e:
            undo()
            logger.error(
                "Persisting collection failed, change rolled back",
                collection=collection.value,
                error=e.message,
                code=e.code,
            )
            raise

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def _insert_user(self, user: User) -> None:
        self._users.append(user)
        self._users_by_id[user.hospital_id] = user

    def _drop_user(self, user: User) -> None:
        self._users.remove(user)
        del self._users_by_id[user.hospital_id]

    def add_user(self, user: User) -> User:
        with self.lock:
            if user.hospital_id in self._users_by_id:
                raise ValidationError(
                    f"Hospital ID {user.hospital_id} already exists",
                    code="DUPLICATE_ID",
                )
            stored = user.model_copy(deep=True)
            self._insert_user(stored)
            self._commit(Collection.USERS, lambda: self._drop_user(stored))
            logger.info("User added", hospital_id=user.hospital_id, role=user.role.value)
            return stored.model_copy(deep=True)

    def update_user(self, user: User) -> User:
        """Replace an account (password change, contact details). Role is fixed."""
        with self.lock:
            current = self._users_by_id.get(user.hospital_id)
            if current is None:
                raise NotFoundError(f"User {user.hospital_id} not found")
            if current.role is not user.role:
                raise ValidationError(
                    f"Role of {user.hospital_id} cannot change from "
                    f"{current.role.value} to {user.role.value}",
                    code="ROLE_IMMUTABLE",
                )
            index = self._users.index(current)
            stored = user.model_copy(deep=True)

            def undo() -> None:
                self._users[index] = current
                self._users_by_id[current.hospital_id] = current

            self._users[index] = stored
            self._users_by_id[stored.hospital_id] = stored
            self._commit(Collection.USERS, undo)
            return stored.model_copy(deep=True)

    def remove_user(self, hospital_id: str) -> User:
        """
        Delete an account. A doctor's schedule goes with it; appointments and
        medical records stay as history.
        """
        with self.lock:
            user = self._users_by_id.get(hospital_id)
            if user is None:
                raise NotFoundError(f"User {hospital_id} not found")

            index = self._users.index(user)
            schedule = self._schedules.pop(hospital_id, None)

            def undo() -> None:
                self._users.insert(index, user)
                self._users_by_id[hospital_id] = user
                if schedule is not None:
                    self._schedules[hospital_id] = schedule

            def undo_both() -> None:
                undo()
                self._persist(Collection.USERS)

            # users first: an orphaned schedule line is skipped on load
            self._drop_user(user)
            self._commit(Collection.USERS, undo)
            if schedule is not None:
                self._commit(Collection.SCHEDULES, undo_both)
            logger.info("User removed", hospital_id=hospital_id, role=user.role.value)
            return user.model_copy(deep=True)

    def get_user(self, hospital_id: str) -> Optional[User]:
        user = self._users_by_id.get(hospital_id)
        return user.model_copy(deep=True) if user is not None else None

    def require_user(self, hospital_id: str, role: Optional[Role] = None) -> User:
        """
        Raises:
            NotFoundError: no such user
            ValidationError: user exists with another role
        """
        user = self.get_user(hospital_id)
        if user is None:
            label = role.value if role else "User"
            raise NotFoundError(f"{label} {hospital_id} not found")
        if role is not None and user.role is not role:
            raise ValidationError(
                f"User {hospital_id} is a {user.role.value}, not a {role.value}",
                code="WRONG_ROLE",
            )
        return user

    def list_users(self, role: Optional[Role] = None) -> list[User]:
        return [
            u.model_copy(deep=True)
            for u in self._users
            if role is None or u.role is role
        ]

    def list_doctors(self) -> list[User]:
        return self.list_users(Role.DOCTOR)

    def list_patients(self) -> list[User]:
        return self.list_users(Role.PATIENT)

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    def _insert_appointment(self, appointment: Appointment) -> None:
        self._appointments.append(appointment)
        self._appointments_by_id[appointment.id] = appointment
        self._appointment_high_water = max(self._appointment_high_water, appointment.id)

    def next_appointment_id(self) -> int:
        """1 + the highest id seen in this process (1 for an empty store)."""
        with self.lock:
            return self._appointment_high_water + 1

    def add_appointment(self, appointment: Appointment) -> Appointment:
        with self.lock:
            if appointment.id in self._appointments_by_id:
                raise ValidationError(
                    f"Appointment ID {appointment.id} already exists",
                    code="DUPLICATE_ID",
                )
            stored = appointment.model_copy(deep=True)
            previous_high_water = self._appointment_high_water

            def undo() -> None:
                self._appointments.remove(stored)
                del self._appointments_by_id[stored.id]
                self._appointment_high_water = previous_high_water

            self._insert_appointment(stored)
            self._commit(Collection.APPOINTMENTS, undo)
            return stored.model_copy(deep=True)

    def update_appointment(self, appointment: Appointment) -> Appointment:
        with self.lock:
            current = self._appointments_by_id.get(appointment.id)
            if current is None:
                raise NotFoundError(f"Appointment {appointment.id} not found")
            index = self._appointments.index(current)
            stored = appointment.model_copy(deep=True)

            def undo() -> None:
                self._appointments[index] = current
                self._appointments_by_id[current.id] = current

            self._appointments[index] = stored
            self._appointments_by_id[stored.id] = stored
            self._commit(Collection.APPOINTMENTS, undo)
            return stored.model_copy(deep=True)

    def get_appointment(self, appointment_id: int) -> Optional[Appointment]:
        appointment = self._appointments_by_id.get(appointment_id)
        return appointment.model_copy(deep=True) if appointment is not None else None

    def require_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    def _select(self, predicate: Callable[[Appointment], bool]) -> list[Appointment]:
        return [a.model_copy(deep=True) for a in self._appointments if predicate(a)]

    def list_appointments(self) -> list[Appointment]:
        return self._select(lambda a: True)

    def appointments_by_doctor(self, doctor_id: str) -> list[Appointment]:
        return self._select(lambda a: a.doctor_id == doctor_id)

    def appointments_by_patient(self, patient_id: str) -> list[Appointment]:
        return self._select(lambda a: a.patient_id == patient_id)

    def appointments_on(
        self, doctor_id: str, day: date, active_only: bool = True
    ) -> list[Appointment]:
        return self._select(
            lambda a: a.doctor_id == doctor_id
            and a.date == day
            and (a.is_active or not active_only)
        )

    def pending_appointments_by_doctor(self, doctor_id: str) -> list[Appointment]:
        return self._select(
            lambda a: a.doctor_id == doctor_id
            and a.status is AppointmentStatus.PENDING
        )

    def upcoming_appointments_by_doctor(
        self, doctor_id: str, now: datetime
    ) -> list[Appointment]:
        return self._select(
            lambda a: a.doctor_id == doctor_id
            and a.is_active
            and a.time_slot.start > now
        )

    # ------------------------------------------------------------------
    # Medical records
    # ------------------------------------------------------------------

    def add_medical_record(self, record: MedicalRecord) -> MedicalRecord:
        with self.lock:
            self.require_user(record.patient_id, Role.PATIENT)
            if record.patient_id in self._records_by_patient:
                raise ValidationError(
                    f"Medical record for patient {record.patient_id} already exists",
                    code="DUPLICATE_ID",
                )
            if record.assigned_doctor_id is not None:
                self.require_user(record.assigned_doctor_id, Role.DOCTOR)

            stored = record.model_copy(deep=True)

            def undo() -> None:
                self._records.remove(stored)
                del self._records_by_patient[stored.patient_id]

            self._records.append(stored)
            self._records_by_patient[stored.patient_id] = stored
            self._commit(Collection.MEDICAL_RECORDS, undo)
            return stored.model_copy(deep=True)

    def update_medical_record(self, record: MedicalRecord) -> MedicalRecord:
        with self.lock:
            current = self._records_by_patient.get(record.patient_id)
            if current is None:
                raise NotFoundError(
                    f"Medical record for patient {record.patient_id} not found"
                )
            if (
                record.assigned_doctor_id is not None
                and record.assigned_doctor_id != current.assigned_doctor_id
            ):
                self.require_user(record.assigned_doctor_id, Role.DOCTOR)

            index = self._records.index(current)
            stored = record.model_copy(deep=True)

            def undo() -> None:
                self._records[index] = current
                self._records_by_patient[current.patient_id] = current

            self._records[index] = stored
            self._records_by_patient[stored.patient_id] = stored
            self._commit(Collection.MEDICAL_RECORDS, undo)
            return stored.model_copy(deep=True)

    def get_medical_record(self, patient_id: str) -> Optional[MedicalRecord]:
        record = self._records_by_patient.get(patient_id)
        return record.model_copy(deep=True) if record is not None else None

    def list_medical_records(self) -> list[MedicalRecord]:
        return [r.model_copy(deep=True) for r in self._records]

    # ------------------------------------------------------------------
    # Schedules
    # ------------------------------------------------------------------

    def get_schedule(self, doctor_id: str) -> Schedule:
        """A doctor without declared availability has an empty schedule."""
        schedule = self._schedules.get(doctor_id)
        if schedule is None:
            return Schedule(doctor_id=doctor_id)
        return schedule.model_copy(deep=True)

    def declared_slots(self, doctor_id: str, day: date) -> list[TimeSlot]:
        schedule = self._schedules.get(doctor_id)
        return schedule.slots_on(day) if schedule is not None else []

    def set_availability(
        self, doctor_id: str, day: date, slots: list[TimeSlot]
    ) -> list[TimeSlot]:
        """
        Replace the declared slots of one date.

        Raises:
            NotFoundError / ValidationError: unknown doctor, slot off the date,
                overlapping slots
        """
        with self.lock:
            self.require_user(doctor_id, Role.DOCTOR)
            normalized = Schedule.normalize_slots(
                day, [s.model_copy(update={"available": True}) for s in slots]
            )

            existed = doctor_id in self._schedules
            schedule = self._schedules.setdefault(doctor_id, Schedule(doctor_id=doctor_id))
            previous = schedule.availability.get(day)

            def undo() -> None:
                if previous is None:
                    schedule.availability.pop(day, None)
                else:
                    schedule.availability[day] = previous
                if not existed:
                    self._schedules.pop(doctor_id, None)

            schedule.availability[day] = normalized
            self._commit(Collection.SCHEDULES, undo)
            logger.info(
                "Availability updated",
                doctor_id=doctor_id,
                date=day.isoformat(),
                slots=len(normalized),
            )
            return list(normalized)

    def clear_availability(self, doctor_id: str, day: date) -> bool:
        """Forget a date entirely. Returns False when nothing was declared."""
        with self.lock:
            self.require_user(doctor_id, Role.DOCTOR)
            schedule = self._schedules.get(doctor_id)
            if schedule is None or day not in schedule.availability:
                return False
            previous = schedule.availability.pop(day)
            self._commit(
                Collection.SCHEDULES,
                lambda: schedule.availability.__setitem__(day, previous),
            )
            logger.info("Availability cleared", doctor_id=doctor_id, date=day.isoformat())
            return True


__all__ = [
    "Collection",
    "LOAD_ORDER",
    "LoadReport",
    "RecordStore",
    "SkippedLine",
]
