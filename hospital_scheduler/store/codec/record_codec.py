# hospital_scheduler/store/codec/record_codec.py
"""
Entity <-> line conversion for the four record files.

Pure functions: no I/O, no logging. ``decode_*`` raise ``DecodeError``;
``encode_*`` raise ``EncodeError`` when a value would not survive the
round trip.

Layouts:
    users.txt            id|hash|name|dob|gender|phone|email|Role
    appts.txt            id|patient|doctor|<start>-<end>|Status|outcome
    schedules.txt        doctor|date|HH:MM-HH:MM,HH:MM-HH:MM
    medical_records.txt  patient|name|dob|gender|phone|email|blood|
                         diagnoses|treatment|treatment|...|assigned_doctor
"""
import re
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Iterator, Union
from pydantic import ValidationError as PydanticValidationError

from ..models import (
    Appointment,
    AppointmentStatus,
    Diagnosis,
    MedicalRecord,
    Prescription,
    PrescriptionStatus,
    Role,
    ScheduleEntry,
    TimeSlot,
    Treatment,
    User,
)
from .formats import (
    FIELD_SEPARATOR,
    ITEM_SEPARATOR,
    LIST_SEPARATOR,
    NULL_TOKEN,
    PART_SEPARATOR,
    RANGE_SEPARATOR,
    DecodeError,
    DecodeReason,
    EncodeError,
    check_minutes,
    check_text,
    format_date,
    format_datetime,
    format_time,
    parse_date,
    parse_datetime,
    parse_int,
    parse_time,
    parse_with,
    split_fields,
)

USER_FIELDS = 8
APPOINTMENT_FIELDS = 6
SCHEDULE_FIELDS = 3
MEDICAL_RECORD_FIELDS = 9  # legacy lines stop before assigned_doctor_id

_SLOT_PATTERN = re.compile(
    r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2})-(\d{4}-\d{2}-\d{2}T\d{2}:\d{2})$"
)


class RecordKind(str, Enum):
    USER = "user"
    APPOINTMENT = "appointment"
    SCHEDULE = "schedule"
    MEDICAL_RECORD = "medical_record"


@contextmanager
def _decoding(line: str, record_type: str) -> Iterator[None]:
    """Attach the offending line and map model validation to InvalidField."""
    try:
        yield
    except DecodeError as exc:
        if exc.line is None:
            exc.line = line
        raise
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or record_type
        raise DecodeError(
            DecodeReason.INVALID_FIELD,
            f"Invalid {record_type} field {field}: {first['msg']}",
            line=line,
            field=field,
        ) from exc


def _join(fields: list[str]) -> str:
    return FIELD_SEPARATOR.join(fields)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def encode_user(user: User) -> str:
    for field in ("hospital_id", "password_hash", "name", "gender", "phone", "email"):
        check_text(getattr(user, field), field)
    return _join(
        [
            user.hospital_id,
            user.password_hash,
            user.name,
            format_date(user.date_of_birth),
            user.gender,
            user.phone,
            user.email,
            user.role.value,
        ]
    )


def decode_user(line: str) -> User:
    with _decoding(line, "user"):
        fields = split_fields(line, USER_FIELDS, "user")
        return User(
            hospital_id=fields[0],
            password_hash=fields[1],
            name=fields[2],
            date_of_birth=parse_date(fields[3], "date_of_birth"),
            gender=fields[4],
            phone=fields[5],
            email=fields[6],
            role=parse_with(fields[7], "role", Role.parse),
        )


# ---------------------------------------------------------------------------
# Time slots
# ---------------------------------------------------------------------------


def encode_time_slot(slot: TimeSlot) -> str:
    check_minutes(slot.start, "slot start")
    check_minutes(slot.end, "slot end")
    return f"{format_datetime(slot.start)}{RANGE_SEPARATOR}{format_datetime(slot.end)}"


def decode_time_slot(value: str, available: bool = False) -> TimeSlot:
    """``2024-06-01T09:00-2024-06-01T09:30``. Booked slots are not available."""
    match = _SLOT_PATTERN.match(value.strip())
    if match is None:
        raise DecodeError(
            DecodeReason.INVALID_FIELD,
            f"Invalid time slot: {value!r}",
            field="time_slot",
        )
    start = parse_datetime(match.group(1), "slot start")
    end = parse_datetime(match.group(2), "slot end")
    return _build_slot(start, end, available)


def _build_slot(start: datetime, end: datetime, available: bool) -> TimeSlot:
    try:
        return TimeSlot(start=start, end=end, available=available)
    except PydanticValidationError as exc:
        raise DecodeError(
            DecodeReason.INVALID_FIELD,
            f"Invalid time slot {start:%Y-%m-%dT%H:%M}-{end:%Y-%m-%dT%H:%M}: "
            f"{exc.errors()[0]['msg']}",
            field="time_slot",
        ) from exc


# ---------------------------------------------------------------------------
# Appointments
# ---------------------------------------------------------------------------


def encode_appointment(appointment: Appointment) -> str:
    check_text(appointment.patient_id, "patient_id")
    check_text(appointment.doctor_id, "doctor_id")
    check_text(appointment.outcome_record, "outcome_record")
    return _join(
        [
            str(appointment.id),
            appointment.patient_id,
            appointment.doctor_id,
            encode_time_slot(appointment.time_slot),
            appointment.status.value,
            appointment.outcome_record,
        ]
    )


def decode_appointment(line: str) -> Appointment:
    with _decoding(line, "appointment"):
        fields = split_fields(line, APPOINTMENT_FIELDS, "appointment")
        return Appointment(
            id=parse_int(fields[0], "id"),
            patient_id=fields[1],
            doctor_id=fields[2],
            time_slot=decode_time_slot(fields[3]),
            status=parse_with(fields[4], "status", AppointmentStatus.parse),
            outcome_record=fields[5],
        )


# ---------------------------------------------------------------------------
# Schedules
# ---------------------------------------------------------------------------


def encode_schedule_entry(entry: ScheduleEntry) -> str:
    check_text(entry.doctor_id, "doctor_id")
    windows = []
    for slot in entry.slots:
        if slot.start.date() != entry.day or slot.end.date() != entry.day:
            raise EncodeError(
                f"Slot {slot} does not fall on {format_date(entry.day)}",
                field="slots",
            )
        check_minutes(slot.start, "slot start")
        check_minutes(slot.end, "slot end")
        windows.append(
            f"{format_time(slot.start.time())}{RANGE_SEPARATOR}"
            f"{format_time(slot.end.time())}"
        )
    return _join([entry.doctor_id, format_date(entry.day), LIST_SEPARATOR.join(windows)])


def decode_schedule_entry(line: str) -> ScheduleEntry:
    with _decoding(line, "schedule"):
        fields = split_fields(line, SCHEDULE_FIELDS, "schedule")
        day = parse_date(fields[1], "date")
        slots: list[TimeSlot] = []
        if fields[2].strip():
            for window in fields[2].split(LIST_SEPARATOR):
                times = window.split(RANGE_SEPARATOR)
                if len(times) != 2:
                    raise DecodeError(
                        DecodeReason.INVALID_FIELD,
                        f"Invalid time slot format: {window!r}",
                        field="slots",
                    )
                start = datetime.combine(day, parse_time(times[0], "slot start"))
                end = datetime.combine(day, parse_time(times[1], "slot end"))
                slots.append(_build_slot(start, end, available=True))
        return ScheduleEntry(doctor_id=fields[0], day=day, slots=slots)


# ---------------------------------------------------------------------------
# Medical records
# ---------------------------------------------------------------------------


def _encode_diagnoses(diagnoses: list[Diagnosis]) -> str:
    if not diagnoses:
        return NULL_TOKEN
    return LIST_SEPARATOR.join(
        check_text(
            d.description,
            "diagnosis description",
            (FIELD_SEPARATOR, LIST_SEPARATOR, PART_SEPARATOR),
        )
        + PART_SEPARATOR
        + format_date(d.diagnosed_on)
        for d in diagnoses
    )


def _decode_diagnoses(value: str) -> list[Diagnosis]:
    if value == NULL_TOKEN or not value:
        return []
    diagnoses = []
    for item in value.split(LIST_SEPARATOR):
        parts = item.split(PART_SEPARATOR)
        if len(parts) != 2:
            raise DecodeError(
                DecodeReason.INVALID_FIELD,
                f"Invalid diagnosis: {item!r}",
                field="diagnoses",
            )
        diagnoses.append(
            Diagnosis(
                description=parts[0],
                diagnosed_on=parse_date(parts[1], "diagnosis date"),
            )
        )
    return diagnoses


_PRESCRIPTION_RESERVED = (
    FIELD_SEPARATOR,
    LIST_SEPARATOR,
    PART_SEPARATOR,
    ITEM_SEPARATOR,
)


def _encode_prescription(prescription: Prescription) -> str:
    return ITEM_SEPARATOR.join(
        [
            check_text(prescription.medication, "medication", _PRESCRIPTION_RESERVED),
            check_text(prescription.dosage, "dosage", _PRESCRIPTION_RESERVED),
            prescription.status.value,
        ]
    )


def _decode_prescription(value: str) -> Prescription:
    parts = value.split(ITEM_SEPARATOR)
    if len(parts) != 3:
        raise DecodeError(
            DecodeReason.INVALID_FIELD,
            f"Invalid prescription: {value!r}",
            field="prescriptions",
        )
    return Prescription(
        medication=parts[0],
        dosage=parts[1],
        status=parse_with(parts[2], "prescription status", PrescriptionStatus.parse),
    )


def _encode_treatment(treatment: Treatment) -> str:
    prescriptions = (
        LIST_SEPARATOR.join(_encode_prescription(p) for p in treatment.prescriptions)
        if treatment.prescriptions
        else NULL_TOKEN
    )
    return PART_SEPARATOR.join(
        [
            check_text(
                treatment.description,
                "treatment description",
                (FIELD_SEPARATOR, PART_SEPARATOR),
            ),
            format_date(treatment.started_on),
            prescriptions,
        ]
    )


def _decode_treatment(value: str) -> Treatment:
    parts = value.split(PART_SEPARATOR)
    if len(parts) != 3:
        raise DecodeError(
            DecodeReason.INVALID_FIELD,
            f"Invalid treatment: {value!r}",
            field="treatments",
        )
    prescriptions = (
        []
        if parts[2] == NULL_TOKEN
        else [_decode_prescription(p) for p in parts[2].split(LIST_SEPARATOR)]
    )
    return Treatment(
        description=parts[0],
        started_on=parse_date(parts[1], "treatment date"),
        prescriptions=prescriptions,
    )


def encode_medical_record(record: MedicalRecord) -> str:
    for field in ("patient_id", "name", "gender", "phone", "email", "blood_type"):
        check_text(getattr(record, field), field)
    if record.assigned_doctor_id is not None:
        check_text(record.assigned_doctor_id, "assigned_doctor_id")
        if record.assigned_doctor_id in (NULL_TOKEN, ""):
            raise EncodeError(
                f"assigned_doctor_id must not be empty or {NULL_TOKEN!r}",
                field="assigned_doctor_id",
            )

    treatments = (
        [_encode_treatment(t) for t in record.treatments]
        if record.treatments
        else [NULL_TOKEN]
    )
    return _join(
        [
            record.patient_id,
            record.name,
            format_date(record.date_of_birth),
            record.gender,
            record.phone,
            record.email,
            record.blood_type,
            _encode_diagnoses(record.diagnoses),
            *treatments,
            record.assigned_doctor_id or NULL_TOKEN,
        ]
    )


def decode_medical_record(line: str) -> MedicalRecord:
    with _decoding(line, "medical record"):
        fields = split_fields(line, MEDICAL_RECORD_FIELDS, "medical record")

        # treatments are pipe-nested, so they span every field between the
        # diagnoses and the trailing assigned doctor id
        if len(fields) == MEDICAL_RECORD_FIELDS:
            treatment_fields, assigned = fields[8:], NULL_TOKEN
        else:
            treatment_fields, assigned = fields[8:-1], fields[-1]

        treatments = (
            []
            if treatment_fields == [NULL_TOKEN]
            else [_decode_treatment(t) for t in treatment_fields]
        )

        return MedicalRecord(
            patient_id=fields[0],
            name=fields[1],
            date_of_birth=parse_date(fields[2], "date_of_birth"),
            gender=fields[3],
            phone=fields[4],
            email=fields[5],
            blood_type=fields[6],
            diagnoses=_decode_diagnoses(fields[7]),
            treatments=treatments,
            assigned_doctor_id=None if assigned in (NULL_TOKEN, "") else assigned,
        )


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

Record = Union[User, Appointment, ScheduleEntry, MedicalRecord]

_ENCODERS: dict[type, Callable[[Any], str]] = {
    User: encode_user,
    Appointment: encode_appointment,
    ScheduleEntry: encode_schedule_entry,
    MedicalRecord: encode_medical_record,
}

_DECODERS: dict[RecordKind, Callable[[str], Record]] = {
    RecordKind.USER: decode_user,
    RecordKind.APPOINTMENT: decode_appointment,
    RecordKind.SCHEDULE: decode_schedule_entry,
    RecordKind.MEDICAL_RECORD: decode_medical_record,
}


def encode(entity: Record) -> str:
    encoder = _ENCODERS.get(type(entity))
    if encoder is None:
        raise TypeError(f"No line encoder for {type(entity).__name__}")
    return encoder(entity)


def decode(kind: RecordKind, line: str) -> Record:
    return _DECODERS[kind](line)


__all__ = [
    "RecordKind",
    "encode",
    "decode",
    "encode_user",
    "decode_user",
    "encode_time_slot",
    "decode_time_slot",
    "encode_appointment",
    "decode_appointment",
    "encode_schedule_entry",
    "decode_schedule_entry",
    "encode_medical_record",
    "decode_medical_record",
]
