# tests/test_record_codec.py
from datetime import date, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from hospital_scheduler.store.codec import (
    DecodeError,
    DecodeReason,
    EncodeError,
    RecordKind,
    decode,
    decode_appointment,
    decode_medical_record,
    decode_schedule_entry,
    decode_user,
    encode,
    encode_appointment,
    encode_medical_record,
    encode_schedule_entry,
    encode_user,
)
from hospital_scheduler.store.models import (
    Appointment,
    AppointmentStatus,
    Diagnosis,
    MedicalRecord,
    Prescription,
    PrescriptionStatus,
    Role,
    ScheduleEntry,
    Treatment,
)
from tests.helpers import BOOKING_DAY, make_slot, make_user


def _record(**overrides) -> MedicalRecord:
    values = dict(
        patient_id="P1",
        name="Ada Patient",
        date_of_birth=date(1990, 1, 1),
        gender="F",
        phone="555-0200",
        email="p1@example.org",
        blood_type="O+",
    )
    values.update(overrides)
    return MedicalRecord(**values)


class TestUsers:
    def test_encode_layout(self):
        user = make_user("D1", Role.DOCTOR, "Dr. House")
        assert encode_user(user) == (
            "D1|5e884898da28047151d0e56f8dc62927|Dr. House|1980-03-14|F|"
            "555-0101|d1@example.org|Doctor"
        )

    def test_round_trip(self):
        user = make_user("P7", Role.PATIENT)
        assert decode_user(encode_user(user)) == user

    def test_role_is_case_insensitive(self):
        user = decode_user("A1|hash|Admin|1970-01-01|M|1|a@x|administrator")
        assert user.role is Role.ADMINISTRATOR

    def test_too_few_fields(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_user("D1|hash|Dr. House")
        assert exc_info.value.reason is DecodeReason.MALFORMED_RECORD
        assert exc_info.value.line == "D1|hash|Dr. House"

    def test_bad_date(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_user("D1|hash|Dr. House|14/03/1980|F|1|d@x|Doctor")
        assert exc_info.value.reason is DecodeReason.INVALID_FIELD
        assert exc_info.value.field == "date_of_birth"

    def test_unknown_role(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_user("N1|hash|Nurse|1980-01-01|F|1|n@x|Nurse")
        assert exc_info.value.reason is DecodeReason.INVALID_FIELD

    def test_pipe_in_field_is_rejected(self):
        user = make_user("D1", Role.DOCTOR, "Dr. A|B")
        with pytest.raises(EncodeError):
            encode_user(user)

    def test_empty_id_is_invalid_field(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_user("|hash|Nobody|1980-01-01|F|1|n@x|Patient")
        assert exc_info.value.reason is DecodeReason.INVALID_FIELD


class TestAppointments:
    def test_encode_layout(self):
        appointment = Appointment(
            id=3,
            patient_id="P1",
            doctor_id="D1",
            time_slot=make_slot(BOOKING_DAY, "09:00", "09:30"),
            status=AppointmentStatus.RESCHEDULED,
        )
        assert encode_appointment(appointment) == (
            "3|P1|D1|2024-06-01T09:00-2024-06-01T09:30|Rescheduled|"
        )

    def test_round_trip_with_outcome(self):
        appointment = Appointment(
            id=12,
            patient_id="P2",
            doctor_id="D2",
            time_slot=make_slot(BOOKING_DAY, "10:00", "10:30").as_booked(),
            status=AppointmentStatus.COMPLETED,
            outcome_record="Follow-up in 2 weeks; bloods normal",
        )
        assert decode_appointment(encode_appointment(appointment)) == appointment

    def test_decoded_slot_is_not_available(self):
        appointment = decode_appointment(
            "1|P1|D1|2024-06-01T09:00-2024-06-01T09:30|Scheduled|"
        )
        assert appointment.time_slot.available is False
        assert appointment.time_slot.start == datetime(2024, 6, 1, 9, 0)

    def test_non_numeric_id(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_appointment("x|P1|D1|2024-06-01T09:00-2024-06-01T09:30|Scheduled|")
        assert exc_info.value.field == "id"

    def test_slot_end_before_start(self):
        with pytest.raises(DecodeError):
            decode_appointment("1|P1|D1|2024-06-01T10:00-2024-06-01T09:30|Scheduled|")

    def test_unknown_status(self):
        with pytest.raises(DecodeError):
            decode_appointment("1|P1|D1|2024-06-01T09:00-2024-06-01T09:30|Lost|")

    def test_seconds_cannot_be_stored(self):
        slot = make_slot(BOOKING_DAY, "09:00", "09:30").model_copy(
            update={"start": datetime(2024, 6, 1, 9, 0, 15)}
        )
        appointment = Appointment(id=1, patient_id="P1", doctor_id="D1", time_slot=slot)
        with pytest.raises(EncodeError):
            encode_appointment(appointment)


class TestScheduleEntries:
    def test_encode_layout(self):
        entry = ScheduleEntry(
            doctor_id="D1",
            day=BOOKING_DAY,
            slots=[
                make_slot(BOOKING_DAY, "09:00", "09:30"),
                make_slot(BOOKING_DAY, "09:30", "10:00"),
            ],
        )
        assert encode_schedule_entry(entry) == "D1|2024-06-01|09:00-09:30,09:30-10:00"

    def test_empty_slots(self):
        entry = decode_schedule_entry("D1|2024-06-01|")
        assert entry.slots == []
        assert encode_schedule_entry(entry) == "D1|2024-06-01|"

    def test_decoded_slots_are_available(self):
        entry = decode_schedule_entry("D1|2024-06-01|09:00-09:30")
        assert entry.slots[0].available is True
        assert entry.slots[0] == make_slot(BOOKING_DAY, "09:00", "09:30")

    def test_bad_window(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_schedule_entry("D1|2024-06-01|09:00")
        assert exc_info.value.field == "slots"

    def test_slot_on_other_day_cannot_be_encoded(self):
        entry = ScheduleEntry(
            doctor_id="D1",
            day=BOOKING_DAY,
            slots=[make_slot(date(2024, 6, 2), "09:00", "09:30")],
        )
        with pytest.raises(EncodeError):
            encode_schedule_entry(entry)


class TestMedicalRecords:
    def test_empty_record_layout(self):
        assert encode_medical_record(_record()) == (
            "P1|Ada Patient|1990-01-01|F|555-0200|p1@example.org|O+|NULL|NULL|NULL"
        )

    def test_full_round_trip(self):
        record = _record(
            diagnoses=[
                Diagnosis(description="Hypertension", diagnosed_on=date(2024, 1, 5)),
                Diagnosis(description="Asthma", diagnosed_on=date(2024, 2, 1)),
            ],
            treatments=[
                Treatment(
                    description="Blood pressure control",
                    started_on=date(2024, 1, 6),
                    prescriptions=[
                        Prescription(medication="Lisinopril", dosage="10mg"),
                        Prescription(
                            medication="Amlodipine",
                            dosage="5mg",
                            status=PrescriptionStatus.DISPENSED,
                        ),
                    ],
                ),
                Treatment(description="Physio", started_on=date(2024, 3, 1)),
            ],
            assigned_doctor_id="D1",
        )
        line = encode_medical_record(record)
        assert line.endswith("|D1")
        assert decode_medical_record(line) == record

    def test_nested_treatment_layout(self):
        record = _record(
            treatments=[
                Treatment(
                    description="Course",
                    started_on=date(2024, 1, 6),
                    prescriptions=[Prescription(medication="Ibuprofen", dosage="200mg")],
                ),
                Treatment(description="Rest", started_on=date(2024, 1, 7)),
            ],
        )
        assert encode_medical_record(record).split("|")[8:] == [
            "Course;2024-01-06;Ibuprofen:200mg:Pending",
            "Rest;2024-01-07;NULL",
            "NULL",
        ]

    def test_legacy_line_without_assignment(self):
        record = decode_medical_record(
            "P1|Ada Patient|1990-01-01|F|555-0200|p1@example.org|O+|NULL|NULL"
        )
        assert record.assigned_doctor_id is None
        assert record.treatments == []

    def test_reserved_doctor_id(self):
        with pytest.raises(EncodeError):
            encode_medical_record(_record(assigned_doctor_id="NULL"))

    def test_empty_doctor_id_is_rejected(self):
        with pytest.raises(PydanticValidationError):
            _record(assigned_doctor_id="")

        record = _record()
        record.assigned_doctor_id = ""
        with pytest.raises(EncodeError):
            encode_medical_record(record)

    def test_separator_in_medication(self):
        record = _record()
        record.add_prescription(
            Prescription(medication="A:B", dosage="1"), date(2024, 1, 1)
        )
        with pytest.raises(EncodeError):
            encode_medical_record(record)

    def test_bad_diagnosis(self):
        with pytest.raises(DecodeError):
            decode_medical_record(
                "P1|Ada|1990-01-01|F|1|e|O+|Flu-no-date|NULL|NULL"
            )


def test_generic_dispatch():
    user = make_user("P1", Role.PATIENT)
    assert decode(RecordKind.USER, encode(user)) == user


def test_generic_encode_rejects_unknown_types():
    with pytest.raises(TypeError):
        encode("not an entity")
