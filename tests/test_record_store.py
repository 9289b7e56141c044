# tests/test_record_store.py
from datetime import date, datetime

import pytest

from common.api_error import NotFoundError, PersistenceError, ValidationError
from hospital_scheduler.store import Collection, FileStore, RecordStore
from hospital_scheduler.store.models import (
    Appointment,
    AppointmentStatus,
    MedicalRecord,
    Role,
)
from tests.helpers import BOOKING_DAY, make_slot, make_user, open_store


def _appointment(appointment_id: int, **overrides) -> Appointment:
    values = dict(
        id=appointment_id,
        patient_id="P1",
        doctor_id="D1",
        time_slot=make_slot(BOOKING_DAY, "09:00", "09:30").as_booked(),
    )
    values.update(overrides)
    return Appointment(**values)


def _break_writes(store: RecordStore, monkeypatch):
    def fail(name, lines):
        raise PersistenceError(f"Failed to write {name}: read-only")

    monkeypatch.setattr(store.files, "write_lines", fail)


class TestUsers:
    def test_add_persists_users_file(self, store):
        store.add_user(make_user("D1", Role.DOCTOR))
        lines = store.files.read_lines("users.txt")
        assert len(lines) == 1
        assert lines[0].startswith("D1|")

    def test_duplicate_id(self, store):
        store.add_user(make_user("D1", Role.DOCTOR))
        with pytest.raises(ValidationError) as exc_info:
            store.add_user(make_user("D1", Role.PATIENT))
        assert exc_info.value.code == "DUPLICATE_ID"

    def test_role_cannot_change(self, store):
        store.add_user(make_user("D1", Role.DOCTOR))
        with pytest.raises(ValidationError) as exc_info:
            store.update_user(make_user("D1", Role.PATIENT))
        assert exc_info.value.code == "ROLE_IMMUTABLE"

    def test_update_contact_details(self, store):
        store.add_user(make_user("P1", Role.PATIENT))
        user = store.get_user("P1")
        user.phone = "555-9999"
        store.update_user(user)
        assert open_store(store.files.directory).get_user("P1").phone == "555-9999"

    def test_getters_return_copies(self, store):
        store.add_user(make_user("P1", Role.PATIENT))
        store.get_user("P1").name = "Changed"
        assert store.get_user("P1").name == "User P1"

    def test_lists_by_role(self, seeded_store):
        assert [u.hospital_id for u in seeded_store.list_doctors()] == ["D1", "D2"]
        assert [u.hospital_id for u in seeded_store.list_patients()] == ["P1", "P2", "P3"]
        assert len(seeded_store.list_users()) == 6

    def test_remove_doctor_drops_schedule(self, seeded_store):
        seeded_store.remove_user("D2")
        assert seeded_store.get_user("D2") is None
        assert seeded_store.declared_slots("D2", BOOKING_DAY) == []
        assert all(
            not line.startswith("D2|")
            for line in seeded_store.files.read_lines("schedules.txt")
        )

    def test_remove_unknown(self, store):
        with pytest.raises(NotFoundError):
            store.remove_user("nobody")

    def test_require_user_checks_role(self, seeded_store):
        with pytest.raises(ValidationError) as exc_info:
            seeded_store.require_user("P1", Role.DOCTOR)
        assert exc_info.value.code == "WRONG_ROLE"
        with pytest.raises(NotFoundError):
            seeded_store.require_user("D9", Role.DOCTOR)


class TestAppointments:
    def test_ids_start_at_one(self, store):
        assert store.next_appointment_id() == 1

    def test_next_id_follows_highest(self, seeded_store):
        seeded_store.add_appointment(_appointment(7))
        assert seeded_store.next_appointment_id() == 8

    def test_next_id_after_load(self, seeded_store):
        seeded_store.add_appointment(_appointment(4))
        assert open_store(seeded_store.files.directory).next_appointment_id() == 5

    def test_duplicate_id(self, seeded_store):
        seeded_store.add_appointment(_appointment(1))
        with pytest.raises(ValidationError):
            seeded_store.add_appointment(_appointment(1, patient_id="P2"))

    def test_update_unknown(self, seeded_store):
        with pytest.raises(NotFoundError):
            seeded_store.update_appointment(_appointment(99))

    def test_queries(self, seeded_store):
        seeded_store.add_appointment(_appointment(1))
        seeded_store.add_appointment(
            _appointment(
                2,
                patient_id="P2",
                time_slot=make_slot(BOOKING_DAY, "09:30", "10:00"),
                status=AppointmentStatus.PENDING,
            )
        )
        seeded_store.add_appointment(
            _appointment(
                3,
                doctor_id="D2",
                time_slot=make_slot(BOOKING_DAY, "10:00", "10:30"),
                status=AppointmentStatus.CANCELLED,
            )
        )

        assert [a.id for a in seeded_store.appointments_by_doctor("D1")] == [1, 2]
        assert [a.id for a in seeded_store.appointments_by_patient("P1")] == [1, 3]
        assert [a.id for a in seeded_store.pending_appointments_by_doctor("D1")] == [2]
        assert seeded_store.appointments_on("D2", BOOKING_DAY) == []
        assert [
            a.id for a in seeded_store.appointments_on("D2", BOOKING_DAY, active_only=False)
        ] == [3]
        assert [
            a.id
            for a in seeded_store.upcoming_appointments_by_doctor(
                "D1", datetime(2024, 6, 1, 9, 15)
            )
        ] == [2]


class TestMedicalRecords:
    def test_record_requires_patient(self, seeded_store):
        with pytest.raises(ValidationError):
            seeded_store.add_medical_record(
                MedicalRecord(patient_id="D1", name="Dr", date_of_birth=date(1970, 1, 1))
            )

    def test_one_record_per_patient(self, seeded_store):
        with pytest.raises(ValidationError):
            seeded_store.add_medical_record(
                MedicalRecord(patient_id="P1", name="Again", date_of_birth=date(1990, 1, 1))
            )

    def test_assigned_doctor_must_exist(self, seeded_store):
        record = seeded_store.get_medical_record("P1")
        record.assigned_doctor_id = "D9"
        with pytest.raises(NotFoundError):
            seeded_store.update_medical_record(record)


class TestSchedules:
    def test_slots_are_sorted(self, seeded_store):
        seeded_store.set_availability(
            "D2",
            BOOKING_DAY,
            [
                make_slot(BOOKING_DAY, "14:00", "14:30"),
                make_slot(BOOKING_DAY, "08:00", "08:30"),
            ],
        )
        assert [s.start.hour for s in seeded_store.declared_slots("D2", BOOKING_DAY)] == [8, 14]

    def test_overlapping_slots_rejected(self, seeded_store):
        with pytest.raises(ValidationError) as exc_info:
            seeded_store.set_availability(
                "D1",
                BOOKING_DAY,
                [
                    make_slot(BOOKING_DAY, "09:00", "10:00"),
                    make_slot(BOOKING_DAY, "09:30", "10:30"),
                ],
            )
        assert exc_info.value.code == "OVERLAPPING_SLOTS"
        assert len(seeded_store.declared_slots("D1", BOOKING_DAY)) == 2

    def test_slot_on_other_date_rejected(self, seeded_store):
        with pytest.raises(ValidationError) as exc_info:
            seeded_store.set_availability(
                "D1", BOOKING_DAY, [make_slot(date(2024, 6, 2), "09:00", "09:30")]
            )
        assert exc_info.value.code == "SLOT_OUTSIDE_DATE"

    def test_only_doctors_have_schedules(self, seeded_store):
        with pytest.raises(ValidationError):
            seeded_store.set_availability("P1", BOOKING_DAY, [])

    def test_clear(self, seeded_store):
        assert seeded_store.clear_availability("D1", BOOKING_DAY) is True
        assert seeded_store.clear_availability("D1", BOOKING_DAY) is False
        assert seeded_store.get_schedule("D1").dates() == []

    def test_unknown_doctor_has_empty_schedule(self, seeded_store):
        assert seeded_store.get_schedule("D1").dates() == [BOOKING_DAY]
        assert seeded_store.get_schedule("D9").availability == {}


class TestPersistenceFailures:
    def test_add_user_rolls_back(self, store, monkeypatch):
        _break_writes(store, monkeypatch)
        with pytest.raises(PersistenceError):
            store.add_user(make_user("D1", Role.DOCTOR))
        assert store.get_user("D1") is None
        assert store.list_users() == []

    def test_add_appointment_rolls_back_id(self, seeded_store, monkeypatch):
        _break_writes(seeded_store, monkeypatch)
        with pytest.raises(PersistenceError):
            seeded_store.add_appointment(_appointment(1))
        assert seeded_store.get_appointment(1) is None
        assert seeded_store.next_appointment_id() == 1

    def test_update_appointment_rolls_back(self, seeded_store, monkeypatch):
        seeded_store.add_appointment(_appointment(1))
        _break_writes(seeded_store, monkeypatch)
        with pytest.raises(PersistenceError):
            seeded_store.update_appointment(
                _appointment(1, status=AppointmentStatus.CANCELLED)
            )
        assert seeded_store.get_appointment(1).status is AppointmentStatus.SCHEDULED

    def test_set_availability_rolls_back(self, seeded_store, monkeypatch):
        before = seeded_store.declared_slots("D1", BOOKING_DAY)
        _break_writes(seeded_store, monkeypatch)
        with pytest.raises(PersistenceError):
            seeded_store.set_availability(
                "D1", BOOKING_DAY, [make_slot(BOOKING_DAY, "15:00", "15:30")]
            )
        assert seeded_store.declared_slots("D1", BOOKING_DAY) == before

    @pytest.mark.parametrize("broken", ["users.txt", "schedules.txt"])
    def test_remove_doctor_rolls_back(self, seeded_store, monkeypatch, broken):
        write_lines = seeded_store.files.write_lines

        def fail_one(name, lines):
            if name == broken:
                raise PersistenceError(f"Failed to write {name}: read-only")
            return write_lines(name, lines)

        monkeypatch.setattr(seeded_store.files, "write_lines", fail_one)
        with pytest.raises(PersistenceError):
            seeded_store.remove_user("D1")

        assert seeded_store.get_user("D1") is not None
        assert len(seeded_store.declared_slots("D1", BOOKING_DAY)) == 2

        monkeypatch.undo()
        reloaded = open_store(seeded_store.files.directory)
        assert reloaded.get_user("D1") is not None
        assert len(reloaded.declared_slots("D1", BOOKING_DAY)) == 2

    def test_unencodable_value_rolls_back(self, store):
        with pytest.raises(ValidationError):
            store.add_user(make_user("P1", Role.PATIENT, "Pipe|Name"))
        assert store.get_user("P1") is None

    def test_flush_rewrites_every_file(self, seeded_store):
        for name in ("users.txt", "schedules.txt"):
            (seeded_store.files.directory / name).unlink()
        seeded_store.flush()
        reloaded = open_store(seeded_store.files.directory)
        assert len(reloaded.list_users()) == 6
        assert len(reloaded.declared_slots("D1", BOOKING_DAY)) == 2


class TestLoad:
    def test_reload_reproduces_state(self, seeded_store):
        seeded_store.add_appointment(_appointment(1))
        reloaded = open_store(seeded_store.files.directory)

        assert reloaded.list_users() == seeded_store.list_users()
        assert reloaded.list_appointments() == seeded_store.list_appointments()
        assert reloaded.list_medical_records() == seeded_store.list_medical_records()
        assert reloaded.get_schedule("D1") == seeded_store.get_schedule("D1")

    def test_malformed_lines_are_skipped(self, storage_dir):
        storage_dir.mkdir(parents=True)
        (storage_dir / "users.txt").write_text(
            "D1|h|Dr. One|1970-01-01|M|1|d1@x|Doctor\n"
            "broken line\n"
            "\n"
            "P1|h|Pat|not-a-date|F|2|p1@x|Patient\n"
            "D1|h|Duplicate|1970-01-01|M|1|d1@x|Doctor\n"
        )
        (storage_dir / "schedules.txt").write_text(
            "D1|2024-06-01|09:00-09:30\n"
            "ZZ|2024-06-01|09:00-09:30\n"
            "D1|2024-06-02|09:00-10:00,09:30-10:30\n"
        )
        (storage_dir / "appts.txt").write_text(
            "1|P404|D1|2024-06-01T09:00-2024-06-01T09:30|Scheduled|\n"
        )

        store = RecordStore(FileStore.open(storage_dir))
        report = store.load()

        assert [u.name for u in store.list_users()] == ["Dr. One"]
        assert report.loaded == {
            "users": 1,
            "appointments": 1,
            "medical_records": 0,
            "schedules": 1,
        }
        assert [(s.file, s.line_number) for s in report.skipped] == [
            ("users.txt", 2),
            ("users.txt", 4),
            ("users.txt", 5),
            ("schedules.txt", 2),
            ("schedules.txt", 3),
        ]
        # appointment with an unknown patient is kept as history
        assert store.get_appointment(1).patient_id == "P404"
        assert store.next_appointment_id() == 2

    def test_load_replaces_memory(self, seeded_store):
        (seeded_store.files.directory / "users.txt").write_text("")
        seeded_store.load()
        assert seeded_store.list_users() == []


def test_file_names_come_from_constructor(tmp_path):
    store = RecordStore(FileStore.open(tmp_path), appointments_file="appointments.txt")
    store.load()
    assert store.file_name(Collection.APPOINTMENTS) == "appointments.txt"
