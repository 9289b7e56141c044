# tests/conftest.py
import logging
import os
import tempfile
from pathlib import Path

import pytest

# main.py reads the environment at import time
_SESSION_DIR = Path(tempfile.mkdtemp(prefix="hospital-scheduler-tests-"))
os.environ.update(
    {
        "APP_TITLE": "Hospital Scheduler",
        "APP_VERSION": "0.1.0",
        "ENVIRONMENT": "development",
        "LOG_LEVEL": "DEBUG",
        "LOG_BACKEND": "file",
        "LOG_BACKENDS": "file",
        "STORAGE_DIR": str(_SESSION_DIR / "data"),
        "LOG_FOLDER_PATH": str(_SESSION_DIR / "logs"),
    }
)

from common.config import configure_structlog  # noqa: E402
from hospital_scheduler.services.v1 import (  # noqa: E402
    AvailabilityResolver,
    BookingEngine,
    RecordingNotifier,
)
from hospital_scheduler.store import RecordStore  # noqa: E402
from hospital_scheduler.store.models import MedicalRecord, Role  # noqa: E402
from tests.helpers import (  # noqa: E402
    BOOKING_DAY,
    NOW,
    make_slot,
    make_user,
    open_store,
)

configure_structlog(logging.DEBUG)


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def store(storage_dir: Path) -> RecordStore:
    return open_store(storage_dir)


@pytest.fixture
def seeded_store(store: RecordStore) -> RecordStore:
    """
    Doctors D1, D2; patients P1, P2, P3 (P1 has a medical record).
    D1 offers 09:00-09:30 and 09:30-10:00 on 2024-06-01, D2 offers 10:00-10:30.
    """
    for hospital_id in ("D1", "D2"):
        store.add_user(make_user(hospital_id, Role.DOCTOR, f"Dr. {hospital_id}"))
    for hospital_id in ("P1", "P2", "P3"):
        store.add_user(make_user(hospital_id, Role.PATIENT))
    store.add_user(make_user("A1", Role.ADMINISTRATOR))

    store.set_availability(
        "D1",
        BOOKING_DAY,
        [
            make_slot(BOOKING_DAY, "09:00", "09:30"),
            make_slot(BOOKING_DAY, "09:30", "10:00"),
        ],
    )
    store.set_availability("D2", BOOKING_DAY, [make_slot(BOOKING_DAY, "10:00", "10:30")])

    p1 = store.get_user("P1")
    store.add_medical_record(
        MedicalRecord(
            patient_id=p1.hospital_id,
            name=p1.name,
            date_of_birth=p1.date_of_birth,
            gender=p1.gender,
            phone=p1.phone,
            email=p1.email,
            blood_type="A+",
        )
    )
    return store


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def resolver(seeded_store: RecordStore, clock) -> AvailabilityResolver:
    return AvailabilityResolver(seeded_store, clock=clock)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def engine(seeded_store, resolver, notifier) -> BookingEngine:
    return BookingEngine(seeded_store, resolver=resolver, notifier=notifier)
