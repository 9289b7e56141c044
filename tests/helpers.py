# tests/helpers.py
from datetime import date, datetime, time
from pathlib import Path
from hospital_scheduler.store import FileStore, RecordStore
from hospital_scheduler.store.models import Role, TimeSlot, User

BOOKING_DAY = date(2024, 6, 1)
NOW = datetime(2024, 5, 30, 8, 0)


def make_slot(day: date, start: str, end: str) -> TimeSlot:
    return TimeSlot.on(day, time.fromisoformat(start), time.fromisoformat(end))


def make_user(hospital_id: str, role: Role, name: str = "") -> User:
    return User(
        hospital_id=hospital_id,
        password_hash="5e884898da28047151d0e56f8dc62927",
        name=name or f"User {hospital_id}",
        date_of_birth=date(1980, 3, 14),
        gender="F",
        phone="555-0101",
        email=f"{hospital_id.lower()}@example.org",
        role=role,
    )


def open_store(directory: Path) -> RecordStore:
    store = RecordStore(FileStore.open(directory))
    store.load()
    return store
