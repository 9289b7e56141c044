# scripts/seed_store.py
import csv
from datetime import timedelta
from pathlib import Path
from typing import Any
from pydantic import BaseModel

from common.logger import get_app_logger
from hospital_scheduler.services.v1 import MedicalRecordService
from hospital_scheduler.store import RecordStore
from hospital_scheduler.store.models import Role, TimeSlot, User

logger = get_app_logger(__name__)

ROLE_MAP = {
    "doctors": Role.DOCTOR,
    "patients": Role.PATIENT,
}


def write_records_to_csv(filename: str, records: list[BaseModel]):
    """Write pydantic records to CSV."""
    if not records:
        return

    path = Path(filename)
    path.parent.mkdir(parents=True, exist_ok=True)

    fieldnames = list(records[0].model_dump(mode="json").keys())

    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for record in records:
            writer.writerow(record.model_dump(mode="json"))


def seed_users(
    template: dict[str, Any], role: Role, records: int, start_index: int = 0
) -> list[User]:
    """Build ``records`` accounts numbered from ``start_index + 1``."""
    users = []
    for i in range(start_index + 1, start_index + records + 1):
        hospital_id = f"{template['id_prefix']}{i}"
        users.append(
            User(
                hospital_id=hospital_id,
                password_hash=template["password_hash"],
                name=f"{template['name']} {i}",
                date_of_birth=template["date_of_birth"],
                gender=template.get("gender", ""),
                phone=template.get("phone", ""),
                email=f"{hospital_id.lower()}@{template['email_domain']}",
                role=role,
            )
        )
    return users


def seed_store(
    store: RecordStore,
    data_template: dict[str, dict],
    records: int,
    start_index: int = 0,
    export_csv: bool = False,
    csv_dir: str = "data/seed",
) -> dict[str, list[BaseModel]]:
    """
    Seed the record store with generated accounts, medical records and
    doctor availability. Accounts that already exist are left alone.

    Args:
        store: Loaded RecordStore
        data_template: Keys ``doctors``, ``patients``, ``availability``
        records: Number of accounts to generate per role
        start_index: Offset for generated ids
        export_csv: Whether to export generated accounts to CSV
        csv_dir: Directory to save CSV files

    Returns:
        Dict mapping collection names to the entities actually added
    """
    added: dict[str, list[BaseModel]] = {}
    records_service = MedicalRecordService(store)

    for table, role in ROLE_MAP.items():
        template = data_template.get(table)
        if template is None:
            continue

        users = seed_users(template, role, records, start_index)
        if export_csv:
            write_records_to_csv(str(Path(csv_dir) / f"{table}.csv"), users)

        new_users = [u for u in users if store.get_user(u.hospital_id) is None]
        for user in new_users:
            store.add_user(user)
        added[table] = new_users

        if role is Role.PATIENT:
            added["medical_records"] = [
                records_service.create_record(
                    u.hospital_id, blood_type=template.get("blood_type", "")
                )
                for u in new_users
                if store.get_medical_record(u.hospital_id) is None
            ]

    availability = data_template.get("availability")
    if availability is not None:
        days = [
            availability["start_date"] + timedelta(days=n)
            for n in range(availability["days"])
        ]
        for doctor in added.get("doctors", []):
            for day in days:
                store.set_availability(
                    doctor.hospital_id,
                    day,
                    [TimeSlot.on(day, start, end) for start, end in availability["slots"]],
                )

    logger.info(
        "Record store seeded",
        directory=str(store.files.directory),
        **{name: len(items) for name, items in added.items()},
    )
    return added


def main():
    from dotenv import load_dotenv
    from common.config import initialize_config
    from .data_template import DEFAULT_DATA_TEMPLATE

    load_dotenv()
    config = initialize_config()

    store = RecordStore.from_config(config.storage)
    store.load()

    results = seed_store(
        store,
        DEFAULT_DATA_TEMPLATE,
        records=5,
        export_csv=True,
        csv_dir=str(config.storage.data_dir / "seed"),
    )

    print(f"Seeded {sum(len(v) for v in results.values())} total records")


if __name__ == "__main__":
    main()
