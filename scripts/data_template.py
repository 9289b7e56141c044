"""
Easily extendible template file for data templates
- Add new templates
- Compose them into DEFAULT_DATA_TEMPLATE

    Example: Seed only patients
        seed_store(store, {"patients": PATIENT_DATA_TEMPLATE}, records=10)

    Example: Seed doctors, patients and a week of availability
        seed_store(store, DEFAULT_DATA_TEMPLATE, records=5)
"""

from datetime import date, time
from typing import Any

# Individual templates
PATIENT_DATA_TEMPLATE: dict[str, Any] = {
    "id_prefix": "P",
    "name": "Patient",
    "password_hash": "seeded",
    "date_of_birth": date(1990, 1, 1),
    "gender": "F",
    "phone": "555-0200",
    "email_domain": "patients.example.org",
    "blood_type": "O+",
}

DOCTOR_DATA_TEMPLATE: dict[str, Any] = {
    "id_prefix": "D",
    "name": "Dr. Smith",
    "password_hash": "seeded",
    "date_of_birth": date(1975, 5, 20),
    "gender": "M",
    "phone": "555-0100",
    "email_domain": "hospital.example.org",
}

AVAILABILITY_DATA_TEMPLATE: dict[str, Any] = {
    "start_date": date(2024, 6, 3),
    "days": 5,
    "slots": [
        (time(9, 0), time(9, 30)),
        (time(9, 30), time(10, 0)),
        (time(10, 0), time(10, 30)),
        (time(14, 0), time(14, 30)),
    ],
}

# Combined default template
DEFAULT_DATA_TEMPLATE: dict[str, dict[str, Any]] = {
    "doctors": DOCTOR_DATA_TEMPLATE,
    "patients": PATIENT_DATA_TEMPLATE,
    "availability": AVAILABILITY_DATA_TEMPLATE,
}

__all__ = [
    "AVAILABILITY_DATA_TEMPLATE",
    "DEFAULT_DATA_TEMPLATE",
    "DOCTOR_DATA_TEMPLATE",
    "PATIENT_DATA_TEMPLATE",
]
