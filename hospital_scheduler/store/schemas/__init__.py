# hospital_scheduler/store/schemas/__init__.py
from .slot_schemas import *
from .appointment_schemas import *
from .schedule_schemas import *
from .medical_record_schemas import *
