# hospital_scheduler/store/models/__init__.py
from .time_slot import *
from .user_model import *
from .schedule_model import *
from .appointment_model import *
from .medical_record_model import *
