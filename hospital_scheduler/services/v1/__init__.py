# hospital_scheduler/services/v1/__init__.py
from .availability_service import *
from .notifier import *
from .booking_service import *
from .assignment_service import *
from .medical_record_service import *
