# hospital_scheduler/store/codec/__init__.py
from .formats import *
from .record_codec import *
