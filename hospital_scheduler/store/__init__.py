# hospital_scheduler/store/__init__.py
from .file_store import *
from .record_store import *
from .deps import *
