# common/config/__init__.py
"""
Configuration management with validation.
"""

from .config_types import *
from .env_config import *
from .logging_config import *
from .app_config import *
from .structlog_config import *
from .initialize_config import *
