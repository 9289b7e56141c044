# common/logger/log_backends/__init__.py
"""
Log persistence backends.

Configure via LOG_BACKENDS environment variable (comma-separated).
"""

from .base import LogBackend
from .file_backend import FileBackend, weekly_log_file_name
from .registry import get_active_backends, register_backend, reset_backends, get_all_metrics

__all__ = [
    "LogBackend",
    "FileBackend",
    "weekly_log_file_name",
    "get_active_backends",
    "register_backend",
    "reset_backends",
    "get_all_metrics",
]
