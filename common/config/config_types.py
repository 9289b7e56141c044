# common/config/config_types.py
"""Configuration type definitions."""

from enum import Enum
import logging


class EnvBool(str, Enum):
    TRUE = "true"
    FALSE = "false"

    @property
    def enabled(self) -> bool:
        return self is EnvBool.TRUE

    def __str__(self) -> str:
        return self.value


class EnvLogLevel(str, Enum):
    """
    Supported log levels.

    Values are the upper-case names the stdlib ``logging`` module uses, so
    ``EnvLogLevel("INFO").level == logging.INFO``.
    """

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def level(self) -> int:
        """Get numeric logging level for stdlib logging module."""
        return getattr(logging, self.value)

    def __str__(self) -> str:
        return self.value


class EnvLogBackends(str, Enum):
    FILE = "file"

    def __str__(self) -> str:
        return self.value


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"

    @property
    def is_production(self) -> bool:
        return self == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        return self == Environment.DEVELOPMENT

    def __str__(self) -> str:
        return self.value


__all__ = [
    "EnvBool",
    "EnvLogLevel",
    "Environment",
    "EnvLogBackends",
]
