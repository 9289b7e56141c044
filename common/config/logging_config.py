# common/config/logging_config.py
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from .env_config import require_env, get_env
from .config_types import EnvLogLevel, EnvLogBackends
from common.api_error import ConfigurationError

_default_log_level_env_key = "LOG_LEVEL"
_default_log_backend_env_key = "LOG_BACKEND"
_default_log_folder_env_key = "LOG_FOLDER_PATH"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Console level, persistence backend, and where persisted entries go.

    ``log_folder`` is handed to the persistence backends at first use; when
    unset the file backend writes under ``<project_root>/logs``.
    """

    log_level: EnvLogLevel
    log_backend: EnvLogBackends
    log_folder: Optional[Path] = None

    @property
    def level_value(self) -> str:
        return self.log_level.value

    @property
    def level_int(self) -> int:
        return self.log_level.level


def load_logging_config(
    log_level_env_key: str = _default_log_level_env_key,
    log_backend_env_key: str = _default_log_backend_env_key,
    log_folder_env_key: str = _default_log_folder_env_key,
) -> LoggingConfig:
    """
    Raises:
        ConfigurationError: level or backend missing or not a known value,
            or the log folder exists as a regular file
    """
    try:
        log_level = EnvLogLevel(require_env(log_level_env_key).upper())
        log_backend = EnvLogBackends(require_env(log_backend_env_key).lower())
    except ValueError as exc:
        valid_levels = ", ".join(level.value for level in EnvLogLevel)
        valid_backends = ", ".join(backend.value for backend in EnvLogBackends)
        raise ConfigurationError(
            f"Invalid logging configuration. "
            f"{log_level_env_key} must be one of [{valid_levels}], "
            f"{log_backend_env_key} must be one of [{valid_backends}]"
        ) from exc

    folder = get_env(log_folder_env_key)
    log_folder = Path(folder) if folder else None
    if log_folder is not None and log_folder.is_file():
        raise ConfigurationError(
            f"{log_folder_env_key}={folder} is a file, expected a directory"
        )

    return LoggingConfig(
        log_level=log_level,
        log_backend=log_backend,
        log_folder=log_folder,
    )


__all__ = [
    "LoggingConfig",
    "load_logging_config",
]
