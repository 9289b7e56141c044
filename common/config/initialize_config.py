# common/config/initialize_config.py
"""
Configuration initialization module.

Handles the complete application configuration lifecycle.
"""
from typing import Optional, List
from pydantic import ValidationError
from .app_config import AppConfig, load_app_config
from .structlog_config import configure_structlog
from common.api_error import ConfigurationError


class _ConfigState:
    """
    Holder for the validated application configuration.
    """

    _instance: Optional["_ConfigState"] = None
    _config: Optional[AppConfig]

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._config = None
        return cls._instance

    @property
    def config(self) -> AppConfig:
        if not self._config:
            raise RuntimeError(
                "Configuration not initialized. Call initialize_config() at startup."
            )
        return self._config

    @property
    def is_set(self) -> bool:
        return self._config is not None

    def set_config(self, config: AppConfig) -> None:
        self._config = config


_state = _ConfigState()


def initialize_config() -> AppConfig:
    """
    Initialize and validate all application configuration.

    Call once at startup before anything logs. Pydantic errors are collected
    into one ConfigurationError listing every bad field.

    Returns:
        The validated AppConfig

    Raises:
        ConfigurationError: If configuration is invalid or missing
    """
    try:
        config = load_app_config()

        configure_structlog(config.logging.level_int)

        _state.set_config(config)
        return config

    except ValidationError as e:
        errors: List[str] = []
        for error in e.errors():
            field = ".".join(str(x) for x in error["loc"])
            msg = error["msg"]
            errors.append(f"{field}: {msg}")

        raise ConfigurationError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        ) from e


def get_config() -> AppConfig:
    """
    Get validated application configuration.

    Raises:
        RuntimeError: If not initialized
    """
    return _state.config


def is_config_initialized() -> bool:
    return _state.is_set


__all__ = ["initialize_config", "get_config", "is_config_initialized"]
