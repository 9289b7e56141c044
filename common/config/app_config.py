# common/config/app_config.py
"""
Complete application configuration with validation.
Storage configuration for the flat-file record store.
"""

from typing import Any
from pydantic import BaseModel, Field, field_validator, model_validator
from .config_types import EnvLogLevel, Environment
from .env_config import require_env, get_env, get_env_bool
from .logging_config import LoggingConfig
from pathlib import Path


class StorageConfig(BaseModel):
    """
    Where the record store keeps its files.

    One directory, one file per collection. File names are plain names
    relative to ``data_dir``.
    """

    data_dir: Path
    users_file: str = Field(default="users.txt", min_length=1)
    appointments_file: str = Field(default="appts.txt", min_length=1)
    medical_records_file: str = Field(default="medical_records.txt", min_length=1)
    schedules_file: str = Field(default="schedules.txt", min_length=1)

    # fsync temp files before swapping them in
    fsync: bool = False

    model_config = {"frozen": True}

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, v: Path) -> Path:
        if v.exists() and not v.is_dir():
            raise ValueError(f"Storage path is not a directory: {v}")
        return v

    @field_validator(
        "users_file", "appointments_file", "medical_records_file", "schedules_file"
    )
    @classmethod
    def validate_file_name(cls, v: str) -> str:
        if Path(v).name != v:
            raise ValueError(f"File name must not contain a directory part: {v}")
        return v

    @model_validator(mode="after")
    def validate_distinct_files(self) -> "StorageConfig":
        names = [
            self.users_file,
            self.appointments_file,
            self.medical_records_file,
            self.schedules_file,
        ]
        if len(set(names)) != len(names):
            raise ValueError(f"Storage file names must be distinct: {names}")
        return self

    def to_dict_safe(self) -> dict[str, Any]:
        data = self.model_dump()
        data["data_dir"] = str(self.data_dir)
        return data


class AppConfig(BaseModel):
    """
    Complete application configuration.

    All configuration is loaded from environment variables and validated
    at startup. Invalid configuration will fail fast with clear error messages.
    """

    app_title: str = Field(..., min_length=1)
    app_version: str = Field(..., pattern=r"^\d+\.\d+\.\d+$")  # Semantic versioning
    environment: str = Field(..., pattern="^(development|staging|production)$")

    logging: LoggingConfig
    storage: StorageConfig

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_production_settings(self) -> "AppConfig":
        if self.environment == "production":
            if self.logging.log_level == EnvLogLevel.DEBUG:
                raise ValueError("DEBUG log level not allowed in production")
        return self


def _default_data_dir() -> Path:
    from common.scripts import get_project_root

    return get_project_root() / "data"


def load_storage_config(environment: Environment) -> StorageConfig:
    """
    Load storage configuration from environment.

    Environment variables:
    Required in production:
    - STORAGE_DIR: directory holding the record files

    Optional:
    - USERS_FILE, APPOINTMENTS_FILE, MEDICAL_RECORDS_FILE, SCHEDULES_FILE
    - STORAGE_FSYNC: true/false
    """
    if environment.is_production:
        data_dir = Path(require_env("STORAGE_DIR"))
    else:
        raw_dir = get_env("STORAGE_DIR")
        data_dir = Path(raw_dir) if raw_dir else _default_data_dir()

    overrides: dict[str, str] = {}
    for field_name, env_key in (
        ("users_file", "USERS_FILE"),
        ("appointments_file", "APPOINTMENTS_FILE"),
        ("medical_records_file", "MEDICAL_RECORDS_FILE"),
        ("schedules_file", "SCHEDULES_FILE"),
    ):
        value = get_env(env_key)
        if value:
            overrides[field_name] = value

    return StorageConfig(
        data_dir=data_dir,
        fsync=get_env_bool("STORAGE_FSYNC", default=False),
        **overrides,
    )


def load_app_config() -> AppConfig:
    """
    Load complete application configuration.

    Returns:
        Validated AppConfig instance

    Raises:
        ValidationError: If configuration is invalid
        ConfigurationError: If required env vars are missing
    """
    from .logging_config import load_logging_config
    from common.api_error import ConfigurationError

    env_str = require_env("ENVIRONMENT")

    try:
        environment = Environment(env_str)
    except ValueError:
        valid_envs = [e.value for e in Environment]
        raise ConfigurationError(
            f"Invalid ENVIRONMENT: {env_str}. Must be one of: {valid_envs}"
        )

    return AppConfig(
        app_title=require_env("APP_TITLE"),
        app_version=require_env("APP_VERSION"),
        environment=env_str,
        logging=load_logging_config(),
        storage=load_storage_config(environment),
    )


__all__ = [
    "AppConfig",
    "StorageConfig",
    "load_app_config",
    "load_storage_config",
]
