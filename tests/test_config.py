# tests/test_config.py
from pathlib import Path

import pytest
from pydantic import ValidationError as PydanticValidationError

from common.api_error import ConfigurationError
from common.config import (
    EnvLogLevel,
    StorageConfig,
    load_app_config,
    load_logging_config,
)


def test_loads_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("STORAGE_DIR", str(tmp_path))
    monkeypatch.setenv("APPOINTMENTS_FILE", "appointments.txt")
    monkeypatch.setenv("STORAGE_FSYNC", "TRUE")

    config = load_app_config()

    assert config.app_title == "Hospital Scheduler"
    assert config.logging.log_level is EnvLogLevel.DEBUG
    assert config.storage.data_dir == tmp_path
    assert config.storage.appointments_file == "appointments.txt"
    assert config.storage.users_file == "users.txt"
    assert config.storage.fsync is True


def test_missing_required_variable(monkeypatch):
    monkeypatch.delenv("APP_TITLE")
    with pytest.raises(ConfigurationError, match="APP_TITLE"):
        load_app_config()


def test_invalid_environment(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "qa")
    with pytest.raises(ConfigurationError):
        load_app_config()


def test_invalid_bool(monkeypatch):
    monkeypatch.setenv("STORAGE_FSYNC", "sometimes")
    with pytest.raises(ConfigurationError, match="STORAGE_FSYNC"):
        load_app_config()


def test_production_requires_storage_dir(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    monkeypatch.delenv("STORAGE_DIR")
    with pytest.raises(ConfigurationError, match="STORAGE_DIR"):
        load_app_config()


def test_debug_not_allowed_in_production(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    with pytest.raises(PydanticValidationError):
        load_app_config()


def test_bad_version(monkeypatch):
    monkeypatch.setenv("APP_VERSION", "v1")
    with pytest.raises(PydanticValidationError):
        load_app_config()


def test_invalid_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "VERBOSE")
    with pytest.raises(ConfigurationError):
        load_logging_config()


def test_log_folder_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_FOLDER_PATH", str(tmp_path / "logs"))
    assert load_logging_config().log_folder == tmp_path / "logs"


def test_log_folder_must_not_be_a_file(monkeypatch, tmp_path):
    not_a_dir = tmp_path / "logs"
    not_a_dir.write_text("")
    monkeypatch.setenv("LOG_FOLDER_PATH", str(not_a_dir))
    with pytest.raises(ConfigurationError):
        load_logging_config()


def test_file_names_must_be_distinct(tmp_path):
    with pytest.raises(PydanticValidationError):
        StorageConfig(data_dir=tmp_path, users_file="x.txt", schedules_file="x.txt")


def test_file_names_are_plain(tmp_path):
    with pytest.raises(PydanticValidationError):
        StorageConfig(data_dir=tmp_path, users_file="../users.txt")


def test_storage_path_must_be_a_directory(tmp_path):
    target = tmp_path / "file"
    target.write_text("")
    with pytest.raises(PydanticValidationError):
        StorageConfig(data_dir=target)


def test_safe_dict(tmp_path):
    data = StorageConfig(data_dir=tmp_path).to_dict_safe()
    assert data["data_dir"] == str(Path(tmp_path))
