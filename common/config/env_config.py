# common/config/env_config.py
import os
from typing import Optional
from common.api_error import ConfigurationError


def get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Get Env variable with optional default
    """
    return os.getenv(name, default=default)


def require_env(name: str) -> str:
    """
    Get required environment variable or raise immediately.
    """
    value = os.getenv(name)
    if not value:
        raise ConfigurationError(f"Missing required env variables: {name}")
    return value


def get_env_bool(name: str, default: bool = False) -> bool:
    """
    Read a true/false flag. Anything other than true/false is a config error.
    """
    from .config_types import EnvBool

    raw = get_env(name)
    if raw is None or raw == "":
        return default
    try:
        return EnvBool(raw.strip().lower()).enabled
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid {name}: {raw!r}. Must be one of: "
            f"{[b.value for b in EnvBool]}"
        ) from exc


__all__ = ["require_env", "get_env", "get_env_bool"]
