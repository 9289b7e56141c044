# common/logger/log_backends/registry.py
"""
Backend registry for log persistence.

Configure via the LOG_BACKENDS environment variable (comma separated,
defaults to ``file``).
"""

import sys
import threading
from typing import Any, Dict, List, Type
from common.config import get_config, get_env, is_config_initialized
from .base import LogBackend
from .file_backend import FileBackend


_BACKEND_REGISTRY: Dict[str, Type[LogBackend]] = {
    "file": FileBackend,
}

_active_backends: List[LogBackend] = []
_backends_initialized = False
_init_lock = threading.Lock()


def register_backend(name: str, backend_class: Type[LogBackend]) -> None:
    """
    Register a custom backend class under ``name``.

    Must happen before the first persisted log entry.
    """
    _BACKEND_REGISTRY[name] = backend_class


def _backend_options() -> Dict[str, Any]:
    # scripts log before config is loaded; backends then fall back to env
    if not is_config_initialized():
        return {}
    folder = get_config().logging.log_folder
    return {"log_dir": str(folder)} if folder else {}


def _initialize_backends() -> None:
    global _backends_initialized

    options = _backend_options()

    backend_names = [
        name.strip()
        for name in (get_env("LOG_BACKENDS") or "file").split(",")
        if name.strip()
    ]

    for backend_name in backend_names:
        backend_class = _BACKEND_REGISTRY.get(backend_name)
        if backend_class is None:
            print(
                f"Warning: Unknown backend '{backend_name}'. "
                f"Available: {', '.join(_BACKEND_REGISTRY.keys())}",
                file=sys.stderr,
            )
            continue
        _active_backends.append(backend_class(**options))

    if not _active_backends:
        _active_backends.append(FileBackend(**options))

    _backends_initialized = True


def get_active_backends() -> List[LogBackend]:
    if not _backends_initialized:
        with _init_lock:
            if not _backends_initialized:
                _initialize_backends()
    return _active_backends


def reset_backends() -> None:
    """Forget active backends so the next entry re-reads LOG_BACKENDS."""
    global _backends_initialized
    with _init_lock:
        for backend in _active_backends:
            backend.shutdown()
        _active_backends.clear()
        _backends_initialized = False


def get_all_metrics() -> Dict[str, Any]:
    return {backend.name: backend.get_metrics() for backend in get_active_backends()}


__all__ = [
    "register_backend",
    "get_active_backends",
    "reset_backends",
    "get_all_metrics",
]
