# common/config/structlog_config.py
"""
Structlog configuration, once per process.

``initialize_config`` calls ``configure_structlog`` at startup; tests call it
directly from conftest. A uvicorn reload worker is a new process and
configures again.
"""
import sys
import os
import threading
from dataclasses import dataclass
from typing import Optional
import structlog
from rich.traceback import install as install_rich_traceback

install_rich_traceback(show_locals=True, width=None, extra_lines=3)

# frames from these packages are collapsed in rendered tracebacks
_SUPPRESSED_TRACEBACK_PACKAGES = ["starlette", "uvicorn", "fastapi", "pydantic"]


@dataclass
class _ConfiguredFor:
    log_level: int
    pid: int


_configured: Optional[_ConfiguredFor] = None
_lock = threading.Lock()


def _current() -> Optional[_ConfiguredFor]:
    if _configured is None or _configured.pid != os.getpid():
        return None
    return _configured


def _processors() -> list:
    return [
        # request_id is bound by the request middleware
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", utc=False),
        structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.RichTracebackFormatter(
                show_locals=False,
                width=None,
                suppress=_SUPPRESSED_TRACEBACK_PACKAGES,
            ),
        ),
    ]


def configure_structlog(log_level: int) -> None:
    """
    Configure structlog to render to stderr at ``log_level``.

    Repeating the call with the same level is a no-op.

    Raises:
        RuntimeError: already configured in this process with another level
    """
    global _configured

    with _lock:
        current = _current()
        if current is not None:
            if current.log_level == log_level:
                return
            raise RuntimeError(
                f"structlog already configured in this process. "
                f"Current level: {current.log_level}, attempted: {log_level}"
            )

        structlog.configure(
            processors=_processors(),
            wrapper_class=structlog.make_filtering_bound_logger(log_level),
            context_class=dict,
            logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
            cache_logger_on_first_use=True,
        )
        _configured = _ConfiguredFor(log_level=log_level, pid=os.getpid())


def get_logger(name: str = "app") -> structlog.BoundLogger:
    """
    Raises:
        RuntimeError: structlog not configured in this process yet
    """
    if _current() is None:
        raise RuntimeError(
            "structlog not configured. "
            "Call configure_structlog() at application startup."
        )
    return structlog.get_logger(name)


def is_configured() -> bool:
    return _current() is not None


__all__ = [
    "configure_structlog",
    "get_logger",
    "is_configured",
]
