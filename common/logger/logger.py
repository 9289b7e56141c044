# common/logger/logger.py
"""
Application logger with explicit initialization and optional persistence.

Usage:
    from common.logger import get_app_logger

    logger = get_app_logger(__name__)
    logger.info("Appointment scheduled", appointment_id=7, doctor_id="D1")

    # Persisted to weekly JSON-lines files as well as stderr
    audit = get_app_logger("audit", persist=True)
"""

import time
from datetime import datetime
from typing import Any, Dict, Optional
import structlog

from common.config.structlog_config import get_logger as _get_structlog_logger
from common.context_vars import current_request_id
from common.logger.persistence import persist_log


class TimingStats:
    """Track how long log calls take."""

    def __init__(self) -> None:
        self.reset()

    def record(self, elapsed: float) -> None:
        self.total_calls += 1
        self.total_time += elapsed
        self.max_time = max(self.max_time, elapsed)
        self.min_time = min(self.min_time, elapsed)

    def get_stats(self) -> Dict[str, Any]:
        avg = self.total_time / self.total_calls if self.total_calls > 0 else 0
        return {
            "total_calls": self.total_calls,
            "avg_time_ms": avg * 1000,
            "max_time_ms": self.max_time * 1000,
            "min_time_ms": self.min_time * 1000 if self.total_calls else 0,
        }

    def reset(self) -> None:
        self.total_calls = 0
        self.total_time = 0.0
        self.max_time = 0.0
        self.min_time = float("inf")


class AppLogger:
    """
    Application logger wrapper over structlog.

    - keyword arguments become structured context
    - ``persist=True`` also queues every entry for the persistence backends
    - ``track_timing=True`` records per-call latency
    """

    def __init__(
        self,
        name: str = "app",
        persist: bool = False,
        track_timing: bool = False,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        self._name = name
        self._persist = persist
        self._track_timing = track_timing
        self._context: Dict[str, Any] = dict(context or {})
        self._logger_instance: Optional[structlog.BoundLogger] = None
        self._timing_stats: Optional[TimingStats] = (
            TimingStats() if track_timing else None
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def _logger(self) -> structlog.BoundLogger:
        # resolved lazily so module-level loggers can exist before configuration
        if self._logger_instance is None:
            self._logger_instance = _get_structlog_logger(self._name)
        return self._logger_instance

    def bind(self, **context: Any) -> "AppLogger":
        """Return a logger that adds ``context`` to every entry."""
        bound = AppLogger(
            name=self._name,
            persist=self._persist,
            track_timing=False,
            context={**self._context, **context},
        )
        bound._timing_stats = self._timing_stats
        bound._track_timing = self._track_timing
        return bound

    def _log_with_persistence(self, level: str, msg: str, **kwargs: Any) -> None:
        start_time = time.perf_counter() if self._track_timing else None
        fields = {**self._context, **kwargs}

        try:
            getattr(self._logger, level)(msg, **fields)

            if self._persist:
                log_entry: Dict[str, Any] = {
                    "timestamp": datetime.now().isoformat(),
                    "level": level.upper(),
                    "logger": self._name,
                    "message": msg,
                    **fields,
                }
                request_id = current_request_id()
                if request_id is not None:
                    log_entry.setdefault("request_id", request_id)
                persist_log(log_entry)

        finally:
            if start_time is not None and self._timing_stats is not None:
                self._timing_stats.record(time.perf_counter() - start_time)

    def debug(self, msg: str, **kwargs: Any) -> None:
        self._log_with_persistence("debug", msg, **kwargs)

    def info(self, msg: str, **kwargs: Any) -> None:
        self._log_with_persistence("info", msg, **kwargs)

    def warning(self, msg: str, **kwargs: Any) -> None:
        self._log_with_persistence("warning", msg, **kwargs)

    def error(self, msg: str, **kwargs: Any) -> None:
        self._log_with_persistence("error", msg, **kwargs)

    def critical(self, msg: str, **kwargs: Any) -> None:
        self._log_with_persistence("critical", msg, **kwargs)

    def get_timing_stats(self) -> Dict[str, Any]:
        if self._timing_stats is None:
            return {"error": "Timing tracking not enabled"}
        return self._timing_stats.get_stats()

    def reset_timing_stats(self) -> None:
        if self._timing_stats is not None:
            self._timing_stats.reset()


def get_app_logger(
    name: str = "app", persist: bool = False, track_timing: bool = False
) -> AppLogger:
    """
    Get application logger instance.

    Args:
        name: Logger name
        persist: Also write entries to the persistence backends
        track_timing: Record per-call latency

    Example:
        >>> logger = get_app_logger("booking", track_timing=True)
        >>> logger.info("Slot taken", doctor_id="D1")
        >>> logger.get_timing_stats()["total_calls"]
        1
    """
    return AppLogger(name=name, persist=persist, track_timing=track_timing)


logger = get_app_logger()

__all__ = ["logger", "AppLogger", "TimingStats", "get_app_logger"]
