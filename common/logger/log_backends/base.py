# common/logger/log_backends/base.py
"""Base class for log persistence backends."""

from abc import ABC, abstractmethod
from typing import Any, Dict


class LogBackend(ABC):
    """
    A destination for persisted log entries.

    ``write`` must not raise; it reports failure by returning False.
    """

    def __init__(self, **config: Any):
        self.config = config

    @abstractmethod
    def write(self, log_entry: Dict[str, Any]) -> bool:
        """
        Write one entry. Entries carry at least ``timestamp``, ``level``,
        ``logger`` and ``message``.
        """

    @abstractmethod
    def get_metrics(self) -> Dict[str, Any]:
        """Backend-specific counters for the /metrics endpoint."""

    def shutdown(self, timeout: float = 5.0) -> None:
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend name for identification."""


__all__ = ["LogBackend"]
