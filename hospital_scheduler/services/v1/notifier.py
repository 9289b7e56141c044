# hospital_scheduler/services/v1/notifier.py
from typing import Protocol
from common.logger import get_app_logger


class Notifier(Protocol):
    """Side channel for booking events. Delivery is best effort."""

    def notify(self, message: str) -> None: ...


class LogNotifier:
    def __init__(self, logger_name: str = "notifications"):
        self._logger = get_app_logger(logger_name, persist=True)

    def notify(self, message: str) -> None:
        self._logger.info("Notification", message=message)


class RecordingNotifier:
    """Keeps messages in memory; handy for scripts and tests."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


__all__ = ["Notifier", "LogNotifier", "RecordingNotifier"]
