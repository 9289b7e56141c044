# common/logger/log_backends/file_backend.py
"""File-based log persistence backend writing one JSON object per line."""
import json
import sys
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Dict
from common.config import get_env
from common.scripts import get_project_root
from .base import LogBackend


def weekly_log_file_name(log_date: date) -> str:
    """``wkWW_<monday>--<sunday>.json`` for the ISO week containing log_date."""
    week_start = log_date - timedelta(days=log_date.weekday())
    week_end = week_start + timedelta(days=6)
    week_number = log_date.isocalendar()[1]
    return f"wk{week_number:02d}_{week_start.isoformat()}--{week_end.isoformat()}.json"


class FileBackend(LogBackend):
    """
    Appends entries to weekly JSON-lines files.

    Directory resolution: ``log_dir`` argument, then ``LOG_FOLDER_PATH``, then
    ``<project_root>/logs``.
    """

    def __init__(self, **config: Any):
        super().__init__(**config)

        folder = config.get("log_dir") or get_env("LOG_FOLDER_PATH")
        self._log_dir = Path(folder) if folder else get_project_root() / "logs"

        self._total_writes = 0
        self._failed_writes = 0

    @property
    def name(self) -> str:
        return "file"

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def _entry_date(self, log_entry: Dict[str, Any]) -> date:
        stamp = log_entry.get("timestamp")
        if isinstance(stamp, str):
            try:
                return datetime.fromisoformat(stamp).date()
            except ValueError:
                pass
        return date.today()

    def write(self, log_entry: Dict[str, Any]) -> bool:
        file_path = self._log_dir / weekly_log_file_name(self._entry_date(log_entry))
        try:
            payload = json.dumps(log_entry, ensure_ascii=False, default=str)
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with file_path.open(mode="a", encoding="utf-8") as f:
                f.write(payload)
                f.write("\n")
        except (OSError, TypeError, ValueError) as e:
            print(f"FileBackend write failed: {e}", file=sys.stderr)
            self._failed_writes += 1
            return False

        self._total_writes += 1
        return True

    def get_metrics(self) -> Dict[str, Any]:
        return {
            "backend": self.name,
            "total_writes": self._total_writes,
            "failed_writes": self._failed_writes,
            "log_directory": str(self._log_dir),
        }


__all__ = ["FileBackend", "weekly_log_file_name"]
