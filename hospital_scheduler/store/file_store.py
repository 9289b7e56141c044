# hospital_scheduler/store/file_store.py
"""
Whole-file line storage.

Files are read and written as ordered lists of lines. A write goes to a
temporary file in the same directory which then replaces the target with
``os.replace``, so a reader (or a crash) only ever sees the old file or the
new one.
"""

import os
import tempfile
import threading
from pathlib import Path
from typing import Iterable

from common.api_error import PersistenceError, StorageUnavailableError
from common.logger import get_app_logger
from common.logger.logger_middleware.request_timer import capture_current

logger = get_app_logger(__name__)


class FileStore:
    """
    Line-oriented access to the files of one storage directory.

    Usage:
        files = FileStore.open(Path("data"))
        files.write_lines("users.txt", ["D1|...", "P1|..."])
        files.read_lines("users.txt")
    """

    def __init__(self, directory: Path, *, fsync: bool = False, encoding: str = "utf-8"):
        self._directory = Path(directory)
        self._fsync = fsync
        self._encoding = encoding
        self._lock = threading.Lock()

    @classmethod
    def open(cls, directory: Path, **kwargs) -> "FileStore":
        """
        Create the directory if needed and check it is writable.

        Raises:
            StorageUnavailableError: directory cannot be created or written
        """
        directory = Path(directory)
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageUnavailableError(
                f"Cannot create storage directory {directory}: {e}"
            ) from e

        if not directory.is_dir() or not os.access(directory, os.R_OK | os.W_OK | os.X_OK):
            raise StorageUnavailableError(
                f"Storage directory {directory} is not a readable/writable directory"
            )

        logger.debug("Storage directory ready", directory=str(directory))
        return cls(directory, **kwargs)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, name: str) -> Path:
        return self._directory / name

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def read_lines(self, name: str) -> list[str]:
        """
        Lines of ``name`` without line terminators; empty if the file is absent.

        Raises:
            PersistenceError: the file exists but cannot be read
        """
        path = self.path_for(name)
        try:
            with path.open(mode="r", encoding=self._encoding, newline="") as f:
                return [line.rstrip("\r\n") for line in f]
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

    def write_lines(self, name: str, lines: Iterable[str]) -> None:
        """
        Replace the contents of ``name`` with ``lines``.

        Raises:
            PersistenceError: the new contents could not be written; the
                previous file is left untouched
        """
        path = self.path_for(name)
        payload = "".join(f"{line}\n" for line in lines)

        with self._lock, capture_current("store"):
            tmp_name = None
            try:
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{name}.", suffix=".tmp", dir=self._directory
                )
                with os.fdopen(fd, mode="w", encoding=self._encoding, newline="") as f:
                    f.write(payload)
                    if self._fsync:
                        f.flush()
                        os.fsync(f.fileno())
                os.replace(tmp_name, path)
                tmp_name = None
            except OSError as e:
                raise PersistenceError(f"Failed to write {path}: {e}") from e
            finally:
                if tmp_name is not None:
                    Path(tmp_name).unlink(missing_ok=True)

        logger.debug("File rewritten", file=name, lines=payload.count("\n"))


__all__ = ["FileStore"]
