# common/logger/persistence.py
"""
Non-blocking log persistence with pluggable backends.

Log calls only enqueue; a daemon thread drains the queue in batches and hands
every entry to each active backend (see ``log_backends``). The thread starts
on the first persisted entry.
"""

import queue
import sys
import threading
import time
from typing import Any, Dict, Optional
from .log_backends import get_active_backends

_MAX_QUEUE = 10000
_MAX_BATCH = 100


class LogPersistenceHandler:
    """Queue + background worker feeding the log backends."""

    _instance: Optional["LogPersistenceHandler"] = None
    _lock = threading.Lock()
    _initialized: bool

    def __new__(cls) -> "LogPersistenceHandler":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    instance = super().__new__(cls)
                    instance._initialized = False
                    cls._instance = instance
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return

        self._queue: queue.Queue[Dict[str, Any]] = queue.Queue(maxsize=_MAX_QUEUE)
        self._shutdown_event = threading.Event()
        self._worker_thread: Optional[threading.Thread] = None

        self._total_logs = 0
        self._failed_logs = 0
        self._total_write_time = 0.0

        self._initialized = True

    def _ensure_worker(self) -> None:
        if self._worker_thread is not None and self._worker_thread.is_alive():
            return
        with self._lock:
            if self._worker_thread is not None and self._worker_thread.is_alive():
                return
            self._shutdown_event.clear()
            self._worker_thread = threading.Thread(
                target=self._process_queue,
                daemon=True,
                name="LogPersistenceWorker",
            )
            self._worker_thread.start()

    def _process_queue(self) -> None:
        while not self._shutdown_event.is_set() or not self._queue.empty():
            try:
                batch = [self._queue.get(timeout=0.5)]
            except queue.Empty:
                continue

            while len(batch) < _MAX_BATCH:
                try:
                    batch.append(self._queue.get_nowait())
                except queue.Empty:
                    break

            try:
                self._write_batch(batch)
            finally:
                for _ in batch:
                    self._queue.task_done()

    def _write_batch(self, batch: list[Dict[str, Any]]) -> None:
        start_time = time.perf_counter()
        try:
            for backend in get_active_backends():
                for entry in batch:
                    if not backend.write(entry):
                        self._failed_logs += 1
            self._total_logs += len(batch)
        except Exception as e:
            # the worker must survive a broken backend
            print(f"Failed to write log batch: {e}", file=sys.stderr)
            self._failed_logs += len(batch)
        finally:
            self._total_write_time += time.perf_counter() - start_time

    def enqueue_log(self, log_entry: Dict[str, Any]) -> bool:
        """
        Add a log entry to the persistence queue without blocking.

        Returns:
            False when the queue is full and the entry was dropped.
        """
        self._ensure_worker()
        try:
            self._queue.put_nowait(log_entry)
            return True
        except queue.Full:
            print("Log queue full, dropping log entry", file=sys.stderr)
            self._failed_logs += 1
            return False

    def flush(self) -> None:
        """Block until every queued entry has been handed to the backends."""
        self._queue.join()

    def get_metrics(self) -> Dict[str, Any]:
        avg_write_time = (
            self._total_write_time / self._total_logs if self._total_logs > 0 else 0
        )
        return {
            "total_logs": self._total_logs,
            "failed_logs": self._failed_logs,
            "queue_size": self._queue.qsize(),
            "avg_write_time_ms": avg_write_time * 1000,
            "worker_alive": (
                self._worker_thread.is_alive() if self._worker_thread else False
            ),
        }

    def shutdown(self, timeout: float = 5.0) -> None:
        """Drain the queue and stop the worker."""
        self._shutdown_event.set()
        if self._worker_thread and self._worker_thread.is_alive():
            self._worker_thread.join(timeout=timeout)


_persistence_handler = LogPersistenceHandler()


def persist_log(log_entry: Dict[str, Any]) -> bool:
    """Queue ``log_entry`` for all active backends. Returns immediately."""
    return _persistence_handler.enqueue_log(log_entry)


def flush_persistence() -> None:
    _persistence_handler.flush()


def get_persistence_metrics() -> Dict[str, Any]:
    return _persistence_handler.get_metrics()


def shutdown_persistence(timeout: float = 5.0) -> None:
    _persistence_handler.shutdown(timeout)


__all__ = [
    "persist_log",
    "flush_persistence",
    "get_persistence_metrics",
    "shutdown_persistence",
    "LogPersistenceHandler",
]
