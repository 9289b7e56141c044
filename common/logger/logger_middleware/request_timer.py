# common/logger/logger_middleware/request_timer.py
import time
from contextlib import contextmanager
from typing import Iterator

from common.context_vars import request_timer_context_var


class RequestTimer:
    """Accumulates named durations (ms) and counters for one request."""

    def __init__(self) -> None:
        self.timings: dict[str, float] = {}
        self.counters: dict[str, int] = {}

    @contextmanager
    def capture(self, name: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            duration = (time.perf_counter() - start) * 1000
            self.timings[name] = self.timings.get(name, 0) + duration
            self.counters[name] = self.counters.get(name, 0) + 1

    def format_server_timing(self) -> str:
        # app;dur=10.50, store;dur=1.20
        return ", ".join(
            f"{name};dur={dur:.2f}" for name, dur in self.timings.items()
        )


@contextmanager
def capture_current(name: str) -> Iterator[None]:
    """
    Time a block against the active request's timer, if there is one.

    Outside a request (scripts, tests) this is a plain passthrough.
    """
    timer = request_timer_context_var.get()
    if timer is None:
        yield
        return
    with timer.capture(name):
        yield


__all__ = ["RequestTimer", "capture_current"]
