# common/logger/logger_middleware/logger_middleware.py
"""
Request logging middleware for FastAPI.

Logs every request with status and duration, tags it with an X-Request-ID and
optionally exposes a Server-Timing header that separates time spent rewriting
record files (``store``) from the rest of the handler (``app``).

Usage:
    app.add_middleware(
        RequestLoggingMiddleware,
        expose_performance_headers=True,
        slow_request_threshold=500,
    )
"""

from typing import Callable, Awaitable, Optional
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
from common.context_vars import request_id_context_var, request_timer_context_var
from .request_timer import RequestTimer
import structlog
import time
import uuid

from ..logger import get_app_logger
from .middleware_types import (
    RequestMetadata,
    RequestDetails,
    RequestLogEntry,
    PerformanceBreakdown,
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Structured per-request logging. One instance per app."""

    def __init__(
        self,
        app: ASGIApp,
        *,
        expose_performance_headers: Optional[bool] = False,
        log_details: bool = True,
        slow_request_threshold: float = 1000.0,
        log_query_params: bool = True,
        log_client_info: bool = True,
        persist: bool = True,
        logger_name: Optional[str] = None,
    ):
        super().__init__(app)
        self.log_details = log_details
        self.slow_request_threshold = slow_request_threshold
        self.log_query_params = log_query_params
        self.log_client_info = log_client_info
        self.expose_performance_headers = expose_performance_headers

        self.logger = get_app_logger(
            name=logger_name or __name__, persist=persist, track_timing=True
        )

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        timer = RequestTimer()
        timer_token = request_timer_context_var.set(timer)
        id_token = request_id_context_var.set(request_id)
        start_time = time.perf_counter()

        try:
            with structlog.contextvars.bound_contextvars(request_id=request_id):
                with timer.capture("app"):
                    response = await call_next(request)
        finally:
            request_id_context_var.reset(id_token)
            request_timer_context_var.reset(timer_token)

        duration_ms = (time.perf_counter() - start_time) * 1000
        perf_data = PerformanceBreakdown(
            total_ms=round(duration_ms, 2),
            app_logic_ms=round(timer.timings.get("app", 0), 2),
            store_write_ms=round(timer.timings.get("store", 0), 2),
            store_write_count=timer.counters.get("store", 0),
        )

        response.headers["X-Request-ID"] = request_id

        if self.expose_performance_headers:
            response.headers["Server-Timing"] = (
                timer.format_server_timing() + f", total;dur={duration_ms:.2f}"
            )

        self._log_request(
            self._build_log_entry(request, response, duration_ms, request_id, perf_data)
        )
        return response

    def _build_log_entry(
        self,
        request: Request,
        response: Response,
        duration_ms: float,
        request_id: str,
        perf_data: Optional[PerformanceBreakdown] = None,
    ) -> RequestLogEntry:
        metadata = RequestMetadata(
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        details = None
        if self.log_details:
            details = RequestDetails(
                request_id=request_id,
                client_host=(
                    request.client.host
                    if self.log_client_info and request.client
                    else None
                ),
                user_agent=(
                    request.headers.get("user-agent") if self.log_client_info else None
                ),
                query_params=(
                    dict(request.query_params)
                    if self.log_query_params and request.query_params
                    else None
                ),
                path_params=request.path_params or None,
            )

        return RequestLogEntry(
            metadata=metadata,
            details=details,
            performance=perf_data,
            slow_threshold_ms=self.slow_request_threshold,
        )

    def _log_request(self, log_entry: RequestLogEntry) -> None:
        """
        ERROR for 5xx, WARNING for slow requests and 4xx, INFO otherwise.
        """
        log_data = log_entry.model_dump(mode="json", exclude_none=True)

        if log_entry.is_error:
            self.logger.error("Request failed with server error", **log_data)
        elif log_entry.is_slow:
            self.logger.warning(
                f"Slow request detected ({log_entry.metadata.duration_ms}ms)",
                **log_data,
            )
        elif log_entry.metadata.status_code >= 400:
            self.logger.warning("Request failed with client error", **log_data)
        else:
            self.logger.info("Request completed", **log_data)


__all__ = [
    "RequestLoggingMiddleware",
]
