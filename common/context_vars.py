# common/context_vars.py
"""Per-request state set by the request middleware and read below it."""
from contextvars import ContextVar
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from common.logger.logger_middleware.request_timer import RequestTimer

# Both are None outside an HTTP request (scripts, tests, startup)
request_timer_context_var: ContextVar[Optional["RequestTimer"]] = ContextVar(
    "request_timer",
    default=None,
)
request_id_context_var: ContextVar[Optional[str]] = ContextVar(
    "request_id",
    default=None,
)


def current_request_id() -> Optional[str]:
    return request_id_context_var.get()


__all__ = [
    "request_timer_context_var",
    "request_id_context_var",
    "current_request_id",
]
