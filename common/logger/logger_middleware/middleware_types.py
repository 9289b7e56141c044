# common/logger/logger_middleware/middleware_types.py
"""
Type definitions for request logging middleware.
"""

from typing import Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field, computed_field


class PerformanceBreakdown(BaseModel):
    """Where time went during the request."""

    total_ms: float
    app_logic_ms: float
    store_write_ms: float = Field(0, description="Time spent rewriting record files")
    store_write_count: int = Field(0, description="Number of record files rewritten")

    @property
    def store_share(self) -> float:
        """Fraction of the request spent persisting records."""
        if self.total_ms <= 0:
            return 0.0
        return round(self.store_write_ms / self.total_ms, 3)


class RequestMetadata(BaseModel):
    """Core request metadata, always captured."""

    method: str = Field(..., description="HTTP method (GET, POST, etc.)")
    path: str = Field(..., description="Request path without query params")
    status_code: int = Field(..., ge=100, le=599, description="HTTP status code")
    duration_ms: float = Field(..., ge=0, description="Request duration in milliseconds")

    model_config = {"frozen": True}


class RequestDetails(BaseModel):
    """Extended request details, optional."""

    request_id: Optional[str] = Field(None, description="Unique request ID")
    client_host: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="User-Agent header")
    query_params: Optional[Dict[str, Any]] = Field(None, description="Query parameters")
    path_params: Optional[Dict[str, Any]] = Field(None, description="Path parameters")

    model_config = {"frozen": True}


class RequestLogEntry(BaseModel):
    """
    Complete request log entry combining metadata and optional details.
    Serializes cleanly to JSON for the persistence backends.
    """

    timestamp: datetime = Field(default_factory=datetime.now)
    metadata: RequestMetadata
    details: Optional[RequestDetails] = None
    performance: Optional[PerformanceBreakdown] = None
    slow_threshold_ms: float = Field(1000.0, exclude=True)

    model_config = {"frozen": True}

    @computed_field
    def is_slow(self) -> bool:
        return self.metadata.duration_ms > self.slow_threshold_ms

    @computed_field
    def is_error(self) -> bool:
        return self.metadata.status_code >= 500


__all__ = [
    "PerformanceBreakdown",
    "RequestMetadata",
    "RequestDetails",
    "RequestLogEntry",
]
