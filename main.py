# main.py
import sys
from fastapi import FastAPI, HTTPException, Request
from datetime import datetime
from pydantic import BaseModel, Field
from dotenv import load_dotenv
from common.config import initialize_config, get_config, is_configured
from common.logger import get_app_logger
from common.logger.logger_middleware import RequestLoggingMiddleware
from common.logger.persistence import shutdown_persistence
from common.api_error import ConfigurationError, AppError
from typing import Any, Optional
from hospital_scheduler.api.v1 import api_router
from hospital_scheduler.services.v1 import Clock, Notifier
from hospital_scheduler.store import RecordStore
from contextlib import asynccontextmanager
from fastapi.responses import JSONResponse

load_dotenv()
try:
    initialize_config()
except ConfigurationError as e:
    # Can't use logger yet, but that's OK - this is a fatal startup error
    print(f"FATAL: Configuration error:\n{e}")
    sys.exit(1)

config = get_config()
logger = get_app_logger(
    name=__name__,
    track_timing=True,
    persist=True,
)

app_title = config.app_title
app_version = config.app_version


@asynccontextmanager
async def lifespan(app: FastAPI):
    store: Optional[RecordStore] = getattr(app.state, "record_store", None)

    if store is None:
        logger.info("Opening record store", **config.storage.to_dict_safe())
        # StorageUnavailableError here aborts startup
        store = RecordStore.from_config(config.storage)
        report = store.load()
        if report.skipped_count:
            logger.warning(
                "Some stored records could not be read and were skipped",
                skipped=report.skipped_count,
            )

    app.state.record_store = store

    yield
    logger.info("shutting down")
    shutdown_persistence()


def create_app(
    store: Optional[RecordStore] = None,
    clock: Optional[Clock] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """
    Build the API. Passing an already loaded ``store`` skips opening the
    configured storage directory.
    """
    app = FastAPI(
        title=app_title,
        version=app_version,
        description=f"Running in {config.environment} environment",
        lifespan=lifespan,
    )
    if store is not None:
        app.state.record_store = store
    app.state.clock = clock
    app.state.notifier = notifier

    app.add_middleware(
        RequestLoggingMiddleware,
        expose_performance_headers=config.environment != "production",
    )
    app.add_exception_handler(AppError, app_error_handler)
    app.include_router(api_router)
    app.add_api_route(
        "/health",
        check_health,
        methods=["GET"],
        response_model=HealthCheckResponse,
        responses={
            200: {"description": "System is healthy", "model": HealthCheckResponse},
            503: {"description": "System is unhealthy", "model": ErrorResponse},
            500: {"description": "Unexpected server error", "model": ErrorResponse},
        },
    )
    app.add_api_route("/metrics", metrics, methods=["GET"])
    return app


async def app_error_handler(request: Request, exc: AppError):

    logger.error(
        f"Domain Error: {exc.code}",
        path=request.url.path,
        error_code=exc.code,
        message=exc.message,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "message": exc.message,
            "timestamp": datetime.now().isoformat(),
        },
    )


class HealthCheckResponse(BaseModel):
    status: str = Field(..., description="Current system health status")
    timestamp: datetime = Field(..., description="Server time in ISO 8601 format")
    version: str = Field(..., description="Application version")
    logging_configured: bool = Field(..., description="Logging configuration status")
    log_level: str = Field(..., description="Application log level")
    storage_dir: str = Field(..., description="Directory holding the record files")
    records: dict[str, int] = Field(..., description="Loaded entities per collection")


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Error message describing the failure")
    timestamp: datetime = Field(..., description="Server time when the error occurred")


def check_health(request: Request) -> HealthCheckResponse:
    try:
        store: Optional[RecordStore] = getattr(
            request.app.state, "record_store", None
        )
        if store is None:
            logger.error("Record store not loaded", endpoint="/health")
            err = ErrorResponse(
                error="record store not loaded",
                timestamp=datetime.now(),
            )
            raise HTTPException(
                status_code=503,
                detail=err.model_dump(mode="json"),
            )

        logger.info("Health check passed", version=app_version, endpoint="/health")
        return HealthCheckResponse(
            status="Healthy",
            timestamp=datetime.now(),
            version=app_version,
            logging_configured=is_configured(),
            log_level=get_config().logging.level_value,
            storage_dir=str(store.files.directory),
            records={
                "users": len(store.list_users()),
                "appointments": len(store.list_appointments()),
                "medical_records": len(store.list_medical_records()),
            },
        )
    except HTTPException:
        raise
    except Exception as e:
        # exc_info=True will show full traceback with Rich formatting
        logger.critical("Unexpected error in health check", exc_info=True, error=str(e))
        err = ErrorResponse(
            error=f"Unexpected error: {str(e)}",
            timestamp=datetime.now(),
        )
        raise HTTPException(
            status_code=500,
            detail=err.model_dump(mode="json"),
        )


async def metrics() -> dict[str, Any]:
    """Get logging performance metrics."""
    from common.logger.persistence import get_persistence_metrics
    from common.logger.log_backends import get_all_metrics

    return {
        "logger": logger.get_timing_stats(),
        "persistence": get_persistence_metrics(),
        "backends": get_all_metrics(),
    }


app = create_app()

__all__ = ["app", "config", "create_app"]
