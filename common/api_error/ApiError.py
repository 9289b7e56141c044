# common/api_error/ApiError.py
class AppError(Exception):
    """Base error for all application-specific issues."""

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "INTERNAL_ERROR",
    ):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(self.message)


class ValidationError(AppError):
    """
    Recoverable input or state error. Raised before any mutation happens.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str = "VALIDATION_ERROR",
    ):
        super().__init__(message, status_code=status_code, code=code)


class NotFoundError(ValidationError):
    def __init__(self, message: str, code: str = "NOT_FOUND"):
        super().__init__(message, status_code=404, code=code)


class OwnershipError(ValidationError):
    """Appointment exists but belongs to somebody else."""

    def __init__(self, message: str, code: str = "NOT_OWNER"):
        super().__init__(message, status_code=403, code=code)


class SlotUnavailableError(ValidationError):
    def __init__(self, message: str, code: str = "SLOT_NOT_AVAILABLE"):
        super().__init__(message, status_code=409, code=code)


class PersistenceError(AppError):
    """
    Writing or reading a storage file failed.

    The record store rolls the in-memory change back before raising, so a
    caller may retry the whole operation.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 503,
        code: str = "PERSISTENCE_ERROR",
    ):
        super().__init__(message, status_code=status_code, code=code)


class StorageUnavailableError(PersistenceError):
    """Storage directory cannot be created or opened. Fatal at startup."""

    def __init__(self, message: str):
        super().__init__(message, status_code=500, code="STORAGE_UNAVAILABLE")


class MalformedRecordError(AppError):
    """A stored line could not be turned back into an entity."""

    def __init__(self, message: str, code: str = "MALFORMED_RECORD"):
        super().__init__(message, status_code=500, code=code)


__all__ = [
    "AppError",
    "ValidationError",
    "NotFoundError",
    "OwnershipError",
    "SlotUnavailableError",
    "PersistenceError",
    "StorageUnavailableError",
    "MalformedRecordError",
]
