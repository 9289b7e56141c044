# hospital_scheduler/store/deps.py
from fastapi import Request
from .record_store import RecordStore

# Note: No import from main.py here!


def get_store(request: Request) -> RecordStore:
    """
    Record store created during lifespan. Pulled from app.state so several
    app instances (tests) can hold their own store.
    """
    store = getattr(request.app.state, "record_store", None)

    if store is None:
        # dependency called without the lifespan having run
        raise RuntimeError(
            "RecordStore not found in app.state. Ensure lifespan is configured."
        )

    return store


__all__ = ["get_store"]
