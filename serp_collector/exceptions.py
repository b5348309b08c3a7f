"""Errors raised by the dispatcher and admin store, rendered by the HTTP layer."""

from typing import Any

from sqlalchemy.exc import SQLAlchemyError


class CollectorError(Exception):
    """Base class. ``status_code`` is the HTTP status the error maps to."""

    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            payload["details"] = self.details
        return payload


class InvalidRequest(CollectorError):
    """Required fields missing; raised before any side effect."""

    status_code = 400


class Unauthorized(CollectorError):
    status_code = 401


class NotFound(CollectorError):
    status_code = 404


class Conflict(CollectorError):
    """The target row is in a state that forbids the requested transition."""

    status_code = 409


class StorageError(CollectorError):
    """Wraps a store failure with the driver message in ``details``."""

    status_code = 500


# Raised by the store layer. Connection failures (refused, timed out) surface
# from the driver as OSError without a SQLAlchemy wrapper.
STORE_ERRORS = (SQLAlchemyError, OSError)
