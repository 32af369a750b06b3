from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional


class AppError(Exception):
    """Base for errors that map onto an HTTP response."""

    status_code = 500
    default_message = "Unexpected error"

    def __init__(self, message: Optional[str] = None, *, headers: Optional[Dict[str, str]] = None) -> None:
        self.message = message or self.default_message
        self.headers = headers
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(AppError):
    status_code = 422
    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, *, fields: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        if self.fields:
            payload["fields"] = dict(self.fields)
        return payload


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Record already exists"


class AuthError(AppError):
    status_code = 401
    default_message = "Not authenticated"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class StoreError(AppError):
    status_code = 500
    default_message = "Unable to reach the database. Please try again later."


class PoolExhaustedError(StoreError):
    status_code = 503
    default_message = "Server busy. Please try again later."


@contextmanager
def store_failure_message(message: str) -> Iterator[None]:
    """Rewords StoreError raised inside the block; 503s keep their own text."""
    try:
        yield
    except PoolExhaustedError:
        raise
    except StoreError as exc:
        raise StoreError(message) from exc
