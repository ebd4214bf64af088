from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    VALIDATION = "VALIDATION_ERROR"
    AUTHENTICATION = "AUTHENTICATION_REQUIRED"
    AUTHORIZATION = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMIT = "RATE_LIMIT_EXCEEDED"
    INTERNAL = "INTERNAL_ERROR"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.INTERNAL: 500,
}

LOGIN_REQUIRED = "You must be logged in to access this route"
PROFILE_REQUIRED = "Please create a profile first"
ADMIN_REQUIRED = "Admin access required"
INVALID_DATE_RANGE = "Check-out date must be after check-in date"
UNKNOWN_ERROR = "An unexpected error occurred"
TOO_MANY_REQUESTS = "Too many requests. Please try again later."


@dataclass
class AppError(Exception):
    kind: ErrorKind
    message: str
    field: Optional[str] = None
    headers: Optional[dict[str, str]] = None

    def __str__(self) -> str:
        return self.message

    @property
    def code(self) -> str:
        return self.kind.value

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_dict(self) -> dict[str, dict[str, str]]:
        payload = {"code": self.code, "message": self.message}
        if self.field:
            payload["field"] = self.field
        return {"error": payload}


class ValidationError(AppError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(kind=ErrorKind.VALIDATION, message=message, field=field)


class AuthenticationError(AppError):
    def __init__(self, message: str = LOGIN_REQUIRED):
        super().__init__(kind=ErrorKind.AUTHENTICATION, message=message)


class AuthorizationError(AppError):
    def __init__(self, message: str = ADMIN_REQUIRED):
        super().__init__(kind=ErrorKind.AUTHORIZATION, message=message)


class NotFoundError(AppError):
    def __init__(self, message: str = "Resource not found"):
        super().__init__(kind=ErrorKind.NOT_FOUND, message=message)


class ConflictError(AppError):
    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(kind=ErrorKind.CONFLICT, message=message, field=field)


class RateLimitError(AppError):
    def __init__(self, headers: dict[str, str], message: str = TOO_MANY_REQUESTS):
        super().__init__(kind=ErrorKind.RATE_LIMIT, message=message, headers=headers)


def handle_error(exc: BaseException) -> AppError:
    """Normalize any failure into an ``AppError`` safe to show to a client.

    Application errors pass through untouched. Everything else is logged with
    its traceback and replaced by a generic internal error, so persistence or
    programming failures never leak their details.
    """
    if isinstance(exc, AppError):
        return exc
    logger.error("Unhandled error", exc_info=(type(exc), exc, exc.__traceback__))
    return AppError(kind=ErrorKind.INTERNAL, message=UNKNOWN_ERROR)
