"""Stable error codes, their HTTP statuses, and the exception raised at the HTTP edge."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable codes clients branch on. Namespaces: AUTH, DB, VALIDATION, HTTP."""

    INVALID_CREDENTIALS = "AUTH.INVALID_CREDENTIALS"
    MISSING_TOKEN = "AUTH.MISSING_TOKEN"
    INVALID_TOKEN = "AUTH.INVALID_TOKEN"
    NO_REFRESH_COOKIE = "AUTH.NO_REFRESH_COOKIE"
    REFRESH_FAILED = "AUTH.REFRESH_FAILED"
    EMAIL_IN_USE = "AUTH.EMAIL_IN_USE"
    SIGNUP_FAILED = "AUTH.SIGNUP_FAILED"
    RESET_FAILED = "AUTH.RESET_FAILED"
    UPSTREAM_TIMEOUT = "AUTH.UPSTREAM_TIMEOUT"
    UPSTREAM_UNAVAILABLE = "AUTH.UPSTREAM_UNAVAILABLE"
    DUPLICATE_USERNAME = "DB.DUPLICATE.USERNAME"
    DUPLICATE_EMAIL = "DB.DUPLICATE.EMAIL"
    DUPLICATE_PHONE = "DB.DUPLICATE.PHONE"
    DUPLICATE_AUTH_USER = "DB.DUPLICATE.AUTH_USER"
    DUPLICATE = "DB.DUPLICATE"
    SELECT_FAILED = "DB.SELECT_FAILED"
    INSERT_FAILED = "DB.INSERT_FAILED"
    BAD_REQUEST = "VALIDATION.BAD_REQUEST"
    UNSUPPORTED_CONTENT_TYPE = "VALIDATION.UNSUPPORTED_CONTENT_TYPE"
    METHOD_NOT_ALLOWED = "HTTP.METHOD_NOT_ALLOWED"
    NOT_FOUND = "HTTP.NOT_FOUND"
    INTERNAL_ERROR = "HTTP.INTERNAL_ERROR"


HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_CREDENTIALS: 401,
    ErrorCode.MISSING_TOKEN: 401,
    ErrorCode.INVALID_TOKEN: 401,
    ErrorCode.NO_REFRESH_COOKIE: 401,
    ErrorCode.REFRESH_FAILED: 401,
    ErrorCode.EMAIL_IN_USE: 409,
    ErrorCode.SIGNUP_FAILED: 400,
    ErrorCode.RESET_FAILED: 400,
    ErrorCode.UPSTREAM_TIMEOUT: 504,
    ErrorCode.UPSTREAM_UNAVAILABLE: 502,
    ErrorCode.DUPLICATE_USERNAME: 409,
    ErrorCode.DUPLICATE_EMAIL: 409,
    ErrorCode.DUPLICATE_PHONE: 409,
    ErrorCode.DUPLICATE_AUTH_USER: 409,
    ErrorCode.DUPLICATE: 409,
    ErrorCode.SELECT_FAILED: 500,
    ErrorCode.INSERT_FAILED: 500,
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.UNSUPPORTED_CONTENT_TYPE: 415,
    ErrorCode.METHOD_NOT_ALLOWED: 405,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INTERNAL_ERROR: 500,
}

# Unique-constraint field -> conflict code (registration and profile writes).
DUPLICATE_FIELD_CODES: dict[str | None, ErrorCode] = {
    "username": ErrorCode.DUPLICATE_USERNAME,
    "email": ErrorCode.DUPLICATE_EMAIL,
    "phone": ErrorCode.DUPLICATE_PHONE,
    "account_id": ErrorCode.DUPLICATE_AUTH_USER,
}


@dataclass(frozen=True)
class AuthFailure:
    """
    Typed failure returned by the core services.

    detail is an optional machine-readable hint or upstream diagnostic placed
    in the envelope's data list; it never changes the code.
    """

    code: ErrorCode
    detail: str | None = None


class ApiError(Exception):
    """Raised in endpoints and dependencies; rendered as an error envelope."""

    def __init__(self, code: ErrorCode, detail: Any = None) -> None:
        self.code = code
        self.detail = detail
        self.status_code = HTTP_STATUS[code]
        super().__init__(code.value)

    @classmethod
    def from_failure(cls, failure: AuthFailure) -> "ApiError":
        return cls(failure.code, failure.detail)
