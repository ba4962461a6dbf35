"""Core app configuration, database, errors and auth primitives."""

from app.core.config import get_settings, settings
from app.core.database import get_db
from app.core.errors import ApiError, AuthFailure, ErrorCode
from app.core.result import Err, Ok, Result

__all__ = [
    "ApiError",
    "AuthFailure",
    "Err",
    "ErrorCode",
    "Ok",
    "Result",
    "get_db",
    "get_settings",
    "settings",
]
