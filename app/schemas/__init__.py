"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AccountIdPayload,
    CurrentUser,
    ForgotPasswordRequest,
    LoginRequest,
    PatternLoginRequest,
    RegisterPayload,
    RegisterRequest,
    ResetPasswordRequest,
    SessionPayload,
    SetPatternRequest,
)
from app.schemas.envelope import Envelope, FieldIssue
from app.schemas.health import HealthResponse

__all__ = [
    "AccountIdPayload",
    "CurrentUser",
    "Envelope",
    "FieldIssue",
    "ForgotPasswordRequest",
    "HealthResponse",
    "LoginRequest",
    "PatternLoginRequest",
    "RegisterPayload",
    "RegisterRequest",
    "ResetPasswordRequest",
    "SessionPayload",
    "SetPatternRequest",
]
