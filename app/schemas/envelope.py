"""Uniform response envelope for every endpoint."""

from typing import Any, Literal

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """{status, code, message, data}; data is always a list."""

    status: Literal["success", "error"]
    code: str = Field(..., description="Stable dotted code, e.g. AUTH.LOGIN_OK")
    message: str = Field(..., description="Localized human-readable message")
    data: list[Any] = Field(default_factory=list)


class FieldIssue(BaseModel):
    """One validation problem, listed in the data of VALIDATION.BAD_REQUEST."""

    field: str
    message: str
