"""Health entry returned inside the response envelope."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Single item of `data` for GET /health/."""

    environment: str = Field(description="APP_ENV of the running process")
    database: Literal["connected", "disconnected"] = Field(
        description="Result of a SELECT 1 against the profile store",
    )
