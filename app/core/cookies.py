"""Refresh-token cookie: one policy for setting, rotating and clearing it."""

from typing import Literal

from starlette.requests import Request
from starlette.responses import Response

from app.core.config import Settings


class RefreshCookie:
    """
    Host-only, Path=/, HttpOnly cookie carrying the provider refresh token.

    SameSite is a deployment choice: "none" when the API and the front end are
    on different sites (requires Secure), "lax" when they share a site.
    """

    def __init__(
        self,
        name: str,
        max_age: int,
        samesite: Literal["none", "lax"] = "none",
        secure: bool = True,
    ) -> None:
        self.name = name
        self.max_age = max_age
        self.samesite = samesite
        # Browsers drop SameSite=None cookies that are not Secure.
        self.secure = secure or samesite == "none"

    @classmethod
    def from_settings(cls, settings: Settings) -> "RefreshCookie":
        return cls(
            name=settings.REFRESH_COOKIE_NAME,
            max_age=settings.REFRESH_COOKIE_MAX_AGE_SEC,
            samesite=settings.COOKIE_SAMESITE,
            secure=settings.COOKIE_SECURE,
        )

    def read(self, request: Request) -> str | None:
        value = request.cookies.get(self.name)
        return value or None

    def set(self, response: Response, token: str) -> None:
        response.set_cookie(
            key=self.name,
            value=token,
            max_age=self.max_age,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite=self.samesite,
        )

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            key=self.name,
            path="/",
            secure=self.secure,
            httponly=True,
            samesite=self.samesite,
        )
