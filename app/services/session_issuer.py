"""Exchange verified credentials for provider sessions and manage the refresh cookie."""

import logging

from starlette.responses import Response

from app.core.cookies import RefreshCookie
from app.core.errors import AuthFailure, ErrorCode
from app.core.result import Err, Ok, Result
from app.services.auth_provider import (
    ProviderError,
    ProviderErrorKind,
    SignIn,
    SupabaseAuthProvider,
    is_email_not_confirmed,
)

logger = logging.getLogger(__name__)

# Secondary hint for client UX; the primary code stays AUTH.INVALID_CREDENTIALS.
EMAIL_NOT_CONFIRMED_HINT = "email_not_confirmed"


def _upstream_failure(error: ProviderError) -> AuthFailure | None:
    """Infrastructure failures keep their own codes so they are never read as bad credentials."""
    if error.kind == ProviderErrorKind.TIMEOUT:
        return AuthFailure(ErrorCode.UPSTREAM_TIMEOUT)
    if error.kind in (ProviderErrorKind.UNAVAILABLE, ProviderErrorKind.MALFORMED):
        return AuthFailure(ErrorCode.UPSTREAM_UNAVAILABLE, error.message)
    return None


class SessionIssuer:
    """
    Issues sessions only after the provider has verified a secret.

    Password verification is never retried. The refresh token only travels
    in the HttpOnly cookie; callers must not copy it into response bodies.
    """

    def __init__(self, provider: SupabaseAuthProvider, cookie: RefreshCookie) -> None:
        self.provider = provider
        self.cookie = cookie

    async def login(self, email: str, password: str) -> Result[SignIn, AuthFailure]:
        result = await self.provider.sign_in_with_password(email, password)
        if isinstance(result, Ok):
            logger.info("Password login succeeded", extra={"account_id": result.value.account.id})
            return result
        error = result.error
        upstream = _upstream_failure(error)
        if upstream is not None:
            logger.warning("Password login failed upstream", extra={"kind": error.kind.value})
            return Err(upstream)
        logger.info("Password login rejected", extra={"status": error.status})
        hint = EMAIL_NOT_CONFIRMED_HINT if is_email_not_confirmed(error) else None
        return Err(AuthFailure(ErrorCode.INVALID_CREDENTIALS, hint))

    async def exchange_sign_in_token(self, email: str) -> Result[SignIn, AuthFailure]:
        """
        Turn an already-verified identity (pattern login) into a real session.

        The one-time token is minted with admin rights and redeemed here, so it
        never reaches the client.
        """
        minted = await self.provider.generate_sign_in_token(email)
        if isinstance(minted, Err):
            upstream = _upstream_failure(minted.error)
            logger.error("Could not mint sign-in token", extra={"kind": minted.error.kind.value})
            return Err(upstream or AuthFailure(ErrorCode.UPSTREAM_UNAVAILABLE, minted.error.message))
        redeemed = await self.provider.verify_sign_in_token(minted.value)
        if isinstance(redeemed, Err):
            upstream = _upstream_failure(redeemed.error)
            logger.error("Could not redeem sign-in token", extra={"kind": redeemed.error.kind.value})
            return Err(upstream or AuthFailure(ErrorCode.INVALID_CREDENTIALS))
        logger.info("Pattern login succeeded", extra={"account_id": redeemed.value.account.id})
        return redeemed

    async def refresh(self, refresh_token: str) -> Result[SignIn, AuthFailure]:
        result = await self.provider.refresh_session(refresh_token)
        if isinstance(result, Ok):
            return result
        error = result.error
        logger.info("Session refresh failed", extra={"kind": error.kind.value, "status": error.status})
        if error.kind == ProviderErrorKind.TIMEOUT:
            return Err(AuthFailure(ErrorCode.UPSTREAM_TIMEOUT))
        return Err(AuthFailure(ErrorCode.REFRESH_FAILED, error.message))

    async def logout(self, access_token: str | None) -> None:
        """Best-effort upstream sign-out. Never fails; the caller always clears the cookie."""
        if not access_token:
            return
        try:
            result = await self.provider.sign_out(access_token)
        except Exception:
            logger.exception("Sign-out raised; continuing with local logout")
            return
        if isinstance(result, Err):
            logger.warning(
                "Upstream sign-out failed; continuing with local logout",
                extra={"kind": result.error.kind.value, "status": result.error.status},
            )

    def remember(self, response: Response, sign_in: SignIn, remember_me: bool) -> None:
        """Persist the refresh token only when asked; otherwise drop any stale cookie."""
        token = sign_in.session.refresh_token
        if remember_me and token:
            self.cookie.set(response, token)
        else:
            self.cookie.clear(response)

    def rotate(self, response: Response, sign_in: SignIn) -> None:
        token = sign_in.session.refresh_token
        if token:
            self.cookie.set(response, token)
        else:
            self.cookie.clear(response)

    def forget(self, response: Response) -> None:
        self.cookie.clear(response)
