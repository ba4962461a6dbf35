"""Client for the hosted auth provider (GoTrue / Supabase Auth REST API)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

import httpx

from app.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)


class ProviderErrorKind(str, Enum):
    REJECTED = "rejected"  # 4xx: bad credentials, bad token, validation
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"  # transport failure or 5xx
    MALFORMED = "malformed"  # 2xx with a body we cannot use


@dataclass(frozen=True)
class ProviderError:
    kind: ProviderErrorKind
    message: str
    status: int | None = None


@dataclass(frozen=True)
class Account:
    """Identity owned by the provider. email is None for phone-only accounts."""

    id: str
    email: str | None
    phone: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ProviderSession:
    access_token: str
    refresh_token: str | None
    expires_in: int | None
    token_type: str = "bearer"


@dataclass(frozen=True)
class SignIn:
    account: Account
    session: ProviderSession


@dataclass(frozen=True)
class SignUp:
    """session is None when the provider requires email confirmation first."""

    account: Account
    session: ProviderSession | None


@dataclass(frozen=True)
class SignInToken:
    """One-time token minted with admin rights; redeemed server-side, never sent to clients."""

    token_hash: str
    verification_type: str


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:500] if resp.text else f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value[:500]
    return f"HTTP {resp.status_code}"


def _parse_account(data: Any) -> Account | None:
    if not isinstance(data, dict) or not data.get("id"):
        return None
    metadata = data.get("user_metadata") or {}
    email = data.get("email") or None
    return Account(
        id=str(data["id"]),
        email=email.lower() if isinstance(email, str) else None,
        phone=data.get("phone") or None,
        metadata=metadata if isinstance(metadata, dict) else {},
    )


def _parse_session(data: Any) -> ProviderSession | None:
    if not isinstance(data, dict) or not data.get("access_token"):
        return None
    expires_in = data.get("expires_in")
    return ProviderSession(
        access_token=str(data["access_token"]),
        refresh_token=data.get("refresh_token") or None,
        expires_in=int(expires_in) if expires_in is not None else None,
        token_type=str(data.get("token_type") or "bearer"),
    )


def _parse_sign_in(data: Any) -> Result[SignIn, ProviderError]:
    session = _parse_session(data)
    account = _parse_account(data.get("user")) if isinstance(data, dict) else None
    if session is None or account is None:
        return Err(ProviderError(ProviderErrorKind.MALFORMED, "Provider response missing session or user."))
    return Ok(SignIn(account=account, session=session))


def is_email_not_confirmed(error: ProviderError) -> bool:
    return "not confirmed" in error.message.lower()


def is_already_registered(error: ProviderError) -> bool:
    msg = error.message.lower()
    return "already registered" in msg or "already been registered" in msg or "already exists" in msg


class SupabaseAuthProvider:
    """
    Async client for the provider's auth endpoints (/auth/v1).

    Built once per process and closed on shutdown. Every method returns
    Ok(payload) or Err(ProviderError); nothing is retried here.
    """

    def __init__(
        self,
        base_url: str,
        anon_key: str,
        service_role_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._anon_key = anon_key
        self._service_role_key = service_role_key
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/auth/v1",
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> SupabaseAuthProvider:
        return cls(
            base_url=settings.SUPABASE_URL,
            anon_key=settings.SUPABASE_ANON_KEY.get_secret_value(),
            service_role_key=settings.SUPABASE_SERVICE_ROLE.get_secret_value(),
            timeout=settings.AUTH_REQUEST_TIMEOUT_SEC,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        access_token: str | None = None,
        admin: bool = False,
    ) -> Result[Any, ProviderError]:
        key = self._service_role_key if admin else self._anon_key
        headers = {"apikey": key}
        if admin:
            headers["Authorization"] = f"Bearer {self._service_role_key}"
        elif access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        try:
            resp = await self._client.request(method, path, json=json, params=params, headers=headers)
        except httpx.TimeoutException:
            logger.warning("Auth provider timed out", extra={"path": path})
            return Err(ProviderError(ProviderErrorKind.TIMEOUT, "Auth provider timed out."))
        except httpx.TransportError as e:
            logger.error("Auth provider unreachable", extra={"path": path, "reason": str(e)[:200]})
            return Err(ProviderError(ProviderErrorKind.UNAVAILABLE, "Auth provider unreachable."))
        if resp.status_code >= 500:
            return Err(
                ProviderError(ProviderErrorKind.UNAVAILABLE, _error_message(resp), resp.status_code)
            )
        if resp.status_code >= 400:
            return Err(
                ProviderError(ProviderErrorKind.REJECTED, _error_message(resp), resp.status_code)
            )
        if resp.status_code == 204 or not resp.content:
            return Ok({})
        try:
            return Ok(resp.json())
        except ValueError:
            return Err(ProviderError(ProviderErrorKind.MALFORMED, "Provider returned invalid JSON."))

    async def sign_in_with_password(self, email: str, password: str) -> Result[SignIn, ProviderError]:
        result = await self._call(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        if isinstance(result, Err):
            return result
        return _parse_sign_in(result.value)

    async def refresh_session(self, refresh_token: str) -> Result[SignIn, ProviderError]:
        result = await self._call(
            "POST",
            "/token",
            params={"grant_type": "refresh_token"},
            json={"refresh_token": refresh_token},
        )
        if isinstance(result, Err):
            return result
        return _parse_sign_in(result.value)

    async def get_user(self, access_token: str) -> Result[Account, ProviderError]:
        result = await self._call("GET", "/user", access_token=access_token)
        if isinstance(result, Err):
            return result
        account = _parse_account(result.value)
        if account is None:
            return Err(ProviderError(ProviderErrorKind.MALFORMED, "Provider response missing user."))
        return Ok(account)

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> Result[SignUp, ProviderError]:
        result = await self._call(
            "POST",
            "/signup",
            json={"email": email, "password": password, "data": metadata},
        )
        if isinstance(result, Err):
            return result
        data = result.value
        if not isinstance(data, dict):
            return Err(ProviderError(ProviderErrorKind.MALFORMED, "Provider returned an unexpected body."))
        session = _parse_session(data)
        # With autoconfirm the body is a session with a nested user; otherwise it is the user.
        account = _parse_account(data.get("user") if session is not None else data)
        if account is None:
            return Err(ProviderError(ProviderErrorKind.MALFORMED, "Provider response missing user id."))
        return Ok(SignUp(account=account, session=session))

    async def reset_password_for_email(
        self, email: str, redirect_to: str | None
    ) -> Result[None, ProviderError]:
        params = {"redirect_to": redirect_to} if redirect_to else None
        result = await self._call("POST", "/recover", json={"email": email}, params=params)
        if isinstance(result, Err):
            return result
        return Ok(None)

    async def update_user(self, access_token: str, password: str) -> Result[Account, ProviderError]:
        result = await self._call(
            "PUT", "/user", json={"password": password}, access_token=access_token
        )
        if isinstance(result, Err):
            return result
        account = _parse_account(result.value)
        if account is None:
            return Err(ProviderError(ProviderErrorKind.MALFORMED, "Provider response missing user."))
        return Ok(account)

    async def sign_out(self, access_token: str) -> Result[None, ProviderError]:
        result = await self._call("POST", "/logout", access_token=access_token)
        if isinstance(result, Err):
            return result
        return Ok(None)

    async def generate_sign_in_token(self, email: str) -> Result[SignInToken, ProviderError]:
        result = await self._call(
            "POST",
            "/admin/generate_link",
            json={"type": "magiclink", "email": email},
            admin=True,
        )
        if isinstance(result, Err):
            return result
        data = result.value if isinstance(result.value, dict) else {}
        props = data.get("properties") or data
        token_hash = props.get("hashed_token")
        if not token_hash:
            return Err(ProviderError(ProviderErrorKind.MALFORMED, "Provider response missing hashed_token."))
        return Ok(
            SignInToken(
                token_hash=str(token_hash),
                verification_type=str(props.get("verification_type") or "magiclink"),
            )
        )

    async def verify_sign_in_token(self, token: SignInToken) -> Result[SignIn, ProviderError]:
        result = await self._call(
            "POST",
            "/verify",
            json={"type": token.verification_type, "token_hash": token.token_hash},
        )
        if isinstance(result, Err):
            return result
        return _parse_sign_in(result.value)

