"""FastAPI dependencies: injected clients, per-request components, request guards."""

import logging
from typing import Annotated

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.cookies import RefreshCookie
from app.core.database import get_db
from app.core.errors import ApiError, ErrorCode
from app.core.result import Err
from app.core.security import decode_access_token
from app.services.auth_provider import Account, ProviderErrorKind, SupabaseAuthProvider
from app.services.credential_resolver import CredentialResolver
from app.services.patterns import PatternService
from app.services.profile_reconciler import ProfileReconciler
from app.services.profile_store import ProfileStore
from app.services.registration import RegistrationService
from app.services.session_issuer import SessionIssuer

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


def get_auth_provider(request: Request) -> SupabaseAuthProvider:
    """The process-wide provider client built in the app lifespan."""
    return request.app.state.auth_provider


def get_profile_store(db: Annotated[Session, Depends(get_db)]) -> ProfileStore:
    return ProfileStore(db)


def get_refresh_cookie(settings: Annotated[Settings, Depends(get_settings)]) -> RefreshCookie:
    return RefreshCookie.from_settings(settings)


def get_session_issuer(
    provider: Annotated[SupabaseAuthProvider, Depends(get_auth_provider)],
    cookie: Annotated[RefreshCookie, Depends(get_refresh_cookie)],
) -> SessionIssuer:
    return SessionIssuer(provider, cookie)


def get_credential_resolver(
    store: Annotated[ProfileStore, Depends(get_profile_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> CredentialResolver:
    return CredentialResolver(store, settings.DEFAULT_PHONE_COUNTRY_CODE)


def get_profile_reconciler(
    store: Annotated[ProfileStore, Depends(get_profile_store)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> ProfileReconciler:
    return ProfileReconciler(store, settings.DEFAULT_ROLE_KEY, settings.USERNAME_PROBE_ATTEMPTS)


def get_pattern_service(store: Annotated[ProfileStore, Depends(get_profile_store)]) -> PatternService:
    return PatternService(store)


def get_registration_service(
    provider: Annotated[SupabaseAuthProvider, Depends(get_auth_provider)],
    store: Annotated[ProfileStore, Depends(get_profile_store)],
    reconciler: Annotated[ProfileReconciler, Depends(get_profile_reconciler)],
    patterns: Annotated[PatternService, Depends(get_pattern_service)],
) -> RegistrationService:
    return RegistrationService(provider, store, reconciler, patterns)


def require_json(request: Request) -> None:
    """415 unless the body is declared as JSON. Runs before body validation."""
    content_type = request.headers.get("content-type", "")
    if "application/json" not in content_type.lower():
        raise ApiError(ErrorCode.UNSUPPORTED_CONTENT_TYPE)


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> str | None:
    if credentials is None or not credentials.credentials:
        return None
    return credentials.credentials


async def get_current_account(
    token: Annotated[str | None, Depends(get_bearer_token)],
    provider: Annotated[SupabaseAuthProvider, Depends(get_auth_provider)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> Account:
    """Dependency: require a valid provider access token. Raises 401 if missing or invalid."""
    if token is None:
        raise ApiError(ErrorCode.MISSING_TOKEN)
    if settings.SUPABASE_JWT_SECRET is not None:
        # Reject expired/forged tokens locally without a provider round trip.
        try:
            decode_access_token(token, settings.SUPABASE_JWT_SECRET.get_secret_value())
        except jwt.PyJWTError:
            raise ApiError(ErrorCode.INVALID_TOKEN)
    result = await provider.get_user(token)
    if isinstance(result, Err):
        if result.error.kind == ProviderErrorKind.TIMEOUT:
            raise ApiError(ErrorCode.UPSTREAM_TIMEOUT)
        if result.error.kind == ProviderErrorKind.UNAVAILABLE:
            raise ApiError(ErrorCode.UPSTREAM_UNAVAILABLE)
        raise ApiError(ErrorCode.INVALID_TOKEN)
    return result.value
