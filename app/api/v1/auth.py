"""Auth endpoints: password/pattern login, registration, password reset, session refresh and logout."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from app.api.deps import (
    get_bearer_token,
    get_auth_provider,
    get_credential_resolver,
    get_current_account,
    get_pattern_service,
    get_profile_reconciler,
    get_profile_store,
    get_registration_service,
    get_session_issuer,
    require_json,
)
from app.api.envelope import failure, success
from app.core.config import Settings, get_settings
from app.core.errors import ApiError, AuthFailure, ErrorCode
from app.core.result import Err
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
from app.services.auth_provider import Account, ProviderErrorKind, SignIn, SupabaseAuthProvider
from app.services.credential_resolver import CredentialResolver, normalize_phone
from app.services.patterns import PatternService
from app.services.profile_reconciler import ProfileReconciler
from app.services.profile_store import ProfileRef, ProfileStore, StoreError
from app.services.registration import NewUser, RegistrationService
from app.services.session_issuer import SessionIssuer

logger = logging.getLogger(__name__)
router = APIRouter()

JSON_BODY = [Depends(require_json)]


def _session_payload(sign_in: SignIn, profile: ProfileRef | None) -> SessionPayload:
    account = sign_in.account
    meta = account.metadata
    if profile is not None:
        username = profile.username
        display_name = profile.display_name
    else:
        username = meta.get("username") if isinstance(meta.get("username"), str) else None
        full_name = meta.get("full_name") if isinstance(meta.get("full_name"), str) else ""
        display_name = (
            full_name.strip()
            or username
            or (account.email.split("@")[0] if account.email else None)
            or "Usuario"
        )
    return SessionPayload(
        account_id=account.id,
        profile_id=profile.id if profile is not None else None,
        email=account.email,
        username=username,
        display_name=display_name,
        access_token=sign_in.session.access_token,
        expires_in=sign_in.session.expires_in,
        token_type=sign_in.session.token_type,
    )


def _profile_failed(error: StoreError) -> ApiError:
    logger.error("Profile reconciliation failed", extra={"reason": error.message[:200]})
    return ApiError(ErrorCode.INSERT_FAILED, error.message)


def _failure_response(error: AuthFailure) -> JSONResponse:
    return failure(error.code, error.detail, headers={"WWW-Authenticate": "Bearer"})


def _signed_in_response(
    sign_in: SignIn,
    remember: bool,
    issuer: SessionIssuer,
    reconciler: ProfileReconciler,
) -> JSONResponse:
    profile = reconciler.ensure_profile(sign_in.account)
    if isinstance(profile, Err):
        raise _profile_failed(profile.error)
    response = success("AUTH.LOGIN_OK", _session_payload(sign_in, profile.value))
    issuer.remember(response, sign_in, remember)
    return response


@router.post("/login", dependencies=JSON_BODY)
async def login(
    body: LoginRequest,
    resolver: Annotated[CredentialResolver, Depends(get_credential_resolver)],
    issuer: Annotated[SessionIssuer, Depends(get_session_issuer)],
    reconciler: Annotated[ProfileReconciler, Depends(get_profile_reconciler)],
) -> JSONResponse:
    """
    Password login with email, username or phone.

    Unknown user and wrong password produce the same AUTH.INVALID_CREDENTIALS.
    With remember=true the refresh token is set as an HttpOnly cookie (30 days);
    otherwise any existing refresh cookie is cleared.
    """
    email = resolver.resolve(body.login_identifier)
    if isinstance(email, Err):
        raise ApiError.from_failure(email.error)
    signed_in = await issuer.login(email.value, body.password)
    if isinstance(signed_in, Err):
        raise ApiError.from_failure(signed_in.error)
    return _signed_in_response(signed_in.value, body.remember, issuer, reconciler)


@router.post("/pattern/login", dependencies=JSON_BODY)
async def pattern_login(
    body: PatternLoginRequest,
    resolver: Annotated[CredentialResolver, Depends(get_credential_resolver)],
    patterns: Annotated[PatternService, Depends(get_pattern_service)],
    issuer: Annotated[SessionIssuer, Depends(get_session_issuer)],
    reconciler: Annotated[ProfileReconciler, Depends(get_profile_reconciler)],
) -> JSONResponse:
    """Pattern login; a verified pattern is bridged to a real provider session server-side."""
    email = resolver.resolve(body.login_identifier)
    if isinstance(email, Err):
        if email.error.code == ErrorCode.INVALID_CREDENTIALS:
            await run_in_threadpool(patterns.burn, body.pattern)
        raise ApiError.from_failure(email.error)
    # The KDF is deliberately slow; keep it off the event loop.
    verified = await run_in_threadpool(patterns.verify, email.value, body.pattern)
    if isinstance(verified, Err):
        raise ApiError(ErrorCode.SELECT_FAILED, verified.error.message)
    if not verified.value:
        logger.info("Pattern login rejected")
        raise ApiError(ErrorCode.INVALID_CREDENTIALS)
    signed_in = await issuer.exchange_sign_in_token(email.value)
    if isinstance(signed_in, Err):
        raise ApiError.from_failure(signed_in.error)
    return _signed_in_response(signed_in.value, body.remember, issuer, reconciler)


@router.post("/pattern", dependencies=JSON_BODY)
async def set_pattern(
    body: SetPatternRequest,
    account: Annotated[Account, Depends(get_current_account)],
    patterns: Annotated[PatternService, Depends(get_pattern_service)],
) -> JSONResponse:
    """Store (or replace) the caller's pattern. The email comes from the token, never the body."""
    if not account.email:
        raise ApiError(ErrorCode.BAD_REQUEST, "Account has no email; pattern login needs one.")
    stored = await run_in_threadpool(patterns.set_pattern, account.id, account.email, body.pattern)
    if isinstance(stored, Err):
        raise ApiError(ErrorCode.INSERT_FAILED, stored.error.message)
    return success("AUTH.PATTERN_SET")


@router.post("/register", dependencies=JSON_BODY)
async def register(
    body: RegisterRequest,
    registration: Annotated[RegistrationService, Depends(get_registration_service)],
    issuer: Annotated[SessionIssuer, Depends(get_session_issuer)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> JSONResponse:
    """
    Create the account and its profile with the chosen username.

    Taken usernames fail with DB.DUPLICATE.USERNAME before the provider is called.
    """
    phone = normalize_phone(body.phone, settings.DEFAULT_PHONE_COUNTRY_CODE) if body.phone else None
    result = await registration.register(
        NewUser(
            username=body.username,
            email=str(body.email).lower(),
            password=body.password,
            given_names=body.given_names,
            surnames=body.surnames,
            phone=phone or None,
            pattern=body.pattern,
        )
    )
    if isinstance(result, Err):
        raise ApiError.from_failure(result.error)
    registered = result.value
    session = registered.sign_up.session
    payload = RegisterPayload(
        account_id=registered.sign_up.account.id,
        profile_id=registered.profile.id,
        email=registered.sign_up.account.email or str(body.email).lower(),
        username=registered.profile.username,
        requires_confirmation=registered.requires_confirmation,
        access_token=session.access_token if session else None,
        expires_in=session.expires_in if session else None,
        token_type=session.token_type if session else None,
    )
    code = "AUTH.REGISTER_PENDING" if registered.requires_confirmation else "AUTH.REGISTER_OK"
    response = success(code, payload, status_code=201)
    if session is not None:
        issuer.remember(response, SignIn(account=registered.sign_up.account, session=session), True)
    return response


@router.post("/password/forgot", dependencies=JSON_BODY)
async def forgot_password(
    body: ForgotPasswordRequest,
    provider: Annotated[SupabaseAuthProvider, Depends(get_auth_provider)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> JSONResponse:
    """Always reports success so the response never reveals whether the email exists."""
    redirect_to = body.redirect_to or settings.PASSWORD_RESET_REDIRECT
    result = await provider.reset_password_for_email(str(body.email).lower(), redirect_to)
    if isinstance(result, Err):
        logger.warning(
            "Recovery email request failed upstream",
            extra={"kind": result.error.kind.value, "status": result.error.status},
        )
    return success("AUTH.RECOVERY_EMAIL_SENT")


@router.post("/password/reset", dependencies=JSON_BODY)
async def reset_password(
    body: ResetPasswordRequest,
    provider: Annotated[SupabaseAuthProvider, Depends(get_auth_provider)],
    patterns: Annotated[PatternService, Depends(get_pattern_service)],
) -> JSONResponse:
    """Set a new password using the access token from the recovery link; optionally a new pattern."""
    updated = await provider.update_user(body.access_token, body.password)
    if isinstance(updated, Err):
        if updated.error.kind == ProviderErrorKind.TIMEOUT:
            raise ApiError(ErrorCode.UPSTREAM_TIMEOUT)
        raise ApiError(ErrorCode.RESET_FAILED, updated.error.message)
    account = updated.value
    if body.pattern and account.email:
        stored = await run_in_threadpool(
            patterns.set_pattern, account.id, account.email, body.pattern
        )
        if isinstance(stored, Err):
            logger.warning("Pattern not stored on reset", extra={"account_id": account.id})
    return success("AUTH.RESET_OK", AccountIdPayload(account_id=account.id))


@router.get("/refresh")
async def refresh(
    request: Request,
    issuer: Annotated[SessionIssuer, Depends(get_session_issuer)],
    store: Annotated[ProfileStore, Depends(get_profile_store)],
) -> JSONResponse:
    """
    Rehydrate a session from the HttpOnly refresh cookie and rotate the cookie.

    Fails closed: any exchange error clears the cookie.
    """
    token = issuer.cookie.read(request)
    if token is None:
        raise ApiError(ErrorCode.NO_REFRESH_COOKIE)
    refreshed = await issuer.refresh(token)
    if isinstance(refreshed, Err):
        response = _failure_response(refreshed.error)
        issuer.forget(response)
        return response
    profile = store.find_by_account_id(refreshed.value.account.id)
    profile_ref = profile.value if not isinstance(profile, Err) else None
    response = success("AUTH.REFRESH_OK", _session_payload(refreshed.value, profile_ref))
    issuer.rotate(response, refreshed.value)
    return response


@router.api_route("/logout", methods=["POST", "DELETE"])
async def logout(
    token: Annotated[str | None, Depends(get_bearer_token)],
    issuer: Annotated[SessionIssuer, Depends(get_session_issuer)],
) -> JSONResponse:
    """Idempotent: always clears the refresh cookie and reports success."""
    await issuer.logout(token)
    response = success("AUTH.LOGOUT_OK")
    issuer.forget(response)
    return response


@router.get("/me")
async def me(
    account: Annotated[Account, Depends(get_current_account)],
    store: Annotated[ProfileStore, Depends(get_profile_store)],
) -> JSONResponse:
    """Current account plus profile fields (profile lookup is best-effort)."""
    profile = store.find_by_account_id(account.id)
    ref = profile.value if not isinstance(profile, Err) else None
    username = ref.username if ref else account.metadata.get("username")
    return success(
        "AUTH.ME_OK",
        CurrentUser(
            account_id=account.id,
            profile_id=ref.id if ref else None,
            email=account.email,
            username=username if isinstance(username, str) else None,
            given_names=ref.given_names if ref else None,
            surnames=ref.surnames if ref else None,
        ),
    )
