"""Registration: create the provider account, then the user-named profile, role and optional pattern."""

import logging
from dataclasses import dataclass

from starlette.concurrency import run_in_threadpool

from app.core.errors import DUPLICATE_FIELD_CODES, AuthFailure, ErrorCode
from app.core.result import Err, Ok, Result
from app.services.auth_provider import (
    ProviderErrorKind,
    SignUp,
    SupabaseAuthProvider,
    is_already_registered,
)
from app.services.patterns import PatternService
from app.services.profile_reconciler import ProfileReconciler
from app.services.profile_store import ProfileRef, ProfileStore, StoreErrorKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registered:
    sign_up: SignUp
    profile: ProfileRef

    @property
    def requires_confirmation(self) -> bool:
        return self.sign_up.session is None


@dataclass(frozen=True)
class NewUser:
    username: str
    email: str
    password: str
    given_names: str | None = None
    surnames: str | None = None
    phone: str | None = None
    pattern: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.given_names or ''} {self.surnames or ''}".strip()


class RegistrationService:
    def __init__(
        self,
        provider: SupabaseAuthProvider,
        store: ProfileStore,
        reconciler: ProfileReconciler,
        patterns: PatternService,
    ) -> None:
        self.provider = provider
        self.store = store
        self.reconciler = reconciler
        self.patterns = patterns

    async def register(self, user: NewUser) -> Result[Registered, AuthFailure]:
        # Checked before sign-up so a taken username never leaves an orphan account behind.
        taken = self.store.username_exists(user.username)
        if isinstance(taken, Err):
            return Err(AuthFailure(ErrorCode.SELECT_FAILED, taken.error.message))
        if taken.value:
            return Err(AuthFailure(ErrorCode.DUPLICATE_USERNAME))

        metadata = {
            "username": user.username,
            "full_name": user.full_name,
            "nombres": user.given_names,
            "apellidos": user.surnames,
        }
        if user.phone:
            metadata["phone"] = user.phone
        signed_up = await self.provider.sign_up(user.email, user.password, metadata)
        if isinstance(signed_up, Err):
            error = signed_up.error
            logger.info("Sign-up rejected", extra={"kind": error.kind.value, "status": error.status})
            if error.kind == ProviderErrorKind.TIMEOUT:
                return Err(AuthFailure(ErrorCode.UPSTREAM_TIMEOUT))
            if error.kind == ProviderErrorKind.UNAVAILABLE:
                return Err(AuthFailure(ErrorCode.UPSTREAM_UNAVAILABLE, error.message))
            if is_already_registered(error):
                return Err(AuthFailure(ErrorCode.EMAIL_IN_USE))
            return Err(AuthFailure(ErrorCode.SIGNUP_FAILED, error.message))

        account = signed_up.value.account
        adopted = self.reconciler.adopt(
            account,
            username=user.username,
            given_names=user.given_names,
            surnames=user.surnames,
            phone=user.phone,
        )
        if isinstance(adopted, Err):
            error = adopted.error
            logger.warning(
                "Profile write failed after sign-up",
                extra={"account_id": account.id, "field": error.field, "kind": error.kind.value},
            )
            if error.kind == StoreErrorKind.UNIQUE_VIOLATION:
                code = DUPLICATE_FIELD_CODES.get(error.field, ErrorCode.DUPLICATE)
                return Err(AuthFailure(code, error.message))
            return Err(AuthFailure(ErrorCode.INSERT_FAILED, error.message))

        if user.pattern and account.email:
            stored = await run_in_threadpool(
                self.patterns.set_pattern, account.id, account.email, user.pattern
            )
            if isinstance(stored, Err):
                logger.warning("Pattern not stored at sign-up", extra={"account_id": account.id})

        logger.info(
            "User registered",
            extra={"account_id": account.id, "profile_id": adopted.value.id},
        )
        return Ok(Registered(sign_up=signed_up.value, profile=adopted.value))
