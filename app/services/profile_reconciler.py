"""Guarantee exactly one profile per authenticated account, race-safe under concurrent first logins."""

import logging
import re
import secrets
import unicodedata
from collections.abc import Iterator

from app.core.result import Err, Ok, Result
from app.core.security import USERNAME_MAX_LEN, USERNAME_MIN_LEN
from app.services.auth_provider import Account
from app.services.profile_store import ProfileRef, ProfileStore, StoreError, StoreErrorKind

logger = logging.getLogger(__name__)

FALLBACK_USERNAME = "user"
# Insert attempts when another account grabs the probed username between probe and insert.
MAX_INSERT_ATTEMPTS = 3
# Only these collisions can resolve on retry: the account row appeared, or the username was taken.
RETRYABLE_FIELDS = frozenset({"account_id", "username", None})

_DISALLOWED = re.compile(r"[^a-z0-9._-]")


def sanitize_username(raw: str) -> str:
    """Lowercase ASCII, only [a-z0-9._-], at most 32 chars; shorter than 3 becomes 'user'."""
    ascii_text = unicodedata.normalize("NFKD", raw or "").encode("ascii", "ignore").decode("ascii")
    cleaned = _DISALLOWED.sub("", ascii_text.lower())[:USERNAME_MAX_LEN]
    if len(cleaned) < USERNAME_MIN_LEN:
        return FALLBACK_USERNAME
    return cleaned


def username_base(account: Account) -> str:
    """Prefer metadata.username, then the email local part, then user-<first 8 of id>."""
    meta_username = account.metadata.get("username")
    if isinstance(meta_username, str) and meta_username.strip():
        source = meta_username
    elif account.email:
        source = account.email.split("@")[0]
    else:
        source = f"user-{account.id[:8]}"
    return sanitize_username(source)


def username_candidates(base: str, sequential_attempts: int) -> Iterator[str]:
    """base, base-01 .. base-NN, then one random suffix; every candidate fits in 32 chars."""
    yield base
    for n in range(1, sequential_attempts + 1):
        suffix = f"-{n:02d}"
        yield f"{base[: USERNAME_MAX_LEN - len(suffix)]}{suffix}"
    suffix = f"-{secrets.token_hex(2)}"
    yield f"{base[: USERNAME_MAX_LEN - len(suffix)]}{suffix}"


class ProfileReconciler:
    """
    Idempotent read-then-write-then-reconcile; holds no locks.

    The unique constraint on account_id is the arbiter when two first logins
    race: the loser re-reads the winner's row instead of failing.
    """

    def __init__(self, store: ProfileStore, default_role_key: str, probe_attempts: int = 6) -> None:
        self.store = store
        self.default_role_key = default_role_key
        self.probe_attempts = probe_attempts

    def _pick_username(self, base: str) -> Result[str, StoreError]:
        candidate = base
        for candidate in username_candidates(base, self.probe_attempts):
            taken = self.store.username_exists(candidate)
            if isinstance(taken, Err):
                return taken
            if not taken.value:
                return Ok(candidate)
        # The random-suffix candidate was taken too; the insert's constraint decides.
        return Ok(candidate)

    def ensure_profile(self, account: Account) -> Result[ProfileRef, StoreError]:
        existing = self.store.find_by_account_id(account.id)
        if isinstance(existing, Err) or existing.value is not None:
            return existing

        base = username_base(account)
        given_names = account.metadata.get("nombres") or account.metadata.get("given_names")
        surnames = account.metadata.get("apellidos") or account.metadata.get("surnames")
        last_error: StoreError | None = None
        for _ in range(MAX_INSERT_ATTEMPTS):
            picked = self._pick_username(base)
            if isinstance(picked, Err):
                return picked
            inserted = self.store.insert_profile(
                account_id=account.id,
                username=picked.value,
                email=account.email,
                given_names=given_names if isinstance(given_names, str) else None,
                surnames=surnames if isinstance(surnames, str) else None,
            )
            if isinstance(inserted, Ok):
                logger.info(
                    "Profile created",
                    extra={"account_id": account.id, "profile_id": inserted.value.id},
                )
                self._attach_default_role(inserted.value)
                return inserted
            last_error = inserted.error
            if last_error.kind != StoreErrorKind.UNIQUE_VIOLATION:
                return inserted
            if last_error.field not in RETRYABLE_FIELDS:
                logger.warning(
                    "Profile insert conflicts on a non-retryable column",
                    extra={"account_id": account.id, "field": last_error.field},
                )
                return inserted
            # A concurrent first login may have created the row for this account.
            reread = self.store.find_by_account_id(account.id)
            if isinstance(reread, Err):
                return reread
            if reread.value is not None:
                logger.info(
                    "Profile creation raced; using existing row",
                    extra={"account_id": account.id, "profile_id": reread.value.id},
                )
                return Ok(reread.value)
            logger.info(
                "Username taken concurrently; probing again",
                extra={"account_id": account.id, "field": last_error.field},
            )
        return Err(last_error or StoreError(StoreErrorKind.FAILED, "Profile insert failed."))

    def adopt(
        self,
        account: Account,
        username: str,
        given_names: str | None = None,
        surnames: str | None = None,
        phone: str | None = None,
    ) -> Result[ProfileRef, StoreError]:
        """
        Registration path: the user chose the username.

        Creates the profile, or updates the account's existing one (adoption).
        Uniqueness violations are returned as-is so callers can map them to conflicts.
        """
        existing = self.store.find_by_account_id(account.id)
        if isinstance(existing, Err):
            return existing
        if existing.value is not None:
            return self.store.update_profile(
                existing.value.id,
                username=username,
                email=account.email,
                phone=phone,
                given_names=given_names,
                surnames=surnames,
            )
        inserted = self.store.insert_profile(
            account_id=account.id,
            username=username,
            email=account.email,
            phone=phone,
            given_names=given_names,
            surnames=surnames,
        )
        if isinstance(inserted, Ok):
            self._attach_default_role(inserted.value)
        return inserted

    def _attach_default_role(self, profile: ProfileRef) -> None:
        """Non-fatal: a missing role degrades authorization elsewhere but must not block login."""
        role = self.store.find_role_id(self.default_role_key)
        if isinstance(role, Err) or role.value is None:
            logger.warning(
                "Default role not attached",
                extra={"profile_id": profile.id, "role_key": self.default_role_key},
            )
            return
        assigned = self.store.assign_role(profile.id, role.value)
        if isinstance(assigned, Err):
            logger.warning(
                "Default role not attached",
                extra={"profile_id": profile.id, "reason": assigned.error.message[:200]},
            )
