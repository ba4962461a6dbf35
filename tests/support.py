"""Shared fakes and builders for unit tests: in-memory profile store, provider objects, SQLite sessions."""

import itertools
import threading
from typing import Any
from unittest.mock import AsyncMock

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.result import Err, Ok, Result
from app.models import Base, Role
from app.services.auth_provider import Account, ProviderSession, SignIn, SupabaseAuthProvider
from app.services.profile_store import PatternRecord, ProfileRef, StoreError, StoreErrorKind


def account(
    account_id: str = "7d1c2a9e-0000-4000-8000-000000000001",
    email: str | None = "ana@acme.io",
    metadata: dict[str, Any] | None = None,
) -> Account:
    return Account(id=account_id, email=email, metadata=metadata or {})


def sign_in(
    acct: Account | None = None,
    access_token: str = "access-1",
    refresh_token: str | None = "refresh-1",
) -> SignIn:
    return SignIn(
        account=acct or account(),
        session=ProviderSession(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=3600,
            token_type="bearer",
        ),
    )


def mock_provider() -> AsyncMock:
    """Every provider coroutine is an AsyncMock; tests set return values per case."""
    return AsyncMock(spec=SupabaseAuthProvider)


def sqlite_session() -> Session:
    """In-memory SQLite with the full schema and the two seeded roles."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    session.add_all([Role(key="Empleado"), Role(key="Administrador")])
    session.commit()
    return session


class FakeProfileStore:
    """
    Thread-safe in-memory stand-in for ProfileStore.

    Unique columns (account_id, username, phone) are enforced under one
    lock, the way a database constraint would arbitrate concurrent inserts.
    """

    def __init__(self, roles: tuple[str, ...] = ("Empleado", "Administrador")) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self.profiles: dict[int, ProfileRef] = {}
        self.active: dict[int, bool] = {}
        self.roles = {key: i for i, key in enumerate(roles, start=1)}
        self.profile_roles: set[tuple[int, int]] = set()
        self.patterns: dict[str, PatternRecord] = {}
        self.fail_reads = False
        self.fail_writes = False
        self.username_checks: list[str] = []

    def _read_error(self) -> Err[StoreError]:
        return Err(StoreError(StoreErrorKind.FAILED, "connection refused"))

    def add(
        self,
        account_id: str,
        username: str,
        email: str | None,
        phone: str | None = None,
        active: bool = True,
    ) -> ProfileRef:
        """Seed a profile directly; bypasses fail_writes."""
        failing, self.fail_writes = self.fail_writes, False
        inserted = self.insert_profile(account_id, username, email, phone)
        self.fail_writes = failing
        assert isinstance(inserted, Ok)
        self.active[inserted.value.id] = active
        return inserted.value

    def find_by_account_id(self, account_id: str) -> Result[ProfileRef | None, StoreError]:
        if self.fail_reads:
            return self._read_error()
        with self._lock:
            return Ok(next((p for p in self.profiles.values() if p.account_id == account_id), None))

    def find_by_email(self, email: str) -> Result[ProfileRef | None, StoreError]:
        if self.fail_reads:
            return self._read_error()
        with self._lock:
            return Ok(next((p for p in self.profiles.values() if p.email == email.lower()), None))

    def find_email_by_username(self, username: str) -> Result[str | None, StoreError]:
        if self.fail_reads:
            return self._read_error()
        with self._lock:
            for p in self.profiles.values():
                if p.username == username and self.active.get(p.id, True):
                    return Ok(p.email)
        return Ok(None)

    def find_email_by_phone(self, phone: str) -> Result[str | None, StoreError]:
        if self.fail_reads:
            return self._read_error()
        with self._lock:
            for p in self.profiles.values():
                if p.phone == phone and self.active.get(p.id, True):
                    return Ok(p.email)
        return Ok(None)

    def username_exists(self, username: str) -> Result[bool, StoreError]:
        if self.fail_reads:
            return self._read_error()
        self.username_checks.append(username)
        with self._lock:
            return Ok(any(p.username == username for p in self.profiles.values()))

    def _conflict(self, candidate: ProfileRef, ignore_id: int | None = None) -> str | None:
        for p in self.profiles.values():
            if p.id == ignore_id:
                continue
            if p.account_id == candidate.account_id:
                return "account_id"
            if p.username == candidate.username:
                return "username"
            if candidate.phone and p.phone == candidate.phone:
                return "phone"
        return None

    def insert_profile(
        self,
        account_id: str,
        username: str,
        email: str | None,
        phone: str | None = None,
        given_names: str | None = None,
        surnames: str | None = None,
    ) -> Result[ProfileRef, StoreError]:
        if self.fail_writes:
            return Err(StoreError(StoreErrorKind.FAILED, "insert failed"))
        with self._lock:
            ref = ProfileRef(
                id=next(self._ids),
                account_id=account_id,
                username=username,
                email=email.lower() if email else None,
                phone=phone,
                given_names=given_names,
                surnames=surnames,
            )
            field = self._conflict(ref)
            if field is not None:
                return Err(StoreError(StoreErrorKind.UNIQUE_VIOLATION, f"duplicate {field}", field))
            self.profiles[ref.id] = ref
            return Ok(ref)

    def update_profile(
        self,
        profile_id: int,
        username: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        given_names: str | None = None,
        surnames: str | None = None,
    ) -> Result[ProfileRef, StoreError]:
        with self._lock:
            current = self.profiles.get(profile_id)
            if current is None:
                return Err(StoreError(StoreErrorKind.FAILED, f"Profile {profile_id} not found."))
            updated = ProfileRef(
                id=current.id,
                account_id=current.account_id,
                username=username if username is not None else current.username,
                email=email.lower() if email is not None else current.email,
                phone=phone if phone is not None else current.phone,
                given_names=given_names if given_names is not None else current.given_names,
                surnames=surnames if surnames is not None else current.surnames,
            )
            field = self._conflict(updated, ignore_id=profile_id)
            if field is not None:
                return Err(StoreError(StoreErrorKind.UNIQUE_VIOLATION, f"duplicate {field}", field))
            self.profiles[profile_id] = updated
            return Ok(updated)

    def find_role_id(self, key: str) -> Result[int | None, StoreError]:
        return Ok(self.roles.get(key))

    def assign_role(self, profile_id: int, role_id: int) -> Result[None, StoreError]:
        with self._lock:
            self.profile_roles.add((profile_id, role_id))
        return Ok(None)

    def find_pattern_by_email(self, email: str) -> Result[PatternRecord | None, StoreError]:
        if self.fail_reads:
            return self._read_error()
        return Ok(next((p for p in self.patterns.values() if p.email == email.lower()), None))

    def upsert_pattern(
        self, account_id: str, email: str, salt: str, hash_hex: str, rounds: int
    ) -> Result[None, StoreError]:
        if self.fail_writes:
            return Err(StoreError(StoreErrorKind.FAILED, "upsert failed"))
        self.patterns[account_id] = PatternRecord(
            account_id=account_id, email=email.lower(), salt=salt, hash=hash_hex, rounds=rounds
        )
        return Ok(None)
