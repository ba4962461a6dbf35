"""Profile store: exact-match reads and uniqueness-checked writes on profiles, roles and patterns."""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.result import Err, Ok, Result
from app.models import AuthPattern, Profile, ProfileRole, Role

logger = logging.getLogger(__name__)

# Columns carrying a unique index on profiles; email is a denormalized, non-unique copy.
UNIQUE_FIELDS = ("account_id", "username", "phone")

_CONSTRAINT_FIELD = re.compile(r"^(?:ix|uq)_profiles_(\w+)$")
_DETAIL_KEY = re.compile(r"Key \((\w+)\)=")
_SQLITE_COLUMN = re.compile(r"UNIQUE constraint failed: profiles\.(\w+)")


class StoreErrorKind(str, Enum):
    UNIQUE_VIOLATION = "unique_violation"
    FAILED = "failed"


@dataclass(frozen=True)
class StoreError:
    kind: StoreErrorKind
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ProfileRef:
    id: int
    account_id: str
    username: str
    email: str | None
    phone: str | None = None
    given_names: str | None = None
    surnames: str | None = None

    @property
    def display_name(self) -> str:
        full = f"{self.given_names or ''} {self.surnames or ''}".strip()
        if full:
            return full
        if self.username:
            return self.username
        if self.email:
            return self.email.split("@")[0]
        return "Usuario"


@dataclass(frozen=True)
class PatternRecord:
    account_id: str
    email: str
    salt: str
    hash: str
    rounds: int


def _to_ref(row: Profile) -> ProfileRef:
    return ProfileRef(
        id=row.id,
        account_id=row.account_id,
        username=row.username,
        email=row.email,
        phone=row.phone,
        given_names=row.given_names,
        surnames=row.surnames,
    )


def _is_unique_violation(exc: IntegrityError) -> bool:
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode == "23505":
        return True
    text = str(exc.orig).lower()
    return "unique" in text or "duplicate key" in text


def _violated_field(exc: IntegrityError) -> str | None:
    """
    Column behind a unique violation, or None.

    Decided from the constraint name first, then the `Key (col)=` part of the
    detail, then SQLite's `table.column` message. Never from the offending value.
    """
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None) if diag is not None else None
    detail = getattr(diag, "message_detail", None) if diag is not None else None
    message = str(exc.orig)

    candidates = []
    if constraint:
        match = _CONSTRAINT_FIELD.match(constraint)
        candidates.append(match.group(1) if match else None)
    for text in (detail, message):
        if text:
            match = _DETAIL_KEY.search(text)
            candidates.append(match.group(1) if match else None)
    match = _SQLITE_COLUMN.search(message)
    candidates.append(match.group(1) if match else None)

    for name in candidates:
        if name in UNIQUE_FIELDS:
            return name
    return None


class ProfileStore:
    """
    Thin repository over a SQLAlchemy session.

    Reads return Ok(None) for "not found"; only infrastructure problems are Err.
    Writes commit on success and roll back before returning Err.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _write_failed(self, exc: SQLAlchemyError, action: str) -> Err[StoreError]:
        self.db.rollback()
        if isinstance(exc, IntegrityError) and _is_unique_violation(exc):
            return Err(
                StoreError(StoreErrorKind.UNIQUE_VIOLATION, str(exc.orig)[:500], _violated_field(exc))
            )
        logger.error("Profile store write failed", extra={"action": action, "reason": str(exc)[:200]})
        return Err(StoreError(StoreErrorKind.FAILED, str(exc)[:500]))

    def _read_failed(self, exc: SQLAlchemyError, action: str) -> Err[StoreError]:
        self.db.rollback()
        logger.error("Profile store read failed", extra={"action": action, "reason": str(exc)[:200]})
        return Err(StoreError(StoreErrorKind.FAILED, str(exc)[:500]))

    def find_by_account_id(self, account_id: str) -> Result[ProfileRef | None, StoreError]:
        try:
            row = self.db.query(Profile).filter(Profile.account_id == account_id).first()
        except SQLAlchemyError as e:
            return self._read_failed(e, "find_by_account_id")
        return Ok(_to_ref(row) if row is not None else None)

    def find_by_email(self, email: str) -> Result[ProfileRef | None, StoreError]:
        try:
            # Email is not unique; a recreated account shadows the older profile.
            row = (
                self.db.query(Profile)
                .filter(Profile.email == email.lower())
                .order_by(Profile.active.desc(), Profile.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            return self._read_failed(e, "find_by_email")
        return Ok(_to_ref(row) if row is not None else None)

    def find_email_by_username(self, username: str) -> Result[str | None, StoreError]:
        try:
            row = (
                self.db.query(Profile.email)
                .filter(Profile.username == username, Profile.active.is_(True))
                .first()
            )
        except SQLAlchemyError as e:
            return self._read_failed(e, "find_email_by_username")
        return Ok(row.email if row is not None and row.email else None)

    def find_email_by_phone(self, phone: str) -> Result[str | None, StoreError]:
        try:
            row = (
                self.db.query(Profile.email)
                .filter(Profile.phone == phone, Profile.active.is_(True))
                .first()
            )
        except SQLAlchemyError as e:
            return self._read_failed(e, "find_email_by_phone")
        return Ok(row.email if row is not None and row.email else None)

    def username_exists(self, username: str) -> Result[bool, StoreError]:
        try:
            row = self.db.query(Profile.id).filter(Profile.username == username).first()
        except SQLAlchemyError as e:
            return self._read_failed(e, "username_exists")
        return Ok(row is not None)

    def insert_profile(
        self,
        account_id: str,
        username: str,
        email: str | None,
        phone: str | None = None,
        given_names: str | None = None,
        surnames: str | None = None,
    ) -> Result[ProfileRef, StoreError]:
        row = Profile(
            account_id=account_id,
            username=username,
            email=email.lower() if email else None,
            phone=phone,
            given_names=given_names,
            surnames=surnames,
            active=True,
        )
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            return self._write_failed(e, "insert_profile")
        return Ok(_to_ref(row))

    def update_profile(
        self,
        profile_id: int,
        username: str | None = None,
        email: str | None = None,
        phone: str | None = None,
        given_names: str | None = None,
        surnames: str | None = None,
    ) -> Result[ProfileRef, StoreError]:
        """Set the given non-None fields on an existing profile."""
        try:
            row = self.db.get(Profile, profile_id)
            if row is None:
                return Err(StoreError(StoreErrorKind.FAILED, f"Profile {profile_id} not found."))
            if username is not None:
                row.username = username
            if email is not None:
                row.email = email.lower()
            if phone is not None:
                row.phone = phone
            if given_names is not None:
                row.given_names = given_names
            if surnames is not None:
                row.surnames = surnames
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            return self._write_failed(e, "update_profile")
        return Ok(_to_ref(row))

    def find_role_id(self, key: str) -> Result[int | None, StoreError]:
        try:
            row = self.db.query(Role.id).filter(Role.key == key).first()
        except SQLAlchemyError as e:
            return self._read_failed(e, "find_role_id")
        return Ok(row.id if row is not None else None)

    def assign_role(self, profile_id: int, role_id: int) -> Result[None, StoreError]:
        try:
            self.db.add(ProfileRole(profile_id=profile_id, role_id=role_id))
            self.db.commit()
        except SQLAlchemyError as e:
            return self._write_failed(e, "assign_role")
        return Ok(None)

    def find_pattern_by_email(self, email: str) -> Result[PatternRecord | None, StoreError]:
        try:
            row = (
                self.db.query(AuthPattern)
                .filter(AuthPattern.email == email.lower())
                .order_by(AuthPattern.updated_at.desc())
                .first()
            )
        except SQLAlchemyError as e:
            return self._read_failed(e, "find_pattern_by_email")
        if row is None:
            return Ok(None)
        return Ok(
            PatternRecord(
                account_id=row.account_id,
                email=row.email,
                salt=row.salt,
                hash=row.hash,
                rounds=row.rounds,
            )
        )

    def upsert_pattern(
        self, account_id: str, email: str, salt: str, hash_hex: str, rounds: int
    ) -> Result[None, StoreError]:
        try:
            row = self.db.get(AuthPattern, account_id)
            if row is None:
                row = AuthPattern(account_id=account_id)
                self.db.add(row)
            row.email = email.lower()
            row.salt = salt
            row.hash = hash_hex
            row.rounds = rounds
            self.db.commit()
        except SQLAlchemyError as e:
            return self._write_failed(e, "upsert_pattern")
        return Ok(None)
