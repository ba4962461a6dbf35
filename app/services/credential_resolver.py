"""Map a login identifier (email, username or phone) to the account's canonical email."""

import logging
import re

from app.core.errors import AuthFailure, ErrorCode
from app.core.result import Err, Ok, Result
from app.services.profile_store import ProfileStore, StoreError

logger = logging.getLogger(__name__)

_PHONE_CHARS = re.compile(r"^\+?[\d\s\-().]+$")
_NON_PHONE_DIGITS = re.compile(r"[^\d+]")


def normalize_phone(raw: str, country_code: str = "51") -> str:
    """
    Normalize a phone to +<digits>.

    9 local digits get the default country code; a number already starting
    with the country code just gets the '+'.
    """
    digits = _NON_PHONE_DIGITS.sub("", (raw or "").strip())
    if not digits:
        return ""
    if re.fullmatch(r"\d{9}", digits):
        return f"+{country_code}{digits}"
    if not digits.startswith("+"):
        return f"+{digits}"
    return digits


def looks_like_phone(identifier: str) -> bool:
    if not _PHONE_CHARS.match(identifier):
        return False
    digit_count = sum(ch.isdigit() for ch in identifier)
    return 7 <= digit_count <= 15


class CredentialResolver:
    """
    Read-only lookup; never distinguishes "unknown user" from "wrong password".

    A store failure is LOOKUP-class (500), not an invalid-credentials 401.
    """

    def __init__(self, store: ProfileStore, country_code: str = "51") -> None:
        self.store = store
        self.country_code = country_code

    def resolve(self, identifier: str) -> Result[str, AuthFailure]:
        value = (identifier or "").strip()
        if "@" in value:
            return Ok(value.lower())
        if not value:
            return Err(AuthFailure(ErrorCode.INVALID_CREDENTIALS))

        if looks_like_phone(value):
            found = self.store.find_email_by_phone(normalize_phone(value, self.country_code))
            if isinstance(found, Err):
                return self._lookup_failed(found.error)
            if found.value:
                return Ok(found.value.lower())

        found = self.store.find_email_by_username(value.lower())
        if isinstance(found, Err):
            return self._lookup_failed(found.error)
        if not found.value:
            return Err(AuthFailure(ErrorCode.INVALID_CREDENTIALS))
        return Ok(found.value.lower())

    @staticmethod
    def _lookup_failed(error: StoreError) -> Err[AuthFailure]:
        logger.error("Identifier lookup failed", extra={"reason": error.message[:200]})
        return Err(AuthFailure(ErrorCode.SELECT_FAILED, error.message))
