"""Secondary login factor: store and verify salted pattern hashes."""

import logging

from app.core.result import Err, Ok, Result
from app.core.security import PATTERN_KDF_ROUNDS, burn_pattern_check, hash_pattern, verify_pattern
from app.services.profile_store import ProfileStore, StoreError

logger = logging.getLogger(__name__)


class PatternService:
    def __init__(self, store: ProfileStore, rounds: int = PATTERN_KDF_ROUNDS) -> None:
        self.store = store
        self.rounds = rounds

    def set_pattern(self, account_id: str, email: str, pattern: str) -> Result[None, StoreError]:
        salt, hash_hex = hash_pattern(pattern, self.rounds)
        result = self.store.upsert_pattern(account_id, email, salt, hash_hex, self.rounds)
        if isinstance(result, Ok):
            logger.info("Pattern stored", extra={"account_id": account_id})
        return result

    def verify(self, email: str, pattern: str) -> Result[bool, StoreError]:
        """
        True only for a stored pattern that matches.

        An unknown email still runs one KDF derivation so it costs the same as a mismatch.
        """
        record = self.store.find_pattern_by_email(email)
        if isinstance(record, Err):
            return record
        if record.value is None:
            burn_pattern_check(pattern, self.rounds)
            return Ok(False)
        stored = record.value
        return Ok(verify_pattern(pattern, stored.salt, stored.hash, stored.rounds))

    def burn(self, pattern: str) -> None:
        """One throwaway derivation for identifiers that did not resolve."""
        burn_pattern_check(pattern, self.rounds)
