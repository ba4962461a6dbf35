"""Pattern hashing/verification and local inspection of provider-issued access tokens."""

import hmac
import secrets
from typing import Any

import bcrypt
import jwt

# bcrypt-pbkdf rounds; linear cost. Below 50 bcrypt warns that the hash is weak.
PATTERN_KDF_ROUNDS = 50
PATTERN_HASH_BYTES = 64
PATTERN_SALT_BYTES = 16

# Min/max lengths for request validation.
USERNAME_MIN_LEN = 3
USERNAME_MAX_LEN = 32
USERNAME_PATTERN = r"^[a-z0-9._-]+$"
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128
PATTERN_MIN_LEN = 3
PATTERN_MAX_LEN = 64

# Provider access tokens carry this audience for signed-in users.
ACCESS_TOKEN_AUDIENCE = "authenticated"

_DUMMY_SALT = "00" * PATTERN_SALT_BYTES


def _derive(pattern: str, salt: bytes, rounds: int) -> bytes:
    return bcrypt.kdf(
        password=pattern.encode("utf-8"),
        salt=salt,
        desired_key_bytes=PATTERN_HASH_BYTES,
        rounds=rounds,
    )


def hash_pattern(pattern: str, rounds: int = PATTERN_KDF_ROUNDS) -> tuple[str, str]:
    """Return (salt_hex, hash_hex) for a new pattern. Store both plus the rounds used."""
    salt = secrets.token_bytes(PATTERN_SALT_BYTES)
    return salt.hex(), _derive(pattern, salt, rounds).hex()


def verify_pattern(
    pattern: str,
    salt_hex: str,
    expected_hash_hex: str,
    rounds: int = PATTERN_KDF_ROUNDS,
) -> bool:
    """
    Recompute the hash with the stored salt and compare in constant time.

    Malformed stored values (bad hex, wrong length) verify as False.
    """
    try:
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(expected_hash_hex)
    except (ValueError, TypeError):
        return False
    if not salt or not pattern:
        return False
    calc = _derive(pattern, salt, rounds)
    # compare_digest does not short-circuit on the first differing byte.
    return hmac.compare_digest(calc, expected)


def burn_pattern_check(pattern: str, rounds: int = PATTERN_KDF_ROUNDS) -> None:
    """Spend the same KDF time as a real check when no pattern is stored."""
    verify_pattern(pattern or "-", _DUMMY_SALT, "", rounds)


def decode_access_token(token: str, secret: str, algorithm: str = "HS256") -> dict[str, Any]:
    """
    Decode and validate a provider access token; return its payload (sub, email, exp, ...).
    Raises jwt.PyJWTError on invalid or expired token.
    """
    return jwt.decode(
        token,
        secret,
        algorithms=[algorithm],
        audience=ACCESS_TOKEN_AUDIENCE,
        options={"require": ["sub", "exp"]},
    )
