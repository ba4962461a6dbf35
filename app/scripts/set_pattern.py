"""
Store a login pattern for an existing profile. Run from project root:
  python -m app.scripts.set_pattern EMAIL PATTERN
Example:
  python -m app.scripts.set_pattern ana@acme.io 1-5-9-6
"""
import argparse
import logging
import sys

from app.core.database import SessionLocal
from app.core.result import Err
from app.core.security import PATTERN_MAX_LEN, PATTERN_MIN_LEN
from app.services.patterns import PatternService
from app.services.profile_store import ProfileStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Set the pattern used for pattern login.")
    parser.add_argument("email", help="Email of an existing profile")
    parser.add_argument("pattern", help=f"Pattern ({PATTERN_MIN_LEN}-{PATTERN_MAX_LEN} chars)")
    args = parser.parse_args(argv)

    email = args.email.strip().lower()
    if "@" not in email:
        print("Invalid email.", file=sys.stderr)
        return 1
    if len(args.pattern) < PATTERN_MIN_LEN or len(args.pattern) > PATTERN_MAX_LEN:
        print(f"Pattern must be {PATTERN_MIN_LEN}-{PATTERN_MAX_LEN} characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        store = ProfileStore(db)
        profile = store.find_by_email(email)
        if isinstance(profile, Err):
            print(f"Lookup failed: {profile.error.message}", file=sys.stderr)
            return 1
        if profile.value is None:
            print(f"No profile with email '{email}'.", file=sys.stderr)
            return 1
        stored = PatternService(store).set_pattern(profile.value.account_id, email, args.pattern)
        if isinstance(stored, Err):
            print(f"Could not store pattern: {stored.error.message}", file=sys.stderr)
            return 1
        print(f"Pattern set for '{email}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
