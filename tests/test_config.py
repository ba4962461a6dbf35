"""Unit tests for Settings validation."""

import unittest

from pydantic import ValidationError

from app.core.config import Settings


def _settings(**values: object) -> Settings:
    return Settings(_env_file=None, **values)


class TestSettingsDefaults(unittest.TestCase):
    def test_cookie_defaults(self) -> None:
        s = _settings()
        self.assertEqual(s.REFRESH_COOKIE_NAME, "sb-refresh")
        self.assertEqual(s.REFRESH_COOKIE_MAX_AGE_SEC, 2592000)
        self.assertEqual(s.DEFAULT_ROLE_KEY, "Empleado")

    def test_cors_origins_split_and_trimmed(self) -> None:
        s = _settings(CORS_ORIGINS=" https://app.acme.io , http://localhost:5173 ,")
        self.assertEqual(s.cors_origin_list, ["https://app.acme.io", "http://localhost:5173"])

    def test_blank_jwt_secret_becomes_none(self) -> None:
        self.assertIsNone(_settings(SUPABASE_JWT_SECRET="  ").SUPABASE_JWT_SECRET)

    def test_supabase_url_trailing_slash_stripped(self) -> None:
        self.assertEqual(
            _settings(SUPABASE_URL="https://xyz.supabase.co/").SUPABASE_URL,
            "https://xyz.supabase.co",
        )

    def test_country_code_plus_stripped(self) -> None:
        self.assertEqual(_settings(DEFAULT_PHONE_COUNTRY_CODE="+34").DEFAULT_PHONE_COUNTRY_CODE, "34")


class TestSettingsRejects(unittest.TestCase):
    def test_wildcard_origin_with_credentials(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(CORS_ORIGINS="*", CORS_CREDENTIALS=True)

    def test_wildcard_origin_without_credentials_is_allowed(self) -> None:
        self.assertEqual(_settings(CORS_ORIGINS="*", CORS_CREDENTIALS=False).cors_origin_list, ["*"])

    def test_non_postgres_database_url(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DATABASE_URL="mysql://root@localhost/app")

    def test_supabase_url_scheme(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(SUPABASE_URL="ftp://xyz.supabase.co")

    def test_statement_timeout_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(DB_STATEMENT_TIMEOUT_MS=50)
        with self.assertRaises(ValidationError):
            _settings(DB_STATEMENT_TIMEOUT_MS=120000)

    def test_auth_timeout_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(AUTH_REQUEST_TIMEOUT_SEC=0)
        with self.assertRaises(ValidationError):
            _settings(AUTH_REQUEST_TIMEOUT_SEC=61)

    def test_cookie_max_age_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(REFRESH_COOKIE_MAX_AGE_SEC=10)

    def test_samesite_choices(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(COOKIE_SAMESITE="strict")

    def test_probe_attempts_bounds(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(USERNAME_PROBE_ATTEMPTS=0)
        with self.assertRaises(ValidationError):
            _settings(USERNAME_PROBE_ATTEMPTS=10)

    def test_reset_redirect_scheme(self) -> None:
        with self.assertRaises(ValidationError):
            _settings(PASSWORD_RESET_REDIRECT="javascript:alert(1)")
