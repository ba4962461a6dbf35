"""Unit tests for identifier resolution (email, username, phone) and phone normalization."""

import unittest

from app.core.errors import ErrorCode
from app.core.result import Err, Ok
from app.services.credential_resolver import CredentialResolver, looks_like_phone, normalize_phone
from tests.support import FakeProfileStore


class TestNormalizePhone(unittest.TestCase):
    def test_nine_local_digits_get_country_code(self) -> None:
        self.assertEqual(normalize_phone("987 654 321", "51"), "+51987654321")

    def test_full_number_gets_plus(self) -> None:
        self.assertEqual(normalize_phone("51987654321", "51"), "+51987654321")

    def test_plus_prefixed_kept(self) -> None:
        self.assertEqual(normalize_phone("+34 (612) 345-678", "51"), "+34612345678")

    def test_empty(self) -> None:
        self.assertEqual(normalize_phone("  ", "51"), "")


class TestLooksLikePhone(unittest.TestCase):
    def test_phone_shapes(self) -> None:
        self.assertTrue(looks_like_phone("987654321"))
        self.assertTrue(looks_like_phone("+51 987-654-321"))

    def test_not_phone(self) -> None:
        self.assertFalse(looks_like_phone("ana.perez"))
        self.assertFalse(looks_like_phone("12345"))
        self.assertFalse(looks_like_phone("1234567890123456"))


class TestResolve(unittest.TestCase):
    def setUp(self) -> None:
        self.store = FakeProfileStore()
        self.store.add("acc-1", "ana", "ana@acme.io", phone="+51987654321")
        self.store.add("acc-2", "bob", "bob@acme.io", active=False)
        self.store.add("acc-3", "987654321", "digits@acme.io")
        self.resolver = CredentialResolver(self.store, "51")

    def test_email_returned_lowercased_without_lookup(self) -> None:
        self.store.fail_reads = True
        result = self.resolver.resolve("  Ana@ACME.io ")
        self.assertEqual(result, Ok("ana@acme.io"))

    def test_username_case_insensitive(self) -> None:
        self.assertEqual(self.resolver.resolve("ANA"), Ok("ana@acme.io"))

    def test_phone_normalized_before_lookup(self) -> None:
        self.assertEqual(self.resolver.resolve("987 654 321"), Ok("ana@acme.io"))

    def test_phone_shaped_username_falls_back(self) -> None:
        self.store.profiles = {
            pid: p for pid, p in self.store.profiles.items() if p.account_id != "acc-1"
        }
        self.assertEqual(self.resolver.resolve("987654321"), Ok("digits@acme.io"))

    def test_unknown_username_is_invalid_credentials(self) -> None:
        result = self.resolver.resolve("nobody")
        self.assertIsInstance(result, Err)
        self.assertEqual(result.error.code, ErrorCode.INVALID_CREDENTIALS)
        self.assertIsNone(result.error.detail)

    def test_inactive_profile_not_resolved(self) -> None:
        result = self.resolver.resolve("bob")
        self.assertIsInstance(result, Err)
        self.assertEqual(result.error.code, ErrorCode.INVALID_CREDENTIALS)

    def test_empty_identifier(self) -> None:
        result = self.resolver.resolve("   ")
        self.assertIsInstance(result, Err)
        self.assertEqual(result.error.code, ErrorCode.INVALID_CREDENTIALS)

    def test_store_failure_is_lookup_error_not_bad_credentials(self) -> None:
        self.store.fail_reads = True
        result = self.resolver.resolve("ana")
        self.assertIsInstance(result, Err)
        self.assertEqual(result.error.code, ErrorCode.SELECT_FAILED)
