"""Unit tests for the provider client: request shapes and error classification (httpx.MockTransport)."""

import asyncio
import json
import unittest
from collections.abc import Callable
from typing import Any

import httpx

from app.core.result import Err, Ok
from app.services.auth_provider import (
    ProviderError,
    ProviderErrorKind,
    SignInToken,
    SupabaseAuthProvider,
    is_already_registered,
    is_email_not_confirmed,
)

USER = {"id": "acc-1", "email": "Ana@Acme.io", "phone": "", "user_metadata": {"username": "ana"}}
SESSION = {
    "access_token": "access-1",
    "refresh_token": "refresh-1",
    "expires_in": 3600,
    "token_type": "bearer",
    "user": USER,
}


def _run(handler: Callable[[httpx.Request], httpx.Response], call: Callable[[SupabaseAuthProvider], Any]) -> Any:
    async def go() -> Any:
        provider = SupabaseAuthProvider(
            base_url="https://xyz.supabase.co/",
            anon_key="anon-key",
            service_role_key="service-key",
            timeout=5,
            transport=httpx.MockTransport(handler),
        )
        try:
            return await call(provider)
        finally:
            await provider.aclose()

    return asyncio.run(go())


class TestSignInWithPassword(unittest.TestCase):
    def test_request_shape_and_parsed_session(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=SESSION)

        result = _run(handler, lambda p: p.sign_in_with_password("ana@acme.io", "secret1"))
        self.assertIsInstance(result, Ok)
        self.assertEqual(result.value.account.id, "acc-1")
        self.assertEqual(result.value.account.email, "ana@acme.io")
        self.assertIsNone(result.value.account.phone)
        self.assertEqual(result.value.session.refresh_token, "refresh-1")
        request = seen[0]
        self.assertEqual(request.url.path, "/auth/v1/token")
        self.assertEqual(request.url.params["grant_type"], "password")
        self.assertEqual(request.headers["apikey"], "anon-key")
        self.assertNotIn("authorization", request.headers)
        self.assertEqual(json.loads(request.content), {"email": "ana@acme.io", "password": "secret1"})

    def test_rejected_credentials(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "invalid_grant", "error_description": "Invalid login credentials"})

        result = _run(handler, lambda p: p.sign_in_with_password("ana@acme.io", "wrong1"))
        self.assertEqual(
            result, Err(ProviderError(ProviderErrorKind.REJECTED, "Invalid login credentials", 400))
        )

    def test_server_error_is_unavailable(self) -> None:
        result = _run(
            lambda r: httpx.Response(503, text="upstream down"),
            lambda p: p.sign_in_with_password("ana@acme.io", "secret1"),
        )
        self.assertEqual(result.error.kind, ProviderErrorKind.UNAVAILABLE)
        self.assertEqual(result.error.status, 503)

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = _run(handler, lambda p: p.sign_in_with_password("ana@acme.io", "secret1"))
        self.assertEqual(result.error.kind, ProviderErrorKind.TIMEOUT)

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        result = _run(handler, lambda p: p.sign_in_with_password("ana@acme.io", "secret1"))
        self.assertEqual(result.error.kind, ProviderErrorKind.UNAVAILABLE)

    def test_success_without_session_is_malformed(self) -> None:
        result = _run(
            lambda r: httpx.Response(200, json={"user": USER}),
            lambda p: p.sign_in_with_password("ana@acme.io", "secret1"),
        )
        self.assertEqual(result.error.kind, ProviderErrorKind.MALFORMED)

    def test_invalid_json_is_malformed(self) -> None:
        result = _run(
            lambda r: httpx.Response(200, text="<html>"),
            lambda p: p.sign_in_with_password("ana@acme.io", "secret1"),
        )
        self.assertEqual(result.error.kind, ProviderErrorKind.MALFORMED)


class TestRefreshAndUser(unittest.TestCase):
    def test_refresh_grant(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={**SESSION, "refresh_token": "refresh-2"})

        result = _run(handler, lambda p: p.refresh_session("refresh-1"))
        self.assertEqual(result.value.session.refresh_token, "refresh-2")
        self.assertEqual(seen[0].url.params["grant_type"], "refresh_token")
        self.assertEqual(json.loads(seen[0].content), {"refresh_token": "refresh-1"})

    def test_get_user_sends_bearer(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=USER)

        result = _run(handler, lambda p: p.get_user("access-1"))
        self.assertEqual(result.value.metadata, {"username": "ana"})
        self.assertEqual(seen[0].method, "GET")
        self.assertEqual(seen[0].headers["authorization"], "Bearer access-1")

    def test_update_user_puts_password(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=USER)

        result = _run(handler, lambda p: p.update_user("recovery-token", "newpass1"))
        self.assertEqual(result.value.id, "acc-1")
        self.assertEqual(seen[0].method, "PUT")
        self.assertEqual(seen[0].headers["authorization"], "Bearer recovery-token")
        self.assertEqual(json.loads(seen[0].content), {"password": "newpass1"})

    def test_sign_out_no_content(self) -> None:
        result = _run(lambda r: httpx.Response(204), lambda p: p.sign_out("access-1"))
        self.assertEqual(result, Ok(None))


class TestSignUp(unittest.TestCase):
    def test_confirmation_required_returns_user_only(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=USER)

        result = _run(handler, lambda p: p.sign_up("ana@acme.io", "secret1", {"username": "ana"}))
        self.assertEqual(result.value.account.id, "acc-1")
        self.assertIsNone(result.value.session)
        self.assertEqual(json.loads(seen[0].content)["data"], {"username": "ana"})

    def test_autoconfirm_returns_session(self) -> None:
        result = _run(
            lambda r: httpx.Response(200, json=SESSION),
            lambda p: p.sign_up("ana@acme.io", "secret1", {}),
        )
        self.assertEqual(result.value.session.access_token, "access-1")
        self.assertEqual(result.value.account.id, "acc-1")

    def test_already_registered(self) -> None:
        result = _run(
            lambda r: httpx.Response(422, json={"code": 422, "msg": "User already registered"}),
            lambda p: p.sign_up("ana@acme.io", "secret1", {}),
        )
        self.assertTrue(is_already_registered(result.error))


class TestRecover(unittest.TestCase):
    def test_redirect_passed_as_query(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={})

        result = _run(
            handler, lambda p: p.reset_password_for_email("ana@acme.io", "https://app.acme.io/reset")
        )
        self.assertEqual(result, Ok(None))
        self.assertEqual(seen[0].url.path, "/auth/v1/recover")
        self.assertEqual(seen[0].url.params["redirect_to"], "https://app.acme.io/reset")


class TestSignInToken(unittest.TestCase):
    def test_generate_uses_service_role(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={**USER, "properties": {"hashed_token": "hash-1", "verification_type": "magiclink"}},
            )

        result = _run(handler, lambda p: p.generate_sign_in_token("ana@acme.io"))
        self.assertEqual(result, Ok(SignInToken(token_hash="hash-1", verification_type="magiclink")))
        self.assertEqual(seen[0].url.path, "/auth/v1/admin/generate_link")
        self.assertEqual(seen[0].headers["apikey"], "service-key")
        self.assertEqual(seen[0].headers["authorization"], "Bearer service-key")
        self.assertEqual(json.loads(seen[0].content), {"type": "magiclink", "email": "ana@acme.io"})

    def test_generate_accepts_top_level_token(self) -> None:
        result = _run(
            lambda r: httpx.Response(200, json={"hashed_token": "hash-2"}),
            lambda p: p.generate_sign_in_token("ana@acme.io"),
        )
        self.assertEqual(result.value.token_hash, "hash-2")

    def test_generate_without_token_is_malformed(self) -> None:
        result = _run(
            lambda r: httpx.Response(200, json=USER),
            lambda p: p.generate_sign_in_token("ana@acme.io"),
        )
        self.assertEqual(result.error.kind, ProviderErrorKind.MALFORMED)

    def test_verify_redeems_token_for_session(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=SESSION)

        token = SignInToken(token_hash="hash-1", verification_type="magiclink")
        result = _run(handler, lambda p: p.verify_sign_in_token(token))
        self.assertEqual(result.value.session.access_token, "access-1")
        self.assertEqual(json.loads(seen[0].content), {"type": "magiclink", "token_hash": "hash-1"})


class TestErrorHelpers(unittest.TestCase):
    def test_email_not_confirmed(self) -> None:
        error = ProviderError(ProviderErrorKind.REJECTED, "Email not confirmed", 400)
        self.assertTrue(is_email_not_confirmed(error))
        self.assertFalse(is_already_registered(error))
