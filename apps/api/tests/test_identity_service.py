"""Identity service and token provider tests."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import time
import unittest

import jwt

from postboard.adapters.auth import AuthVerificationError, JwtTokenProvider, MockTokenProvider
from postboard.core.passwords import hash_password, verify_password
from postboard.errors import ApiError
from postboard.repositories.memory import InMemoryStore
from postboard.schemas.auth import Role
from postboard.schemas.error import ErrorKind
from postboard.services.identity import IdentityService

_SECRET = "identity-test-secret-with-enough-entropy"


class _IdentityCase(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemoryStore()
        self.tokens = JwtTokenProvider(secret=_SECRET, issuer="postboard-test", ttl_seconds=3600)
        self.service = IdentityService(self.store, self.tokens, password_hash_rounds=4)


class RegisterTests(_IdentityCase):
    def test_register_hashes_password_and_returns_public_view(self) -> None:
        session = self.service.register(name="Ann", email="Ann@Postboard.dev", password="secret1")

        self.assertEqual(session.user.email, "ann@postboard.dev")
        self.assertEqual(session.user.role, Role.AUTHOR)
        self.assertNotIn("password_hash", session.user.model_dump())

        stored = self.store.get_user(session.user.id)
        assert stored is not None
        self.assertNotEqual(stored.password_hash, "secret1")
        self.assertTrue(verify_password("secret1", stored.password_hash))

        claims = self.tokens.verify_token(session.token)
        self.assertEqual(claims.subject, session.user.id)
        self.assertEqual(claims.role, "author")

    def test_explicit_role_is_persisted(self) -> None:
        session = self.service.register(name="Root", email="root@postboard.dev", password="secret1", role=Role.ADMIN)
        self.assertEqual(session.user.role, Role.ADMIN)

    def test_default_role_follows_configuration(self) -> None:
        service = IdentityService(self.store, self.tokens, password_hash_rounds=4, default_role=Role.ADMIN)
        session = service.register(name="Boss", email="boss@postboard.dev", password="secret1")
        self.assertEqual(session.user.role, Role.ADMIN)

    def test_duplicate_email_is_conflict_case_insensitively(self) -> None:
        self.service.register(name="Ann", email="ann@postboard.dev", password="secret1")
        writes = self.store.user_write_count

        with self.assertRaises(ApiError) as context:
            self.service.register(name="Other", email="  ANN@postboard.DEV ", password="secret2")

        self.assertEqual(context.exception.kind, ErrorKind.CONFLICT)
        self.assertEqual(context.exception.payload.error, "Email already in use")
        self.assertEqual(self.store.user_write_count, writes)

    def test_parallel_registrations_keep_email_unique(self) -> None:
        def attempt(index: int) -> str:
            try:
                self.service.register(name=f"Racer {index}", email="race@postboard.dev", password="secret1")
            except ApiError as exc:
                return exc.kind.value
            return "created"

        with ThreadPoolExecutor(max_workers=8) as pool:
            outcomes = list(pool.map(attempt, range(8)))

        self.assertEqual(outcomes.count("created"), 1)
        self.assertEqual(outcomes.count(ErrorKind.CONFLICT.value), 7)
        self.assertEqual(self.store.user_write_count, 1)


class AuthenticateTests(_IdentityCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = self.service.register(name="Ann", email="ann@postboard.dev", password="secret1").user

    def test_correct_credentials_issue_token(self) -> None:
        session = self.service.authenticate(email="ANN@postboard.dev", password="secret1")
        self.assertEqual(session.user.id, self.user.id)
        self.assertEqual(self.tokens.verify_token(session.token).subject, self.user.id)

    def test_wrong_password_and_unknown_email_fail_identically(self) -> None:
        failures = []
        for email, password in (("ann@postboard.dev", "wrong-pass"), ("nobody@postboard.dev", "secret1")):
            with self.assertRaises(ApiError) as context:
                self.service.authenticate(email=email, password=password)
            failures.append(
                (context.exception.status_code, context.exception.payload.model_dump())
            )

        self.assertEqual(failures[0], failures[1])
        self.assertEqual(failures[0][1]["code"], ErrorKind.UNAUTHORIZED)
        self.assertEqual(failures[0][1]["error"], "Invalid credentials")


class ResolveCallerTests(_IdentityCase):
    def setUp(self) -> None:
        super().setUp()
        self.session = self.service.register(name="Ann", email="ann@postboard.dev", password="secret1")

    def test_valid_token_resolves_stored_identity(self) -> None:
        principal = self.service.resolve_caller(self.session.token)
        self.assertEqual(principal.user_id, self.session.user.id)
        self.assertEqual(principal.role, Role.AUTHOR)
        self.assertEqual(principal.email, "ann@postboard.dev")
        self.assertFalse(principal.is_guest)

    def test_missing_malformed_and_badly_signed_tokens_are_unauthorized(self) -> None:
        forged = jwt.encode(
            {"sub": self.session.user.id, "iss": "postboard-test", "iat": int(time.time()), "exp": int(time.time()) + 60},
            "some-other-secret-with-enough-entropy",
            algorithm="HS256",
        )
        for token in (None, "", "not-a-jwt", forged):
            with self.subTest(token=token):
                with self.assertRaises(ApiError) as context:
                    self.service.resolve_caller(token)
                self.assertEqual(context.exception.kind, ErrorKind.UNAUTHORIZED)

    def test_expired_token_is_unauthorized(self) -> None:
        now = int(time.time())
        expired = jwt.encode(
            {"sub": self.session.user.id, "iss": "postboard-test", "iat": now - 7200, "exp": now - 3600},
            _SECRET,
            algorithm="HS256",
        )
        with self.assertRaises(ApiError) as context:
            self.service.resolve_caller(expired)
        self.assertEqual(context.exception.kind, ErrorKind.UNAUTHORIZED)

    def test_token_for_removed_user_is_not_found(self) -> None:
        del self.store.users[self.session.user.id]
        with self.assertRaises(ApiError) as context:
            self.service.resolve_caller(self.session.token)
        self.assertEqual(context.exception.kind, ErrorKind.NOT_FOUND)

    def test_role_comes_from_store_not_token(self) -> None:
        self.store.users[self.session.user.id].role = Role.ADMIN
        principal = self.service.resolve_caller(self.session.token)
        self.assertEqual(principal.role, Role.ADMIN)


class TokenProviderTests(unittest.TestCase):
    def test_mock_provider_round_trips_and_rejects_other_formats(self) -> None:
        provider = MockTokenProvider()
        token = provider.issue_token(user_id="user-1", role="admin")
        claims = provider.verify_token(token)
        self.assertEqual((claims.subject, claims.role), ("user-1", "admin"))
        self.assertIsNone(provider.verify_token("test:user-2").role)

        for token in ("user-1", "prod:user-1", "test::admin", "test:a:b:c"):
            with self.subTest(token=token):
                with self.assertRaises(AuthVerificationError):
                    provider.verify_token(token)

    def test_jwt_provider_rejects_wrong_issuer(self) -> None:
        issuer_a = JwtTokenProvider(secret=_SECRET, issuer="a", ttl_seconds=60)
        issuer_b = JwtTokenProvider(secret=_SECRET, issuer="b", ttl_seconds=60)
        with self.assertRaises(AuthVerificationError):
            issuer_b.verify_token(issuer_a.issue_token(user_id="user-1", role="author"))


class PasswordHashingTests(unittest.TestCase):
    def test_hash_is_salted_and_verifiable(self) -> None:
        first = hash_password("correct horse", rounds=4)
        second = hash_password("correct horse", rounds=4)
        self.assertNotEqual(first, second)
        self.assertTrue(verify_password("correct horse", first))
        self.assertFalse(verify_password("wrong horse", first))

    def test_malformed_hash_never_verifies(self) -> None:
        self.assertFalse(verify_password("anything", "not-a-bcrypt-hash"))
