"""Unit tests for accounts.core.security: bcrypt hashing and JWT issue/verify."""

import os
import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import jwt
from pydantic import ValidationError

from accounts.core.config import Settings
from accounts.core.security import (
    ConfigurationError,
    InvalidTokenError,
    PasswordHasher,
    TokenIssuer,
)

SECRET = "unit-test-secret"


def _claims(**overrides: str) -> dict[str, str]:
    """Build a full claim set for tests."""
    claims = {
        "role": "user",
        "username": "alice",
        "fname": "Alice",
        "lname": "Lee",
        "email": "alice@x.com",
        "address": "Addr1",
    }
    claims.update(overrides)
    return claims


class TestPasswordHasher(unittest.TestCase):
    """hash() and verify() agree on the right password and only on it."""

    def setUp(self) -> None:
        self.hasher = PasswordHasher(rounds=4)

    def test_verify_accepts_original_password(self) -> None:
        digest = self.hasher.hash("secret1")
        self.assertTrue(self.hasher.verify(digest, "secret1"))

    def test_verify_rejects_other_passwords(self) -> None:
        digest = self.hasher.hash("secret1")
        for other in ("secret2", "Secret1", "secret1 ", ""):
            self.assertFalse(self.hasher.verify(digest, other), other)

    def test_hash_is_salted(self) -> None:
        first = self.hasher.hash("secret1")
        second = self.hasher.hash("secret1")
        self.assertNotEqual(first, second)
        self.assertEqual(len(first), len(second))
        self.assertNotIn("secret1", first)

    def test_malformed_digest_does_not_verify(self) -> None:
        self.assertFalse(self.hasher.verify("not-a-bcrypt-hash", "secret1"))
        self.assertFalse(self.hasher.verify("", "secret1"))

    def test_dummy_verify_is_always_false(self) -> None:
        self.assertFalse(self.hasher.dummy_verify("dummy-password-for-timing"))
        self.assertFalse(self.hasher.dummy_verify("secret1"))

    def test_dummy_hash_is_ready_before_first_miss(self) -> None:
        with patch.object(self.hasher, "hash") as hash_mock:
            self.assertFalse(self.hasher.dummy_verify("secret1"))
        hash_mock.assert_not_called()


class TestTokenIssuer(unittest.TestCase):
    """issue() and verify() round-trip claims; verify() fails closed."""

    def setUp(self) -> None:
        self.issuer = TokenIssuer(SECRET, expire_minutes=60)

    def test_round_trip_returns_exact_claims(self) -> None:
        claims = _claims()
        self.assertEqual(self.issuer.verify(self.issuer.issue(claims)), claims)

    def test_round_trip_admin_and_unicode(self) -> None:
        claims = _claims(role="admin", fname="Zoë", address="1 Rue de l'Église")
        self.assertEqual(self.issuer.verify(self.issuer.issue(claims)), claims)

    def test_round_trip_without_expiry(self) -> None:
        issuer = TokenIssuer(SECRET)
        token = issuer.issue(_claims())
        self.assertNotIn("exp", jwt.decode(token, SECRET, algorithms=["HS256"]))
        self.assertEqual(issuer.verify(token), _claims())

    def test_tampered_signature_is_invalid(self) -> None:
        token = self.issuer.issue(_claims())
        header, payload, signature = token.split(".")
        flipped = ("A" if signature[0] != "A" else "B") + signature[1:]
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(f"{header}.{payload}.{flipped}")

    def test_tampered_payload_is_invalid(self) -> None:
        forged = jwt.encode(_claims(role="admin"), "other-secret", algorithm="HS256")
        token = self.issuer.issue(_claims())
        header, _, signature = token.split(".")
        forged_payload = forged.split(".")[1]
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(f"{header}.{forged_payload}.{signature}")

    def test_wrong_secret_is_invalid(self) -> None:
        token = TokenIssuer("another-secret", expire_minutes=60).issue(_claims())
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(token)

    def test_expired_token_is_invalid(self) -> None:
        past = datetime.now(UTC) - timedelta(hours=2)
        payload = {**_claims(), "iat": past, "exp": past + timedelta(minutes=5)}
        token = jwt.encode(payload, SECRET, algorithm="HS256")
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(token)

    def test_token_without_exp_rejected_when_expiry_configured(self) -> None:
        token = TokenIssuer(SECRET).issue(_claims())
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(token)

    def test_missing_claim_is_invalid(self) -> None:
        claims = _claims()
        del claims["email"]
        with self.assertRaises(InvalidTokenError) as ctx:
            self.issuer.verify(self.issuer.issue(claims))
        self.assertEqual(ctx.exception.message, "Invalid token payload")

    def test_unsigned_token_is_invalid(self) -> None:
        token = jwt.encode({**_claims(), "iat": datetime.now(UTC)}, None, algorithm="none")
        with self.assertRaises(InvalidTokenError):
            self.issuer.verify(token)

    def test_garbage_is_invalid(self) -> None:
        for token in ("", "abc", "a.b.c"):
            with self.assertRaises(InvalidTokenError):
                self.issuer.verify(token)

    def test_empty_secret_is_configuration_error(self) -> None:
        for secret in ("", "   "):
            with self.assertRaises(ConfigurationError):
                TokenIssuer(secret)


class TestSettingsSecret(unittest.TestCase):
    """A missing or blank SECRET_KEY stops Settings from loading."""

    def test_missing_secret_fails(self) -> None:
        with patch.dict(os.environ, {}, clear=True):
            with self.assertRaises(ValidationError):
                Settings(_env_file=None)

    def test_blank_secret_fails(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, SECRET_KEY="   ")

    def test_secret_is_not_in_repr(self) -> None:
        settings = Settings(_env_file=None, SECRET_KEY="s3cr3t-value")
        self.assertNotIn("s3cr3t-value", repr(settings))
        self.assertEqual(settings.SECRET_KEY.get_secret_value(), "s3cr3t-value")

    def test_rejects_unknown_database_scheme(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, SECRET_KEY="x", DATABASE_URL="mysql://localhost/db")

    def test_expiry_defaults_to_sixty_minutes(self) -> None:
        with patch.dict(os.environ, {"SECRET_KEY": "x"}, clear=True):
            self.assertEqual(Settings(_env_file=None).JWT_EXPIRE_MINUTES, 60)

    def test_empty_or_none_expiry_disables_exp(self) -> None:
        for raw in ("", "none", "None"):
            with patch.dict(os.environ, {"SECRET_KEY": "x", "JWT_EXPIRE_MINUTES": raw}, clear=True):
                self.assertIsNone(Settings(_env_file=None).JWT_EXPIRE_MINUTES, raw)

    def test_out_of_range_expiry_fails(self) -> None:
        with self.assertRaises(ValidationError):
            Settings(_env_file=None, SECRET_KEY="x", JWT_EXPIRE_MINUTES=0)


if __name__ == "__main__":
    unittest.main()
