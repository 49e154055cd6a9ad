"""
Tutorium Backend — Password and Token Unit Tests
==================================================

What:  Tests for bcrypt hashing, generated passwords and JWT session tokens.
How:   Pure unit tests; bcrypt runs with the low cost factor set in conftest.
"""

import string
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from tutorium.auth.jwt import InvalidTokenError, JWTManager, TokenExpiredError
from tutorium.auth.password import (
    SPECIAL_CHARACTERS,
    PasswordHasher,
    generate_password,
)


class TestPasswordHasher:

    def setup_method(self):
        self.hasher = PasswordHasher(rounds=4)

    def test_hash_and_verify(self):
        """A hash verifies against its own password only."""
        hashed = self.hasher.hash("correct horse")
        assert hashed != "correct horse"
        assert self.hasher.verify("correct horse", hashed)
        assert not self.hasher.verify("wrong horse", hashed)

    def test_hash_is_salted(self):
        assert self.hasher.hash("same") != self.hasher.hash("same")

    def test_hash_rejects_empty_password(self):
        with pytest.raises(ValueError, match="empty"):
            self.hasher.hash("")

    def test_verify_malformed_hash_is_false(self):
        """A broken stored hash must not raise into the login flow."""
        assert self.hasher.verify("password", "not-a-bcrypt-hash") is False
        assert self.hasher.verify("", "whatever") is False


class TestGeneratePassword:

    def test_default_length(self):
        assert len(generate_password()) == 12

    def test_contains_every_character_class(self):
        """Each generated password mixes lower, upper, digit and special characters."""
        for _ in range(50):
            password = generate_password()
            assert any(c in string.ascii_lowercase for c in password)
            assert any(c in string.ascii_uppercase for c in password)
            assert any(c in string.digits for c in password)
            assert any(c in SPECIAL_CHARACTERS for c in password)

    def test_passwords_differ(self):
        assert len({generate_password() for _ in range(20)}) == 20

    def test_too_short_rejected(self):
        with pytest.raises(ValueError):
            generate_password(3)


class TestJWTManager:

    def setup_method(self):
        self.manager = JWTManager(secret_key="unit-test-secret-key-0123456789", expire_days=7)
        self.user_id = uuid4()

    def test_round_trip(self):
        """Decoded payload carries the user's id, email and role."""
        token = self.manager.create_token(self.user_id, "teacher@example.com", "TEACHER")
        payload = self.manager.decode_token(token)

        assert payload.user_id == self.user_id
        assert payload.email == "teacher@example.com"
        assert payload.role == "TEACHER"
        assert payload.exp - payload.iat == 7 * 24 * 60 * 60

    def test_max_age_matches_expiry(self):
        assert self.manager.max_age_seconds == 7 * 24 * 60 * 60

    def test_expired_token(self):
        issued = datetime.now(timezone.utc) - timedelta(days=8)
        token = self.manager.create_token(self.user_id, "a@example.com", "STUDENT", now=issued)
        with pytest.raises(TokenExpiredError):
            self.manager.decode_token(token)

    def test_tampered_token(self):
        token = self.manager.create_token(self.user_id, "a@example.com", "STUDENT")
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[:-2] + ("AA" if signature[-2:] != "AA" else "BB")])
        with pytest.raises(InvalidTokenError):
            self.manager.decode_token(tampered)

    def test_token_signed_with_other_secret(self):
        other = JWTManager(secret_key="another-secret-key-9876543210")
        token = other.create_token(self.user_id, "a@example.com", "ADMIN")
        with pytest.raises(InvalidTokenError):
            self.manager.decode_token(token)

    def test_garbage_token(self):
        with pytest.raises(InvalidTokenError):
            self.manager.decode_token("definitely.not.a-jwt")
