"""Unit tests for bearer token handling."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import jwt

from nexus.config import settings
from nexus.core.auth.backend import create_access_token, decode_token, hash_token


pytestmark = pytest.mark.unit


class TestDecodeToken:
    """Tests for decode_token."""

    def test_decode_valid_token(self):
        """A token signed with the auth secret resolves to its identity."""
        user_id = uuid4()
        token = create_access_token(user_id, "Ada@Example.com", full_name="Ada")

        identity = decode_token(token)

        assert identity is not None
        assert identity.id == user_id
        assert identity.email == "Ada@Example.com"
        assert identity.full_name == "Ada"

    def test_decode_token_without_full_name(self):
        identity = decode_token(create_access_token(uuid4(), "a@example.com"))

        assert identity is not None
        assert identity.full_name is None

    def test_decode_expired_token(self):
        """Expired tokens are rejected."""
        token = create_access_token(
            uuid4(), "a@example.com", expires_delta=timedelta(seconds=-10)
        )

        assert decode_token(token) is None

    def test_decode_wrong_signature(self):
        """Tokens signed with another secret are rejected."""
        token = jwt.encode(
            {"sub": str(uuid4()), "email": "a@example.com"},
            "some-other-secret-that-is-long-enough-1234",
            algorithm="HS256",
        )

        assert decode_token(token) is None

    def test_decode_malformed_token(self):
        assert decode_token("not-a-jwt") is None

    def test_decode_token_missing_email(self):
        """Both subject and email are required."""
        token = jwt.encode(
            {"sub": str(uuid4())},
            settings.auth_jwt_secret,
            algorithm=settings.auth_jwt_algorithm,
        )

        assert decode_token(token) is None

    def test_decode_token_with_non_uuid_subject(self):
        token = jwt.encode(
            {"sub": "user-42", "email": "a@example.com"},
            settings.auth_jwt_secret,
            algorithm=settings.auth_jwt_algorithm,
        )

        assert decode_token(token) is None

    def test_decode_checks_audience_when_configured(self, monkeypatch):
        """With an audience configured, tokens for other audiences fail."""
        token = create_access_token(
            uuid4(), "a@example.com", additional_claims={"aud": "other-service"}
        )
        monkeypatch.setattr(settings, "auth_jwt_audience", "authenticated")

        assert decode_token(token) is None

    def test_decode_accepts_matching_audience(self, monkeypatch):
        monkeypatch.setattr(settings, "auth_jwt_audience", "authenticated")
        token = create_access_token(uuid4(), "a@example.com")

        assert decode_token(token) is not None


class TestHashToken:
    """Tests for hash_token."""

    def test_hash_token_is_deterministic(self):
        assert hash_token("abc") == hash_token("abc")

    def test_hash_token_is_sha256_hex(self):
        hashed = hash_token("abc")

        assert len(hashed) == 64
        assert hashed != "abc"
