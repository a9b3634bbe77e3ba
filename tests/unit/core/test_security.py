"""
Tests for core security utilities.

Tests:
- Password hashing and verification
- Access token creation and validation
- Token expiration
- Edge cases and security scenarios
"""

from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from core.security import (
    ACCESS_TOKEN_TYPE,
    create_access_token,
    hash_password,
    token_expiry,
    verify_jwt_token,
    verify_password,
)

SECRET = "test-jwt-secret-key-min-32-chars-long-for-security"


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password(self):
        """Test password hashing."""
        password = "SecurePassword123!"
        hashed = hash_password(password, rounds=4)

        assert isinstance(hashed, str)
        assert hashed != password
        assert hashed.startswith("$2b$04$")  # bcrypt format and cost

    def test_hash_password_different_each_time(self):
        """Test that hashing same password produces different hashes."""
        password = "SecurePassword123!"
        assert hash_password(password, rounds=4) != hash_password(password, rounds=4)

    def test_verify_password_success(self):
        password = "SecurePassword123!"
        assert verify_password(password, hash_password(password, rounds=4)) is True

    def test_verify_password_failure(self):
        hashed = hash_password("SecurePassword123!", rounds=4)
        assert verify_password("WrongPassword123!", hashed) is False

    def test_verify_password_empty_hash(self):
        assert verify_password("anything", "") is False

    def test_verify_password_malformed_hash(self):
        """A corrupted stored hash counts as a mismatch, not a crash."""
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_passwords_longer_than_72_bytes(self):
        """bcrypt only considers the first 72 bytes."""
        long_password = "A" * 100
        hashed = hash_password(long_password, rounds=4)

        assert verify_password(long_password, hashed) is True
        assert verify_password("A" * 72, hashed) is True

    def test_unicode_password(self):
        password = "Pässwörd123ü"
        hashed = hash_password(password, rounds=4)
        assert verify_password(password, hashed) is True
        assert verify_password("Passwort123u", hashed) is False


class TestAccessTokens:
    """Test access token creation and verification."""

    def test_create_and_verify(self):
        token = create_access_token(42, SECRET)
        payload = verify_jwt_token(token, SECRET)

        assert payload["sub"] == "42"
        assert payload["type"] == ACCESS_TOKEN_TYPE
        assert payload["exp"] > payload["iat"]
        assert len(payload["jti"]) == 32

    def test_token_carries_no_role_claims(self):
        """Role and permissions are always read from the database."""
        payload = verify_jwt_token(create_access_token(1, SECRET), SECRET)
        assert set(payload) == {"sub", "iat", "exp", "jti", "type"}

    def test_each_token_has_unique_jti(self):
        first = verify_jwt_token(create_access_token(1, SECRET), SECRET)
        second = verify_jwt_token(create_access_token(1, SECRET), SECRET)
        assert first["jti"] != second["jti"]

    def test_custom_lifetime(self):
        now = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        token = create_access_token(
            7, SECRET, expires_delta=timedelta(minutes=5), now=datetime.now(timezone.utc)
        )
        payload = verify_jwt_token(token, SECRET)
        assert payload["exp"] - payload["iat"] == 300

        pinned = pyjwt.decode(
            create_access_token(7, SECRET, expires_delta=timedelta(minutes=5), now=now),
            SECRET,
            algorithms=["HS256"],
            options={"verify_exp": False},
        )
        assert pinned["iat"] == int(now.timestamp())

    def test_default_lifetime_is_24_hours(self):
        payload = verify_jwt_token(create_access_token(1, SECRET), SECRET)
        assert payload["exp"] - payload["iat"] == 24 * 3600

    def test_expired_token(self):
        issued = datetime.now(timezone.utc) - timedelta(hours=2)
        token = create_access_token(1, SECRET, expires_delta=timedelta(hours=1), now=issued)

        with pytest.raises(pyjwt.ExpiredSignatureError):
            verify_jwt_token(token, SECRET)

    def test_wrong_secret(self):
        token = create_access_token(1, SECRET)
        with pytest.raises(pyjwt.InvalidTokenError):
            verify_jwt_token(token, "another-secret-that-is-long-enough-for-hs256")

    def test_tampered_token(self):
        token = create_access_token(1, SECRET)
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}x.{signature}"
        with pytest.raises(pyjwt.InvalidTokenError):
            verify_jwt_token(tampered, SECRET)

    def test_garbage_token(self):
        with pytest.raises(pyjwt.InvalidTokenError):
            verify_jwt_token("not.a.jwt", SECRET)

    def test_wrong_token_type_rejected(self):
        now = datetime.now(timezone.utc)
        token = pyjwt.encode(
            {
                "sub": "1",
                "iat": int(now.timestamp()),
                "exp": int((now + timedelta(hours=1)).timestamp()),
                "type": "refresh",
            },
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(pyjwt.InvalidTokenError):
            verify_jwt_token(token, SECRET)

    def test_missing_required_claim(self):
        now = datetime.now(timezone.utc)
        token = pyjwt.encode(
            {"iat": int(now.timestamp()), "exp": int((now + timedelta(hours=1)).timestamp())},
            SECRET,
            algorithm="HS256",
        )
        with pytest.raises(pyjwt.InvalidTokenError):
            verify_jwt_token(token, SECRET)

    def test_token_expiry(self):
        now = datetime.now(timezone.utc).replace(microsecond=0)
        token = create_access_token(1, SECRET, expires_delta=timedelta(minutes=30), now=now)
        expiry = token_expiry(verify_jwt_token(token, SECRET))

        assert expiry == now + timedelta(minutes=30)
        assert expiry.tzinfo is not None
