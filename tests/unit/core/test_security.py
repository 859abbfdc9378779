"""
Unit tests for the security module.

Tests password hashing, JWT issuing and verification.
"""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from conftest import TEST_JWT_SECRET, TEST_BCRYPT_ROUNDS
from pds.core.exceptions import TokenExpiredError, TokenInvalidError
from pds.core.security import PasswordHasher, TokenIssuer


class TestPasswordHashing:
    """Tests for the bcrypt password hasher."""

    @pytest.mark.unit
    def test_hash_uses_configured_rounds(self, password_hasher):
        """Test that the hash is bcrypt with the configured work factor."""
        hashed = password_hasher.hash("secret1")

        assert hashed != "secret1"
        assert hashed.startswith(f"$2b${TEST_BCRYPT_ROUNDS:02d}$")

    @pytest.mark.unit
    def test_default_rounds(self):
        """Test that the default work factor is 10."""
        assert PasswordHasher().rounds == 10

    @pytest.mark.unit
    def test_hash_creates_unique_hashes(self, password_hasher):
        """Test that the same password produces different hashes."""
        assert password_hasher.hash("secret1") != password_hasher.hash("secret1")

    @pytest.mark.unit
    def test_verify_correct_password(self, password_hasher):
        """Test password verification with correct password."""
        hashed = password_hasher.hash("secret1")

        assert password_hasher.verify("secret1", hashed) is True

    @pytest.mark.unit
    def test_verify_incorrect_password(self, password_hasher):
        """Test password verification with incorrect password."""
        hashed = password_hasher.hash("secret1")

        assert password_hasher.verify("Secret1", hashed) is False
        assert password_hasher.verify("", hashed) is False

    @pytest.mark.unit
    @pytest.mark.parametrize("hashed", [None, "", "not-a-bcrypt-hash"])
    def test_verify_missing_or_malformed_hash(self, password_hasher, hashed):
        """Test that a missing or malformed hash never verifies."""
        assert password_hasher.verify("secret1", hashed) is False


class TestTokenIssuer:
    """Tests for JWT access tokens."""

    @pytest.mark.unit
    def test_issue_and_verify(self, token_issuer):
        """Test that an issued token verifies to the same claims."""
        token = token_issuer.issue(7, "alice")
        claims = token_issuer.verify(token)

        assert claims.subject == 7
        assert claims.username == "alice"
        assert claims.expires_at - claims.issued_at == timedelta(days=2)

    @pytest.mark.unit
    def test_subject_is_encoded_as_string(self, token_issuer):
        """Test that the raw sub claim is a string."""
        token = token_issuer.issue(7, "alice")
        payload = jwt.decode(token, TEST_JWT_SECRET, algorithms=["HS256"])

        assert payload["sub"] == "7"
        assert set(payload) == {"sub", "username", "iat", "exp"}

    @pytest.mark.unit
    def test_to_payload_uses_integer_timestamps(self, token_issuer):
        """Test the wire form of verified claims."""
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        token = token_issuer.issue(
            3, "bob", expires_delta=timedelta(days=3650), now=now
        )

        payload = token_issuer.verify(token).to_payload()

        assert payload["sub"] == 3
        assert payload["iat"] == int(now.timestamp())
        assert payload["exp"] == int((now + timedelta(days=3650)).timestamp())

    @pytest.mark.unit
    def test_expired_token(self, token_issuer):
        """Test that an expired token is rejected."""
        issued = datetime.now(timezone.utc) - timedelta(days=3)
        token = token_issuer.issue(1, "alice", now=issued)

        with pytest.raises(TokenExpiredError):
            token_issuer.verify(token)

    @pytest.mark.unit
    def test_tampered_token(self, token_issuer):
        """Test that a modified token is rejected."""
        token = token_issuer.issue(1, "alice")
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])

        with pytest.raises(TokenInvalidError):
            token_issuer.verify(tampered)

    @pytest.mark.unit
    def test_token_signed_with_other_secret(self, token_issuer):
        """Test that a token from another issuer is rejected."""
        other = TokenIssuer("another-secret-key-that-is-long-enough-for-hs256")
        token = other.issue(1, "alice")

        with pytest.raises(TokenInvalidError):
            token_issuer.verify(token)

    @pytest.mark.unit
    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_token(self, token_issuer, token):
        """Test that malformed tokens are rejected."""
        with pytest.raises(TokenInvalidError):
            token_issuer.verify(token)

    @pytest.mark.unit
    def test_missing_claim(self, token_issuer):
        """Test that a token without a username is rejected."""
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "1", "iat": now, "exp": now + timedelta(hours=1)},
            TEST_JWT_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(TokenInvalidError):
            token_issuer.verify(token)

    @pytest.mark.unit
    @pytest.mark.parametrize("subject", ["abc", "0", "-4"])
    def test_invalid_subject(self, token_issuer, subject):
        """Test that a non-positive or non-numeric subject is rejected."""
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {
                "sub": subject,
                "username": "alice",
                "iat": now,
                "exp": now + timedelta(hours=1),
            },
            TEST_JWT_SECRET,
            algorithm="HS256",
        )

        with pytest.raises(TokenInvalidError):
            token_issuer.verify(token)

    @pytest.mark.unit
    def test_issuer_requires_secret(self):
        """Test that an empty secret is refused at construction."""
        with pytest.raises(ValueError):
            TokenIssuer("")

    @pytest.mark.unit
    def test_issuer_requires_positive_lifetime(self):
        """Test that a non-positive lifetime is refused at construction."""
        with pytest.raises(ValueError):
            TokenIssuer(TEST_JWT_SECRET, expires_delta=timedelta(0))
