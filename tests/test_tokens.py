"""Unit tests for auth/tokens.py -- PasswordHasher and TokenSigner.

Covers:
- bcrypt hashes are salted and verify only the right password
- a malformed stored hash is a mismatch, not an exception
- issued tokens carry username, iat and a 1-hour exp
- wrong secret, tampering, expiry, and missing claims are all TokenInvalid
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.errors import TokenInvalid
from auth.tokens import PasswordHasher, TokenSigner

SECRET = "unit-test-secret-key-0123456789abcdef"


@pytest.fixture
def hasher():
    return PasswordHasher(rounds=4)


@pytest.fixture
def signer():
    return TokenSigner(SECRET, expire_seconds=3600)


class TestPasswordHasher:
    def test_verify_accepts_correct_password(self, hasher):
        hashed = hasher.hash("secret1")
        assert hasher.verify("secret1", hashed)

    def test_verify_rejects_wrong_password(self, hasher):
        hashed = hasher.hash("secret1")
        assert not hasher.verify("secret2", hashed)

    def test_hashes_are_salted(self, hasher):
        assert hasher.hash("secret1") != hasher.hash("secret1")

    def test_rounds_are_encoded_in_hash(self, hasher):
        assert hasher.hash("secret1").startswith("$2b$04$")

    def test_malformed_hash_is_a_mismatch(self, hasher):
        assert hasher.verify("secret1", "not-a-bcrypt-hash") is False


class TestTokenSigner:
    def test_round_trip(self, signer):
        assert signer.verify(signer.issue("alice")) == "alice"

    def test_expiry_is_one_hour_after_issue(self, signer):
        issued = datetime(2030, 1, 1, tzinfo=timezone.utc)
        token = signer.issue("alice", now=issued)
        payload = jwt.get_unverified_claims(token)
        assert payload["exp"] - payload["iat"] == 3600
        assert payload["username"] == "alice"

    def test_expired_token_rejected(self, signer):
        token = signer.issue("alice", now=datetime.now(timezone.utc) - timedelta(seconds=3601))
        with pytest.raises(TokenInvalid):
            signer.verify(token)

    def test_other_secret_rejected(self, signer):
        other = TokenSigner("another-secret-key-0123456789abcdef")
        with pytest.raises(TokenInvalid):
            signer.verify(other.issue("alice"))

    def test_tampered_payload_rejected(self, signer):
        header, payload, signature = signer.issue("alice").split(".")
        forged = jwt.encode({"username": "mallory"}, "x" * 32, algorithm="HS256").split(".")[1]
        with pytest.raises(TokenInvalid):
            signer.verify(f"{header}.{forged}.{signature}")

    def test_token_without_username_rejected(self, signer):
        now = datetime.now(timezone.utc)
        token = jwt.encode({"iat": now, "exp": now + timedelta(hours=1)}, SECRET, algorithm="HS256")
        with pytest.raises(TokenInvalid):
            signer.verify(token)

    def test_token_without_expiry_rejected(self, signer):
        token = jwt.encode({"username": "alice", "iat": datetime.now(timezone.utc)}, SECRET, algorithm="HS256")
        with pytest.raises(TokenInvalid):
            signer.verify(token)

    def test_empty_secret_refused(self):
        with pytest.raises(ValueError):
            TokenSigner("")
