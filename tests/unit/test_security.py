"""
Tests for credential hashing, token issuance, password policy and
bearer tokens.
"""

import string
import pytest
from datetime import datetime, timedelta, timezone

from jose import jwt

from club_auth.core.config import settings
from club_auth.core.security import (
    CredentialHasher,
    TokenIssuer,
    create_access_token,
    decode_access_token,
    validate_password_strength,
)
from club_auth.models.verification_token import VerificationToken


@pytest.fixture(scope="module")
def hasher():
    return CredentialHasher(rounds=4)


class TestCredentialHasher:

    def test_hash_is_not_plaintext(self, hasher):
        digest = hasher.hash("Secret123")

        assert digest != "Secret123"
        assert digest.startswith("$2b$04$")

    def test_hash_is_salted(self, hasher):
        assert hasher.hash("Secret123") != hasher.hash("Secret123")

    def test_verify_round_trip(self, hasher):
        digest = hasher.hash("Secret123")

        assert hasher.verify("Secret123", digest) is True
        assert hasher.verify("secret123", digest) is False

    def test_verify_malformed_digest(self, hasher):
        assert hasher.verify("Secret123", "not-a-bcrypt-hash") is False

    def test_rounds_default_from_settings(self):
        assert CredentialHasher().rounds == settings.BCRYPT_ROUNDS

    @pytest.mark.asyncio
    async def test_async_variants(self, hasher):
        digest = await hasher.hash_async("Secret123")

        assert await hasher.verify_async("Secret123", digest) is True
        assert await hasher.verify_async("Wrong123", digest) is False


class TestTokenIssuer:

    def test_token_shape(self):
        issued = TokenIssuer().issue()

        assert len(issued.value) == 64
        assert set(issued.value) <= set(string.hexdigits.lower())

    def test_tokens_are_unique(self):
        issuer = TokenIssuer()
        values = {issuer.issue().value for _ in range(200)}

        assert len(values) == 200

    def test_expiry_is_24_hours_after_issue(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)

        issued = TokenIssuer().issue(now)

        assert issued.expires_at == now + timedelta(hours=24)

    def test_custom_ttl(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)

        issued = TokenIssuer(ttl=timedelta(minutes=30)).issue(now)

        assert issued.expires_at == now + timedelta(minutes=30)


class TestTokenExpiry:

    def test_not_expired_before_deadline(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        token = VerificationToken(expires_at=now + timedelta(seconds=1))

        assert token.is_expired(now) is False

    def test_expired_after_deadline(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        token = VerificationToken(expires_at=now - timedelta(seconds=1))

        assert token.is_expired(now) is True

    def test_naive_expiry_is_read_as_utc(self):
        now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
        token = VerificationToken(expires_at=datetime(2024, 1, 1, 11, 0))

        assert token.is_expired(now) is True


class TestPasswordPolicy:

    @pytest.mark.parametrize("password", ["Secret123", "Abcdefg1", "LongerPassw0rd"])
    def test_valid_passwords(self, password):
        is_valid, errors = validate_password_strength(password)

        assert is_valid
        assert errors == []

    @pytest.mark.parametrize("password,fragment", [
        ("Ab1", "at least 8 characters"),
        ("secret123", "uppercase"),
        ("SECRET123", "lowercase"),
        ("SecretPassword", "number"),
    ])
    def test_invalid_passwords(self, password, fragment):
        is_valid, errors = validate_password_strength(password)

        assert not is_valid
        assert any(fragment in e for e in errors)


class TestAccessToken:

    def test_round_trip(self):
        token = create_access_token("user-1")

        payload = decode_access_token(token)

        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"

    def test_expired_token_rejected(self):
        token = create_access_token("user-1", expires_delta=timedelta(seconds=-1))

        assert decode_access_token(token) is None

    def test_tampered_token_rejected(self):
        token = create_access_token("user-1")

        assert decode_access_token(token + "x") is None

    def test_wrong_type_rejected(self):
        token = jwt.encode(
            {"sub": "user-1", "type": "refresh"},
            settings.SECRET_KEY,
            algorithm=settings.ALGORITHM,
        )

        assert decode_access_token(token) is None
