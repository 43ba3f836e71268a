"""
SpeakerHub Backend — Security Primitive Tests
================================================

What we test:
    ✅ bcrypt hashing and verification (including malformed hashes)
    ✅ One-time code generation and format checks
    ✅ Access token round trip, expiry and tampering
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from speakerhub.config import settings
from speakerhub.exceptions import AuthenticationError
from speakerhub.models.profile import Role
from speakerhub.security import (
    create_access_token,
    decode_access_token,
    generate_otp,
    hash_secret,
    is_well_formed_otp,
    verify_secret,
)


class TestSecretHashing:

    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = hash_secret("hunter22", rounds=4)
        assert hashed != "hunter22"
        assert hashed.startswith("$2")
        assert verify_secret("hunter22", hashed)

    def test_wrong_value_does_not_verify(self):
        hashed = hash_secret("hunter22", rounds=4)
        assert not verify_secret("hunter23", hashed)

    def test_malformed_hash_never_matches(self):
        assert verify_secret("anything", "not-a-bcrypt-hash") is False

    def test_long_values_are_accepted(self):
        long_value = "x" * 200
        hashed = hash_secret(long_value, rounds=4)
        assert verify_secret(long_value, hashed)


class TestOneTimeCodes:

    def test_generated_code_is_six_digits(self):
        for _ in range(20):
            code = generate_otp()
            assert len(code) == 6
            assert code.isdigit()

    @pytest.mark.parametrize("code", ["123456", "000000", "987654"])
    def test_well_formed(self, code):
        assert is_well_formed_otp(code)

    @pytest.mark.parametrize("code", ["12345", "1234567", "12a456", "", "１２３４５６"])
    def test_malformed(self, code):
        assert not is_well_formed_otp(code)


class TestAccessTokens:

    def test_round_trip(self):
        token, expires_at = create_access_token("user-1", "a@example.com", Role.SPEAKER)
        claims = decode_access_token(token)

        assert claims.user_id == "user-1"
        assert claims.email == "a@example.com"
        assert claims.role is Role.SPEAKER
        assert abs((claims.expires_at - expires_at).total_seconds()) < 1

    def test_default_lifetime_is_configured_hours(self):
        now = datetime.now(timezone.utc)
        _, expires_at = create_access_token("user-1", "a@example.com", Role.ATTENDEE, now=now)
        assert expires_at - now == timedelta(hours=settings.access_token_ttl_hours)

    def test_expired_token_rejected(self):
        issued = datetime.now(timezone.utc) - timedelta(hours=settings.access_token_ttl_hours + 1)
        token, _ = create_access_token("user-1", "a@example.com", Role.ATTENDEE, now=issued)

        with pytest.raises(AuthenticationError) as exc_info:
            decode_access_token(token)
        assert "expired" in exc_info.value.message

    def test_token_signed_with_other_secret_rejected(self):
        forged = jwt.encode(
            {"sub": "user-1", "email": "a@example.com", "role": "ADMIN",
             "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            "some-other-secret",
            algorithm="HS256",
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(forged)

    def test_unknown_role_rejected(self):
        token = jwt.encode(
            {"sub": "user-1", "email": "a@example.com", "role": "SUPERUSER",
             "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(AuthenticationError):
            decode_access_token(token)

    def test_garbage_rejected(self):
        with pytest.raises(AuthenticationError):
            decode_access_token("not.a.token")
