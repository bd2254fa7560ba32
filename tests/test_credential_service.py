"""Tests for password hashing and audience-scoped tokens."""

from datetime import timedelta

import pytest
from jose import jwt

from gatekeeper.application.services.credential_service import Audience, CredentialService
from gatekeeper.domain.errors import CredentialError, TokenExpired, TokenInvalid


class TestPasswordHashing:
    def test_hash_is_salted(self, credentials):
        first = credentials.hash_password("Password123!")
        second = credentials.hash_password("Password123!")

        assert first != second
        assert credentials.verify_password("Password123!", first)
        assert credentials.verify_password("Password123!", second)

    @pytest.mark.parametrize(
        "password, wrong",
        [
            ("Password123!", "password123!"),
            ("Password123!", "Password123"),
            ("correct horse", "correct horse "),
            ("ünïcødé-pass", "unicode-pass"),
        ],
    )
    def test_wrong_password_never_verifies(self, credentials, password, wrong):
        hashed = credentials.hash_password(password)

        assert credentials.verify_password(wrong, hashed) is False

    def test_malformed_hash_raises_credential_error(self, credentials):
        with pytest.raises(CredentialError):
            credentials.verify_password("Password123!", "not-a-bcrypt-hash")

    def test_overlong_password_does_not_verify(self, credentials):
        hashed = credentials.hash_password("Password123!")

        assert credentials.verify_password("x" * 100, hashed) is False

    def test_rejects_identical_signing_keys(self):
        with pytest.raises(RuntimeError):
            CredentialService("same-secret", "same-secret")


class TestTokens:
    def test_round_trip_returns_subject(self, credentials):
        token = credentials.issue_token(42, Audience.USER)

        assert credentials.verify_token(token, Audience.USER) == 42

    def test_user_token_is_rejected_for_admin_audience(self, credentials):
        token = credentials.issue_token(1, Audience.USER)

        with pytest.raises(TokenInvalid):
            credentials.verify_token(token, Audience.ADMIN)

    def test_admin_token_is_rejected_for_user_audience(self, credentials):
        token = credentials.issue_token(1, Audience.ADMIN)

        with pytest.raises(TokenInvalid):
            credentials.verify_token(token, Audience.USER)

    def test_expired_token(self, credentials):
        token = credentials.issue_token(7, Audience.USER, ttl=timedelta(seconds=-30))

        with pytest.raises(TokenExpired):
            credentials.verify_token(token, Audience.USER)

    def test_tampered_token(self, credentials):
        token = credentials.issue_token(7, Audience.USER)
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])

        with pytest.raises(TokenInvalid):
            credentials.verify_token(tampered, Audience.USER)

    def test_garbage_token(self, credentials):
        with pytest.raises(TokenInvalid):
            credentials.verify_token("not-a-token", Audience.USER)

    def test_default_ttl_is_seven_days(self, credentials):
        token = credentials.issue_token(3, Audience.ADMIN)
        claims = jwt.get_unverified_claims(token)

        assert claims["exp"] - claims["iat"] == int(timedelta(days=7).total_seconds())
        assert claims["aud"] == "admin"
        assert claims["sub"] == "3"
