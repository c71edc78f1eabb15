"""Tests for access/refresh token minting and issuer configuration."""

import string
from datetime import datetime, timedelta, timezone

import jwt
import pytest

from api.config import TestingConfig
from models.user import User
from utils.security import (
    AccessTokenError,
    AccessTokenExpiredError,
    ConfigurationError,
    TokenIssuer,
)

SECRET = TestingConfig.JWT_SECRET
FIXED_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_issuer(**overrides):
    kwargs = dict(secret=SECRET, issuer="iss-test", audience="aud-test")
    kwargs.update(overrides)
    return TokenIssuer(**kwargs)


@pytest.fixture
def user():
    return User(name="alice", password_hash="x")


class TestAccessToken:
    def test_claims(self, issuer, user):
        token = issuer.mint_access_token(user)
        claims = jwt.decode(
            token,
            SECRET,
            algorithms=["HS256"],
            audience=TestingConfig.JWT_AUDIENCE,
            issuer=TestingConfig.JWT_ISSUER,
        )

        assert claims["sub"] == user.id
        assert claims["name"] == "alice"
        assert claims["type"] == "access"
        assert claims["exp"] - claims["iat"] == 15 * 60

    def test_each_token_has_unique_jti(self, issuer, user):
        first = issuer.decode_access_token(issuer.mint_access_token(user))
        second = issuer.decode_access_token(issuer.mint_access_token(user))
        assert first["jti"] != second["jti"]

    def test_extra_claims_cannot_override_reserved(self, issuer, user):
        token = issuer.mint_access_token(user, {"sub": "someone-else", "team": "red"})
        claims = issuer.decode_access_token(token)

        assert claims["sub"] == user.id
        assert claims["team"] == "red"

    def test_expired_token_rejected(self, user):
        issuer = make_issuer(clock=lambda: datetime.now(timezone.utc) - timedelta(hours=1))
        token = issuer.mint_access_token(user)

        with pytest.raises(AccessTokenExpiredError):
            issuer.decode_access_token(token)

    def test_wrong_secret_rejected(self, issuer, user):
        other = make_issuer(secret="another-secret-that-is-long-enough-0123456789",
                            issuer=issuer.issuer, audience=issuer.audience)
        with pytest.raises(AccessTokenError):
            issuer.decode_access_token(other.mint_access_token(user))

    def test_wrong_audience_rejected(self, issuer, user):
        other = make_issuer(issuer=issuer.issuer, audience="somebody-else")
        with pytest.raises(AccessTokenError):
            issuer.decode_access_token(other.mint_access_token(user))

    def test_garbage_rejected(self, issuer):
        with pytest.raises(AccessTokenError):
            issuer.decode_access_token("invalid.token.here")


class TestRefreshToken:
    def test_value_is_long_and_printable(self, issuer):
        grant = issuer.mint_refresh_token()
        allowed = set(string.ascii_letters + string.digits + "-_")

        # 64 random bytes, url-safe base64 without padding
        assert len(grant.value) >= 86
        assert set(grant.value) <= allowed

    def test_values_are_unique(self, issuer):
        values = {issuer.mint_refresh_token().value for _ in range(50)}
        assert len(values) == 50

    def test_expiry_uses_configured_days(self):
        issuer = make_issuer(refresh_token_days=30, clock=lambda: FIXED_NOW)
        grant = issuer.mint_refresh_token()

        assert grant.created_at == FIXED_NOW
        assert grant.expires_at == FIXED_NOW + timedelta(days=30)


class TestAuthBundle:
    def test_bundle_fields(self, issuer, user):
        bundle = issuer.mint_auth_bundle(user, "198.51.100.1")

        assert bundle.username == "alice"
        assert bundle.user_id == user.id
        assert bundle.client_ip == "198.51.100.1"
        assert issuer.decode_access_token(bundle.access_token)["sub"] == user.id

    def test_access_expiry_matches_configuration(self, user):
        issuer = make_issuer(access_token_minutes=30, clock=lambda: FIXED_NOW)
        bundle = issuer.mint_auth_bundle(user, "198.51.100.1")

        assert bundle.issued_at == FIXED_NOW
        assert bundle.access_token_expiry == FIXED_NOW + timedelta(minutes=30)
        assert bundle.refresh_token_expiry == FIXED_NOW + timedelta(days=7)

    def test_access_expiry_within_a_second_of_now(self, issuer, user):
        before = datetime.now(timezone.utc)
        bundle = issuer.mint_auth_bundle(user, "198.51.100.1")
        expected = before + timedelta(minutes=15)

        assert abs((bundle.access_token_expiry - expected).total_seconds()) < 1


class TestConfiguration:
    @pytest.mark.parametrize("secret", ["", None, "too-short"])
    def test_bad_secret(self, secret):
        with pytest.raises(ConfigurationError):
            make_issuer(secret=secret)

    @pytest.mark.parametrize("minutes", [0, 121, -5])
    def test_access_lifetime_bounds(self, minutes):
        with pytest.raises(ConfigurationError):
            make_issuer(access_token_minutes=minutes)

    @pytest.mark.parametrize("days", [0, 366])
    def test_refresh_lifetime_bounds(self, days):
        with pytest.raises(ConfigurationError):
            make_issuer(refresh_token_days=days)

    def test_bounds_are_inclusive(self):
        make_issuer(access_token_minutes=1, refresh_token_days=1)
        make_issuer(access_token_minutes=120, refresh_token_days=365)

    @pytest.mark.parametrize("algorithm", ["RS256", "ES256", "none", ""])
    def test_non_hmac_algorithm_rejected(self, algorithm):
        with pytest.raises(ConfigurationError):
            make_issuer(algorithm=algorithm)

    def test_hmac_variants_accepted(self, user):
        for algorithm in ("HS384", "HS512"):
            issuer = make_issuer(algorithm=algorithm)
            assert issuer.decode_access_token(issuer.mint_access_token(user))["sub"] == user.id

    def test_missing_audience(self):
        with pytest.raises(ConfigurationError):
            make_issuer(audience="")

    def test_from_config(self):
        issuer = TokenIssuer.from_config(
            {
                "JWT_SECRET": SECRET,
                "JWT_ISSUER": "iss",
                "JWT_AUDIENCE": "aud",
                "ACCESS_TOKEN_EXPIRATION_MINUTES": "20",
                "REFRESH_TOKEN_EXPIRATION_DAYS": "14",
            }
        )
        assert issuer.access_token_lifetime == timedelta(minutes=20)
        assert issuer.refresh_token_lifetime == timedelta(days=14)

    def test_from_config_non_numeric_lifetime(self):
        with pytest.raises(ConfigurationError):
            TokenIssuer.from_config(
                {
                    "JWT_SECRET": SECRET,
                    "JWT_ISSUER": "iss",
                    "JWT_AUDIENCE": "aud",
                    "ACCESS_TOKEN_EXPIRATION_MINUTES": "fifteen",
                }
            )
