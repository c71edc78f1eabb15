"""Tests for the refresh token record: derived state flags and revoke reasons."""

from datetime import timedelta

import pytest

from models.base_model import utcnow
from models.refresh_token import RefreshToken, RevokeReason


def make_token(**overrides):
    fields = dict(token="value", user_id="u1", expires_at=utcnow() + timedelta(days=1))
    fields.update(overrides)
    return RefreshToken(**fields)


class TestStateFlags:
    def test_fresh_token_is_active(self):
        token = make_token()
        assert token.is_active
        assert not token.is_expired
        assert not token.is_revoked
        assert not token.is_rotated

    def test_expired(self):
        token = make_token(expires_at=utcnow() - timedelta(seconds=1))
        assert token.is_expired
        assert not token.is_active

    def test_revoked(self):
        token = make_token(revoked_at=utcnow(), reason_revoked=RevokeReason.MANUAL)
        assert token.is_revoked
        assert not token.is_active

    def test_rotated(self):
        token = make_token(replaced_by_token="next")
        assert token.is_rotated
        assert not token.is_active

    def test_to_dict_formats_times(self):
        data = make_token().to_dict()
        assert data["__class__"] == "RefreshToken"
        assert data["expires_at"].endswith("Z")


class TestRevokeReasonParse:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Compromised", RevokeReason.COMPROMISED),
            ("compromised", RevokeReason.COMPROMISED),
            ("EXPIRED", RevokeReason.EXPIRED),
            ("ReplacedByNewToken", RevokeReason.REPLACED_BY_NEW_TOKEN),
            ("replaced_by_new_token", RevokeReason.REPLACED_BY_NEW_TOKEN),
            (" Unknown ", RevokeReason.UNKNOWN),
            (RevokeReason.EXPIRED, RevokeReason.EXPIRED),
        ],
    )
    def test_recognised(self, raw, expected):
        assert RevokeReason.parse(raw) is expected

    @pytest.mark.parametrize("raw", [None, "", "stolen", "3", 3])
    def test_unrecognised_falls_back_to_manual(self, raw):
        assert RevokeReason.parse(raw) is RevokeReason.MANUAL
