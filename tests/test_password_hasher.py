"""Tests for PBKDF2 password hashing."""

import base64

import pytest

from utils.password_hasher import DELIMITER, KEY_SIZE, SALT_SIZE, PasswordHasher


class TestHash:
    def test_hash_verifies(self, hasher):
        encoded = hasher.hash("P@ssw0rd1")
        assert hasher.verify("P@ssw0rd1", encoded) is True

    def test_other_password_does_not_verify(self, hasher):
        encoded = hasher.hash("P@ssw0rd2")
        assert hasher.verify("P@ssw0rd1", encoded) is False

    def test_same_password_gives_different_hashes(self, hasher):
        first = hasher.hash("P@ssw0rd1")
        second = hasher.hash("P@ssw0rd1")

        assert first != second
        assert hasher.verify("P@ssw0rd1", first)
        assert hasher.verify("P@ssw0rd1", second)

    def test_encoding_is_salt_and_key(self, hasher):
        salt_b64, key_b64 = hasher.hash("P@ssw0rd1").split(DELIMITER)

        assert len(base64.b64decode(salt_b64)) == SALT_SIZE
        assert len(base64.b64decode(key_b64)) == KEY_SIZE

    def test_hash_is_not_plaintext(self, hasher):
        assert "P@ssw0rd1" not in hasher.hash("P@ssw0rd1")

    def test_unicode_password(self, hasher):
        encoded = hasher.hash("пароль-Ω-1!")
        assert hasher.verify("пароль-Ω-1!", encoded)
        assert not hasher.verify("пароль-Ω-2!", encoded)

    def test_iterations_below_minimum_rejected(self):
        with pytest.raises(ValueError):
            PasswordHasher(iterations=1000)

    def test_hash_from_other_iteration_count_does_not_verify(self, hasher):
        stronger = PasswordHasher(iterations=20_000)
        assert not hasher.verify("P@ssw0rd1", stronger.hash("P@ssw0rd1"))


class TestVerifyMalformed:
    """verify() answers False for anything it cannot parse, it never raises."""

    @pytest.mark.parametrize(
        "encoded",
        [
            "",
            "no-delimiter-here",
            "a:b:c",
            "!!!notbase64:AAAA",
            base64.b64encode(b"s" * SALT_SIZE).decode() + ":" + "%%%",
            # key of the wrong length
            base64.b64encode(b"s" * SALT_SIZE).decode() + ":" + base64.b64encode(b"k" * 8).decode(),
            # salt too short
            base64.b64encode(b"s" * 4).decode() + ":" + base64.b64encode(b"k" * KEY_SIZE).decode(),
        ],
    )
    def test_malformed_hash(self, hasher, encoded):
        assert hasher.verify("P@ssw0rd1", encoded) is False

    def test_non_string_inputs(self, hasher):
        encoded = hasher.hash("P@ssw0rd1")
        assert hasher.verify(None, encoded) is False
        assert hasher.verify("P@ssw0rd1", None) is False
        assert hasher.verify("P@ssw0rd1", b"bytes:value") is False
