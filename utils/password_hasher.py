"""
Password hashing: PBKDF2-HMAC-SHA256 via `cryptography`.

Stored format is "<base64 salt>:<base64 derived key>". The salt is fresh per
call, so hashing the same password twice gives two different strings that
both verify.
"""
from __future__ import annotations

import base64
import binascii
import os

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

SALT_SIZE = 16
KEY_SIZE = 32
MIN_ITERATIONS = 10_000
DELIMITER = ":"


class PasswordHasher:
    def __init__(self, iterations: int = MIN_ITERATIONS):
        if iterations < MIN_ITERATIONS:
            raise ValueError(f"PBKDF2 iterations must be at least {MIN_ITERATIONS}")
        self.iterations = iterations

    def _kdf(self, salt: bytes) -> PBKDF2HMAC:
        # PBKDF2HMAC instances are single use
        return PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE,
            salt=salt,
            iterations=self.iterations,
        )

    def hash(self, password: str) -> str:
        """Hash a plaintext password with a fresh random salt."""
        salt = os.urandom(SALT_SIZE)
        key = self._kdf(salt).derive(password.encode("utf-8", "surrogatepass"))
        return (
            base64.b64encode(salt).decode("ascii")
            + DELIMITER
            + base64.b64encode(key).decode("ascii")
        )

    def verify(self, password: str, encoded: str) -> bool:
        """
        Check a plaintext password against a stored hash.

        Never raises: a malformed hash, undecodable base64 or non-string input
        all verify as False. The key comparison is constant time.
        """
        if not isinstance(password, str) or not isinstance(encoded, str):
            return False
        parts = encoded.split(DELIMITER)
        if len(parts) != 2:
            return False
        try:
            salt = base64.b64decode(parts[0], validate=True)
            key = base64.b64decode(parts[1], validate=True)
        except (binascii.Error, ValueError):
            return False
        if len(salt) < SALT_SIZE or len(key) != KEY_SIZE:
            return False
        try:
            self._kdf(salt).verify(password.encode("utf-8", "surrogatepass"), key)
        except InvalidKey:
            return False
        return True
