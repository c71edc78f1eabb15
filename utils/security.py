"""
Token issuing:
- Access tokens: stateless JWTs (PyJWT, HS256), never stored server side
- Refresh tokens: opaque random strings, stored by the session store
- Auth bundles: an access/refresh pair plus expiries, handed to the caller

The issuer never persists anything; the auth service stores the refresh token.
"""
from __future__ import annotations

import secrets
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Mapping, Optional

import jwt

from models.base_model import utcnow
from models.user import User

MIN_SECRET_LENGTH = 32
ACCESS_MINUTES_RANGE = (1, 120)
REFRESH_DAYS_RANGE = (1, 365)
# shared-secret signing only
HMAC_ALGORITHMS = ("HS256", "HS384", "HS512")
REFRESH_TOKEN_BYTES = 64

# claims extra_claims may not override
RESERVED_CLAIMS = ("sub", "jti", "iss", "aud", "iat", "exp", "name", "type")


class ConfigurationError(Exception):
    """Invalid security configuration; raised at startup, never per request."""


class AccessTokenError(Exception):
    """Access token rejected (bad signature, wrong issuer/audience, malformed)."""


class AccessTokenExpiredError(AccessTokenError):
    """Access token signature is fine but it has expired."""


@dataclass(frozen=True)
class RefreshTokenGrant:
    value: str
    expires_at: datetime
    created_at: datetime


@dataclass(frozen=True)
class AuthBundle:
    access_token: str
    access_token_expiry: datetime
    refresh_token: str
    refresh_token_expiry: datetime
    username: str
    user_id: str
    issued_at: datetime
    client_ip: str


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID)."""
    return str(uuid.uuid4())


class TokenIssuer:
    def __init__(
        self,
        secret: str,
        issuer: str,
        audience: str,
        access_token_minutes: int = 15,
        refresh_token_days: int = 7,
        algorithm: str = "HS256",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret:
            raise ConfigurationError("JWT secret is not configured")
        if len(secret) < MIN_SECRET_LENGTH:
            raise ConfigurationError(
                f"JWT secret must be at least {MIN_SECRET_LENGTH} characters"
            )
        if algorithm not in HMAC_ALGORITHMS:
            raise ConfigurationError(
                f"Unsupported JWT algorithm {algorithm!r}; expected one of {', '.join(HMAC_ALGORITHMS)}"
            )
        if not issuer or not audience:
            raise ConfigurationError("JWT issuer and audience are required")
        low, high = ACCESS_MINUTES_RANGE
        if not low <= access_token_minutes <= high:
            raise ConfigurationError(
                f"Access token lifetime must be between {low} and {high} minutes"
            )
        low, high = REFRESH_DAYS_RANGE
        if not low <= refresh_token_days <= high:
            raise ConfigurationError(
                f"Refresh token lifetime must be between {low} and {high} days"
            )
        self._secret = secret
        self.issuer = issuer
        self.audience = audience
        self.algorithm = algorithm
        self.access_token_lifetime = timedelta(minutes=access_token_minutes)
        self.refresh_token_lifetime = timedelta(days=refresh_token_days)
        self._clock = clock or utcnow

    @classmethod
    def from_config(cls, config: Mapping[str, Any], clock=None) -> "TokenIssuer":
        """Build from a Flask config mapping; bad or missing values raise ConfigurationError."""
        try:
            access_minutes = int(config.get("ACCESS_TOKEN_EXPIRATION_MINUTES", 15))
            refresh_days = int(config.get("REFRESH_TOKEN_EXPIRATION_DAYS", 7))
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Invalid token lifetime: {exc}") from exc
        return cls(
            secret=config.get("JWT_SECRET") or "",
            issuer=config.get("JWT_ISSUER") or "",
            audience=config.get("JWT_AUDIENCE") or "",
            access_token_minutes=access_minutes,
            refresh_token_days=refresh_days,
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            clock=clock,
        )

    def now(self) -> datetime:
        return self._clock()

    def _encode_access_token(
        self, user: User, issued_at: datetime, extra_claims: Optional[Dict[str, Any]]
    ) -> str:
        payload = dict(extra_claims or {})
        payload.update(
            {
                "sub": str(user.id),
                "jti": generate_jti(),
                "iss": self.issuer,
                "aud": self.audience,
                "iat": int(issued_at.timestamp()),
                "exp": int((issued_at + self.access_token_lifetime).timestamp()),
                "name": user.name,
                "type": "access",
            }
        )
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def mint_access_token(self, user: User, extra_claims: Optional[Dict[str, Any]] = None) -> str:
        return self._encode_access_token(user, self.now(), extra_claims)

    def mint_refresh_token(self) -> RefreshTokenGrant:
        now = self.now()
        return RefreshTokenGrant(
            value=secrets.token_urlsafe(REFRESH_TOKEN_BYTES),
            expires_at=now + self.refresh_token_lifetime,
            created_at=now,
        )

    def mint_auth_bundle(
        self, user: User, client_ip: str, extra_claims: Optional[Dict[str, Any]] = None
    ) -> AuthBundle:
        """Mint an access/refresh pair for a user. Nothing is persisted here."""
        grant = self.mint_refresh_token()
        issued_at = grant.created_at
        return AuthBundle(
            access_token=self._encode_access_token(user, issued_at, extra_claims),
            access_token_expiry=issued_at + self.access_token_lifetime,
            refresh_token=grant.value,
            refresh_token_expiry=grant.expires_at,
            username=user.name,
            user_id=str(user.id),
            issued_at=issued_at,
            client_ip=client_ip,
        )

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        """
        Decode and validate an access token: signature, exp, iss, aud, type.
        Raises AccessTokenExpiredError / AccessTokenError.
        """
        try:
            decoded = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"require": ["exp", "sub", "iss", "aud"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AccessTokenExpiredError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AccessTokenError(f"Invalid token: {exc}") from exc

        if decoded.get("type") != "access":
            raise AccessTokenError("Wrong token type")
        return decoded
