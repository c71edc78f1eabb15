"""
Authentication and session lifecycle.

AuthService is the state machine behind register / authenticate /
change-password / renew / revoke. Every operation receives the request-scoped
SessionStore it must use, commits at most once, and returns a result object
(AuthResult / ActionResult) instead of raising or logging: the HTTP layer
decides what to log and which status to send.

Refresh token states:
    active -> rotated   (renewed; replaced_by_token points at the successor)
    active -> revoked   (manual revoke or compromise cascade)
    active -> expired   (time based, implicit)
Rotated and revoked are terminal. Presenting a revoked token to renew() is
treated as theft: every active token of its owner is revoked as Compromised.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from models.db_storage import SessionStore
from models.refresh_token import RefreshToken, RevokeReason
from models.user import User
from utils.password_hasher import PasswordHasher
from utils.security import AuthBundle, TokenIssuer

# attempts at minting a refresh token value that is not already stored
MAX_MINT_ATTEMPTS = 3

# hash used to keep authenticate() timing flat when the user does not exist
_DUMMY_PASSWORD = "not-a-real-password"


class ErrorCategory(str, Enum):
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    CONFLICT = "conflict"
    COMPROMISE = "compromise"
    INVALID = "invalid"


class AuthError(str, Enum):
    USERNAME_TAKEN = "username_taken"
    INVALID_CREDENTIALS = "invalid_credentials"
    USER_NOT_FOUND = "user_not_found"
    INCORRECT_PASSWORD = "incorrect_password"
    PASSWORD_UNCHANGED = "password_unchanged"
    INVALID_TOKEN = "invalid_token"
    EXPIRED_TOKEN = "expired_token"
    ALREADY_ROTATED = "already_rotated"
    TOKEN_COMPROMISED = "token_compromised"
    TOKEN_NOT_FOUND = "token_not_found"
    ALREADY_REVOKED = "already_revoked"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_CATEGORIES = {
    AuthError.USERNAME_TAKEN: ErrorCategory.CONFLICT,
    AuthError.INVALID_CREDENTIALS: ErrorCategory.UNAUTHORIZED,
    AuthError.USER_NOT_FOUND: ErrorCategory.NOT_FOUND,
    AuthError.INCORRECT_PASSWORD: ErrorCategory.UNAUTHORIZED,
    AuthError.PASSWORD_UNCHANGED: ErrorCategory.INVALID,
    AuthError.INVALID_TOKEN: ErrorCategory.UNAUTHORIZED,
    AuthError.EXPIRED_TOKEN: ErrorCategory.UNAUTHORIZED,
    AuthError.ALREADY_ROTATED: ErrorCategory.UNAUTHORIZED,
    AuthError.TOKEN_COMPROMISED: ErrorCategory.COMPROMISE,
    AuthError.TOKEN_NOT_FOUND: ErrorCategory.NOT_FOUND,
    AuthError.ALREADY_REVOKED: ErrorCategory.CONFLICT,
}

# Client-facing. Token failures share one message so a caller cannot tell
# an expired token from a rotated or stolen one.
_INVALID_REFRESH = "Invalid or expired refresh token."
_MESSAGES = {
    AuthError.USERNAME_TAKEN: "Username is already taken or registration failed.",
    AuthError.INVALID_CREDENTIALS: "Invalid username or password.",
    AuthError.USER_NOT_FOUND: "User not found.",
    AuthError.INCORRECT_PASSWORD: "Current password is incorrect.",
    AuthError.PASSWORD_UNCHANGED: "New password must differ from the current password.",
    AuthError.INVALID_TOKEN: _INVALID_REFRESH,
    AuthError.EXPIRED_TOKEN: _INVALID_REFRESH,
    AuthError.ALREADY_ROTATED: _INVALID_REFRESH,
    AuthError.TOKEN_COMPROMISED: _INVALID_REFRESH,
    AuthError.TOKEN_NOT_FOUND: "Token not found.",
    AuthError.ALREADY_REVOKED: "Token is already revoked.",
}


@dataclass(frozen=True)
class AuthResult:
    """Outcome of an operation that hands out an auth bundle."""

    bundle: Optional[AuthBundle] = None
    error: Optional[AuthError] = None
    user_id: Optional[str] = None
    revoked_count: int = 0

    @property
    def success(self) -> bool:
        return self.error is None and self.bundle is not None

    @property
    def message(self) -> str:
        return self.error.message if self.error else "OK"


@dataclass(frozen=True)
class ActionResult:
    """Outcome of an operation with no payload (revoke, change password, counters)."""

    success: bool
    message: str
    error: Optional[AuthError] = None
    user_id: Optional[str] = None

    @classmethod
    def ok(cls, message: str, user_id: Optional[str] = None) -> "ActionResult":
        return cls(success=True, message=message, user_id=user_id)

    @classmethod
    def failed(cls, error: AuthError, user_id: Optional[str] = None) -> "ActionResult":
        return cls(success=False, message=error.message, error=error, user_id=user_id)


class AuthService:
    def __init__(self, hasher: PasswordHasher, issuer: TokenIssuer):
        self.hasher = hasher
        self.issuer = issuer
        self._dummy_hash = hasher.hash(_DUMMY_PASSWORD)

    # bundle issuing
    def _mint(
        self,
        store: SessionStore,
        user: User,
        client_ip: str,
        extra_claims: Optional[Dict[str, Any]] = None,
    ) -> AuthBundle:
        """Mint a bundle whose refresh token value is not already stored."""
        for _ in range(MAX_MINT_ATTEMPTS):
            bundle = self.issuer.mint_auth_bundle(user, client_ip, extra_claims)
            if not store.token_exists(bundle.refresh_token):
                break
        # a repeated collision still fails at commit on the unique index
        return bundle

    @staticmethod
    def _stage(store: SessionStore, user: User, bundle: AuthBundle) -> None:
        store.add_refresh_token(
            user.id,
            RefreshToken(
                token=bundle.refresh_token,
                expires_at=bundle.refresh_token_expiry,
                created_at=bundle.issued_at,
                created_by_ip=bundle.client_ip,
            ),
        )

    def _issue(self, store: SessionStore, user: User, client_ip: str) -> AuthBundle:
        """Mint a bundle and stage its refresh token. The caller commits."""
        bundle = self._mint(store, user, client_ip)
        self._stage(store, user, bundle)
        return bundle

    # accounts
    def register(
        self, store: SessionStore, username: str, password: str, client_ip: str
    ) -> AuthResult:
        """Create a user and sign them in. Username/password shape is validated upstream."""
        if store.get_user_by_name(username) is not None:
            return AuthResult(error=AuthError.USERNAME_TAKEN)

        user = User(name=username, password_hash=self.hasher.hash(password))
        store.add_user(user)
        bundle = self._issue(store, user, client_ip)
        store.commit()
        return AuthResult(bundle=bundle, user_id=user.id)

    def authenticate(
        self, store: SessionStore, username: str, password: str, client_ip: str
    ) -> AuthResult:
        user = store.get_user_by_name(username)
        if user is None:
            self.hasher.verify(password, self._dummy_hash)
            return AuthResult(error=AuthError.INVALID_CREDENTIALS)
        if not self.hasher.verify(password, user.password_hash):
            return AuthResult(error=AuthError.INVALID_CREDENTIALS, user_id=user.id)

        bundle = self._issue(store, user, client_ip)
        store.commit()
        return AuthResult(bundle=bundle, user_id=user.id)

    def change_password(
        self, store: SessionStore, user_id: str, current_password: str, new_password: str
    ) -> ActionResult:
        user = store.get_user_by_id(user_id)
        if user is None:
            return ActionResult.failed(AuthError.USER_NOT_FOUND)
        if not self.hasher.verify(current_password, user.password_hash):
            return ActionResult.failed(AuthError.INCORRECT_PASSWORD, user_id=user.id)
        if new_password == current_password:
            return ActionResult.failed(AuthError.PASSWORD_UNCHANGED, user_id=user.id)

        # outstanding refresh tokens stay valid
        user.password_hash = self.hasher.hash(new_password)
        store.update_user(user)
        store.commit()
        return ActionResult.ok("Password changed successfully.", user_id=user.id)

    def get_user(self, store: SessionStore, user_id: str) -> Optional[User]:
        return store.get_user_by_id(user_id)

    def increment_wins(self, store: SessionStore, user_id: str) -> ActionResult:
        return self._increment(store, user_id, "wins")

    def increment_losses(self, store: SessionStore, user_id: str) -> ActionResult:
        return self._increment(store, user_id, "losses")

    def _increment(self, store: SessionStore, user_id: str, field: str) -> ActionResult:
        if not user_id or not store.increment_user_counter(user_id, field):
            return ActionResult.failed(AuthError.USER_NOT_FOUND)
        store.commit()
        return ActionResult.ok(f"{field.capitalize()} updated.", user_id=user_id)

    # refresh tokens
    def renew(self, store: SessionStore, token_value: str, client_ip: str) -> AuthResult:
        """Exchange an active refresh token for a new bundle (rotation)."""
        token = store.get_refresh_token_by_value(token_value)
        if token is None:
            return AuthResult(error=AuthError.INVALID_TOKEN)

        if token.is_revoked:
            # reuse of a revoked token: assume it leaked
            revoked = store.revoke_active_refresh_tokens(
                token.user_id,
                RevokeReason.COMPROMISED,
                revoked_at=self.issuer.now(),
                revoked_by_ip=client_ip,
            )
            store.commit()
            return AuthResult(
                error=AuthError.TOKEN_COMPROMISED,
                user_id=token.user_id,
                revoked_count=revoked,
            )
        if token.is_expired:
            return AuthResult(error=AuthError.EXPIRED_TOKEN, user_id=token.user_id)
        if token.is_rotated:
            return AuthResult(error=AuthError.ALREADY_ROTATED, user_id=token.user_id)

        user = store.get_user_by_id(token.user_id)
        if user is None:
            return AuthResult(error=AuthError.INVALID_TOKEN)

        bundle = self._mint(store, user, client_ip)
        # flip the old row first: a concurrent renew of the same token loses here
        if not store.rotate_refresh_token(
            token.token,
            successor=bundle.refresh_token,
            revoked_at=bundle.issued_at,
            revoked_by_ip=client_ip,
        ):
            store.rollback()
            return AuthResult(error=AuthError.ALREADY_ROTATED, user_id=user.id)

        self._stage(store, user, bundle)
        store.commit()
        return AuthResult(bundle=bundle, user_id=user.id)

    def revoke(
        self,
        store: SessionStore,
        token_value: str,
        client_ip: str,
        reason: Optional[str] = None,
    ) -> ActionResult:
        """Revoke a refresh token. Unrecognised reasons are recorded as Manual."""
        token = store.get_refresh_token_by_value(token_value)
        if token is None:
            return ActionResult.failed(AuthError.TOKEN_NOT_FOUND)
        if token.is_revoked:
            return ActionResult.failed(AuthError.ALREADY_REVOKED, user_id=token.user_id)

        if not store.revoke_refresh_token(
            token.token,
            RevokeReason.parse(reason),
            revoked_at=self.issuer.now(),
            revoked_by_ip=client_ip,
        ):
            store.rollback()
            return ActionResult.failed(AuthError.ALREADY_REVOKED, user_id=token.user_id)
        store.commit()
        return ActionResult.ok("Token revoked successfully.", user_id=token.user_id)
