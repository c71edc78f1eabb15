"""
RefreshToken model: server-side record of every renewal token we hand out,
so tokens can be rotated, revoked and checked for reuse.

Fields:
- token (unique, opaque) and user_id (String(36), FK to users.id)
- created_at / created_by_ip, expires_at
- revoked_at / revoked_by_ip / reason_revoked
- replaced_by_token: value of the successor issued when this one was rotated

States: active, rotated (replaced_by_token set), revoked (revoked_at set),
expired (expires_at reached). Rotated and revoked tokens never become active
again.
"""
from __future__ import annotations

from enum import Enum

from sqlalchemy import Column, String, ForeignKey, Index
from sqlalchemy.types import Enum as SAEnum

from models.base_model import BaseModel, Base, UTCDateTime, utcnow


class RevokeReason(str, Enum):
    MANUAL = "Manual"
    EXPIRED = "Expired"
    REPLACED_BY_NEW_TOKEN = "ReplacedByNewToken"
    COMPROMISED = "Compromised"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, raw) -> "RevokeReason":
        """
        Lenient parsing of a client-supplied reason.

        Matches the value ("ReplacedByNewToken") or the member name
        ("replaced_by_new_token"), ignoring case. Anything else, including
        None, falls back to MANUAL.
        """
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, str):
            return cls.MANUAL
        wanted = raw.strip().lower()
        for member in cls:
            if wanted in (member.value.lower(), member.name.lower()):
                return member
        return cls.MANUAL


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(128), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    expires_at = Column(UTCDateTime, nullable=False)
    created_by_ip = Column(String(64), nullable=False, default="unknown")
    revoked_at = Column(UTCDateTime, nullable=True)
    revoked_by_ip = Column(String(64), nullable=True)
    replaced_by_token = Column(String(128), nullable=True)
    reason_revoked = Column(
        SAEnum(RevokeReason, name="revoke_reason", native_enum=False), nullable=True
    )

    __table_args__ = (
        Index("ix_refresh_tokens_token", "token", unique=True),
        Index("ix_refresh_tokens_user_id", "user_id"),
    )

    @property
    def is_expired(self) -> bool:
        return utcnow() >= self.expires_at

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    @property
    def is_rotated(self) -> bool:
        return self.replaced_by_token is not None

    @property
    def is_active(self) -> bool:
        return not self.is_revoked and not self.is_expired and not self.is_rotated

    def __repr__(self):
        return f"<RefreshToken user={self.user_id} active={self.is_active}>"
