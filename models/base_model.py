#!/usr/bin/env python3
"""
Shared SQLAlchemy base and column types for the Sea Battle auth API.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps
- to_dict() that formats timestamps and removes SA internals
- UTCDateTime: every datetime handed out by a model is timezone-aware UTC

Notes:
- SQLite drops tzinfo on the way back, so UTCDateTime stores naive UTC and
  re-attaches UTC on load. PostgreSQL behaves the same way through it.
- Persistence goes through models.db_storage.SessionStore; models never
  commit themselves.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

TIME_FMT = "%Y-%m-%dT%H:%M:%S.%fZ"

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, returns aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at.

    Timestamps are set in Python (not by the database) so the values a
    caller sees before and after a flush are identical.
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        An id and created_at are assigned eagerly when not supplied.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()
        if getattr(self, "created_at", None) is None:
            self.created_at = utcnow()

    def __str__(self) -> str:
        """Human-friendly representation including id and fields."""
        return f"[{self.__class__.__name__}] ({self.id}) {self.to_dict()}"

    def to_dict(self) -> dict:
        """
        Return a dictionary of fields suitable for API responses:
        - Formats datetimes to TIME_FMT (UTC)
        - Removes SQLAlchemy internal state
        - Never includes password hashes
        """
        d = {k: v for k, v in self.__dict__.items() if k != "_sa_instance_state"}
        for key, value in list(d.items()):
            if isinstance(value, datetime):
                d[key] = value.astimezone(timezone.utc).strftime(TIME_FMT)
        d.pop("password_hash", None)
        d["__class__"] = self.__class__.__name__
        return d
