"""Persistence layer: SQLAlchemy models and the session store."""
from models.base_model import Base
from models.user import User
from models.refresh_token import RefreshToken, RevokeReason
from models.db_storage import DBStorage, SessionStore

__all__ = ["Base", "User", "RefreshToken", "RevokeReason", "DBStorage", "SessionStore"]
