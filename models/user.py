from sqlalchemy import Column, String, Integer, CheckConstraint

from models.base_model import Base, BaseModel


class User(BaseModel, Base):
    """A player account. Refresh tokens reference it by id (see RefreshToken.user_id)."""

    __tablename__ = "users"

    name = Column(String(50), nullable=False, unique=True, index=True)
    password_hash = Column(String(128), nullable=False)
    wins = Column(Integer, nullable=False, default=0)
    losses = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("wins >= 0", name="ck_users_wins_nonnegative"),
        CheckConstraint("losses >= 0", name="ck_users_losses_nonnegative"),
    )

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("wins", 0)
        kwargs.setdefault("losses", 0)
        super().__init__(*args, **kwargs)

    def __repr__(self):
        return f"<User name={self.name}>"
