"""ORM model for salted pattern hashes (secondary login factor)."""

from sqlalchemy import Column, DateTime, Integer, String, func

from app.models.base import Base


class AuthPattern(Base):
    """One pattern per account: hex salt, hex bcrypt-pbkdf hash and the rounds used."""

    __tablename__ = "auth_patterns"

    account_id = Column(String(64), primary_key=True)
    email = Column(String(320), nullable=False, index=True)
    salt = Column(String(64), nullable=False)
    hash = Column(String(256), nullable=False)
    rounds = Column(Integer, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
