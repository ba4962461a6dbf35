"""ORM models for profiles and their role memberships."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    func,
    true,
)

from app.models.base import Base


class Profile(Base):
    """
    Durable record extending an auth-provider account with a unique username.

    Exactly one profile per account (unique account_id). Usernames are
    3-32 chars of [a-z0-9._-] and globally unique.
    """

    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    account_id = Column(String(64), nullable=False, unique=True, index=True)
    username = Column(String(32), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=True, index=True)
    phone = Column(String(20), nullable=True, unique=True, index=True)
    given_names = Column(String(255), nullable=True)
    surnames = Column(String(255), nullable=True)
    active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class Role(Base):
    """Fixed role vocabulary (e.g. 'Empleado', 'Administrador')."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key = Column(String(64), nullable=False, unique=True)


class ProfileRole(Base):
    """Many-to-many link between profiles and roles."""

    __tablename__ = "profile_roles"

    profile_id = Column(
        Integer,
        ForeignKey("profiles.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role_id = Column(
        Integer,
        ForeignKey("roles.id", ondelete="CASCADE"),
        primary_key=True,
    )
