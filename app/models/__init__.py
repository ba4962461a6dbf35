"""SQLAlchemy ORM models."""

from app.models.base import Base
from app.models.pattern import AuthPattern
from app.models.profile import Profile, ProfileRole, Role

__all__ = ["AuthPattern", "Base", "Profile", "ProfileRole", "Role"]
