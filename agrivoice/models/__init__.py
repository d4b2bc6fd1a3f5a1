"""SQLAlchemy models for the MVC architecture."""

from .base import Base
from .interaction import Interaction  # noqa: F401
from .user_profile import UserProfile  # noqa: F401

__all__ = [
    "Base",
    "Interaction",
    "UserProfile",
]
