"""FastAPI routers acting as controllers in the MVC architecture."""

from . import interactions, sessions, users

__all__ = ["interactions", "sessions", "users"]
