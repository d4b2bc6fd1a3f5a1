"""SQLAlchemy model for farmer profiles keyed by phone number."""

from __future__ import annotations

import uuid

from sqlalchemy import JSON, Column, DateTime, Integer, String

from agrivoice.models.base import Base
from agrivoice.models.interaction import utc_now


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        nullable=False,
    )
    phone = Column(String(32), unique=True, nullable=False, index=True)
    preferred_language = Column(String(8), nullable=False, default="en")
    village = Column(String(128), nullable=True)
    state = Column(String(128), nullable=True)
    crops = Column(JSON, nullable=False, default=list)
    total_interactions = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )


__all__ = ["UserProfile"]
