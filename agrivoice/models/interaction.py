"""SQLAlchemy model for voice query interactions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text

from agrivoice.models.base import Base


def utc_now() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(timezone.utc)


class Interaction(Base):
    __tablename__ = "interactions"

    id = Column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        nullable=False,
    )
    session_id = Column(String(64), unique=True, nullable=False, index=True)
    user_phone = Column(String(32), nullable=True, index=True)
    language = Column(String(8), nullable=False)
    transcript = Column(Text, nullable=True)
    answer_text = Column(Text, nullable=True)
    answer_audio_url = Column(Text, nullable=True)
    intent = Column(String(64), nullable=True, index=True)
    tags = Column(JSON, nullable=False, default=list)
    status = Column(String(16), nullable=False, default="processing", index=True)
    failure_reason = Column(String(512), nullable=True)
    audio_duration = Column(Float, nullable=True)
    processing_time = Column(Integer, nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )


__all__ = ["Interaction", "utc_now"]
