from typing import Optional, List
from pydantic import BaseModel, Field
from datetime import datetime
from enum import Enum


class InteractionStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not InteractionStatus.PROCESSING


class Interaction(BaseModel):
    """Domain model for one voice query and its audit trail"""
    id: str
    session_id: str
    language: str
    status: InteractionStatus = InteractionStatus.PROCESSING
    user_phone: Optional[str] = None
    transcript: Optional[str] = None
    answer_text: Optional[str] = None
    answer_audio_url: Optional[str] = None
    intent: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    processing_time: Optional[int] = None
    audio_duration: Optional[float] = None
    failure_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserProfile(BaseModel):
    """Domain model for a farmer calling in"""
    id: Optional[str] = None
    phone: str
    preferred_language: str = "en"
    village: Optional[str] = None
    state: Optional[str] = None
    crops: List[str] = Field(default_factory=list)
    total_interactions: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
