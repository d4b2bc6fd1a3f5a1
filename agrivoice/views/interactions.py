"""Read-only interaction records exposed to analytics consumers."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from agrivoice.domain.models import InteractionStatus


class InteractionResponse(BaseModel):
    id: str
    session_id: str
    user_phone: Optional[str] = None
    language: str
    transcript: Optional[str] = None
    answer_text: Optional[str] = None
    answer_audio_url: Optional[str] = None
    intent: Optional[str] = None
    tags: List[str] = []
    status: InteractionStatus
    processing_time: Optional[int] = None
    audio_duration: Optional[float] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
