"""Pydantic schemas for voice session submission and polling."""

from typing import Optional

from pydantic import BaseModel

from agrivoice.domain.models import InteractionStatus


class SessionSubmitResponse(BaseModel):
    session_id: str
    transcript: str = ""
    status: InteractionStatus = InteractionStatus.PROCESSING


class SessionStatusResponse(BaseModel):
    transcript: str
    answer_text: str
    answer_audio_url: Optional[str] = None
    status: InteractionStatus
    failure_reason: Optional[str] = None


class PipelineStageResponse(BaseModel):
    order: int
    name: str
    port: str
    persists: list[str]
    summary: str
