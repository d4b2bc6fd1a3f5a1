"""Pydantic schemas used as views in the MVC architecture."""

from .common import ErrorResponse
from .interactions import InteractionResponse
from .sessions import PipelineStageResponse, SessionStatusResponse, SessionSubmitResponse
from .users import UserProfileRequest, UserProfileResponse

__all__ = [
    "ErrorResponse",
    "InteractionResponse",
    "PipelineStageResponse",
    "SessionStatusResponse",
    "SessionSubmitResponse",
    "UserProfileRequest",
    "UserProfileResponse",
]
