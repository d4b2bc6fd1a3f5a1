"""Pydantic schemas for farmer profiles."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserProfileRequest(BaseModel):
    preferred_language: Optional[str] = Field(default=None, min_length=2, max_length=8)
    village: Optional[str] = Field(default=None, max_length=128)
    state: Optional[str] = Field(default=None, max_length=128)
    crops: Optional[List[str]] = None


class UserProfileResponse(BaseModel):
    phone: str
    preferred_language: str
    village: Optional[str] = None
    state: Optional[str] = None
    crops: List[str] = []
    total_interactions: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
