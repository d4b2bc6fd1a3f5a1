from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Mapping, Optional

from agrivoice.domain.models import Interaction, UserProfile


@dataclass(frozen=True)
class AdvisoryResult:
    """Answer produced for a farmer's question."""

    answer: str
    intent: Optional[str] = None
    tags: List[str] = field(default_factory=list)


class TranscriptionServiceInterface(ABC):
    """Speech-to-text contract; failures raise ``TranscriptionError``"""

    @abstractmethod
    async def transcribe(
        self,
        audio_bytes: bytes,
        language: str,
        *,
        content_type: str = "audio/webm",
    ) -> str:
        ...


class AdvisoryServiceInterface(ABC):
    """Question-answering contract; failures raise ``AdvisoryError``"""

    @abstractmethod
    async def generate_answer(self, query: str, language: str) -> AdvisoryResult:
        ...


class SpeechSynthesisServiceInterface(ABC):
    """Text-to-speech contract returning a playable audio reference"""

    @abstractmethod
    async def synthesize(self, text: str, language: str, *, session_id: str) -> str:
        ...


class InteractionRepositoryInterface(ABC):
    """Persistence contract for interactions and caller profiles"""

    @abstractmethod
    async def create(self, fields: Mapping[str, Any]) -> Interaction:
        ...

    @abstractmethod
    async def update(self, interaction_id: str, fields: Mapping[str, Any]) -> Interaction:
        ...

    @abstractmethod
    async def get_by_session_id(self, session_id: str) -> Optional[Interaction]:
        ...

    @abstractmethod
    async def list_recent(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = 100,
    ) -> List[Interaction]:
        ...

    @abstractmethod
    async def get_user_profile(self, phone: str) -> Optional[UserProfile]:
        ...

    @abstractmethod
    async def upsert_user_profile(self, phone: str, fields: Mapping[str, Any]) -> UserProfile:
        ...

    @abstractmethod
    async def increment_user_interactions(self, phone: str) -> bool:
        ...
