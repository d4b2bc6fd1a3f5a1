"""Typed containers shared across the session pipeline.

These live in their own module so `stages`, `pipeline` and the HTTP
controllers can import them without creating circular dependencies.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

from agrivoice.domain.models import Interaction, InteractionStatus


@dataclass(frozen=True)
class SubmitReceipt:
    """Handle returned by `submit` before any background work runs."""

    session_id: str
    transcript: str = ""
    status: InteractionStatus = InteractionStatus.PROCESSING

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "transcript": self.transcript,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class SessionSnapshot:
    """Point-in-time view of a session as persisted in the store."""

    transcript: str
    answer_text: str
    answer_audio_url: Optional[str]
    status: InteractionStatus
    failure_reason: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @classmethod
    def from_interaction(cls, interaction: Interaction) -> "SessionSnapshot":
        return cls(
            transcript=interaction.transcript or "",
            answer_text=interaction.answer_text or "",
            answer_audio_url=interaction.answer_audio_url,
            status=InteractionStatus(interaction.status),
            failure_reason=interaction.failure_reason,
        )

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload["status"] = self.status.value
        return payload


@dataclass(frozen=True)
class SessionJob:
    """Everything the background task needs to drive one session."""

    interaction_id: str
    session_id: str
    audio_bytes: bytes
    language: str
    content_type: str
    started_at: float
    user_phone: Optional[str] = None


__all__ = ["SessionJob", "SessionSnapshot", "SubmitReceipt"]
