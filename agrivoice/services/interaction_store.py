"""In-memory interaction repository plus the rules shared by every store.

The memory store mirrors the SQLAlchemy repository one-for-one so local
development and tests can run without PostgreSQL. Records are copied on the
way in and out so callers never hold a live reference to stored state.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from agrivoice.application.interfaces import InteractionRepositoryInterface
from agrivoice.domain.models import Interaction, InteractionStatus, UserProfile


class StoreUnavailableError(RuntimeError):
    """Raised when the interaction store cannot be reached or refuses a write."""


class InteractionStateError(RuntimeError):
    """Raised when an update would break the interaction lifecycle rules."""


CREATE_FIELDS = frozenset(
    {"session_id", "language", "user_phone", "status", "audio_duration"}
)
UPDATE_FIELDS = frozenset(
    {
        "transcript",
        "answer_text",
        "answer_audio_url",
        "intent",
        "tags",
        "status",
        "processing_time",
        "failure_reason",
    }
)
WRITE_ONCE_FIELDS = ("transcript", "answer_text", "answer_audio_url", "intent")
PROFILE_FIELDS = frozenset({"preferred_language", "village", "state", "crops"})


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def filter_fields(fields: Mapping[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    """Return a mutable copy of ``fields``, rejecting keys outside ``allowed``."""

    unknown = set(fields) - allowed
    if unknown:
        raise InteractionStateError(f"Unsupported fields: {', '.join(sorted(unknown))}")
    return dict(fields)


def check_update(current: Interaction, changes: Mapping[str, Any]) -> None:
    """Reject writes to terminal records and second writes to stage outputs."""

    status = InteractionStatus(current.status)
    if status.is_terminal:
        raise InteractionStateError(
            f"Interaction {current.id} is already {status.value}; refusing update."
        )
    for name in WRITE_ONCE_FIELDS:
        if name in changes and getattr(current, name) is not None:
            raise InteractionStateError(
                f"Interaction {current.id} already has '{name}' populated."
            )
    if "status" in changes:
        InteractionStatus(changes["status"])


class InMemoryInteractionRepository(InteractionRepositoryInterface):
    """Process-local store with the same semantics as the database repository."""

    def __init__(self) -> None:
        self._interactions: dict[str, Interaction] = {}
        self._session_index: dict[str, str] = {}
        self._profiles: dict[str, UserProfile] = {}

    async def create(self, fields: Mapping[str, Any]) -> Interaction:
        values = filter_fields(fields, CREATE_FIELDS)
        session_id = values.get("session_id")
        if not session_id:
            raise InteractionStateError("session_id is required.")
        if session_id in self._session_index:
            raise StoreUnavailableError(f"Duplicate session_id {session_id}.")

        now = utc_now()
        record = Interaction(
            id=str(uuid.uuid4()),
            status=InteractionStatus(values.pop("status", InteractionStatus.PROCESSING)),
            created_at=now,
            updated_at=now,
            **values,
        )
        self._interactions[record.id] = record
        self._session_index[record.session_id] = record.id
        return record.model_copy(deep=True)

    async def update(self, interaction_id: str, fields: Mapping[str, Any]) -> Interaction:
        changes = filter_fields(fields, UPDATE_FIELDS)
        current = self._interactions.get(interaction_id)
        if current is None:
            raise InteractionStateError(f"Interaction {interaction_id} does not exist.")
        check_update(current, changes)

        if "status" in changes:
            changes["status"] = InteractionStatus(changes["status"])
        if "tags" in changes:
            changes["tags"] = list(changes["tags"] or [])
        updated = current.model_copy(update={**changes, "updated_at": utc_now()}, deep=True)
        self._interactions[interaction_id] = updated
        return updated.model_copy(deep=True)

    async def get_by_session_id(self, session_id: str) -> Optional[Interaction]:
        interaction_id = self._session_index.get(session_id)
        if interaction_id is None:
            return None
        return self._interactions[interaction_id].model_copy(deep=True)

    async def list_recent(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = 100,
    ) -> list[Interaction]:
        records = list(self._interactions.values())
        if date_from is not None:
            records = [r for r in records if r.created_at >= _aware(date_from)]
        if date_to is not None:
            records = [r for r in records if r.created_at <= _aware(date_to)]
        records.sort(key=lambda r: r.created_at, reverse=True)
        return [r.model_copy(deep=True) for r in records[:limit]]

    async def get_user_profile(self, phone: str) -> Optional[UserProfile]:
        profile = self._profiles.get(phone)
        return profile.model_copy(deep=True) if profile else None

    async def upsert_user_profile(self, phone: str, fields: Mapping[str, Any]) -> UserProfile:
        values = {k: v for k, v in fields.items() if k in PROFILE_FIELDS and v is not None}
        now = utc_now()
        existing = self._profiles.get(phone)
        if existing is None:
            profile = UserProfile(
                id=str(uuid.uuid4()),
                phone=phone,
                created_at=now,
                updated_at=now,
                **values,
            )
        else:
            profile = existing.model_copy(update={**values, "updated_at": now}, deep=True)
        self._profiles[phone] = profile
        return profile.model_copy(deep=True)

    async def increment_user_interactions(self, phone: str) -> bool:
        profile = self._profiles.get(phone)
        if profile is None:
            return False
        self._profiles[phone] = profile.model_copy(
            update={
                "total_interactions": profile.total_interactions + 1,
                "updated_at": utc_now(),
            }
        )
        return True


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


__all__ = [
    "InMemoryInteractionRepository",
    "InteractionStateError",
    "StoreUnavailableError",
    "CREATE_FIELDS",
    "UPDATE_FIELDS",
    "PROFILE_FIELDS",
    "check_update",
    "filter_fields",
]
