"""SQLAlchemy repository for interactions and farmer profiles."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from agrivoice.application.interfaces import InteractionRepositoryInterface
from agrivoice.database import session_scope
from agrivoice.domain.models import Interaction, InteractionStatus, UserProfile
from agrivoice.models.interaction import Interaction as InteractionModel
from agrivoice.models.user_profile import UserProfile as UserProfileModel
from agrivoice.services.interaction_store import (
    CREATE_FIELDS,
    PROFILE_FIELDS,
    UPDATE_FIELDS,
    InteractionStateError,
    StoreUnavailableError,
    check_update,
    filter_fields,
    utc_now,
)

logger = logging.getLogger(__name__)


class SQLAlchemyInteractionRepository(InteractionRepositoryInterface):
    """Persist interactions in PostgreSQL; one short transaction per call."""

    async def create(self, fields: Mapping[str, Any]) -> Interaction:
        values = filter_fields(fields, CREATE_FIELDS)
        status = InteractionStatus(values.pop("status", InteractionStatus.PROCESSING))
        try:
            async with session_scope() as session:
                db_interaction = InteractionModel(status=status.value, tags=[], **values)
                session.add(db_interaction)
                await session.commit()
                await session.refresh(db_interaction)
                return Interaction.model_validate(db_interaction)
        except IntegrityError as exc:
            raise StoreUnavailableError(
                f"Could not create interaction for session {values.get('session_id')}: {exc}"
            ) from exc
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Interaction insert failed")
            raise StoreUnavailableError(str(exc)) from exc

    async def update(self, interaction_id: str, fields: Mapping[str, Any]) -> Interaction:
        changes = filter_fields(fields, UPDATE_FIELDS)
        if "status" in changes:
            changes["status"] = InteractionStatus(changes["status"]).value
        try:
            async with session_scope() as session:
                result = await session.execute(
                    select(InteractionModel)
                    .where(InteractionModel.id == interaction_id)
                    .with_for_update()
                )
                db_interaction = result.scalar_one_or_none()
                if db_interaction is None:
                    raise InteractionStateError(
                        f"Interaction {interaction_id} does not exist."
                    )
                check_update(Interaction.model_validate(db_interaction), changes)

                for name, value in changes.items():
                    setattr(db_interaction, name, value)
                db_interaction.updated_at = utc_now()
                await session.commit()
                await session.refresh(db_interaction)
                return Interaction.model_validate(db_interaction)
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Interaction update failed id=%s", interaction_id)
            raise StoreUnavailableError(str(exc)) from exc

    async def get_by_session_id(self, session_id: str) -> Optional[Interaction]:
        try:
            async with session_scope() as session:
                result = await session.execute(
                    select(InteractionModel).where(InteractionModel.session_id == session_id)
                )
                db_interaction = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return Interaction.model_validate(db_interaction) if db_interaction else None

    async def list_recent(
        self,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = 100,
    ) -> list[Interaction]:
        query = select(InteractionModel).order_by(InteractionModel.created_at.desc())
        if date_from is not None:
            query = query.where(InteractionModel.created_at >= date_from)
        if date_to is not None:
            query = query.where(InteractionModel.created_at <= date_to)
        try:
            async with session_scope() as session:
                result = await session.execute(query.limit(limit))
                rows = result.scalars().all()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return [Interaction.model_validate(row) for row in rows]

    async def get_user_profile(self, phone: str) -> Optional[UserProfile]:
        try:
            async with session_scope() as session:
                result = await session.execute(
                    select(UserProfileModel).where(UserProfileModel.phone == phone)
                )
                db_profile = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return UserProfile.model_validate(db_profile) if db_profile else None

    async def upsert_user_profile(self, phone: str, fields: Mapping[str, Any]) -> UserProfile:
        values = {k: v for k, v in fields.items() if k in PROFILE_FIELDS and v is not None}
        try:
            async with session_scope() as session:
                result = await session.execute(
                    select(UserProfileModel).where(UserProfileModel.phone == phone)
                )
                db_profile = result.scalar_one_or_none()
                if db_profile is None:
                    db_profile = UserProfileModel(phone=phone, **values)
                    session.add(db_profile)
                else:
                    for name, value in values.items():
                        setattr(db_profile, name, value)
                    db_profile.updated_at = utc_now()
                await session.commit()
                await session.refresh(db_profile)
                return UserProfile.model_validate(db_profile)
        except (SQLAlchemyError, OSError) as exc:
            logger.exception("Profile upsert failed phone=%s", phone)
            raise StoreUnavailableError(str(exc)) from exc

    async def increment_user_interactions(self, phone: str) -> bool:
        try:
            async with session_scope() as session:
                result = await session.execute(
                    update(UserProfileModel)
                    .where(UserProfileModel.phone == phone)
                    .values(
                        total_interactions=UserProfileModel.total_interactions + 1,
                        updated_at=utc_now(),
                    )
                )
                await session.commit()
        except (SQLAlchemyError, OSError) as exc:
            raise StoreUnavailableError(str(exc)) from exc
        return bool(result.rowcount)


__all__ = ["SQLAlchemyInteractionRepository"]
