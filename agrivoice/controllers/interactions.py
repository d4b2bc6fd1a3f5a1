"""Read-only listing of interaction records for analytics consumers."""

from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, HTTPException, Query, status

from agrivoice.controllers.dependencies import RepositoryDep
from agrivoice.services.interaction_store import StoreUnavailableError
from agrivoice.views import InteractionResponse

router = APIRouter(prefix="/interactions", tags=["interactions"])

LimitQuery = Annotated[int, Query(ge=1, le=100)]


@router.get("", response_model=List[InteractionResponse])
async def list_interactions(
    repository: RepositoryDep,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    limit: LimitQuery = 100,
) -> List[InteractionResponse]:
    try:
        records = await repository.list_recent(date_from, date_to, limit)
    except StoreUnavailableError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Interaction store is unavailable",
        ) from exc
    return [InteractionResponse.model_validate(record) for record in records]
