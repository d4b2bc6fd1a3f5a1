"""Farmer profile endpoints keyed by phone number."""

from fastapi import APIRouter, HTTPException, Path, status

from agrivoice.controllers.dependencies import RepositoryDep
from agrivoice.services.interaction_store import StoreUnavailableError
from agrivoice.views import UserProfileRequest, UserProfileResponse

router = APIRouter(prefix="/users", tags=["users"])

_PHONE_PATH = Path(..., min_length=6, max_length=32)


@router.get("/{phone}", response_model=UserProfileResponse)
async def get_user_profile(repository: RepositoryDep, phone: str = _PHONE_PATH) -> UserProfileResponse:
    try:
        profile = await repository.get_user_profile(phone)
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User profile not found")
    return UserProfileResponse.model_validate(profile)


@router.put("/{phone}", response_model=UserProfileResponse)
async def upsert_user_profile(
    payload: UserProfileRequest,
    repository: RepositoryDep,
    phone: str = _PHONE_PATH,
) -> UserProfileResponse:
    """Create the profile on first contact, otherwise update the given fields."""

    try:
        profile = await repository.upsert_user_profile(phone, payload.model_dump(exclude_none=True))
    except StoreUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return UserProfileResponse.model_validate(profile)
