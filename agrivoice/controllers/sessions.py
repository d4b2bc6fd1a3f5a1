"""Voice session endpoints.

`POST /sessions` returns as soon as the interaction record exists; the
transcribe → advise → synthesize stages (see
`agrivoice.pipelines.session.flow`) run in the background. Clients then poll
`GET /sessions/{session_id}` or block on `GET /sessions/{session_id}/wait`.
"""

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile, status

from agrivoice.controllers.dependencies import PipelineDep
from agrivoice.pipelines.session import (
    InvalidSubmissionError,
    SessionNotFoundError,
    SessionPipelineFlow,
    SessionTimeoutError,
    read_audio_bytes,
    resolve_content_type,
)
from agrivoice.services.interaction_store import StoreUnavailableError
from agrivoice.views import (
    ErrorResponse,
    PipelineStageResponse,
    SessionStatusResponse,
    SessionSubmitResponse,
)

router = APIRouter(prefix="/sessions", tags=["sessions"])

logger = logging.getLogger(__name__)

PIPELINE_STAGES = tuple(SessionPipelineFlow.describe())
"""Ordered pipeline metadata used for quick reference and debugging."""

_LANGUAGE_FORM = Form(...)
_USER_PHONE_FORM = Form(None)
_AUDIO_DURATION_FORM = Form(None)
_AUDIO_FILE_UPLOAD = File(...)

MaxAttemptsQuery = Annotated[Optional[int], Query(ge=1, le=120)]

_STORE_DOWN = {503: {"model": ErrorResponse}}
_NOT_FOUND = {404: {"model": ErrorResponse}}


def _store_unavailable(exc: StoreUnavailableError) -> HTTPException:
    logger.error("Interaction store unavailable: %s", exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Interaction store is unavailable",
    )


@router.get("/stages", response_model=List[PipelineStageResponse])
async def list_pipeline_stages() -> List[PipelineStageResponse]:
    """Describe the background stages every session goes through."""

    return [
        PipelineStageResponse(
            order=stage.order,
            name=stage.name.value,
            port=stage.port,
            persists=list(stage.persists),
            summary=stage.summary,
        )
        for stage in PIPELINE_STAGES
    ]


@router.post(
    "",
    response_model=SessionSubmitResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={400: {"model": ErrorResponse}, **_STORE_DOWN},
)
async def submit_session(
    pipeline: PipelineDep,
    language: str = _LANGUAGE_FORM,
    user_phone: Optional[str] = _USER_PHONE_FORM,
    audio_duration: Optional[float] = _AUDIO_DURATION_FORM,
    audio_file: UploadFile = _AUDIO_FILE_UPLOAD,
) -> SessionSubmitResponse:
    """Accept a recorded question and start processing it in the background."""

    content_type = resolve_content_type(audio_file)
    audio_bytes = await read_audio_bytes(audio_file)

    try:
        receipt = await pipeline.submit(
            audio_bytes,
            language.strip().lower(),
            user_phone=(user_phone or "").strip() or None,
            content_type=content_type,
            audio_duration=audio_duration,
        )
    except InvalidSubmissionError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StoreUnavailableError as exc:
        raise _store_unavailable(exc) from exc

    return SessionSubmitResponse(**receipt.to_dict())


@router.get(
    "/{session_id}",
    response_model=SessionStatusResponse,
    responses={**_NOT_FOUND, **_STORE_DOWN},
)
async def get_session_status(session_id: str, pipeline: PipelineDep) -> SessionStatusResponse:
    """Return the current state of a session without waiting."""

    try:
        snapshot = await pipeline.get_status(session_id)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except StoreUnavailableError as exc:
        raise _store_unavailable(exc) from exc

    return SessionStatusResponse(**snapshot.to_dict())


@router.get(
    "/{session_id}/wait",
    response_model=SessionStatusResponse,
    responses={**_NOT_FOUND, 504: {"model": ErrorResponse}, **_STORE_DOWN},
)
async def wait_for_session(
    session_id: str,
    pipeline: PipelineDep,
    max_attempts: MaxAttemptsQuery = None,
) -> SessionStatusResponse:
    """Block until the session is completed or failed, polling once per interval."""

    try:
        snapshot = await pipeline.await_completion(session_id, max_attempts)
    except SessionNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except SessionTimeoutError as exc:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc)) from exc
    except StoreUnavailableError as exc:
        raise _store_unavailable(exc) from exc

    return SessionStatusResponse(**snapshot.to_dict())
