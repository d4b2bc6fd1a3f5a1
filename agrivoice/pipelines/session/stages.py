"""Port calls for each background stage, with port errors mapped to `StageFailure`.

Stages do not touch the store; `SessionPipeline` persists what they return.
"""

from __future__ import annotations

from agrivoice.application.interfaces import (
    AdvisoryResult,
    AdvisoryServiceInterface,
    SpeechSynthesisServiceInterface,
    TranscriptionServiceInterface,
)
from agrivoice.services.advisory import AdvisoryError
from agrivoice.services.speech import SynthesisError
from agrivoice.services.transcribe import TranscriptionError

from .errors import StageFailure
from .flow import StageName
from .types import SessionJob


async def transcribe(port: TranscriptionServiceInterface, job: SessionJob) -> str:
    """Stage 1: turn the recorded clip into text."""

    try:
        transcript = await port.transcribe(
            job.audio_bytes,
            job.language,
            content_type=job.content_type,
        )
    except TranscriptionError as exc:
        raise StageFailure(StageName.TRANSCRIBE.value, str(exc)) from exc

    if not (transcript or "").strip():
        raise StageFailure(StageName.TRANSCRIBE.value, "empty transcript")
    return transcript


async def advise(
    port: AdvisoryServiceInterface,
    transcript: str,
    language: str,
) -> AdvisoryResult:
    """Stage 2: answer the farmer's question."""

    try:
        result = await port.generate_answer(transcript, language)
    except AdvisoryError as exc:
        raise StageFailure(StageName.ADVISE.value, str(exc)) from exc

    if not (result.answer or "").strip():
        raise StageFailure(StageName.ADVISE.value, "empty answer")
    return AdvisoryResult(answer=result.answer, intent=result.intent, tags=list(result.tags))


async def synthesize(
    port: SpeechSynthesisServiceInterface,
    answer_text: str,
    job: SessionJob,
) -> str:
    """Stage 3: voice the answer and return a playable reference."""

    try:
        audio_ref = await port.synthesize(
            answer_text,
            job.language,
            session_id=job.session_id,
        )
    except SynthesisError as exc:
        raise StageFailure(StageName.SYNTHESIZE.value, str(exc)) from exc

    if not audio_ref:
        raise StageFailure(StageName.SYNTHESIZE.value, "no audio reference returned")
    return audio_ref


__all__ = ["advise", "synthesize", "transcribe"]
