"""Asynchronous session pipeline: submit a clip, process it out-of-band, poll for the result."""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Iterable, Optional
from uuid import uuid4

from agrivoice.application.interfaces import (
    AdvisoryServiceInterface,
    InteractionRepositoryInterface,
    SpeechSynthesisServiceInterface,
    TranscriptionServiceInterface,
)
from agrivoice.domain.models import InteractionStatus
from agrivoice.telemetry import (
    SESSIONS_IN_FLIGHT,
    observe_stage,
    record_session_finished,
    record_session_submitted,
)

from . import stages
from .errors import (
    InvalidSubmissionError,
    SessionNotFoundError,
    SessionTimeoutError,
    StageFailure,
)
from .flow import SessionPipelineFlow, StageName
from .types import SessionJob, SessionSnapshot, SubmitReceipt

logger = logging.getLogger("agrivoice.pipeline")
transcript_logger = logging.getLogger("agrivoice.logs.transcript")

DEFAULT_LANGUAGES = ("en", "hi", "te")


class SessionPipeline:
    """Drive each submitted clip through transcribe → advise → synthesize.

    The pipeline is the only writer of an interaction while it is
    ``processing``. Every stage failure ends as a ``failed`` write on the
    record; nothing raised in the background reaches the caller of `submit`.
    """

    def __init__(
        self,
        repository: InteractionRepositoryInterface,
        transcriber: TranscriptionServiceInterface,
        advisor: AdvisoryServiceInterface,
        synthesizer: SpeechSynthesisServiceInterface,
        *,
        supported_languages: Iterable[str] = DEFAULT_LANGUAGES,
        poll_interval: float = 1.0,
        max_poll_attempts: int = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._repository = repository
        self._transcriber = transcriber
        self._advisor = advisor
        self._synthesizer = synthesizer
        self._supported_languages = frozenset(supported_languages)
        self._poll_interval = poll_interval
        self._max_poll_attempts = max_poll_attempts
        self._clock = clock
        self._in_flight: dict[str, asyncio.Task[None]] = {}

    @property
    def supported_languages(self) -> frozenset[str]:
        return self._supported_languages

    async def submit(
        self,
        audio_bytes: bytes,
        language: str,
        *,
        user_phone: Optional[str] = None,
        content_type: str = "audio/webm",
        audio_duration: Optional[float] = None,
    ) -> SubmitReceipt:
        """Create the interaction record and schedule its processing; never waits on a port."""

        if not audio_bytes:
            raise InvalidSubmissionError("Audio payload is empty.")
        if language not in self._supported_languages:
            raise InvalidSubmissionError(
                f"Unsupported language '{language}'. "
                f"Expected one of: {', '.join(sorted(self._supported_languages))}."
            )

        started_at = self._clock()
        session_id = str(uuid4())
        interaction = await self._repository.create(
            {
                "session_id": session_id,
                "language": language,
                "user_phone": user_phone or None,
                "status": InteractionStatus.PROCESSING,
                "audio_duration": audio_duration,
            }
        )

        job = SessionJob(
            interaction_id=interaction.id,
            session_id=session_id,
            audio_bytes=bytes(audio_bytes),
            language=language,
            content_type=content_type,
            started_at=started_at,
            user_phone=user_phone or None,
        )
        task = asyncio.create_task(self._run(job), name=f"session-{session_id}")
        self._in_flight[session_id] = task
        SESSIONS_IN_FLIGHT.set(len(self._in_flight))
        task.add_done_callback(lambda finished: self._forget(session_id, finished))

        record_session_submitted(language)
        logger.info(
            "Session submitted session=%s language=%s bytes=%s caller=%s",
            session_id,
            language,
            len(audio_bytes),
            "yes" if user_phone else "no",
        )
        return SubmitReceipt(session_id=session_id)

    async def get_status(self, session_id: str) -> SessionSnapshot:
        """Return the persisted state of a session without waiting."""

        interaction = await self._repository.get_by_session_id(session_id)
        if interaction is None:
            raise SessionNotFoundError(session_id)
        return SessionSnapshot.from_interaction(interaction)

    async def await_completion(
        self,
        session_id: str,
        max_attempts: Optional[int] = None,
        *,
        interval: Optional[float] = None,
    ) -> SessionSnapshot:
        """Poll `get_status` until the session is terminal or attempts run out.

        Timing out only ends the caller's wait; the background work keeps going.
        """

        attempts = max_attempts if max_attempts is not None else self._max_poll_attempts
        if attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        delay = self._poll_interval if interval is None else interval

        for attempt in range(1, attempts + 1):
            snapshot = await self.get_status(session_id)
            if snapshot.is_terminal:
                return snapshot
            if attempt < attempts:
                await asyncio.sleep(delay)

        raise SessionTimeoutError(session_id, attempts)

    def in_flight(self) -> frozenset[str]:
        """Session ids whose background processing has not finished yet."""

        return frozenset(self._in_flight)

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """Let running sessions finish for up to ``timeout`` seconds, then cancel the rest."""

        tasks = list(self._in_flight.values())
        if not tasks:
            return

        logger.info("Draining %s in-flight sessions", len(tasks))
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        for task in pending:
            task.cancel()
        if pending:
            logger.warning("Cancelled %s sessions still running at shutdown", len(pending))
            await asyncio.gather(*pending, return_exceptions=True)

    async def _run(self, job: SessionJob) -> None:
        stage = StageName.TRANSCRIBE
        try:
            async with self._stage(job, stage):
                transcript = await stages.transcribe(self._transcriber, job)
                await self._repository.update(job.interaction_id, {"transcript": transcript})
            transcript_logger.info(
                "farmer | session=%s | language=%s | text=%s",
                job.session_id,
                job.language,
                transcript,
            )

            stage = StageName.ADVISE
            async with self._stage(job, stage):
                advice = await stages.advise(self._advisor, transcript, job.language)
                await self._repository.update(
                    job.interaction_id,
                    {
                        "answer_text": advice.answer,
                        "intent": advice.intent,
                        "tags": list(advice.tags),
                    },
                )

            stage = StageName.SYNTHESIZE
            async with self._stage(job, stage):
                audio_ref = await stages.synthesize(self._synthesizer, advice.answer, job)
                await self._repository.update(
                    job.interaction_id,
                    {
                        "answer_audio_url": audio_ref,
                        "status": InteractionStatus.COMPLETED,
                        "processing_time": self._elapsed_ms(job),
                    },
                )
        except StageFailure as exc:
            await self._mark_failed(job, exc.reason)
            return
        except asyncio.CancelledError:
            await self._mark_failed(job, f"{stage.value}: cancelled")
            raise
        except Exception as exc:
            logger.exception("Unexpected error session=%s stage=%s", job.session_id, stage.value)
            await self._mark_failed(job, f"{stage.value}: {exc}"[:512])
            return

        record_session_finished(InteractionStatus.COMPLETED.value)
        transcript_logger.info(
            "advisor | session=%s | intent=%s | text=%s",
            job.session_id,
            advice.intent,
            advice.answer,
        )
        logger.info(
            "Session completed session=%s processing_ms=%s",
            job.session_id,
            self._elapsed_ms(job),
        )
        await self._credit_caller(job)

    @asynccontextmanager
    async def _stage(self, job: SessionJob, stage: StageName) -> AsyncIterator[None]:
        descriptor = SessionPipelineFlow.get(stage)
        started = time.perf_counter()
        outcome = "failed"
        logger.info(
            "Stage %s/%s %s started session=%s",
            descriptor.order,
            len(SessionPipelineFlow.describe()),
            stage.value,
            job.session_id,
        )
        try:
            yield
            outcome = "ok"
        finally:
            elapsed = time.perf_counter() - started
            observe_stage(stage.value, outcome, elapsed)
            logger.info(
                "Stage %s %s session=%s elapsed_ms=%.1f",
                stage.value,
                outcome,
                job.session_id,
                elapsed * 1000,
            )

    async def _mark_failed(self, job: SessionJob, reason: str) -> None:
        logger.warning("Session failed session=%s reason=%s", job.session_id, reason)
        try:
            await self._repository.update(
                job.interaction_id,
                {"status": InteractionStatus.FAILED, "failure_reason": reason},
            )
        except Exception:
            logger.exception("Could not record failed status session=%s", job.session_id)
            return
        record_session_finished(InteractionStatus.FAILED.value)

    async def _credit_caller(self, job: SessionJob) -> None:
        if not job.user_phone:
            return
        try:
            credited = await self._repository.increment_user_interactions(job.user_phone)
        except Exception:
            logger.exception("Could not update caller counter session=%s", job.session_id)
            return
        if not credited:
            logger.info("No profile for caller of session=%s; counter unchanged", job.session_id)

    def _elapsed_ms(self, job: SessionJob) -> int:
        return int(round((self._clock() - job.started_at) * 1000))

    def _forget(self, session_id: str, task: asyncio.Task[None]) -> None:
        if self._in_flight.get(session_id) is task:
            del self._in_flight[session_id]
        SESSIONS_IN_FLIGHT.set(len(self._in_flight))
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Session task ended with an error session=%s",
                session_id,
                exc_info=task.exception(),
            )


__all__ = ["DEFAULT_LANGUAGES", "SessionPipeline"]
