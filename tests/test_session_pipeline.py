"""Behaviour of the asynchronous session pipeline against fake AI ports."""

from __future__ import annotations

import asyncio

import pytest

from agrivoice.domain.models import InteractionStatus
from agrivoice.pipelines.session import (
    InvalidSubmissionError,
    SessionNotFoundError,
    SessionPipeline,
    SessionTimeoutError,
)
from agrivoice.services.advisory import AdvisoryError
from agrivoice.services.interaction_store import (
    InMemoryInteractionRepository,
    StoreUnavailableError,
)
from agrivoice.services.speech import SynthesisError
from agrivoice.services.transcribe import TranscriptionError

from conftest import ANSWER, AUDIO_URL, QUESTION

AUDIO = b"\x1aE\xdf\xa3webm-bytes"


@pytest.mark.asyncio
async def test_submit_returns_processing_receipt_before_any_port_runs(pipeline, transcriber):
    transcriber.hold()

    receipt = await pipeline.submit(AUDIO, "en")

    assert receipt.status is InteractionStatus.PROCESSING
    assert receipt.transcript == ""
    assert receipt.session_id
    assert transcriber.calls == []

    snapshot = await pipeline.get_status(receipt.session_id)
    assert snapshot.status is InteractionStatus.PROCESSING
    assert snapshot.transcript == ""
    assert snapshot.answer_text == ""
    assert snapshot.answer_audio_url is None


@pytest.mark.asyncio
async def test_happy_path_completes_with_all_outputs(pipeline, repository, transcriber, synthesizer):
    receipt = await pipeline.submit(AUDIO, "hi", content_type="audio/ogg", audio_duration=4.2)

    snapshot = await pipeline.await_completion(receipt.session_id)

    assert snapshot.status is InteractionStatus.COMPLETED
    assert snapshot.transcript == QUESTION
    assert snapshot.answer_text == ANSWER
    assert snapshot.answer_audio_url == AUDIO_URL
    assert snapshot.failure_reason is None
    assert transcriber.calls == [(AUDIO, "hi", "audio/ogg")]
    assert synthesizer.calls == [(ANSWER, "hi", receipt.session_id)]

    record = await repository.get_by_session_id(receipt.session_id)
    assert record.intent == "pest_management"
    assert record.tags == ["wheat", "pest"]
    assert record.audio_duration == 4.2
    assert record.processing_time is not None and record.processing_time >= 0


@pytest.mark.asyncio
async def test_transcription_failure_marks_session_failed(pipeline, transcriber, advisor, synthesizer):
    transcriber.error = TranscriptionError("provider rejected audio")

    receipt = await pipeline.submit(AUDIO, "en")
    snapshot = await pipeline.await_completion(receipt.session_id)

    assert snapshot.status is InteractionStatus.FAILED
    assert snapshot.transcript == ""
    assert snapshot.answer_text == ""
    assert snapshot.answer_audio_url is None
    assert snapshot.failure_reason == "transcribe: provider rejected audio"
    assert advisor.calls == []
    assert synthesizer.calls == []


@pytest.mark.asyncio
async def test_empty_transcript_is_a_transcription_failure(pipeline, transcriber, advisor):
    transcriber.transcript = "   "

    receipt = await pipeline.submit(AUDIO, "te")
    snapshot = await pipeline.await_completion(receipt.session_id)

    assert snapshot.status is InteractionStatus.FAILED
    assert snapshot.failure_reason.startswith("transcribe")
    assert advisor.calls == []


@pytest.mark.asyncio
async def test_advisory_failure_keeps_transcript(pipeline, advisor, synthesizer):
    advisor.error = AdvisoryError("model unavailable")

    receipt = await pipeline.submit(AUDIO, "en")
    snapshot = await pipeline.await_completion(receipt.session_id)

    assert snapshot.status is InteractionStatus.FAILED
    assert snapshot.transcript == QUESTION
    assert snapshot.answer_text == ""
    assert snapshot.answer_audio_url is None
    assert snapshot.failure_reason == "advise: model unavailable"
    assert synthesizer.calls == []


@pytest.mark.asyncio
async def test_synthesis_failure_keeps_transcript_and_answer(pipeline, synthesizer):
    synthesizer.error = SynthesisError("voice quota exceeded")

    receipt = await pipeline.submit(AUDIO, "en")
    snapshot = await pipeline.await_completion(receipt.session_id)

    assert snapshot.status is InteractionStatus.FAILED
    assert snapshot.transcript == QUESTION
    assert snapshot.answer_text == ANSWER
    assert snapshot.answer_audio_url is None
    assert snapshot.failure_reason == "synthesize: voice quota exceeded"


@pytest.mark.asyncio
async def test_unexpected_port_error_is_recorded_as_failure(pipeline, advisor):
    advisor.error = KeyError("choices")

    receipt = await pipeline.submit(AUDIO, "en")
    snapshot = await pipeline.await_completion(receipt.session_id)

    assert snapshot.status is InteractionStatus.FAILED
    assert snapshot.failure_reason.startswith("advise: ")


@pytest.mark.asyncio
async def test_unknown_session_is_not_found(pipeline):
    with pytest.raises(SessionNotFoundError):
        await pipeline.get_status("no-such-session")

    with pytest.raises(SessionNotFoundError):
        await pipeline.await_completion("no-such-session", max_attempts=3)


@pytest.mark.asyncio
async def test_await_times_out_but_processing_continues(pipeline, advisor):
    advisor.hold()
    receipt = await pipeline.submit(AUDIO, "en")

    with pytest.raises(SessionTimeoutError) as excinfo:
        await pipeline.await_completion(receipt.session_id, max_attempts=3)
    assert excinfo.value.session_id == receipt.session_id
    assert excinfo.value.attempts == 3
    assert receipt.session_id in pipeline.in_flight()

    advisor.release()
    snapshot = await pipeline.await_completion(receipt.session_id)
    assert snapshot.status is InteractionStatus.COMPLETED


@pytest.mark.asyncio
async def test_await_with_single_attempt_does_not_sleep(pipeline, transcriber, monkeypatch):
    transcriber.hold()
    receipt = await pipeline.submit(AUDIO, "en")

    async def no_sleep(delay):
        raise AssertionError("await_completion slept after its last attempt")

    monkeypatch.setattr(asyncio, "sleep", no_sleep)
    with pytest.raises(SessionTimeoutError):
        await pipeline.await_completion(receipt.session_id, max_attempts=1)


@pytest.mark.asyncio
async def test_await_rejects_non_positive_attempts(pipeline):
    receipt = await pipeline.submit(AUDIO, "en")
    with pytest.raises(ValueError):
        await pipeline.await_completion(receipt.session_id, max_attempts=0)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("audio", "language"),
    [(b"", "en"), (AUDIO, "fr"), (AUDIO, "")],
)
async def test_invalid_submission_creates_no_record(pipeline, repository, audio, language):
    with pytest.raises(InvalidSubmissionError):
        await pipeline.submit(audio, language)

    assert await repository.list_recent() == []
    assert pipeline.in_flight() == frozenset()


@pytest.mark.asyncio
async def test_store_failure_at_submit_propagates(transcriber, advisor, synthesizer):
    class BrokenStore(InMemoryInteractionRepository):
        async def create(self, fields):
            raise StoreUnavailableError("connection refused")

    session_pipeline = SessionPipeline(BrokenStore(), transcriber, advisor, synthesizer)

    with pytest.raises(StoreUnavailableError):
        await session_pipeline.submit(AUDIO, "en")

    assert session_pipeline.in_flight() == frozenset()
    assert transcriber.calls == []


@pytest.mark.asyncio
async def test_status_written_once_at_the_end(transcriber, advisor, synthesizer):
    writes = []

    class RecordingStore(InMemoryInteractionRepository):
        async def update(self, interaction_id, fields):
            writes.append(dict(fields))
            return await super().update(interaction_id, fields)

    session_pipeline = SessionPipeline(
        RecordingStore(), transcriber, advisor, synthesizer, poll_interval=0.01
    )
    receipt = await session_pipeline.submit(AUDIO, "en")
    await session_pipeline.await_completion(receipt.session_id)
    await session_pipeline.shutdown(timeout=1)

    assert [list(w) for w in writes] == [
        ["transcript"],
        ["answer_text", "intent", "tags"],
        ["answer_audio_url", "status", "processing_time"],
    ]
    assert writes[-1]["status"] is InteractionStatus.COMPLETED


@pytest.mark.asyncio
async def test_concurrent_sessions_are_independent(pipeline, transcriber):
    good = await pipeline.submit(AUDIO, "en")
    bad = await pipeline.submit(b"unreadable", "hi")

    good_snapshot, bad_snapshot = await asyncio.gather(
        pipeline.await_completion(good.session_id),
        pipeline.await_completion(bad.session_id),
    )

    assert good.session_id != bad.session_id
    assert good_snapshot.status is InteractionStatus.COMPLETED
    assert bad_snapshot.status is InteractionStatus.FAILED
    assert bad_snapshot.failure_reason == "transcribe: could not decode audio"


@pytest.mark.asyncio
async def test_completed_session_credits_known_caller_once(pipeline, repository):
    await repository.upsert_user_profile("+919876543210", {"preferred_language": "hi"})

    receipt = await pipeline.submit(AUDIO, "hi", user_phone="+919876543210")
    await pipeline.await_completion(receipt.session_id)
    await pipeline.shutdown(timeout=1)

    profile = await repository.get_user_profile("+919876543210")
    assert profile.total_interactions == 1


@pytest.mark.asyncio
async def test_failed_session_does_not_credit_caller(pipeline, repository, synthesizer):
    await repository.upsert_user_profile("+919876543210", {})
    synthesizer.error = SynthesisError("boom")

    receipt = await pipeline.submit(AUDIO, "en", user_phone="+919876543210")
    await pipeline.await_completion(receipt.session_id)
    await pipeline.shutdown(timeout=1)

    profile = await repository.get_user_profile("+919876543210")
    assert profile.total_interactions == 0


@pytest.mark.asyncio
async def test_unknown_caller_gets_no_profile(pipeline, repository):
    receipt = await pipeline.submit(AUDIO, "en", user_phone="+910000000000")
    snapshot = await pipeline.await_completion(receipt.session_id)
    await pipeline.shutdown(timeout=1)

    assert snapshot.status is InteractionStatus.COMPLETED
    assert await repository.get_user_profile("+910000000000") is None


@pytest.mark.asyncio
async def test_in_flight_tracks_running_sessions(pipeline, synthesizer):
    synthesizer.hold()
    receipt = await pipeline.submit(AUDIO, "en")
    assert pipeline.in_flight() == frozenset({receipt.session_id})

    synthesizer.release()
    await pipeline.await_completion(receipt.session_id)
    await pipeline.shutdown(timeout=1)

    assert pipeline.in_flight() == frozenset()


@pytest.mark.asyncio
async def test_shutdown_cancels_stuck_sessions_and_marks_them_failed(pipeline, advisor):
    advisor.hold()
    receipt = await pipeline.submit(AUDIO, "en")
    await asyncio.sleep(0.05)

    await pipeline.shutdown(timeout=0.01)

    snapshot = await pipeline.get_status(receipt.session_id)
    assert snapshot.status is InteractionStatus.FAILED
    assert snapshot.failure_reason == "advise: cancelled"
    assert snapshot.transcript == QUESTION
    assert pipeline.in_flight() == frozenset()


@pytest.mark.asyncio
async def test_port_outputs_are_stored_as_returned(pipeline, transcriber, advisor, synthesizer):
    transcriber.transcript = " My wheat has pests.\n"
    advisor.answer = "  Spray neem oil.\n"

    receipt = await pipeline.submit(AUDIO, "en")
    snapshot = await pipeline.await_completion(receipt.session_id)

    assert snapshot.status is InteractionStatus.COMPLETED
    assert snapshot.transcript == " My wheat has pests.\n"
    assert snapshot.answer_text == "  Spray neem oil.\n"
    assert advisor.calls == [(" My wheat has pests.\n", "en")]
    assert synthesizer.calls[0][0] == "  Spray neem oil.\n"


@pytest.mark.asyncio
async def test_blank_answer_is_an_advisory_failure(pipeline, advisor, synthesizer):
    advisor.answer = " \n "

    receipt = await pipeline.submit(AUDIO, "en")
    snapshot = await pipeline.await_completion(receipt.session_id)

    assert snapshot.status is InteractionStatus.FAILED
    assert snapshot.failure_reason == "advise: empty answer"
    assert snapshot.answer_text == ""
    assert synthesizer.calls == []
