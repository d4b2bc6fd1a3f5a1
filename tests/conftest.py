"""Shared fixtures: fake AI ports, the in-memory store and a fast-polling pipeline."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

# Settings are read at import time; keep the app off PostgreSQL and the real APIs.
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("USE_REAL_APIS", "false")
os.environ.setdefault("MOCK_TRANSCRIPTION_DELAY", "0")
os.environ.setdefault("MOCK_ADVISORY_DELAY", "0")
os.environ.setdefault("MOCK_SYNTHESIS_DELAY", "0")
os.environ.setdefault("PIPELINE_POLL_INTERVAL_SECONDS", "0.01")
os.environ.setdefault("LOG_FILE", "logs/test-app.log")
os.environ.setdefault("PIPELINE_LOG_FILE", "logs/test-pipeline.log")
os.environ.setdefault("TRANSCRIPT_LOG_FILE", "logs/test-transcripts.log")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402

from agrivoice.application.interfaces import (  # noqa: E402
    AdvisoryResult,
    AdvisoryServiceInterface,
    SpeechSynthesisServiceInterface,
    TranscriptionServiceInterface,
)
from agrivoice.pipelines.session import SessionPipeline  # noqa: E402
from agrivoice.services.interaction_store import InMemoryInteractionRepository  # noqa: E402
from agrivoice.services.transcribe import TranscriptionError  # noqa: E402

QUESTION = "My wheat crop has pests. What should I do?"
ANSWER = "Spray neem oil and watch the leaves."
AUDIO_URL = "https://cdn.test/answers/audio.mp3"


class _GatedPort:
    """Records calls and can be held open until the test releases it."""

    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.calls: list[tuple] = []
        self._gate = asyncio.Event()
        self._gate.set()

    def hold(self) -> None:
        self._gate.clear()

    def release(self) -> None:
        self._gate.set()

    async def _pass_gate(self) -> None:
        await self._gate.wait()
        if self.error is not None:
            raise self.error


class FakeTranscriber(_GatedPort, TranscriptionServiceInterface):
    def __init__(self, transcript: str = QUESTION, error: Optional[Exception] = None) -> None:
        super().__init__(error)
        self.transcript = transcript

    async def transcribe(self, audio_bytes, language, *, content_type="audio/webm"):
        self.calls.append((audio_bytes, language, content_type))
        await self._pass_gate()
        if audio_bytes == b"unreadable":
            raise TranscriptionError("could not decode audio")
        return self.transcript


class FakeAdvisor(_GatedPort, AdvisoryServiceInterface):
    def __init__(self, answer: str = ANSWER, error: Optional[Exception] = None) -> None:
        super().__init__(error)
        self.answer = answer

    async def generate_answer(self, query, language):
        self.calls.append((query, language))
        await self._pass_gate()
        return AdvisoryResult(answer=self.answer, intent="pest_management", tags=["wheat", "pest"])


class FakeSynthesizer(_GatedPort, SpeechSynthesisServiceInterface):
    def __init__(self, audio_url: str = AUDIO_URL, error: Optional[Exception] = None) -> None:
        super().__init__(error)
        self.audio_url = audio_url

    async def synthesize(self, text, language, *, session_id):
        self.calls.append((text, language, session_id))
        await self._pass_gate()
        return self.audio_url


@pytest.fixture
def repository() -> InMemoryInteractionRepository:
    return InMemoryInteractionRepository()


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def advisor() -> FakeAdvisor:
    return FakeAdvisor()


@pytest.fixture
def synthesizer() -> FakeSynthesizer:
    return FakeSynthesizer()


@pytest_asyncio.fixture
async def pipeline(repository, transcriber, advisor, synthesizer):
    session_pipeline = SessionPipeline(
        repository,
        transcriber,
        advisor,
        synthesizer,
        poll_interval=0.01,
        max_poll_attempts=200,
    )
    yield session_pipeline
    transcriber.release()
    advisor.release()
    synthesizer.release()
    await session_pipeline.shutdown(timeout=1)
