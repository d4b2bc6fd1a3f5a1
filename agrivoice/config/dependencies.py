"""Object wiring for the running application.

Each factory is cached so the whole process shares one repository and one
`SessionPipeline`; FastAPI handlers reach them through `controllers.dependencies`.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from agrivoice.application.interfaces import (
    AdvisoryServiceInterface,
    InteractionRepositoryInterface,
    SpeechSynthesisServiceInterface,
    TranscriptionServiceInterface,
)
from agrivoice.pipelines.session import SessionPipeline
from agrivoice.services.interaction_store import InMemoryInteractionRepository
from agrivoice.services.mock import build_mock_services

from .settings import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_interaction_repository() -> InteractionRepositoryInterface:
    if settings.store_backend == "memory":
        logger.info("Using in-memory interaction store")
        return InMemoryInteractionRepository()

    from agrivoice.services.interaction_repository import SQLAlchemyInteractionRepository

    return SQLAlchemyInteractionRepository()


def build_ai_services() -> tuple[
    TranscriptionServiceInterface,
    AdvisoryServiceInterface,
    SpeechSynthesisServiceInterface,
]:
    """Return the real provider adapters, or the mocks when ``USE_REAL_APIS`` is off."""

    if not settings.use_real_apis:
        logger.info("USE_REAL_APIS disabled; serving canned AI responses")
        return build_mock_services(settings.mock)

    from agrivoice.services.advisory import BedrockAdvisoryService
    from agrivoice.services.llm_client import BedrockLlmClient
    from agrivoice.services.speech import build_speech_service
    from agrivoice.services.transcribe import build_transcribe_service

    return (
        build_transcribe_service(),
        BedrockAdvisoryService(BedrockLlmClient(settings.bedrock)),
        build_speech_service(),
    )


@lru_cache(maxsize=1)
def get_session_pipeline() -> SessionPipeline:
    transcriber, advisor, synthesizer = build_ai_services()
    return SessionPipeline(
        get_interaction_repository(),
        transcriber,
        advisor,
        synthesizer,
        supported_languages=settings.pipeline.supported_languages,
        poll_interval=settings.pipeline.poll_interval_seconds,
        max_poll_attempts=settings.pipeline.max_poll_attempts,
    )


__all__ = [
    "build_ai_services",
    "get_interaction_repository",
    "get_session_pipeline",
]
