"""Service layer helpers for external integrations."""

from .advisory import AdvisoryError, BedrockAdvisoryService
from .intent_detector import IntentDetector, get_intent_detector
from .interaction_store import (
    InMemoryInteractionRepository,
    InteractionStateError,
    StoreUnavailableError,
)
from .mock import (
    MockAdvisoryService,
    MockSpeechService,
    MockTranscriptionService,
    build_mock_services,
)
from .speech import ElevenLabsSpeechService, SynthesisError, build_speech_service
from .storage import StorageError, upload_answer_audio
from .transcribe import TranscribeService, TranscriptionError, build_transcribe_service

__all__ = [
    "AdvisoryError",
    "BedrockAdvisoryService",
    "ElevenLabsSpeechService",
    "InMemoryInteractionRepository",
    "IntentDetector",
    "InteractionStateError",
    "MockAdvisoryService",
    "MockSpeechService",
    "MockTranscriptionService",
    "StorageError",
    "StoreUnavailableError",
    "SynthesisError",
    "TranscribeService",
    "TranscriptionError",
    "build_mock_services",
    "build_speech_service",
    "build_transcribe_service",
    "get_intent_detector",
    "upload_answer_audio",
]
