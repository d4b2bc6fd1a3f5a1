"""Canned stand-ins for the AI services, used when ``USE_REAL_APIS`` is off.

Each service sleeps for a configurable delay so the asynchronous session
flow behaves like it does against the real providers, then returns a fixed
per-language response. Unknown languages get the English response.
"""

from __future__ import annotations

import asyncio

from agrivoice.application.interfaces import (
    AdvisoryResult,
    AdvisoryServiceInterface,
    SpeechSynthesisServiceInterface,
    TranscriptionServiceInterface,
)
from agrivoice.config.settings import MockConfig
from agrivoice.services.intent_detector import IntentDetector, get_intent_detector
from agrivoice.services.transcribe import TranscriptionError

MOCK_TRANSCRIPTS = {
    "hi": "मेरी फसल में कीट लग गए हैं। क्या करूं?",
    "te": "నా పంటలో చీడలు వచ్చాయి. నేను ఏమి చేయాలి?",
    "en": "My crops have pests. What should I do?",
}

MOCK_ANSWERS = {
    "hi": (
        "आपकी फसल में कीट की समस्या है। पहले, कीट का प्रकार पहचानें। "
        "नीम के तेल का छिड़काव करें (10 मिली प्रति लीटर पानी)। "
        "यदि समस्या बनी रहे, तो स्थानीय कृषि अधिकारी से संपर्क करें। "
        "फसल की नियमित निगरानी रखें।"
    ),
    "te": (
        "మీ పంటలో చీడల సమస్య ఉంది. మొదట, చీడ రకాన్ని గుర్తించండి. "
        "వేప నూనె స్ప్రే చేయండి (లీటరుకు 10 మిల్లీ). "
        "సమస్య కొనసాగితే, స్థానిక వ్యవసాయ అధికారిని సంప్రదించండి. "
        "పంటను క్రమం తప్పకుండా పర్యవేక్షించండి."
    ),
    "en": (
        "Your crops have a pest problem. First, identify the type of pest. "
        "Spray neem oil (10ml per liter of water). "
        "If the problem persists, contact your local agriculture officer. "
        "Monitor your crops regularly."
    ),
}


def _pick(table: dict[str, str], language: str) -> str:
    return table.get(language) or table["en"]


class MockTranscriptionService(TranscriptionServiceInterface):
    def __init__(self, delay: float = 1.0) -> None:
        self._delay = delay

    async def transcribe(
        self,
        audio_bytes: bytes,
        language: str,
        *,
        content_type: str = "audio/webm",
    ) -> str:
        if not audio_bytes:
            raise TranscriptionError("The uploaded audio clip is empty.")
        await asyncio.sleep(self._delay)
        return _pick(MOCK_TRANSCRIPTS, language)


class MockAdvisoryService(AdvisoryServiceInterface):
    def __init__(self, delay: float = 1.5, detector: IntentDetector | None = None) -> None:
        self._delay = delay
        self._detector = detector or get_intent_detector()

    async def generate_answer(self, query: str, language: str) -> AdvisoryResult:
        await asyncio.sleep(self._delay)
        return AdvisoryResult(
            answer=_pick(MOCK_ANSWERS, language),
            intent=self._detector.classify(query),
            tags=self._detector.extract_tags(query),
        )


class MockSpeechService(SpeechSynthesisServiceInterface):
    def __init__(self, delay: float = 0.8) -> None:
        self._delay = delay

    async def synthesize(self, text: str, language: str, *, session_id: str) -> str:
        await asyncio.sleep(self._delay)
        return f"data:audio/mp3;base64,mock_audio_{language if language in MOCK_ANSWERS else 'en'}"


def build_mock_services(
    config: MockConfig,
) -> tuple[MockTranscriptionService, MockAdvisoryService, MockSpeechService]:
    """Create the three mock services with the configured latencies."""

    return (
        MockTranscriptionService(config.transcription_delay),
        MockAdvisoryService(config.advisory_delay),
        MockSpeechService(config.synthesis_delay),
    )


__all__ = [
    "MOCK_ANSWERS",
    "MOCK_TRANSCRIPTS",
    "MockAdvisoryService",
    "MockSpeechService",
    "MockTranscriptionService",
    "build_mock_services",
]
