"""Agronomy advisory backed by Amazon Bedrock."""

from __future__ import annotations

import logging

from agrivoice.application.interfaces import AdvisoryResult, AdvisoryServiceInterface
from agrivoice.services.intent_detector import IntentDetector, get_intent_detector
from agrivoice.services.llm_client import BedrockLlmClient, LlmInvocationError

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {"en": "English", "hi": "Hindi", "te": "Telugu"}

SYSTEM_PROMPT = """You are AgriVoice, an expert agricultural advisor helping farmers in India.

Your role:
- Provide practical, actionable farming advice
- Focus on pest management, crop care, irrigation, fertilizers, weather, and market prices
- Give answers in 3-5 short, clear steps
- Use simple language appropriate for farmers
- Consider local Indian farming practices and conditions
- When uncertain, recommend contacting local agricultural extension officers

Response format:
- Keep answers concise and practical
- Prioritize safety and sustainable farming practices
- Mention specific quantities and timings when relevant
- Consider seasonal factors

Always respond in the same language as the user's question."""


class AdvisoryError(RuntimeError):
    """Raised when no advisory answer could be generated."""


def language_name(language: str) -> str:
    return LANGUAGE_NAMES.get(language, LANGUAGE_NAMES["en"])


class BedrockAdvisoryService(AdvisoryServiceInterface):
    """Ask the LLM for an answer; intent and tags come from keyword detection."""

    def __init__(
        self,
        llm_client: BedrockLlmClient,
        detector: IntentDetector | None = None,
    ) -> None:
        self._llm_client = llm_client
        self._detector = detector or get_intent_detector()

    async def generate_answer(self, query: str, language: str) -> AdvisoryResult:
        question = query.strip()
        if not question:
            raise AdvisoryError("Cannot answer an empty question.")

        user_prompt = f"{question}\n\n(Reply in {language_name(language)}.)"
        try:
            answer = await self._llm_client.invoke(
                system_prompt=SYSTEM_PROMPT,
                user_prompt=user_prompt,
            )
        except LlmInvocationError as exc:
            logger.warning("Advisory LLM call failed language=%s: %s", language, exc)
            raise AdvisoryError(f"Failed to generate answer: {exc}") from exc

        return AdvisoryResult(
            answer=answer,
            intent=self._detector.classify(question),
            tags=self._detector.extract_tags(question),
        )


__all__ = ["AdvisoryError", "BedrockAdvisoryService", "SYSTEM_PROMPT", "language_name"]
