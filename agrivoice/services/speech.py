"""ElevenLabs text-to-speech for advisory answers."""

from __future__ import annotations

import base64
import logging
from typing import Mapping

import httpx

from agrivoice.application.interfaces import SpeechSynthesisServiceInterface
from agrivoice.config.settings import ElevenLabsConfig, settings
from agrivoice.services.storage import StorageError, storage_enabled, upload_answer_audio

logger = logging.getLogger(__name__)

_FALLBACK_LANGUAGE = "en"


class SynthesisError(RuntimeError):
    """Raised when answer audio could not be produced or stored."""


def inline_audio_url(audio_bytes: bytes, media_type: str = "audio/mpeg") -> str:
    """Encode audio as a ``data:`` URI the browser can play directly."""

    encoded = base64.b64encode(audio_bytes).decode("ascii")
    return f"data:{media_type};base64,{encoded}"


class ElevenLabsSpeechService(SpeechSynthesisServiceInterface):
    """Synthesize answers with one ElevenLabs voice per supported language."""

    def __init__(self, config: ElevenLabsConfig) -> None:
        self._config = config

    @property
    def voice_ids(self) -> Mapping[str, str]:
        return self._config.voice_ids

    def voice_for(self, language: str) -> str:
        return self.voice_ids.get(language) or self.voice_ids[_FALLBACK_LANGUAGE]

    async def synthesize(self, text: str, language: str, *, session_id: str) -> str:
        if not text.strip():
            raise SynthesisError("Cannot synthesize an empty answer.")

        audio_bytes = await self._request_audio(text, self.voice_for(language))

        if not storage_enabled():
            return inline_audio_url(audio_bytes)
        try:
            _, audio_url = await upload_answer_audio(session_id, audio_bytes)
        except StorageError as exc:
            logger.exception("Answer audio upload failed session=%s", session_id)
            raise SynthesisError(str(exc)) from exc
        return audio_url

    async def _request_audio(self, text: str, voice_id: str) -> bytes:
        api_key = self._config.api_key.get_secret_value() if self._config.api_key else ""
        async with httpx.AsyncClient(base_url=self._config.base_url) as client:
            try:
                response = await client.post(
                    f"/text-to-speech/{voice_id}",
                    headers={
                        "Accept": "audio/mpeg",
                        "xi-api-key": api_key,
                    },
                    json={
                        "text": text,
                        "model_id": self._config.model_id,
                        "voice_settings": {
                            "stability": self._config.stability,
                            "similarity_boost": self._config.similarity_boost,
                        },
                    },
                    timeout=self._config.timeout_seconds,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                logger.error("TTS API error voice=%s: %s", voice_id, exc.response.text[:300])
                raise SynthesisError(
                    f"Text-to-speech conversion failed with status {exc.response.status_code}"
                ) from exc
            except httpx.RequestError as exc:
                raise SynthesisError(f"Unable to reach text-to-speech API: {exc}") from exc

        if not response.content:
            raise SynthesisError("Text-to-speech API returned no audio.")
        return response.content


def build_speech_service() -> ElevenLabsSpeechService:
    return ElevenLabsSpeechService(settings.elevenlabs)


__all__ = [
    "ElevenLabsSpeechService",
    "SynthesisError",
    "build_speech_service",
    "inline_audio_url",
]
