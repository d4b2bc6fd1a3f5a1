"""Amazon Transcribe integration helpers using the streaming API."""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
import tempfile
from typing import Mapping

from amazon_transcribe.client import TranscribeStreamingClient
from amazon_transcribe.handlers import TranscriptResultStreamHandler
from amazon_transcribe.model import TranscriptEvent
from fastapi.concurrency import run_in_threadpool

from agrivoice.application.interfaces import TranscriptionServiceInterface
from agrivoice.config.settings import settings
from agrivoice.services.aws import export_credentials

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 8192
_FALLBACK_LANGUAGE = "en"


class TranscriptionError(RuntimeError):
    """Raised when the speech-to-text provider fails to produce a transcript."""


class TranscribeService(TranscriptionServiceInterface):
    """Stream farmer recordings to Amazon Transcribe and return the final text."""

    def __init__(
        self,
        region: str,
        *,
        language_codes: Mapping[str, str],
        media_sample_rate_hz: int = 16000,
        media_encoding: str = "pcm",
    ) -> None:
        self._language_codes = dict(language_codes)
        self._media_sample_rate_hz = media_sample_rate_hz
        self._media_encoding = media_encoding

        export_credentials()
        self._client = TranscribeStreamingClient(region=region)

    def resolve_language(self, language: str) -> str:
        """Map an app language code (``hi``) to a Transcribe locale (``hi-IN``)."""

        return self._language_codes.get(
            language, self._language_codes.get(_FALLBACK_LANGUAGE, "en-IN")
        )

    async def transcribe(
        self,
        audio_bytes: bytes,
        language: str,
        *,
        content_type: str = "audio/webm",
    ) -> str:
        if not audio_bytes:
            raise TranscriptionError("The uploaded audio clip is empty.")

        try:
            pcm_data = await run_in_threadpool(self._convert_to_pcm, audio_bytes)
        except TranscriptionError:
            raise
        except Exception as exc:
            raise TranscriptionError(f"Audio conversion failed: {exc}") from exc

        locale = self.resolve_language(language)
        try:
            stream = await self._client.start_stream_transcription(
                language_code=locale,
                media_sample_rate_hz=self._media_sample_rate_hz,
                media_encoding=self._media_encoding,
            )
        except Exception as exc:
            raise TranscriptionError(f"Could not open transcription stream: {exc}") from exc

        handler = _FinalTranscriptHandler(stream.output_stream)

        async def write_chunks() -> None:
            # Pace the upload at real-time speed: 16-bit mono is 2 bytes per sample.
            sleep_time = _CHUNK_SIZE / (self._media_sample_rate_hz * 2)
            logger.info(
                "Streaming %s bytes to Transcribe locale=%s content_type=%s",
                len(pcm_data),
                locale,
                content_type,
            )
            for offset in range(0, len(pcm_data), _CHUNK_SIZE):
                await stream.input_stream.send_audio_event(
                    audio_chunk=pcm_data[offset : offset + _CHUNK_SIZE]
                )
                await asyncio.sleep(sleep_time)
            await stream.input_stream.end_stream()

        try:
            await asyncio.gather(write_chunks(), handler.handle_events())
        except Exception as exc:
            logger.error("Streaming loop failed: %s", exc)
            raise TranscriptionError(f"Streaming transcription failed: {exc}") from exc

        transcript = handler.transcript.strip()
        if not transcript:
            raise TranscriptionError("No speech was recognised in the recording.")
        logger.info("Transcription complete. Length: %s", len(transcript))
        return transcript

    def _convert_to_pcm(self, audio_bytes: bytes) -> bytes:
        """Convert browser audio (webm/ogg/mp4/wav) to raw s16le PCM with ffmpeg."""

        with tempfile.NamedTemporaryFile(delete=False, suffix=".tmp") as tmp_file:
            tmp_file.write(audio_bytes)
            tmp_path = tmp_file.name

        try:
            process = subprocess.run(
                [
                    "ffmpeg",
                    "-y",
                    "-i", tmp_path,
                    "-f", "s16le",
                    "-ac", "1",
                    "-ar", str(self._media_sample_rate_hz),
                    "pipe:1",
                ],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                check=True,
            )
        except subprocess.CalledProcessError as exc:
            error_msg = exc.stderr.decode("utf-8", errors="replace") if exc.stderr else "No stderr"
            logger.error("ffmpeg failed. stderr: %s", error_msg)
            raise TranscriptionError(f"ffmpeg failed to convert audio to PCM: {error_msg}") from exc
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

        if not process.stdout:
            raise TranscriptionError("ffmpeg produced no audio samples.")
        return process.stdout


class _FinalTranscriptHandler(TranscriptResultStreamHandler):
    def __init__(self, transcript_result_stream):
        super().__init__(transcript_result_stream)
        self.transcript = ""

    async def handle_transcript_event(self, transcript_event: TranscriptEvent):
        for result in transcript_event.transcript.results:
            if result.is_partial:
                continue
            for alt in result.alternatives:
                self.transcript += alt.transcript + " "


def build_transcribe_service() -> TranscribeService:
    """Create the Transcribe-backed service from application settings."""

    return TranscribeService(
        region=settings.transcribe.region,
        language_codes=settings.transcribe.language_codes,
        media_sample_rate_hz=settings.transcribe.sample_rate_hz,
    )


__all__ = ["TranscribeService", "TranscriptionError", "build_transcribe_service"]
