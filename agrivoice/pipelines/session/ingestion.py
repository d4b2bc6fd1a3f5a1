"""Request ingestion helpers for `POST /sessions`."""

from __future__ import annotations

import mimetypes
from typing import Final

from fastapi import HTTPException, UploadFile, status

_ALLOWED_CONTENT_TYPES: Final[set[str]] = {
    "audio/webm",
    "audio/ogg",
    "audio/wav",
    "audio/x-wav",
    "audio/mpeg",
    "audio/mp3",
    "audio/mp4",
    "audio/x-m4a",
    "audio/m4a",
}
_DEFAULT_CONTENT_TYPE: Final[str] = "audio/webm"
# mimetypes reports containers by their video type; browser recordings are audio-only.
_CONTAINER_AUDIO_TYPES: Final[dict[str, str]] = {
    "video/webm": "audio/webm",
    "video/ogg": "audio/ogg",
    "video/mp4": "audio/mp4",
}


def resolve_content_type(audio_file: UploadFile) -> str:
    """Accept browser recordings even when the client did not set a content-type."""

    content_type = audio_file.content_type
    if content_type:
        # MediaRecorder sends e.g. "audio/webm;codecs=opus".
        content_type = content_type.split(";", 1)[0].strip().lower()
    if (not content_type or content_type == "application/octet-stream") and audio_file.filename:
        guessed_type, _ = mimetypes.guess_type(audio_file.filename)
        content_type = guessed_type

    content_type = content_type or _DEFAULT_CONTENT_TYPE
    content_type = _CONTAINER_AUDIO_TYPES.get(content_type, content_type)

    if content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unsupported audio type '{content_type}'",
        )
    return content_type


async def read_audio_bytes(audio_file: UploadFile) -> bytes:
    """Load the upload fully into memory, rejecting empty payloads."""

    audio_bytes = await audio_file.read()
    await audio_file.close()

    if not audio_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded audio file is empty",
        )
    return audio_bytes


__all__ = ["read_audio_bytes", "resolve_content_type"]
