"""S3 storage helpers for synthesized answer audio."""

from __future__ import annotations

from functools import lru_cache
from typing import Tuple
from uuid import uuid4

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from agrivoice.config.settings import settings
from agrivoice.services.aws import create_boto3_client


class StorageError(RuntimeError):
    """Raised when S3 asset persistence fails."""


@lru_cache(maxsize=1)
def _s3_client():
    return create_boto3_client("s3", region_name=settings.s3.region)


def storage_enabled() -> bool:
    """Answer audio is uploaded only when a bucket is configured."""

    return bool(settings.s3.bucket_name)


def _object_url(bucket: str, key: str) -> str:
    region = settings.s3.region
    if region == "us-east-1":
        return f"https://{bucket}.s3.amazonaws.com/{key}"
    return f"https://{bucket}.s3.{region}.amazonaws.com/{key}"


async def upload_answer_audio(
    session_id: str,
    audio_bytes: bytes,
    *,
    content_type: str = "audio/mpeg",
    extension: str = "mp3",
) -> Tuple[str, str]:
    """Upload synthesized audio to S3 and return (object_key, public_url)."""

    if not audio_bytes:
        raise StorageError("Audio payload for upload was empty.")
    bucket = settings.s3.bucket_name
    if not bucket:
        raise StorageError("S3 bucket name is not configured.")

    object_key = f"sessions/{session_id}/answer-{uuid4().hex}.{extension.lstrip('.')}"
    try:
        await run_in_threadpool(
            _s3_client().put_object,
            Bucket=bucket,
            Key=object_key,
            Body=audio_bytes,
            ContentType=content_type,
        )
    except (BotoCoreError, ClientError) as exc:
        raise StorageError(f"Failed to upload answer audio: {exc}") from exc

    return object_key, _object_url(bucket, object_key)


__all__ = ["StorageError", "storage_enabled", "upload_answer_audio"]
