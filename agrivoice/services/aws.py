"""Shared AWS helpers for the Bedrock, S3 and Transcribe clients."""

from __future__ import annotations

import os
from typing import Any

import boto3

from agrivoice.config.settings import settings


def _static_credentials() -> tuple[str, str] | None:
    if settings.s3.access_key and settings.s3.secret_key:
        return settings.s3.access_key, settings.s3.secret_key
    return None


def create_boto3_client(
    service_name: str,
    *,
    region_name: str | None = None,
    aws_access_key_id: str | None = None,
    aws_secret_access_key: str | None = None,
) -> boto3.client:
    """Instantiate a boto3 client, preferring explicit keys over configured ones."""

    client_kwargs: dict[str, Any] = {"region_name": region_name or settings.s3.region}
    credentials = (
        (aws_access_key_id, aws_secret_access_key)
        if aws_access_key_id and aws_secret_access_key
        else _static_credentials()
    )
    if credentials:
        client_kwargs["aws_access_key_id"] = credentials[0]
        client_kwargs["aws_secret_access_key"] = credentials[1]
    return boto3.client(service_name, **client_kwargs)


def export_credentials() -> None:
    """Expose configured keys through the environment for SDKs without a client factory."""

    credentials = _static_credentials()
    if credentials is None:
        return
    os.environ.setdefault("AWS_ACCESS_KEY_ID", credentials[0])
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", credentials[1])


__all__ = ["create_boto3_client", "export_credentials"]
