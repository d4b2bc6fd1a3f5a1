"""Amazon Bedrock ``converse`` client used by the advisory service."""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Mapping, Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from agrivoice.config.settings import BedrockConfig, settings
from agrivoice.services.aws import create_boto3_client

logger = logging.getLogger(__name__)


class LlmInvocationError(RuntimeError):
    """Raised when Bedrock fails or answers with no text."""


def decode_api_key(secret_value: Optional[str]) -> tuple[str, str] | None:
    """Split ``BEDROCK_API_KEY`` (optionally base64) into access and secret keys."""

    if not secret_value:
        return None
    try:
        raw = base64.b64decode(secret_value.strip(), validate=True)
    except (binascii.Error, ValueError):
        raw = secret_value.encode("utf-8", "ignore")

    printable = "".join(chr(b) for b in raw if 31 < b < 127)
    access_key, sep, secret_key = printable.partition(":")
    if not sep or not access_key or not secret_key:
        return None
    return access_key, secret_key


def extract_text(response: Mapping[str, Any]) -> str:
    """Join the text blocks of a ``converse`` response."""

    blocks = response.get("output", {}).get("message", {}).get("content", [])
    return "\n".join(block["text"] for block in blocks if block.get("text")).strip()


class BedrockLlmClient:
    """Single-turn chat with the configured Bedrock model."""

    def __init__(self, config: BedrockConfig | None = None, client: Any = None) -> None:
        self._config = config or settings.bedrock
        if client is None:
            keys = decode_api_key(
                self._config.api_key.get_secret_value() if self._config.api_key else None
            )
            client = create_boto3_client(
                "bedrock-runtime",
                region_name=self._config.region,
                aws_access_key_id=keys[0] if keys else None,
                aws_secret_access_key=keys[1] if keys else None,
            )
        self._client = client

    @property
    def model_id(self) -> str:
        return self._config.model_id

    async def invoke(
        self,
        *,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        inference_config = {
            "maxTokens": max_tokens or self._config.max_tokens,
            "temperature": self._config.temperature if temperature is None else temperature,
            "topP": self._config.top_p,
        }
        try:
            response = await run_in_threadpool(
                self._client.converse,
                modelId=self.model_id,
                system=[{"text": system_prompt}],
                messages=[{"role": "user", "content": [{"text": user_prompt}]}],
                inferenceConfig=inference_config,
            )
        except (BotoCoreError, ClientError) as exc:
            logger.error("Bedrock converse failed model=%s: %s", self.model_id, exc)
            raise LlmInvocationError(str(exc)) from exc

        text = extract_text(response)
        if not text:
            raise LlmInvocationError(f"Model {self.model_id} returned an empty response.")
        return text


__all__ = ["BedrockLlmClient", "LlmInvocationError", "decode_api_key", "extract_text"]
