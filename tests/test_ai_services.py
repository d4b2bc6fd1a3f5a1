"""Adapters behind the AI ports, exercised without network access."""

from __future__ import annotations

import httpx
import pytest
from botocore.exceptions import ClientError

from agrivoice.config.settings import BedrockConfig, ElevenLabsConfig, MockConfig, settings
from agrivoice.services import storage
from agrivoice.services.advisory import AdvisoryError, BedrockAdvisoryService, SYSTEM_PROMPT
from agrivoice.services.llm_client import BedrockLlmClient, LlmInvocationError, decode_api_key
from agrivoice.services.mock import (
    MOCK_ANSWERS,
    MOCK_TRANSCRIPTS,
    MockSpeechService,
    build_mock_services,
)
from agrivoice.services.speech import ElevenLabsSpeechService, SynthesisError
from agrivoice.services.transcribe import TranscribeService, TranscriptionError


class FakeLlmClient:
    def __init__(self, reply: str = "Use neem oil.", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.prompts: list[dict] = []

    async def invoke(self, **kwargs):
        self.prompts.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.mark.asyncio
@pytest.mark.parametrize("language", ["en", "hi", "te"])
async def test_mock_services_return_canned_language_responses(language):
    transcriber, advisor, speaker = build_mock_services(
        MockConfig(transcription_delay=0, advisory_delay=0, synthesis_delay=0)
    )

    transcript = await transcriber.transcribe(b"clip", language)
    advice = await advisor.generate_answer(transcript, language)
    audio_url = await speaker.synthesize(advice.answer, language, session_id="s-1")

    assert transcript == MOCK_TRANSCRIPTS[language]
    assert advice.answer == MOCK_ANSWERS[language]
    assert advice.intent == "pest_management"
    assert "pest" in advice.tags
    assert audio_url == f"data:audio/mp3;base64,mock_audio_{language}"


@pytest.mark.asyncio
async def test_mock_transcriber_rejects_empty_audio():
    transcriber, _, _ = build_mock_services(MockConfig(transcription_delay=0))

    with pytest.raises(TranscriptionError):
        await transcriber.transcribe(b"", "en")


@pytest.mark.asyncio
async def test_mock_speech_falls_back_to_english_voice():
    assert await MockSpeechService(0).synthesize("x", "fr", session_id="s") == (
        "data:audio/mp3;base64,mock_audio_en"
    )


@pytest.mark.asyncio
async def test_bedrock_advisory_asks_for_reply_language_and_tags_question():
    llm = FakeLlmClient()
    service = BedrockAdvisoryService(llm)

    result = await service.generate_answer("  My rice field needs water  ", "te")

    assert result.answer == "Use neem oil."
    assert result.intent == "irrigation"
    assert result.tags == ["rice", "irrigation"]
    assert llm.prompts[0]["system_prompt"] == SYSTEM_PROMPT
    assert llm.prompts[0]["user_prompt"].endswith("(Reply in Telugu.)")


@pytest.mark.asyncio
async def test_bedrock_advisory_wraps_llm_errors():
    service = BedrockAdvisoryService(FakeLlmClient(error=LlmInvocationError("throttled")))

    with pytest.raises(AdvisoryError, match="throttled"):
        await service.generate_answer("pests on cotton", "en")


def _patch_transport(monkeypatch, handler):
    real_client = httpx.AsyncClient

    def factory(**kwargs):
        return real_client(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(httpx, "AsyncClient", factory)


@pytest.mark.asyncio
async def test_speech_returns_inline_audio_without_bucket(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.headers["xi-api-key"]
        return httpx.Response(200, content=b"ID3mp3")

    _patch_transport(monkeypatch, handler)
    monkeypatch.setattr(settings.s3, "bucket_name", "")
    service = ElevenLabsSpeechService(ElevenLabsConfig(api_key="secret"))

    audio_url = await service.synthesize("Namaste", "hi", session_id="s-1")

    assert audio_url == "data:audio/mpeg;base64,SUQzbXAz"
    assert seen["path"].endswith("/text-to-speech/pNInz6obpgDQGcFmaJgB")
    assert seen["key"] == "secret"


@pytest.mark.asyncio
async def test_speech_maps_http_errors(monkeypatch):
    _patch_transport(monkeypatch, lambda request: httpx.Response(401, text="bad key"))
    service = ElevenLabsSpeechService(ElevenLabsConfig())

    with pytest.raises(SynthesisError, match="401"):
        await service.synthesize("hello", "en", session_id="s-1")


@pytest.mark.asyncio
async def test_speech_uploads_to_bucket_when_configured(monkeypatch):
    uploads = []

    class FakeS3:
        def put_object(self, **kwargs):
            uploads.append(kwargs)

    _patch_transport(monkeypatch, lambda request: httpx.Response(200, content=b"mp3"))
    monkeypatch.setattr(settings.s3, "bucket_name", "agrivoice-audio")
    monkeypatch.setattr(settings.s3, "region", "ap-south-1")
    monkeypatch.setattr(storage, "_s3_client", lambda: FakeS3())
    service = ElevenLabsSpeechService(ElevenLabsConfig())

    audio_url = await service.synthesize("hello", "en", session_id="s-9")

    assert audio_url.startswith("https://agrivoice-audio.s3.ap-south-1.amazonaws.com/sessions/s-9/")
    assert uploads[0]["ContentType"] == "audio/mpeg"
    assert uploads[0]["Body"] == b"mp3"


class FakeBedrockRuntime:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.requests = []

    def converse(self, **kwargs):
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.mark.asyncio
async def test_llm_client_joins_text_blocks_and_applies_config():
    runtime = FakeBedrockRuntime(
        {"output": {"message": {"content": [{"text": "Spray neem."}, {"image": {}}, {"text": "Repeat weekly."}]}}}
    )
    client = BedrockLlmClient(BedrockConfig(BEDROCK_MAX_TOKENS=200), client=runtime)

    answer = await client.invoke(system_prompt="sys", user_prompt="pests?")

    assert answer == "Spray neem.\nRepeat weekly."
    request = runtime.requests[0]
    assert request["inferenceConfig"]["maxTokens"] == 200
    assert request["system"] == [{"text": "sys"}]


@pytest.mark.asyncio
async def test_llm_client_maps_client_errors_and_empty_output():
    error = ClientError({"Error": {"Code": "ThrottlingException", "Message": "slow down"}}, "Converse")
    with pytest.raises(LlmInvocationError, match="ThrottlingException"):
        await BedrockLlmClient(client=FakeBedrockRuntime(error=error)).invoke(
            system_prompt="s", user_prompt="u"
        )

    with pytest.raises(LlmInvocationError, match="empty"):
        await BedrockLlmClient(client=FakeBedrockRuntime({"output": {}})).invoke(
            system_prompt="s", user_prompt="u"
        )


def test_decode_api_key_accepts_plain_and_base64_values():
    assert decode_api_key("AKIA:secret") == ("AKIA", "secret")
    assert decode_api_key("QUtJQTpzZWNyZXQ=") == ("AKIA", "secret")
    assert decode_api_key("no-separator") is None
    assert decode_api_key(None) is None


@pytest.mark.asyncio
async def test_transcribe_service_maps_locales_and_rejects_empty_audio():
    service = TranscribeService(
        "ap-south-1", language_codes={"en": "en-IN", "hi": "hi-IN", "te": "te-IN"}
    )

    assert service.resolve_language("te") == "te-IN"
    assert service.resolve_language("fr") == "en-IN"
    with pytest.raises(TranscriptionError):
        await service.transcribe(b"", "hi")
