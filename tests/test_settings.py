from pydantic import SecretStr

from agrivoice.config.settings import DatabaseConfig, ElevenLabsConfig, PipelineConfig, Settings


def test_pipeline_defaults():
    config = PipelineConfig()
    assert config.supported_languages == ["en", "hi", "te"]
    assert config.poll_interval_seconds > 0
    assert config.max_poll_attempts >= 1


def test_database_url_quotes_credentials():
    config = DatabaseConfig(username="farm user", password=SecretStr("p@ss:word"), host="db", port=5433)
    assert config.url == "postgresql+asyncpg://farm+user:p%40ss%3Aword@db:5433/agrivoice"


def test_every_supported_language_has_a_voice():
    voices = ElevenLabsConfig().voice_ids
    assert set(PipelineConfig().supported_languages) <= set(voices)


def test_test_environment_uses_memory_store_and_mocks():
    settings = Settings()
    assert settings.store_backend == "memory"
    assert settings.use_real_apis is False
