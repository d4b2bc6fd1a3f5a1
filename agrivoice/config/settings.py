from typing import Optional
from urllib.parse import quote_plus

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "agrivoice"
    schema_name: Optional[str] = Field(default=None, validation_alias="DB_SCHEMA")
    serverless: bool = Field(
        default=True,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class S3Config(BaseSettings):
    """S3 configuration for synthesized answer audio."""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "ap-south-1"
    bucket_name: str = Field(
        default="",
        description="Leave empty to return answer audio inline as a data URI.",
    )

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class TranscribeConfig(BaseSettings):
    """Amazon Transcribe streaming configuration."""

    region: str = "ap-south-1"
    sample_rate_hz: int = 16000
    language_codes: dict[str, str] = Field(
        default_factory=lambda: {"en": "en-IN", "hi": "hi-IN", "te": "te-IN"}
    )

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIBE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class BedrockConfig(BaseSettings):
    """Amazon Bedrock configuration."""

    region: str = Field(
        default="ap-south-1",
        validation_alias="BEDROCK_REGION",
    )
    model_id: str = Field(
        default="meta.llama3-8b-instruct-v1:0",
        validation_alias="BEDROCK_MODEL_ID",
    )
    max_tokens: int = Field(
        default=500,
        validation_alias="BEDROCK_MAX_TOKENS",
        ge=1,
        le=4096,
    )
    temperature: float = Field(
        default=0.7,
        validation_alias="BEDROCK_TEMPERATURE",
        ge=0.0,
        le=1.0,
    )
    top_p: float = Field(
        default=0.9,
        validation_alias="BEDROCK_TOP_P",
        ge=0.0,
        le=1.0,
    )
    api_key: SecretStr | None = Field(
        default=None,
        validation_alias="BEDROCK_API_KEY",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class ElevenLabsConfig(BaseSettings):
    """ElevenLabs text-to-speech configuration."""

    api_key: SecretStr | None = None
    base_url: str = "https://api.elevenlabs.io/v1"
    model_id: str = "eleven_multilingual_v2"
    stability: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity_boost: float = Field(default=0.75, ge=0.0, le=1.0)
    timeout_seconds: float = Field(default=30.0, gt=0)
    voice_ids: dict[str, str] = Field(
        default_factory=lambda: {
            "en": "EXAVITQu4vr4xnSDxMaL",
            "hi": "pNInz6obpgDQGcFmaJgB",
            "te": "yoZ06aMxZJJ28mfd3POQ",
        }
    )

    model_config = SettingsConfigDict(
        env_prefix="ELEVENLABS_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class MockConfig(BaseSettings):
    """Simulated latency of the mock AI services, in seconds."""

    transcription_delay: float = Field(default=1.0, ge=0.0)
    advisory_delay: float = Field(default=1.5, ge=0.0)
    synthesis_delay: float = Field(default=0.8, ge=0.0)

    model_config = SettingsConfigDict(
        env_prefix="MOCK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class PipelineConfig(BaseSettings):
    """Session pipeline tuning."""

    supported_languages: list[str] = ["en", "hi", "te"]
    default_language: str = "en"
    poll_interval_seconds: float = Field(default=1.0, gt=0)
    max_poll_attempts: int = Field(default=30, ge=1, le=600)
    shutdown_timeout_seconds: float = Field(default=10.0, ge=0)

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "AgriVoice Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    pipeline_log_file: str = "logs/session_pipeline.log"
    transcript_log_file: str = "logs/transcripts.log"

    use_real_apis: bool = False
    store_backend: str = Field(default="database", pattern="^(database|memory)$")

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # S3
    s3: S3Config = Field(default_factory=S3Config)

    # Transcribe
    transcribe: TranscribeConfig = Field(default_factory=TranscribeConfig)

    # Bedrock
    bedrock: BedrockConfig = Field(default_factory=BedrockConfig)

    # ElevenLabs
    elevenlabs: ElevenLabsConfig = Field(default_factory=ElevenLabsConfig)

    # Mock services
    mock: MockConfig = Field(default_factory=MockConfig)

    # Session pipeline
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
