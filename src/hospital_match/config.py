"""Application configuration and settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LOCALITY_TERMS: list[str] = [
    "sarjapur",
    "jayanagar",
    "bannerghatta",
    "whitefield",
    "koramangala",
    "indiranagar",
    "malleshwaram",
    "rajajinagar",
    "hebbal",
    "marathahalli",
    "electronic city",
    "silk board",
    "btm",
    "hsr",
    "jp nagar",
    "mg road",
    "brigade road",
    "commercial street",
]

DEFAULT_CITY_ALIASES: dict[str, list[str]] = {
    "Bengaluru": ["Bangalore", "Banglore"],
    "Mumbai": ["Bombay"],
    "Delhi": ["New Delhi"],
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Application
    app_name: str = "Hospital Match API"
    app_version: str = "0.1.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False

    # API
    api_v1_prefix: str = "/api/v1"

    # CORS
    cors_origins: list[str] = ["*"]
    cors_credentials: bool = True
    cors_methods: list[str] = ["*"]
    cors_headers: list[str] = ["*"]

    # Logging
    log_level: str = "INFO"

    # OpenAI Configuration
    openai_api_key: str | None = None
    openai_embedding_model: str = "text-embedding-3-small"
    openai_llm_model: str = "gpt-4o-mini"
    openai_max_retries: int = 5
    embedding_dimension: int = 768  # Must match the collection vector size

    # Qdrant Configuration
    qdrant_url: str = "http://localhost:6333"
    qdrant_api_key: str | None = None
    qdrant_collection_name: str = "hospitals"
    qdrant_prefer_grpc: bool = False
    qdrant_timeout: int = 30  # Timeout in seconds

    # Retrieval
    retrieval_timeout: float = 10.0  # Per embed+search call, in seconds

    # Location vocabulary (JSON-overridable through the environment)
    locality_terms: list[str] = DEFAULT_LOCALITY_TERMS
    city_aliases: dict[str, list[str]] = DEFAULT_CITY_ALIASES

    # Sessions
    session_ttl_seconds: int = 3600
    session_max_sessions: int = 1000
    greeting: str = (
        "Hello! I'm your hospital network assistant. How can I help you today?"
    )

    # ElevenLabs text-to-speech (disabled when no key is set)
    elevenlabs_api_key: str | None = None
    elevenlabs_voice_id: str = "21m00Tcm4TlvDq8ikWAM"
    elevenlabs_model_id: str = "eleven_monolingual_v1"
    elevenlabs_timeout: int = 30

    # Twilio SMS handoff for out-of-scope requests (log-only unless all are set)
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_from_number: str | None = None
    twilio_notify_number: str | None = None

    # Ingestion
    ingest_embedding_batch_size: int = 100
    ingest_upsert_batch_size: int = 500
    ingest_max_concurrent_embeddings: int = 2
    ingest_max_retries: int = 3


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
