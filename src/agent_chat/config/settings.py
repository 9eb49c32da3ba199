from functools import lru_cache
from pathlib import Path
from typing import Literal
from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_AGENTS_CONFIG = Path(__file__).parent / "agents.json"


class Settings(BaseSettings):
    """
    Chat service settings loaded from the environment and ``.env``.

    Model credentials are optional at startup: a missing key is reported as
    MissingCredential when a turn first needs that model family. Without
    ``DATABASE_URL`` chat still works and history is not persisted.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = "Agent Chat Service"
    app_version: str = "0.1.0"
    environment: Literal["local", "dev", "staging", "prod"] = "local"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Agent configuration (agents, tools, defaultAgent)
    agents_config_path: Path = DEFAULT_AGENTS_CONFIG

    # Model provider credentials, one per model family
    google_generative_ai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("google_generative_ai_api_key", "GOOGLE_GENERATIVE_AI_API_KEY"),
    )
    google_model_name: str | None = None
    google_base_url: str = "https://generativelanguage.googleapis.com/v1beta/openai/"
    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("openai_api_key", "OPENAI_API_KEY"),
    )
    openai_base_url: str | None = None
    default_model_family: Literal["gemini", "openai"] = "gemini"
    provider_timeout_seconds: float = 30.0

    # Structured analysis endpoints
    analysis_model_id: str = "gpt-4o"

    # Database (optional - history persistence is disabled without it)
    database_url: SecretStr | None = None
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo_sql: bool = False
    db_create_tables: bool = False

    # Identity (resolved upstream, forwarded in a trusted header)
    identity_header: str = "X-User-Id"

    # History
    history_default_limit: int = 50
    history_max_limit: int = 200

    # Uploads
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_upload_types: list[str] = Field(
        default_factory=lambda: ["application/pdf", "text/plain"]
    )

    # Observability
    log_level: int = 20  # INFO by default (DEBUG=10, INFO=20, WARNING=30, ERROR=40)
    log_format: Literal["json", "console"] = "json"

    # CORS Settings
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    cors_allow_headers: list[str] = Field(default_factory=lambda: ["*"])

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
