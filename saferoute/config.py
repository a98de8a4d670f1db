"""
SafeRoute Configuration.

Pydantic Settings v2 — loads from .env, environment variables.

Settings is read once by the hosting application. The pipeline itself only
ever sees an explicit PipelineConfig passed at construction.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_INTELLIGENCE_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_INTELLIGENCE_MODEL = "claude-haiku-4-5-20251001"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────────────
    app_name: str = "SafeRoute"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")

    # ── API ───────────────────────────────────────────────────────────────
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8001, alias="API_PORT")
    api_prefix: str = Field(default="/api/v1", alias="API_PREFIX")

    # ── Intelligence service ─────────────────────────────────────────────
    intelligence_url: str = Field(default=DEFAULT_INTELLIGENCE_URL, alias="SAFEROUTE_INTELLIGENCE_URL")
    intelligence_api_key: str = Field(default="", alias="SAFEROUTE_INTELLIGENCE_API_KEY")
    intelligence_model: str = Field(default=DEFAULT_INTELLIGENCE_MODEL, alias="SAFEROUTE_INTELLIGENCE_MODEL")
    request_timeout_ms: int = Field(default=8000, alias="SAFEROUTE_REQUEST_TIMEOUT_MS")
    fallback_enabled: bool = Field(default=True, alias="SAFEROUTE_FALLBACK_ENABLED")
    max_concurrent_requests: int = Field(default=4, alias="SAFEROUTE_MAX_CONCURRENT_REQUESTS")

    # ── Operational ────────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="console", alias="LOG_FORMAT")


class PipelineConfig(BaseModel):
    """
    Explicit configuration for one RoutePipeline.

    Recognised options: service_endpoint, credential, request_timeout_ms,
    fallback_enabled. The remaining fields tune the request payload and the
    batch fan-out.
    """

    model_config = ConfigDict(frozen=True)

    service_endpoint: str = DEFAULT_INTELLIGENCE_URL
    credential: str = ""
    request_timeout_ms: int = Field(default=8000, gt=0, le=60_000)
    fallback_enabled: bool = True
    model: str = DEFAULT_INTELLIGENCE_MODEL
    max_output_tokens: int = Field(default=2048, gt=0)
    max_concurrent_requests: int = Field(default=4, ge=1)

    @property
    def request_timeout_s(self) -> float:
        return self.request_timeout_ms / 1000.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "PipelineConfig":
        return cls(
            service_endpoint=settings.intelligence_url,
            credential=settings.intelligence_api_key,
            request_timeout_ms=settings.request_timeout_ms,
            fallback_enabled=settings.fallback_enabled,
            model=settings.intelligence_model,
            max_concurrent_requests=settings.max_concurrent_requests,
        )


settings = Settings()
