"""Application configuration management."""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.constants import LogLevel


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = Field(default="Mobile Chat Relay", description="Service name")
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="0.1.0", description="Application version")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Root log level")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port", alias="PORT")

    # Shared-secret authentication
    shared_secret: str = Field(
        default="",
        description="Base secret shared with the mobile client",
        alias="SHARED_SECRET",
    )
    timestamp_tolerance: int = Field(
        default=300,
        description="Accepted clock skew for dynamic secrets, in seconds",
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=20, description="Rate limit: requests per window per client"
    )
    rate_limit_tokens: int = Field(
        default=100_000, description="Rate limit: upstream tokens per window per client"
    )
    rate_limit_window: int = Field(
        default=60, description="Rate limit: time window in seconds"
    )

    # Request limits (sized for base64 images)
    max_request_size: int = Field(
        default=20 * 1024 * 1024, description="Maximum request body size in bytes"
    )
    max_message_length: int = Field(
        default=500_000, description="Maximum length of the messages field"
    )

    # OpenAI API (Required)
    openai_api_key: str = Field(
        ..., description="OpenAI API key", alias="OPENAI_API_KEY"
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="OpenAI API base URL",
        alias="OPENAI_BASE_URL",
    )
    openai_model: str = Field(
        default="gpt-4o", description="Chat model", alias="OPENAI_MODEL"
    )
    openai_max_tokens: int = Field(default=4000, description="Completion token cap")
    openai_temperature: float = Field(default=0.7, description="Sampling temperature")
    openai_timeout: float = Field(
        default=60.0, description="Upstream request timeout in seconds"
    )

    # Host header allow-list, ["*"] disables the check
    allowed_hosts: list[str] = Field(
        default=["*"], description="Trusted Host header values"
    )

    # CORS - mobile clients send no Origin, browsers get a permissive policy
    allowed_origins: list[str] = Field(
        default=["*"], description="CORS allowed origins"
    )
    allowed_methods: list[str] = Field(
        default=["POST", "OPTIONS"], description="CORS allowed methods"
    )
    allowed_headers: list[str] = Field(
        default=[
            "Content-Type",
            "Authorization",
            "x-hash",
            "x-shared-secret",
            "x-timestamp",
        ],
        description="CORS allowed headers",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: Any) -> Any:
        """Accept lowercase level names from the environment."""
        return value.upper() if isinstance(value, str) else value


# Global settings instance
settings = Settings()
