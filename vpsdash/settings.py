"""Application settings using pydantic-settings."""

from functools import cache
from typing import Annotated, Literal

from pydantic import BeforeValidator, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Annotated[
    Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    BeforeValidator(lambda v: v.upper() if isinstance(v, str) else v),
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VPSDASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Dashboard backend
    api_url: str = Field(
        default="http://localhost:4000", description="Dashboard backend URL"
    )
    api_token: str | None = Field(default=None, description="Bearer token")
    request_timeout: float = Field(
        default=30.0, gt=0, description="HTTP request timeout in seconds"
    )

    # Progress polling
    poll_interval: float = Field(
        default=1.0, ge=0, description="Seconds between progress polls"
    )
    max_attempts: int = Field(
        default=60, ge=1, description="Maximum polls per operation"
    )
    fetch_timeout: float = Field(
        default=10.0, gt=0, description="Seconds before a poll fetch is abandoned"
    )

    # Server settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    reload: bool = Field(default=False, description="Enable auto-reload")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: LogLevel = Field(default="INFO", description="Log level")

    # CORS settings
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")


@cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
