"""Gateway settings using Pydantic for environment-based configuration."""
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """Settings loaded from ``CHECKOUT_GATEWAY_*`` environment variables."""

    # Gateway credentials
    private_key: str = Field(..., description="Gateway private API key")
    api_url: str = Field(
        default="https://api.paymill.com/v2/", description="Gateway REST base URL"
    )
    success_response_code: int = Field(
        default=20000, description="Response code the gateway reports on success"
    )

    # Transport
    request_timeout: float = Field(default=30.0, description="HTTP timeout (seconds)")
    fetch_retry_attempts: int = Field(
        default=3, ge=1, description="Attempts for idempotent fetches"
    )
    retry_base_delay: float = Field(
        default=0.5, ge=0, description="Base delay for fetch retry backoff (seconds)"
    )

    # Request source forwarded with every transaction
    source: Optional[str] = Field(
        default=None, description="Module and shop version, e.g. '1.4.0_shopware_4.1'"
    )

    # Application
    app_name: str = Field(default="checkout-gateway", description="Application name")
    app_env: str = Field(default="development", description="Environment")
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=True, description="Render logs as JSON")

    model_config = SettingsConfigDict(
        env_prefix="CHECKOUT_GATEWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("private_key")
    @classmethod
    def validate_private_key(cls, v: str) -> str:
        """Strip pasted whitespace and reject empty keys."""
        v = v.strip()
        if not v:
            raise ValueError("Gateway private key must not be empty")
        return v

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Resource paths are joined onto the base URL, so it must end in '/'."""
        return v if v.endswith("/") else v + "/"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()


@lru_cache()
def get_settings() -> GatewaySettings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return GatewaySettings()
