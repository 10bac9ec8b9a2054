"""Configuration utilities for the Withings client."""

from functools import lru_cache
from typing import Any, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONFIG_FILE = "config.json"


class Settings(BaseSettings):
    """Client settings loaded from environment variables and an optional .env file."""

    # Logging
    log_level: str = Field("INFO", description="Logging level")
    log_format: str = Field("text", description="Log output format (text or json)")

    # Withings credentials
    withings_client_id: Optional[str] = Field(None, description="Withings API client ID")
    withings_client_secret: Optional[SecretStr] = Field(None, description="Withings API client secret")

    # Token storage
    withings_config_file: str = Field(
        DEFAULT_CONFIG_FILE, description="Path of the JSON file holding the token pair"
    )

    # Withings API configuration
    withings_api_base_url: str = Field("https://wbsapi.withings.net", description="Withings API base URL")
    withings_auth_url: str = Field(
        "https://account.withings.com/oauth2_user/authorize2",
        description="Withings OAuth2 authorization endpoint",
    )
    withings_redirect_uri: str = Field(
        "http://localhost:8888", description="Redirect URI registered with Withings"
    )
    withings_scope: str = Field(
        "user.info,user.metrics,user.activity", description="Comma-separated OAuth2 scopes"
    )

    # Local OAuth callback listener
    callback_host: str = Field("127.0.0.1", description="Address the OAuth callback listener binds to")
    callback_port: int = Field(8888, description="Port the OAuth callback listener binds to")

    request_timeout_seconds: int = Field(30, description="HTTP request timeout in seconds")

    @field_validator("withings_api_base_url", "withings_auth_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalise URLs so paths can be appended with a single slash."""
        return v.rstrip("/")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str, info: Any) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            raise ValueError(f"{info.field_name} must be 'text' or 'json'")
        return v

    @field_validator("withings_config_file")
    @classmethod
    def check_config_file(cls, v: str) -> str:
        # An empty override falls back to the default file name
        return v or DEFAULT_CONFIG_FILE

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="",
        extra="ignore",
    )

    @property
    def client_secret_value(self) -> Optional[str]:
        """Return the plain client secret, if configured."""
        if self.withings_client_secret is None:
            return None
        return self.withings_client_secret.get_secret_value()


@lru_cache()
def get_settings() -> Settings:
    """
    Create and cache settings instance.

    Returns:
        Settings: Client settings
    """
    return Settings()
