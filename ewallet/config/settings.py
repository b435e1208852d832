"""
Configuration Management for the E-Wallet Client

Uses pydantic-settings for type-safe configuration from environment variables.

All configuration is centralized here: the remote ledger endpoint,
where the credential slot lives, and the presentation knobs.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GatewaySettings(BaseSettings):
    """Remote ledger service connection."""

    model_config = SettingsConfigDict(
        env_prefix="EWALLET_API_",
        extra="ignore"
    )

    base_url: str = Field(
        default="http://localhost:8080/api",
        description="Base URL of the remote ledger API"
    )
    timeout_seconds: float = Field(
        default=10.0,
        ge=1.0,
        le=120.0,
        description="Per-request timeout"
    )

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Routes are joined with a leading slash."""
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {v!r}")
        return v.rstrip("/")


class CredentialSettings(BaseSettings):
    """Where the single credential token is persisted."""

    model_config = SettingsConfigDict(
        env_prefix="EWALLET_CREDENTIALS_",
        extra="ignore"
    )

    slot_name: str = Field(
        default="jwt_token",
        min_length=1,
        description="Name of the persisted credential slot"
    )
    backend: Literal["file", "memory"] = Field(
        default="memory",
        description=(
            "Credential storage backend. \"memory\" keeps one slot per client "
            "(per browser session in the Streamlit app); \"file\" shares one "
            "slot on disk and is only for single-user local use"
        )
    )
    path: Path = Field(
        default=Path("~/.ewallet/credentials.json"),
        description="File used by the file backend"
    )

    @property
    def resolved_path(self) -> Path:
        return self.path.expanduser()


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON instead of console lines"
    )

    # Presentation
    summary_window: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Number of entries shown on the dashboard summary"
    )

    @field_validator('log_level')
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def gateway(self) -> GatewaySettings:
        return GatewaySettings()

    @property
    def credentials(self) -> CredentialSettings:
        return CredentialSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool | str]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid} plus
    {setting_name_error: message} for failures.
    """
    results: dict[str, bool | str] = {}
    settings = get_settings()

    for name in ("gateway", "credentials", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except ValueError as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
