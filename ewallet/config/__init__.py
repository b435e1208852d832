"""Configuration package."""

from ewallet.config.settings import (
    AppSettings,
    CredentialSettings,
    GatewaySettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "AppSettings",
    "CredentialSettings",
    "GatewaySettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
