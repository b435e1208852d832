"""Remote gateway package."""

from ewallet.services.gateway.client import InvalidationListener, RemoteGateway
from ewallet.services.gateway.normalization import (
    DEFAULT_ERROR_MESSAGE,
    FailureKind,
    GatewayError,
    GatewayFailure,
    extract_message,
    normalize_response,
    normalize_transport_error,
)

__all__ = [
    "DEFAULT_ERROR_MESSAGE",
    "FailureKind",
    "GatewayError",
    "GatewayFailure",
    "InvalidationListener",
    "RemoteGateway",
    "extract_message",
    "normalize_response",
    "normalize_transport_error",
]
