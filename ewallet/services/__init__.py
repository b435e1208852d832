"""Services package."""

from ewallet.services.gateway import (
    FailureKind,
    GatewayError,
    GatewayFailure,
    RemoteGateway,
)
from ewallet.services.storage import (
    CredentialStorageInterface,
    FileCredentialStorage,
    InMemoryCredentialStorage,
    StorageError,
)

__all__ = [
    # Gateway
    "FailureKind",
    "GatewayError",
    "GatewayFailure",
    "RemoteGateway",
    # Credential storage
    "CredentialStorageInterface",
    "FileCredentialStorage",
    "InMemoryCredentialStorage",
    "StorageError",
]
