"""
Credential Storage Package

Abstract interface plus in-memory and file-backed implementations.
"""

from ewallet.services.storage.file_storage import FileCredentialStorage
from ewallet.services.storage.interface import (
    CredentialStorageInterface,
    StorageError,
)
from ewallet.services.storage.memory import InMemoryCredentialStorage

__all__ = [
    # Interface
    "CredentialStorageInterface",
    "StorageError",
    # Implementations
    "FileCredentialStorage",
    "InMemoryCredentialStorage",
]
