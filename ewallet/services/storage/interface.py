"""
Abstract Credential Storage Interface

The persisted credential is one named slot holding a token string;
absence means logged out. It is injected rather than global so the
session layer can be exercised against an in-memory double.

The slot has exactly one writer (SessionStore). The gateway only
reads it to attach the bearer header.
"""

from abc import ABC, abstractmethod
from typing import Optional


class CredentialStorageInterface(ABC):
    """
    Get/set/clear access to a single credential slot.

    Implementations are synchronous: reading the slot happens at
    startup and before every request, and must not yield.
    """

    @abstractmethod
    def get(self) -> Optional[str]:
        """
        Read the stored token.

        Returns:
            The token, or None if the slot is empty
        """
        pass

    @abstractmethod
    def set(self, token: str) -> None:
        """
        Store a token, replacing any previous one.

        Raises:
            StorageError: If the slot cannot be written
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Empty the slot. Clearing an empty slot is not an error."""
        pass

    @property
    def present(self) -> bool:
        return bool(self.get())


class StorageError(Exception):
    """Base exception for credential storage operations."""
    pass
