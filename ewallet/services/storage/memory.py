"""In-memory credential storage (tests, ephemeral sessions)."""

from typing import Optional

from ewallet.services.storage.interface import CredentialStorageInterface


class InMemoryCredentialStorage(CredentialStorageInterface):

    def __init__(self, token: Optional[str] = None):
        self._token = token or None

    def get(self) -> Optional[str]:
        return self._token

    def set(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None
