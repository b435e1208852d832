"""
File-backed Credential Storage

Slots live in a small JSON object on disk so several named slots can
share one file; this client only ever uses one. The file is created
with owner-only permissions.
"""

import json
import os
from pathlib import Path
from typing import Optional

from ewallet.observability import get_logger
from ewallet.services.storage.interface import (
    CredentialStorageInterface,
    StorageError,
)


class FileCredentialStorage(CredentialStorageInterface):
    """Credential slot persisted in a JSON file."""

    def __init__(self, path: Path, slot_name: str = "jwt_token"):
        self._path = Path(path)
        self._slot_name = slot_name
        self._logger = get_logger(__name__)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            # An unreadable slot file is treated as logged out
            self._logger.warning(
                "credential_file_unreadable",
                path=str(self._path),
                error=str(e),
            )
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, slots: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self._path.with_suffix(self._path.suffix + ".tmp")
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(slots, fh)
            os.replace(tmp, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write credential file {self._path}: {e}")

    def get(self) -> Optional[str]:
        return self._read_all().get(self._slot_name) or None

    def set(self, token: str) -> None:
        slots = self._read_all()
        slots[self._slot_name] = token
        self._write_all(slots)

    def clear(self) -> None:
        slots = self._read_all()
        if self._slot_name not in slots:
            return
        del slots[self._slot_name]
        self._write_all(slots)
