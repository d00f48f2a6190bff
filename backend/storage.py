"""
Durable key-value storage backing the waitlist.

Each key maps to one text value. The local implementation keeps one file per
key inside a data directory and replaces it in full on every write.
"""
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional


class StorageWriteError(Exception):
    """The durable medium rejected a write (disk full, read-only, ...)"""


class KeyValueStorage(ABC):
    """Abstract interface for a local, persistent key-value slot store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the value stored under a key.

        Args:
            key: Storage key

        Returns:
            Stored text, or None if the key is absent

        Raises:
            OSError: If the medium is unavailable
        """

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Overwrite the value stored under a key.

        Args:
            key: Storage key
            value: Text to store

        Raises:
            StorageWriteError: If the medium rejects the write
        """


class InMemoryStorage(KeyValueStorage):
    """Process-local storage, used for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class LocalFileStorage(KeyValueStorage):
    """Filesystem storage: one ``<key>.json`` file per key."""

    def __init__(self, base_path: str = "./data"):
        """
        Initialize local storage.

        Args:
            base_path: Directory holding the stored values
        """
        self.base_path = Path(base_path)

    def _get_full_path(self, key: str) -> Path:
        """Get the file path for a storage key.

        Raises:
            ValueError: If the key is empty or contains a path separator
        """
        if not key or "/" in key or "\\" in key or key in (".", ".."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.base_path / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        file_path = self._get_full_path(key)
        if not file_path.exists():
            return None
        with open(file_path, "r", encoding="utf-8") as file:
            return file.read()

    def set(self, key: str, value: str) -> None:
        """Write atomically: temp file in the same directory, then rename."""
        file_path = self._get_full_path(key)
        tmp_name = None
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.base_path, prefix=f".{key}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as file:
                file.write(value)
            os.replace(tmp_name, file_path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageWriteError(f"Could not write {key}: {e}") from e
