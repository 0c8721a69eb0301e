"""
Local key-value stores holding string values, in the manner of browser storage.
"""
import json
import logging
import os
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class StorageWriteError(Exception):
    """Raised when a value cannot be written to durable storage."""


class MemoryStore:
    """
    Process-local store. Contents are lost when the process exits.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value

    def remove(self, key: str):
        self._data.pop(key, None)


class JsonFileStore:
    """
    Durable store backed by a single JSON file of string values.
    Every write overwrites the whole file.
    """

    def __init__(self, path: str):
        self.path = path
        self._data: Dict[str, str] = self._read()

    def _read(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Storage file {self.path} unreadable, starting empty: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Storage file {self.path} is not a key-value object, starting empty")
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _flush(self, data: Dict[str, str]):
        directory = os.path.dirname(os.path.abspath(self.path))
        tmp_path = f"{self.path}.tmp"
        try:
            os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise StorageWriteError(f"Failed to write {self.path}: {e}") from e

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        updated = {**self._data, key: value}
        self._flush(updated)
        self._data = updated

    def remove(self, key: str):
        if key not in self._data:
            return
        updated = {k: v for k, v in self._data.items() if k != key}
        self._flush(updated)
        self._data = updated


def create_store(path: Optional[str]):
    """Build the store for a configured path; an empty path keeps data in memory."""
    if not path:
        logger.info("No storage path configured, using in-memory store")
        return MemoryStore()
    logger.info(f"Using JSON file store at {path}")
    return JsonFileStore(path)
