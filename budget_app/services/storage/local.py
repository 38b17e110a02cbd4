"""
Local Fallback Storage

When no remote session exists the AppState is kept in a single save slot
of a local key-value store, the way a browser app would use localStorage.

FileKeyValueStore persists the key-value pairs as one JSON object on disk.
LocalStateRepository reads and writes the AppState in its slot.
"""

import json
import os
from pathlib import Path
from typing import Optional

from budget_app.log import get_logger
from budget_app.models import AppState
from budget_app.services.storage.interface import (
    KeyValueStoreInterface,
    StorageError,
)
from budget_app.sync.serialization import (
    SerializationError,
    decode_state,
    serialize_state,
)


DEFAULT_STORAGE_KEY = "budgetApp"


class FileKeyValueStore(KeyValueStoreInterface):
    """
    Key-value store backed by a JSON file.

    The whole file is rewritten on every change through a temporary file,
    so a crash never leaves half a file behind.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise StorageError(f"Failed to read {self._path}: {e}")
        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self._path}")
        return data

    def _write_all(self, data: dict[str, str]) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
            tmp_path.write_text(json.dumps(data), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            raise StorageError(f"Failed to write {self._path}: {e}")

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class LocalStateRepository:
    """
    Reads and writes the AppState save slot.

    Failures are logged and never raised: a broken save slot must not stop
    the user from working, it only means the state is not kept offline.
    """

    def __init__(
        self,
        store: KeyValueStoreInterface,
        key: str = DEFAULT_STORAGE_KEY,
    ):
        self._store = store
        self._key = key
        self._logger = get_logger(__name__)

    @property
    def key(self) -> str:
        return self._key

    def load_state(self) -> AppState:
        """The saved state, or the default state if none is usable."""
        try:
            raw = self._store.get(self._key)
        except StorageError as e:
            self._logger.error("local_state_load_failed", key=self._key, error=str(e))
            return AppState.default()

        if not raw:
            return AppState.default()

        try:
            return decode_state(json.loads(raw))
        except (ValueError, SerializationError) as e:
            self._logger.error("local_state_corrupt", key=self._key, error=str(e))
            return AppState.default()

    def save_state(self, state: AppState) -> bool:
        """Write the state to the save slot. Returns False on failure."""
        try:
            self._store.set(self._key, serialize_state(state))
            return True
        except StorageError as e:
            self._logger.error("local_state_save_failed", key=self._key, error=str(e))
            return False

    def clear(self) -> None:
        """Remove the save slot."""
        try:
            self._store.remove(self._key)
        except StorageError as e:
            self._logger.error("local_state_clear_failed", key=self._key, error=str(e))
