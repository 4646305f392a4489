"""Key-value stores backing the local NFT cache."""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol


class StorageFullError(Exception):
    """Raised by a store when a write would exceed its capacity."""


class KeyValueStore(Protocol):
    """
    Minimal persistent string store, modelled on browser localStorage.

    Methods
    -------
    get(key)
        Stored string or None
    set(key, value)
        Store a string; may raise StorageFullError
    delete(key)
        Remove a key if present
    keys()
        All stored keys

    """

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


class MemoryStore:
    """
    In-process store with an optional entry limit.

    Parameters
    ----------
    max_entries : int | None
        Capacity. Writes of new keys beyond it raise StorageFullError.

    """

    def __init__(self, max_entries: int | None = None) -> None:
        self.max_entries = max_entries
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            if self.max_entries is not None and key not in self._data and len(self._data) >= self.max_entries:
                msg = f"Store is full ({self.max_entries} entries)"
                raise StorageFullError(msg)
            self._data[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


class JsonFileStore:
    """
    Store persisted as a single JSON object on disk.

    Writes go to a temporary file that then replaces the original.

    Parameters
    ----------
    path : Path | str
        JSON file location; parent directories are created on first write
    max_entries : int | None
        Capacity. Writes of new keys beyond it raise StorageFullError.

    """

    def __init__(self, path: Path | str, max_entries: int | None = None) -> None:
        self.path = Path(path)
        self.max_entries = max_entries
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError):
            # Unreadable cache file is treated as empty
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)} if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            if self.max_entries is not None and key not in data and len(data) >= self.max_entries:
                msg = f"Store is full ({self.max_entries} entries)"
                raise StorageFullError(msg)
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._read())
