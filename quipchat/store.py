from __future__ import annotations

import copy
import json
import os
import re
from pathlib import Path
from threading import Lock
from typing import Any, Dict, Optional, Protocol, Union

from .errors import PersistenceFailure


HISTORY_KEY = "chatHistory"


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...


class InMemoryStore:
    """Thread-safe in-RAM key-value medium; values are deep-copied in and out."""

    def __init__(self) -> None:
        self._lock = Lock()
        self._data: Dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            if key not in self._data:
                return None
            return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(value)


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonDirectoryStore:
    """One ``<key>.json`` file per key inside ``directory``."""

    def __init__(self, directory: Union[str, Path]) -> None:
        self.directory = Path(directory).expanduser()
        self._lock = Lock()

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"Unsupported store key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[Any]:
        path = self._path(key)
        with self._lock:
            if not path.exists():
                return None
            with path.open("r", encoding="utf-8") as fh:
                return json.load(fh)

    def set(self, key: str, value: Any) -> None:
        path = self._path(key)
        with self._lock:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".json.tmp")
            try:
                with tmp.open("w", encoding="utf-8") as fh:
                    json.dump(value, fh, ensure_ascii=False, indent=2)
                os.replace(tmp, path)
            except BaseException:
                tmp.unlink(missing_ok=True)
                raise


class HistoryStore:
    """Reads and writes the whole history index under one well-known key."""

    def __init__(self, medium: KeyValueStore, key: str = HISTORY_KEY) -> None:
        self.medium = medium
        self.key = key

    def load(self) -> Optional[Dict[str, Any]]:
        try:
            raw = self.medium.get(self.key)
        except Exception as e:
            raise PersistenceFailure(f"Failed to load history: {e}") from e
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise PersistenceFailure("Failed to load history: stored index is not an object")
        return raw

    def save(self, index: Dict[str, Any]) -> None:
        try:
            self.medium.set(self.key, index)
        except Exception as e:
            raise PersistenceFailure(f"Failed to save history: {e}") from e
