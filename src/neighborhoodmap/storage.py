"""Key-value storage seam used for persisted app state."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Protocol

from .util import write_json


class KeyValueStore(Protocol):
    """String key-value store, the shape of the app's on-device storage."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...


class JsonFileStore:
    """File-backed store: one JSON object mapping keys to string values."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = threading.Lock()

    def get_item(self, key: str) -> str | None:
        with self._lock:
            data = self._read()
        value = data.get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            write_json(self.path, data)

    def _read(self) -> dict[str, object]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
        if not isinstance(raw, dict):
            raise ValueError(f"Expected JSON object in {self.path}")
        return raw
