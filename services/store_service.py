"""JSON-backed client-local key/value storage.

Every key in the process shares a single file, so writes always go through a
full load, mutate and persist cycle under one lock.
"""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any

from loguru import logger

from utils.constants import LOCAL_STORAGE_FILE


class StoreService:
    """Service that reads and writes named values in one JSON document."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = Path(path or LOCAL_STORAGE_FILE)
        self._lock = threading.RLock()

    def load_store(self) -> dict[str, Any]:
        """
        Load the whole JSON document.

        Returns:
            Dictionary payload (empty dict if missing or unreadable)
        """
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_bytes().decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.warning(f"Invalid JSON at {self.path}; ignoring store")
            return {}
        except OSError as exc:
            logger.warning(f"Failed to read {self.path}: {exc}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Unexpected {type(data).__name__} at {self.path}; ignoring store")
            return {}
        return data

    def save_store(self, data: dict[str, Any]) -> bool:
        """
        Persist the whole JSON document atomically.

        Returns:
            True when the document reached disk
        """
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self.path)
            return True
        except OSError as exc:
            logger.warning(f"Failed to write {self.path}: {exc}")
            return False

    def get_item(self, key: str) -> Any:
        with self._lock:
            return self.load_store().get(key)

    def set_item(self, key: str, value: Any) -> bool:
        return self.update_item(key, lambda _current: value)

    def remove_item(self, key: str) -> bool:
        with self._lock:
            data = self.load_store()
            if key not in data:
                return True
            del data[key]
            return self.save_store(data)

    def update_item(self, key: str, mutate: Callable[[Any], Any]) -> bool:
        """Read-modify-write one key, leaving every other key untouched."""
        with self._lock:
            data = self.load_store()
            data[key] = mutate(data.get(key))
            return self.save_store(data)


_default_store_service: StoreService | None = None


def get_store_service() -> StoreService:
    """Return a shared StoreService instance."""
    global _default_store_service
    if _default_store_service is None:
        _default_store_service = StoreService()
    return _default_store_service


def reset_store_service() -> None:
    """Reset the global store service instance (test isolation)."""
    global _default_store_service
    _default_store_service = None
