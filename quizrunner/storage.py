"""Session-scoped key/value storage for settings and history."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import PersistenceError
from .utils.io import read_json, write_json

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class SessionStorage:
    """Interface for the storage backing settings and history.

    Values are JSON-compatible. Implementations raise PersistenceError on
    any read or write failure.
    """

    def get_item(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set_item(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove_item(self, key: str) -> None:
        raise NotImplementedError


class MemoryStorage(SessionStorage):
    """In-process storage; values are JSON round-tripped like a real backend."""

    def __init__(self) -> None:
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[Any]:
        raw = self._items.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Corrupt value for {key}: {e}", key=key) from e

    def set_item(self, key: str, value: Any) -> None:
        try:
            self._items[key] = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot serialize {key}: {e}", key=key) from e

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def set_raw(self, key: str, raw: str) -> None:
        self._items[key] = raw


class JsonFileStorage(SessionStorage):
    """Stores each key as ``<directory>/<key>.json``."""

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise PersistenceError(f"Invalid storage key: {key!r}", key=key)
        return self.directory / f"{key}.json"

    def get_item(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return read_json(path)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Cannot read {path}: {e}", key=key) from e

    def set_item(self, key: str, value: Any) -> None:
        path = self._path(key)
        try:
            write_json(path, value)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot write {path}: {e}", key=key) from e
        logger.debug("Saved %s", path)

    def remove_item(self, key: str) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot remove {path}: {e}", key=key) from e
