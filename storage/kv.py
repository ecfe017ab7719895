"""Key-value storage backends for the local mirror"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from core.exceptions import StorageError
from core.interfaces import KeyValueStorage

logger = logging.getLogger(__name__)


class MemoryStorage(KeyValueStorage):
    """In-process storage, mostly for tests and previews"""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage(KeyValueStorage):
    """
    Storage persisted as one JSON object of string values on disk

    Every write rewrites the whole file through a temporary file and an
    atomic rename, so readers never see a half-written file. There is no
    locking: concurrent writers are last-write-wins.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Local store %s is unreadable, treating it as empty: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Local store %s does not hold an object, treating it as empty", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write_all(self, items: dict[str, str], key: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".tmp_", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(items, f, ensure_ascii=False)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write local store {self.path}: {e}", key) from e

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items, key)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if key in items:
            del items[key]
            self._write_all(items, key)


def load_json(storage: KeyValueStorage, key: str, default):
    """
    Read a JSON value from storage

    Missing keys and unparsable values both yield ``default``; corruption
    is logged, never raised.
    """
    raw = storage.get_item(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except ValueError as e:
        logger.error("Error parsing %s from local store: %s", key, e)
        return default


def save_json(storage: KeyValueStorage, key: str, value) -> None:
    """Serialize a value to JSON and store it"""
    storage.set_item(key, json.dumps(value, ensure_ascii=False, default=str))
