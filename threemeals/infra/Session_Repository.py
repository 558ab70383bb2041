"""Session repository: best-effort persistence of the session record under one fixed key.

Storage failures (unwritable directory, full disk, corrupt file) are logged and swallowed.
A failed load reads as "no saved session".
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from threemeals.domain.SessionRecord import SessionRecord
from threemeals.infra.paths import SESSION_FILE
from threemeals.utilities.constants import SESSION_KEY

logger = logging.getLogger(__name__)


class JsonFileStorage:
    """Key/value string storage kept in one JSON file (localStorage-like API)."""

    def __init__(self, path: Path = SESSION_FILE):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: Dict[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=".session_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(data, tmp, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str):
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def remove_item(self, key: str):
        data = self._read_all()
        if key in data:
            del data[key]
            self._write_all(data)


class MemoryStorage:
    """In-process storage with the same API (used when nothing should touch disk)."""

    def __init__(self):
        self._items: Dict[str, str] = {}

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str):
        self._items[key] = value

    def remove_item(self, key: str):
        self._items.pop(key, None)


class SessionRepository:
    def __init__(self, storage=None, key: str = SESSION_KEY):
        self.storage = storage if storage is not None else JsonFileStorage()
        self.key = key

    def save(self, record: SessionRecord) -> bool:
        try:
            self.storage.set_item(self.key, json.dumps(record.to_dict(), ensure_ascii=False))
            return True
        except Exception as e:
            logger.warning("Session save skipped: %s", e)
            return False

    def load(self) -> Optional[SessionRecord]:
        try:
            raw = self.storage.get_item(self.key)
            if not raw:
                return None
            data = json.loads(raw)
            if not isinstance(data, dict):
                return None
            return SessionRecord.from_dict(data)
        except Exception as e:
            logger.warning("Ignoring unreadable saved session: %s", e)
            return None

    def clear(self) -> bool:
        try:
            self.storage.remove_item(self.key)
            return True
        except Exception as e:
            logger.warning("Session clear failed: %s", e)
            return False


__all__ = ["SessionRepository", "JsonFileStorage", "MemoryStorage"]
