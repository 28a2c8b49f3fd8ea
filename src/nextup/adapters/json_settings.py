"""JSON-file settings store adapter."""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable

logger = logging.getLogger(__name__)


class JsonFileSettingsStore:
    """
    Settings stored as one JSON object of text values.

    Implements the SettingsStore protocol. Values are opaque blobs; they are
    kept as UTF-8 text so the file stays readable. The file is re-read on every
    access and replaced atomically on every write.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()
        self._lock = threading.Lock()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring settings file {self.path}: not a JSON object")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _dump(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".settings-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except Exception:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def read(self, key: str) -> bytes | None:
        value = self._load().get(key)
        return value.encode("utf-8") if value is not None else None

    def write(self, key: str, value: bytes) -> None:
        self.update(key, lambda _old: value)

    def update(self, key: str, fn: Callable[[bytes | None], bytes]) -> bytes:
        with self._lock:
            data = self._load()
            old = data.get(key)
            new = fn(old.encode("utf-8") if old is not None else None)
            data[key] = new.decode("utf-8")
            self._dump(data)
            return new
