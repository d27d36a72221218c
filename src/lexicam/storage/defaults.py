"""Local key-value preferences backed by a JSON file.

The whole file is read once on construction and rewritten on every
``set``. Writes go through a temporary file and an atomic rename so a
crash mid-write leaves the previous contents intact.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class KeyValueStore:
    """Small persistent key-value store.

    Args:
        path: JSON file holding the values (created on first write)

    Example:
        >>> defaults = KeyValueStore("./defaults.json")
        >>> defaults.set("cloud_sync_enabled", True)
        >>> defaults.get_bool("cloud_sync_enabled")
        True
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._values: dict[str, Any] = self._load()

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring preferences file {self.path}: not a JSON object")
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def get_bool(self, key: str) -> bool:
        return bool(self._values.get(key, False))

    def set(self, key: str, value: Any) -> None:
        """Store a JSON-serializable value and persist.

        Raises:
            OSError: If the file cannot be written
            TypeError: If the value is not JSON-serializable
        """
        self._values[key] = value
        self._write()

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(self._values, ensure_ascii=False, indent=2)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".defaults-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
