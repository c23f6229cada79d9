"""
JSON-file key/value store.

Keeps the whole map in memory and rewrites the file on every mutation,
using a temp file plus atomic replace so a crash never leaves a torn file.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

from wordwise.domain.cache.ports import KeyValueStore, QuotaExceededError, StorageError

logger = logging.getLogger(__name__)


class JsonFileStore(KeyValueStore):
    """Persistent store backed by a single JSON object on disk."""

    def __init__(self, path: Path, quota_chars: int | None = None):
        self.path = Path(path)
        self.quota_chars = quota_chars
        self._data = self._load()

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_chars is not None:
            current = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
            projected = current + len(key) + len(value)
            if projected > self.quota_chars:
                raise QuotaExceededError(
                    f"Writing '{key}' needs {projected} chars, quota is {self.quota_chars}"
                )

        previous = self._data.get(key)
        self._data[key] = value
        try:
            self._flush()
        except StorageError:
            if previous is None:
                self._data.pop(key, None)
            else:
                self._data[key] = previous
            raise

    def remove_item(self, key: str) -> None:
        if key not in self._data:
            return
        value = self._data.pop(key)
        try:
            self._flush()
        except StorageError:
            self._data[key] = value
            raise

    def keys(self) -> list[str]:
        return list(self._data)

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except OSError as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e
        except json.JSONDecodeError:
            logger.warning(f"Store file {self.path} is corrupt, starting empty")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Store file {self.path} is not a JSON object, starting empty")
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _flush(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(self._data, f)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e
