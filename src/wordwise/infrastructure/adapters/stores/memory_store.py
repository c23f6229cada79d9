"""
In-memory key/value store.

Process-local stand-in for browser storage. An optional quota, counted in
characters of keys plus values, makes writes fail the way a full store does.
"""

import logging

from wordwise.domain.cache.ports import KeyValueStore, QuotaExceededError

logger = logging.getLogger(__name__)


class InMemoryStore(KeyValueStore):
    def __init__(self, quota_chars: int | None = None):
        self.quota_chars = quota_chars
        self._data: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_chars is not None:
            projected = self.used_chars() - self._footprint(key) + len(key) + len(value)
            if projected > self.quota_chars:
                raise QuotaExceededError(
                    f"Writing '{key}' needs {projected} chars, quota is {self.quota_chars}"
                )
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)

    def used_chars(self) -> int:
        return sum(len(k) + len(v) for k, v in self._data.items())

    def _footprint(self, key: str) -> int:
        if key not in self._data:
            return 0
        return len(key) + len(self._data[key])

    def __len__(self) -> int:
        return len(self._data)
