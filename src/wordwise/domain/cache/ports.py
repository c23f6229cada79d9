"""
Ports (interfaces) for the persistent key/value store behind the cache.

The store is shared with unrelated data; the cache only touches keys under
its own namespace.
"""

from abc import ABC, abstractmethod


class StorageError(Exception):
    """Raised when the underlying store cannot be read or written."""


class QuotaExceededError(StorageError):
    """Raised by set_item when the store's storage budget is full."""


class KeyValueStore(ABC):
    """
    Port for a string-to-string persistent store.

    Implementations:
        - InMemoryStore: process-local dict, optional quota.
        - JsonFileStore: single JSON file on disk, optional quota.
    """

    @abstractmethod
    def get_item(self, key: str) -> str | None:
        pass

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """
        Store value under key.

        Raises:
            QuotaExceededError: If the write would exceed the storage budget.
        """
        pass

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Remove key. Removing a missing key is a no-op."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """Return every key currently stored, including foreign ones."""
        pass
