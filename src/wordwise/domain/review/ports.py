"""
Ports (interfaces) for review-state persistence.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from typing import Any


class RepositoryError(Exception):
    """Raised when the remote document store cannot be read or written."""


class ReviewStateRepository(ABC):
    """
    Port for the document store that owns review records.

    Implementations:
        - LocalReviewRepository: JSON file on disk.
        - HttpReviewRepository: REST document store over HTTP.
    """

    @abstractmethod
    async def get(self, word_id: str) -> dict[str, Any] | None:
        """
        Fetch a single review record.

        Returns:
            The stored record, or None if the word has never been reviewed.
        """
        pass

    @abstractmethod
    async def get_many(self, word_ids: list[str]) -> dict[str, dict[str, Any]]:
        """
        Fetch several review records in one request.

        Args:
            word_ids: IDs to look up. Callers keep this list small (one chunk).

        Returns:
            Mapping of word_id -> record for the IDs that exist.
        """
        pass

    @abstractmethod
    async def set(self, word_id: str, record: dict[str, Any]) -> None:
        """Create or replace the record for word_id."""
        pass

    async def close(self) -> None:
        """Release connections held by the adapter. No-op by default."""
        return None
