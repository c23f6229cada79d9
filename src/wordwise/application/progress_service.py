"""
Review Progress Service — Application layer orchestrator.

Grades words and keeps their review state in two places: the local cache
(written through on every grade) and the remote document store.
"""

import asyncio
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ulid import ULID

from wordwise.application.cache.manager import LocalCacheManager
from wordwise.application.scheduler import (
    build_review_queue,
    grade,
    new_review_state,
    shuffle_order,
)
from wordwise.domain.constants import FETCH_BATCH_SIZE, REVIEW_CACHE_PREFIX
from wordwise.domain.review.models import Grade, ReviewState
from wordwise.domain.review.ports import ReviewStateRepository

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Generate a sortable study-session ID using ULID."""
    return f"session_{ULID()}"


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are treated as UTC
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def chunked(items: list[str], size: int) -> list[list[str]]:
    """Split items into consecutive chunks of at most size elements."""
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [items[i : i + size] for i in range(0, len(items), size)]


@dataclass
class StudySession:
    session_id: str
    word_ids: list[str]
    started_at: datetime
    shuffled: bool = False


class ReviewProgressService:
    """
    Application service for grading words and loading their review state.

    Follows Dependency Inversion: depends on the ReviewStateRepository port
    and a cache built over the KeyValueStore port, not on concrete adapters.
    """

    def __init__(
        self,
        cache: LocalCacheManager,
        repository: ReviewStateRepository,
        clock: Callable[[], datetime] | None = None,
        batch_size: int = FETCH_BATCH_SIZE,
    ):
        """
        Args:
            cache: Local write-through cache for review records.
            repository: The document store (port) that owns review records.
            clock: Returns the current time; defaults to UTC now.
            batch_size: Maximum IDs per batch request to the repository.
        """
        self._cache = cache
        self._repo = repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.batch_size = batch_size

    async def get_state(self, word_id: str) -> ReviewState:
        """Cached state, else stored state, else a fresh default state."""
        cached = self._read_cached(word_id)
        if cached is not None:
            return cached

        record = await self._repo.get(word_id)
        if record is None:
            return new_review_state(word_id)

        state = ReviewState.from_record(record)
        self._cache.set(self._cache_key(word_id), state.to_record())
        return state

    async def load_states(self, word_ids: list[str]) -> list[ReviewState]:
        """
        Resolve states for many words, in the order given.

        Uncached IDs are fetched from the repository in fixed-size chunks,
        one request per chunk, all chunks awaited together.
        """
        resolved: dict[str, ReviewState] = {}
        missing: list[str] = []

        for word_id in dict.fromkeys(word_ids):
            cached = self._read_cached(word_id)
            if cached is not None:
                resolved[word_id] = cached
            else:
                missing.append(word_id)

        if missing:
            chunks = chunked(missing, self.batch_size)
            logger.debug(f"Fetching {len(missing)} review states in {len(chunks)} batches")
            results = await asyncio.gather(*(self._repo.get_many(chunk) for chunk in chunks))

            fetched: dict[str, dict[str, Any]] = {}
            for batch in results:
                fetched.update(batch)

            for word_id in missing:
                record = fetched.get(word_id)
                if record is None:
                    resolved[word_id] = new_review_state(word_id)
                    continue
                state = ReviewState.from_record(record)
                self._cache.set(self._cache_key(word_id), state.to_record())
                resolved[word_id] = state

        return [resolved[word_id] for word_id in word_ids]

    async def record_grade(
        self, word_id: str, outcome: Grade, now: datetime | None = None
    ) -> ReviewState:
        """
        Grade a word, write the result through the cache, then persist it.

        Raises:
            RepositoryError: If the document store rejects the write. The
                cached copy is kept.
        """
        now = _as_utc(now or self._clock())
        current = await self.get_state(word_id)
        updated = grade(current, outcome, now)

        record = updated.to_record()
        if not self._cache.set(self._cache_key(word_id), record):
            logger.warning(f"Review state for '{word_id}' was not cached")

        await self._repo.set(word_id, record)
        logger.info(
            f"Graded '{word_id}' as {outcome.value}: "
            f"ease={updated.ease_factor:.2f} interval={updated.interval}d"
        )
        return updated

    async def seed_states(self, word_ids: list[str]) -> int:
        """
        Store default review states for words the repository does not know yet.

        Returns:
            Number of states created.
        """
        created = 0
        for chunk in chunked(list(dict.fromkeys(word_ids)), self.batch_size):
            existing = await self._repo.get_many(chunk)
            for word_id in chunk:
                if word_id in existing:
                    continue
                await self._repo.set(word_id, new_review_state(word_id).to_record())
                created += 1
        logger.info(f"Seeded {created} new review states")
        return created

    async def review_queue(
        self, word_ids: list[str], now: datetime | None = None
    ) -> list[ReviewState]:
        states = await self.load_states(word_ids)
        return build_review_queue(states, _as_utc(now or self._clock()))

    async def start_session(
        self,
        word_ids: list[str],
        shuffle: bool = False,
        rng: random.Random | None = None,
        now: datetime | None = None,
    ) -> StudySession:
        """Build a study session from the words currently due."""
        now = _as_utc(now or self._clock())
        queue = [s.word_id for s in await self.review_queue(word_ids, now)]
        if shuffle:
            queue = shuffle_order(queue, rng)
        return StudySession(
            session_id=generate_session_id(),
            word_ids=queue,
            started_at=now,
            shuffled=shuffle,
        )

    async def close(self) -> None:
        await self._repo.close()

    def _read_cached(self, word_id: str) -> ReviewState | None:
        record = self._cache.get(self._cache_key(word_id))
        if record is None:
            return None
        try:
            return ReviewState.from_record(record)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable cached state for '{word_id}': {e}")
            self._cache.remove(self._cache_key(word_id))
            return None

    @staticmethod
    def _cache_key(word_id: str) -> str:
        return f"{REVIEW_CACHE_PREFIX}{word_id}"
