"""
Service Factory
Centralizes the logic for selecting store and repository adapters.
"""

from wordwise.application.cache.manager import LocalCacheManager
from wordwise.application.config import AppConfig
from wordwise.application.progress_service import ReviewProgressService
from wordwise.domain.cache.ports import KeyValueStore
from wordwise.domain.review.ports import ReviewStateRepository
from wordwise.infrastructure.adapters.repositories import (
    HttpReviewRepository,
    LocalReviewRepository,
)
from wordwise.infrastructure.adapters.stores import InMemoryStore, JsonFileStore


def get_key_value_store(config: AppConfig) -> KeyValueStore:
    """
    Returns the KeyValueStore implementation selected by config.
    """
    if config.store_backend == "memory":
        return InMemoryStore(quota_chars=config.store_quota_chars)
    return JsonFileStore(config.store_path, quota_chars=config.store_quota_chars)


def get_cache_manager(config: AppConfig, store: KeyValueStore | None = None) -> LocalCacheManager:
    return LocalCacheManager(
        store or get_key_value_store(config),
        namespace=config.cache_namespace,
        default_ttl_ms=config.cache_default_ttl_ms,
        max_cache_size=config.cache_max_size,
    )


def get_review_repository(config: AppConfig) -> ReviewStateRepository:
    """
    Returns the ReviewStateRepository implementation selected by config.
    """
    if config.review_backend == "http":
        return HttpReviewRepository(
            config.document_store_url, token=config.document_store_token
        )
    return LocalReviewRepository(config.reviews_path)


def get_progress_service(config: AppConfig) -> ReviewProgressService:
    return ReviewProgressService(
        cache=get_cache_manager(config),
        repository=get_review_repository(config),
        batch_size=config.fetch_batch_size,
    )
