# Review repository adapters
from .http_repository import HttpReviewRepository
from .local_repository import LocalReviewRepository

__all__ = ["HttpReviewRepository", "LocalReviewRepository"]
