# Domain Review Package
from .models import GRADE_MULTIPLIERS, Grade, ReviewState
from .ports import RepositoryError, ReviewStateRepository

__all__ = ["Grade", "GRADE_MULTIPLIERS", "ReviewState", "ReviewStateRepository", "RepositoryError"]
