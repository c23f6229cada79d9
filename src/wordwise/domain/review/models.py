"""
Domain models for review scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from wordwise.domain.constants import DEFAULT_EASE_FACTOR


class Grade(str, Enum):
    """Graded outcome of a single flashcard review."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    AGAIN = "again"

    @property
    def multiplier(self) -> float:
        return GRADE_MULTIPLIERS[self]

    @property
    def is_failure(self) -> bool:
        return self is Grade.AGAIN


GRADE_MULTIPLIERS: dict[Grade, float] = {
    Grade.EASY: 2.5,
    Grade.MEDIUM: 2.0,
    Grade.HARD: 1.3,
    Grade.AGAIN: 0.6,
}


@dataclass(frozen=True)
class ReviewState:
    """
    Memory-strength state for one user x word pair.

    Attributes:
        word_id: Foreign key into the external word store.
        times_studied: Number of graded reviews so far.
        last_studied: When the word was last graded.
        correct_count: Reviews graded anything but "again".
        incorrect_count: Reviews graded "again".
        ease_factor: Growth multiplier, never below 1.3.
        interval: Days until the next review; 0 means due now.
        next_review: last_studied + interval days.
    """

    word_id: str
    times_studied: int = 0
    last_studied: datetime | None = None
    correct_count: int = 0
    incorrect_count: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval: int = 0
    next_review: datetime | None = None

    def to_record(self) -> dict[str, Any]:
        """Serialize to the JSON document shape used by the word store."""
        return {
            "wordId": self.word_id,
            "timesStudied": self.times_studied,
            "lastStudied": _format_ts(self.last_studied),
            "correctCount": self.correct_count,
            "incorrectCount": self.incorrect_count,
            "easeFactor": self.ease_factor,
            "interval": self.interval,
            "nextReview": _format_ts(self.next_review),
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "ReviewState":
        return cls(
            word_id=str(record["wordId"]),
            times_studied=int(record.get("timesStudied", 0)),
            last_studied=_parse_ts(record.get("lastStudied")),
            correct_count=int(record.get("correctCount", 0)),
            incorrect_count=int(record.get("incorrectCount", 0)),
            ease_factor=float(record.get("easeFactor", DEFAULT_EASE_FACTOR)),
            interval=int(record.get("interval", 0)),
            next_review=_parse_ts(record.get("nextReview")),
        )


def _format_ts(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_ts(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    parsed = value if isinstance(value, datetime) else datetime.fromisoformat(str(value))
    # Naive timestamps from older records are UTC
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
