"""
SM-2 spaced repetition with quality scores.

Used by study modes that grade answers on the 0-5 quality scale instead of
the four-button multiplier table in the scheduler module.

Quality scale:
    0: Complete blackout
    1: Incorrect, but familiar
    2: Incorrect, but easy to recall with hint
    3: Correct, but with difficulty
    4: Correct with hesitation
    5: Perfect recall
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from wordwise.domain.constants import (
    DEFAULT_EASE_FACTOR,
    MIN_EASE_FACTOR,
    SM2_INITIAL_INTERVALS,
    SM2_MAX_QUALITY,
    SM2_PASSING_QUALITY,
)
from wordwise.domain.review.models import Grade, ReviewState

GRADE_QUALITY = {
    Grade.AGAIN: 1,
    Grade.HARD: 3,
    Grade.MEDIUM: 4,
    Grade.EASY: 5,
}


@dataclass(frozen=True)
class Sm2Data:
    ease_factor: float
    interval: int
    repetitions: int  # consecutive correct answers
    last_review_date: datetime
    next_review_date: datetime


def _now(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    return _as_utc(now)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def calculate_next_review(
    current: Sm2Data, quality: int, now: datetime | None = None
) -> Sm2Data:
    """
    Compute the next SM-2 schedule.

    Raises:
        ValueError: If quality is outside 0-5.
    """
    if quality < 0 or quality > SM2_MAX_QUALITY:
        raise ValueError("Quality must be between 0 and 5")

    now = _now(now)
    ease = calculate_ease_factor(current.ease_factor, quality)

    if quality < SM2_PASSING_QUALITY:
        interval = 1
        repetitions = 0
    else:
        if current.repetitions == 0:
            interval = SM2_INITIAL_INTERVALS[0]
        elif current.repetitions == 1:
            interval = SM2_INITIAL_INTERVALS[1]
        else:
            interval = _round_half_up(current.interval * ease)
        repetitions = current.repetitions + 1

    return Sm2Data(
        ease_factor=ease,
        interval=interval,
        repetitions=repetitions,
        last_review_date=now,
        next_review_date=now + timedelta(days=interval),
    )


def calculate_ease_factor(current_ef: float, quality: int) -> float:
    """EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), floored at 1.3."""
    q = SM2_MAX_QUALITY - quality
    return max(MIN_EASE_FACTOR, current_ef + (0.1 - q * (0.08 + q * 0.02)))


def difficulty_to_quality(grade: Grade) -> int:
    """Map a four-button grade onto the SM-2 quality scale."""
    return GRADE_QUALITY.get(grade, SM2_PASSING_QUALITY)


def calculate_mastery_level(data: Sm2Data) -> int:
    """
    Mastery percentage (0-100).

    Repetitions contribute up to 50, interval up to 30 and ease factor up to 20.
    """
    repetition_score = min(data.repetitions * 10, 50)
    interval_score = min(data.interval / 2, 30)
    ease_score = (
        (data.ease_factor - MIN_EASE_FACTOR) / (DEFAULT_EASE_FACTOR - MIN_EASE_FACTOR)
    ) * 20
    return min(100, _round_half_up(repetition_score + interval_score + ease_score))


def words_for_review(
    words: Iterable[dict[str, Any]], now: datetime | None = None
) -> list[dict[str, Any]]:
    """Keep words whose next_review_date falls on or before the end of today."""
    now = _now(now)
    end_of_day = now.replace(hour=23, minute=59, second=59, microsecond=999000)

    due = []
    for word in words:
        review_date = word["next_review_date"]
        if not isinstance(review_date, datetime):
            review_date = datetime.fromisoformat(str(review_date))
        # Naive dates are UTC
        if _as_utc(review_date) <= end_of_day:
            due.append(word)
    return due


def initialize_data(now: datetime | None = None) -> Sm2Data:
    now = _now(now)
    return Sm2Data(
        ease_factor=DEFAULT_EASE_FACTOR,
        interval=0,
        repetitions=0,
        last_review_date=now,
        next_review_date=now,
    )


def next_review_description(next_review_date: datetime, now: datetime | None = None) -> str:
    """Short human-readable description of when a word is next due."""
    now = _now(now)
    diff_days = math.ceil((_as_utc(next_review_date) - now).total_seconds() / 86400)

    if diff_days < 0:
        return "review needed"
    if diff_days == 0:
        return "review today"
    if diff_days == 1:
        return "review tomorrow"
    if diff_days <= 7:
        return f"in {diff_days} days"
    if diff_days <= 30:
        return f"in {_round_half_up(diff_days / 7)} weeks"
    return f"in {_round_half_up(diff_days / 30)} months"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def review_state_mastery(state: ReviewState) -> int:
    """
    Mastery percentage (0-100) of a multiplier-table review state.

    Correct answers stand in for SM-2 repetitions. The multiplier table lets
    the ease factor grow far past the SM-2 range, so it is capped at the
    default before scoring. Never-studied words score 0.
    """
    if state.times_studied == 0:
        return 0
    data = Sm2Data(
        ease_factor=min(state.ease_factor, DEFAULT_EASE_FACTOR),
        interval=state.interval,
        repetitions=state.correct_count,
        last_review_date=state.last_studied,
        next_review_date=state.next_review,
    )
    return calculate_mastery_level(data)


def review_progress(state: ReviewState, now: datetime | None = None) -> dict[str, Any]:
    """Mastery and next-review description shown next to a queued word."""
    if state.next_review is None:
        description = "new"
    else:
        description = next_review_description(state.next_review, now)
    return {"mastery": review_state_mastery(state), "nextReviewDescription": description}
