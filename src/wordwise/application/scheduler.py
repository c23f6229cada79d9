"""
Review scheduler: grading, due-queue ordering and flashcard shuffling.

This is a pure computation module with no I/O. Time and randomness are
passed in by the caller.
"""

import logging
import math
import random
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime, timedelta
from typing import TypeVar

from wordwise.domain.constants import MIN_EASE_FACTOR
from wordwise.domain.review.models import Grade, ReviewState

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InvalidReviewStateError(ValueError):
    """Raised when a review state violates the ease-factor lower bound."""


def new_review_state(word_id: str) -> ReviewState:
    """State for a word entering its first study session."""
    return ReviewState(word_id=word_id)


def grade(state: ReviewState, outcome: Grade, now: datetime) -> ReviewState:
    """
    Apply a graded review and return the updated state.

    The ease factor is scaled by the grade multiplier and floored at 1.3.
    The interval is scaled the same way, except "again" resets it to 0.
    A state with interval 0 keeps interval 0 on a passing grade, so a word's
    first pass leaves it due again immediately.

    Args:
        state: Current state; not modified.
        outcome: Graded outcome.
        now: Review timestamp.

    Returns:
        A new ReviewState.

    Raises:
        InvalidReviewStateError: If state.ease_factor is below 1.3.
    """
    if state.ease_factor < MIN_EASE_FACTOR:
        raise InvalidReviewStateError(
            f"ease_factor {state.ease_factor} for '{state.word_id}' "
            f"is below the minimum {MIN_EASE_FACTOR}"
        )

    multiplier = outcome.multiplier
    new_ease = max(MIN_EASE_FACTOR, state.ease_factor * multiplier)
    new_interval = 0 if outcome.is_failure else math.ceil(state.interval * multiplier)

    return replace(
        state,
        times_studied=state.times_studied + 1,
        last_studied=now,
        correct_count=state.correct_count + (0 if outcome.is_failure else 1),
        incorrect_count=state.incorrect_count + (1 if outcome.is_failure else 0),
        ease_factor=new_ease,
        interval=new_interval,
        next_review=now + timedelta(days=new_interval),
    )


def is_due(state: ReviewState, now: datetime) -> bool:
    return state.next_review is None or state.next_review <= now


def build_review_queue(states: Sequence[ReviewState], now: datetime) -> list[ReviewState]:
    """
    Select the states due for review and order them.

    Never-studied words (next_review is None) come first, then ascending
    next_review. Ties break on word_id so the order is deterministic.
    """
    due = [s for s in states if is_due(s, now)]
    due.sort(
        key=lambda s: (
            s.next_review is not None,
            s.next_review.timestamp() if s.next_review is not None else 0.0,
            s.word_id,
        )
    )
    logger.debug(f"Review queue: {len(due)} due of {len(states)}")
    return due


def shuffle_order(order: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """
    Fisher-Yates shuffle of a word-index sequence.

    Walks i from the last index down to 1 and swaps it with a uniformly
    chosen j in [0, i]. Returns a new list.
    """
    rng = rng or random.Random()
    shuffled = list(order)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def reset_order(count: int) -> list[int]:
    """Original presentation order, used when shuffle mode is turned off."""
    return list(range(count))
