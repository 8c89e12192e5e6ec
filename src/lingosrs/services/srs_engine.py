"""SM-2 spaced repetition calculations.

Everything in this module is pure: callers pass the current time in and
persist the results themselves.

Quality mapping (four-button system):
    0 = Again (forgot)
    1 = Hard (remembered with difficulty)
    3 = Good (remembered correctly)
    4 = Easy (very easy)
"""
import math
from datetime import UTC, datetime, timedelta
from typing import Any, Dict, Optional

from lingosrs.config import (
    FAILURE_EASE_PENALTY,
    INITIAL_EASE_FACTOR,
    INITIAL_INTERVAL_DAYS,
    MIN_EASE_FACTOR,
    PASS_THRESHOLD,
    SECOND_INTERVAL_DAYS,
)
from lingosrs.exceptions import InvalidQualityError
from lingosrs.models.models import VocabularyReview
from lingosrs.models.review_models import ReviewQuality, SRSState

SECONDS_PER_DAY = 24 * 60 * 60

DEFAULT_SRS_STATE = SRSState(
    interval_days=INITIAL_INTERVAL_DAYS,
    ease_factor=INITIAL_EASE_FACTOR,
    repetitions=0,
)


def validate_quality(value: Any) -> ReviewQuality:
    """Convert a raw rating into a ReviewQuality or raise InvalidQualityError."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQualityError(value)
    try:
        return ReviewQuality(value)
    except ValueError:
        raise InvalidQualityError(value) from None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_next_review(quality: ReviewQuality, current_state: SRSState) -> SRSState:
    """Calculate the next scheduling state for a rating."""
    if quality < PASS_THRESHOLD:
        # Failed - start over with a shorter interval and a harder ease
        return SRSState(
            interval_days=INITIAL_INTERVAL_DAYS,
            ease_factor=max(MIN_EASE_FACTOR, current_state.ease_factor - FAILURE_EASE_PENALTY),
            repetitions=0,
        )

    if current_state.repetitions == 0:
        new_interval = INITIAL_INTERVAL_DAYS
    elif current_state.repetitions == 1:
        new_interval = SECOND_INTERVAL_DAYS
    else:
        new_interval = _round_half_up(current_state.interval_days * current_state.ease_factor)

    # EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))
    distance = 5 - quality
    ease_change = 0.1 - distance * (0.08 + distance * 0.02)

    return SRSState(
        interval_days=max(INITIAL_INTERVAL_DAYS, new_interval),
        ease_factor=max(MIN_EASE_FACTOR, current_state.ease_factor + ease_change),
        repetitions=current_state.repetitions + 1,
    )


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps (as SQLite returns them) as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def calculate_next_review_date(interval_days: int, from_date: Optional[datetime] = None) -> datetime:
    """Calculate the next review date based on the interval."""
    if from_date is None:
        from_date = datetime.now(UTC)
    return ensure_utc(from_date) + timedelta(days=interval_days)


def is_due_for_review(review: Optional[VocabularyReview], now: Optional[datetime] = None) -> bool:
    """Check if a word is due. Words without a record or date are always due."""
    if review is None or review.next_review_date is None:
        return True
    if now is None:
        now = datetime.now(UTC)
    return ensure_utc(review.next_review_date) <= ensure_utc(now)


def days_until_review(review: Optional[VocabularyReview], now: Optional[datetime] = None) -> int:
    """Whole days until the next review, negative when overdue."""
    if review is None or review.next_review_date is None:
        return 0
    if now is None:
        now = datetime.now(UTC)
    diff = ensure_utc(review.next_review_date) - ensure_utc(now)
    return math.ceil(diff.total_seconds() / SECONDS_PER_DAY)


def update_review_stats(
    review: VocabularyReview,
    quality: ReviewQuality,
    new_state: SRSState,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build the field updates for a review record after a rating."""
    if now is None:
        now = datetime.now(UTC)
    passed = quality >= PASS_THRESHOLD

    return {
        "interval_days": new_state.interval_days,
        "ease_factor": new_state.ease_factor,
        "repetitions": new_state.repetitions,
        "next_review_date": calculate_next_review_date(new_state.interval_days, now),
        "last_reviewed_at": now,
        "review_count": (review.review_count or 0) + 1,
        "consecutive_correct": (review.consecutive_correct or 0) + 1 if passed else 0,
        "consecutive_incorrect": 0 if passed else (review.consecutive_incorrect or 0) + 1,
    }


def initial_review_fields(now: Optional[datetime] = None) -> Dict[str, Any]:
    """Fields of a freshly initialized review record."""
    if now is None:
        now = datetime.now(UTC)
    return {
        "interval_days": DEFAULT_SRS_STATE.interval_days,
        "ease_factor": DEFAULT_SRS_STATE.ease_factor,
        "repetitions": DEFAULT_SRS_STATE.repetitions,
        "next_review_date": calculate_next_review_date(DEFAULT_SRS_STATE.interval_days, now),
        "last_reviewed_at": None,
        "review_count": 0,
        "consecutive_correct": 0,
        "consecutive_incorrect": 0,
    }
