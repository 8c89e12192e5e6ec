"""Tests for the SM-2 calculations."""
from datetime import UTC, datetime, timedelta

import pytest

from lingosrs.exceptions import InvalidQualityError
from lingosrs.models.models import VocabularyReview
from lingosrs.models.review_models import ReviewQuality, SRSState
from lingosrs.services.srs_engine import (
    DEFAULT_SRS_STATE,
    calculate_next_review,
    calculate_next_review_date,
    days_until_review,
    initial_review_fields,
    is_due_for_review,
    update_review_stats,
    validate_quality,
)

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=UTC)

STATES = [
    SRSState(interval_days=1, ease_factor=2.5, repetitions=0),
    SRSState(interval_days=6, ease_factor=2.36, repetitions=1),
    SRSState(interval_days=15, ease_factor=1.3, repetitions=2),
    SRSState(interval_days=40, ease_factor=1.4, repetitions=7),
    SRSState(interval_days=3, ease_factor=3.1, repetitions=3),
]


@pytest.mark.parametrize("quality", [ReviewQuality.AGAIN, ReviewQuality.HARD])
@pytest.mark.parametrize("state", STATES)
def test_failed_review_resets_schedule(quality: ReviewQuality, state: SRSState) -> None:
    """Test that a failed recall resets interval and repetitions."""
    new_state = calculate_next_review(quality, state)

    assert new_state.interval_days == 1
    assert new_state.repetitions == 0
    assert new_state.ease_factor == pytest.approx(max(1.3, state.ease_factor - 0.2))


@pytest.mark.parametrize("quality", list(ReviewQuality))
@pytest.mark.parametrize("state", STATES)
def test_floors_hold_for_every_rating(quality: ReviewQuality, state: SRSState) -> None:
    """Test that ease and interval never drop below their floors."""
    new_state = calculate_next_review(quality, state)

    assert new_state.ease_factor >= 1.3
    assert new_state.interval_days >= 1


def test_first_two_passes_use_fixed_intervals() -> None:
    """Test the 1 day then 6 days ladder for new words."""
    first = calculate_next_review(ReviewQuality.GOOD, DEFAULT_SRS_STATE)
    second = calculate_next_review(ReviewQuality.GOOD, first)

    assert first.interval_days == 1
    assert first.repetitions == 1
    assert second.interval_days == 6
    assert second.repetitions == 2


def test_later_passes_multiply_interval_by_ease() -> None:
    """Test interval growth once the word has graduated."""
    state = SRSState(interval_days=6, ease_factor=2.5, repetitions=2)

    new_state = calculate_next_review(ReviewQuality.EASY, state)

    assert new_state.interval_days == 15
    assert new_state.repetitions == 3


def test_interval_rounds_half_up() -> None:
    """Test that half days round up."""
    state = SRSState(interval_days=7, ease_factor=1.5, repetitions=4)

    assert calculate_next_review(ReviewQuality.EASY, state).interval_days == 11


@pytest.mark.parametrize(
    "quality, expected_change",
    [
        (ReviewQuality.GOOD, -0.14),
        (ReviewQuality.EASY, 0.0),
    ],
)
def test_ease_change_on_pass(quality: ReviewQuality, expected_change: float) -> None:
    """Test the SM-2 ease adjustment for passing ratings."""
    state = SRSState(interval_days=6, ease_factor=2.5, repetitions=2)

    new_state = calculate_next_review(quality, state)

    assert new_state.ease_factor == pytest.approx(2.5 + expected_change)


def test_ease_never_below_floor_on_pass() -> None:
    """Test that a Good rating cannot push ease under 1.3."""
    state = SRSState(interval_days=10, ease_factor=1.35, repetitions=3)

    assert calculate_next_review(ReviewQuality.GOOD, state).ease_factor == pytest.approx(1.3)


def test_calculator_accepts_plain_integers() -> None:
    """Test that validated integers and enum members behave the same."""
    state = SRSState(interval_days=6, ease_factor=2.2, repetitions=2)

    assert calculate_next_review(3, state) == calculate_next_review(ReviewQuality.GOOD, state)


@pytest.mark.parametrize("value", [0, 1, 3, 4])
def test_validate_quality_accepts_buttons(value: int) -> None:
    """Test that the four button values are accepted."""
    assert validate_quality(value) == value


@pytest.mark.parametrize("value", [2, 5, -1, 3.0, "3", None, True])
def test_validate_quality_rejects_other_values(value) -> None:
    """Test that 2 and everything outside the buttons is rejected."""
    with pytest.raises(InvalidQualityError):
        validate_quality(value)


def test_invalid_quality_is_a_value_error() -> None:
    """Test that handlers catching ValueError also see bad ratings."""
    with pytest.raises(ValueError, match="0, 1, 3, or 4"):
        validate_quality(2)


def test_quality_labels_and_outcome() -> None:
    """Test the button names and pass threshold."""
    assert [q.label for q in ReviewQuality] == ["Again", "Hard", "Good", "Easy"]
    assert [q.passed for q in ReviewQuality] == [False, False, True, True]


def test_calculate_next_review_date() -> None:
    """Test that the next date is whole days after the review."""
    assert calculate_next_review_date(6, NOW) == NOW + timedelta(days=6)
    assert calculate_next_review_date(1, NOW.replace(tzinfo=None)) == NOW + timedelta(days=1)


def test_is_due_for_review() -> None:
    """Test due checks for missing, past, present and future dates."""
    assert is_due_for_review(None, NOW)
    assert is_due_for_review(VocabularyReview(next_review_date=None), NOW)
    assert is_due_for_review(VocabularyReview(next_review_date=NOW - timedelta(days=2)), NOW)
    assert is_due_for_review(VocabularyReview(next_review_date=NOW), NOW)
    assert not is_due_for_review(VocabularyReview(next_review_date=NOW + timedelta(minutes=1)), NOW)


def test_is_due_for_review_with_naive_dates() -> None:
    """Test that naive timestamps from storage are read as UTC."""
    review = VocabularyReview(next_review_date=(NOW - timedelta(hours=1)).replace(tzinfo=None))

    assert is_due_for_review(review, NOW)


def test_days_until_review() -> None:
    """Test signed day counts around the review date."""
    assert days_until_review(None, NOW) == 0
    assert days_until_review(VocabularyReview(next_review_date=None), NOW) == 0
    assert days_until_review(VocabularyReview(next_review_date=NOW + timedelta(days=5)), NOW) == 5
    assert days_until_review(VocabularyReview(next_review_date=NOW + timedelta(hours=1)), NOW) == 1
    assert days_until_review(VocabularyReview(next_review_date=NOW - timedelta(days=2)), NOW) == -2
    assert days_until_review(VocabularyReview(next_review_date=NOW - timedelta(hours=30)), NOW) == -1


def test_update_review_stats_on_pass() -> None:
    """Test statistics after a successful recall."""
    review = VocabularyReview(review_count=4, consecutive_correct=2, consecutive_incorrect=0)
    new_state = SRSState(interval_days=6, ease_factor=2.36, repetitions=2)

    updates = update_review_stats(review, ReviewQuality.GOOD, new_state, NOW)

    assert updates["interval_days"] == 6
    assert updates["ease_factor"] == 2.36
    assert updates["repetitions"] == 2
    assert updates["next_review_date"] == NOW + timedelta(days=6)
    assert updates["last_reviewed_at"] == NOW
    assert updates["review_count"] == 5
    assert updates["consecutive_correct"] == 3
    assert updates["consecutive_incorrect"] == 0


def test_update_review_stats_on_fail() -> None:
    """Test statistics after a failed recall."""
    review = VocabularyReview(review_count=4, consecutive_correct=2, consecutive_incorrect=1)
    new_state = calculate_next_review(ReviewQuality.AGAIN, DEFAULT_SRS_STATE)

    updates = update_review_stats(review, ReviewQuality.AGAIN, new_state, NOW)

    assert updates["review_count"] == 5
    assert updates["consecutive_correct"] == 0
    assert updates["consecutive_incorrect"] == 2
    assert updates["next_review_date"] == NOW + timedelta(days=1)


def test_initial_review_fields() -> None:
    """Test the defaults of a new review record."""
    fields = initial_review_fields(NOW)

    assert fields["interval_days"] == 1
    assert fields["ease_factor"] == 2.5
    assert fields["repetitions"] == 0
    assert fields["next_review_date"] == NOW + timedelta(days=1)
    assert fields["last_reviewed_at"] is None
    assert fields["review_count"] == 0
    assert fields["consecutive_correct"] == 0
    assert fields["consecutive_incorrect"] == 0


def test_initialized_review_survives_easy_rating() -> None:
    """Test rating a freshly initialized record."""
    fields = initial_review_fields(NOW)
    state = SRSState(fields["interval_days"], fields["ease_factor"], fields["repetitions"])

    new_state = calculate_next_review(ReviewQuality.EASY, state)

    assert new_state.ease_factor >= 1.3
    assert new_state.interval_days >= 1
