"""Models for review scheduling and session data structures."""
import math
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional

from lingosrs.config import PASS_THRESHOLD
from lingosrs.models.models import Vocabulary, VocabularyReview


class ReviewQuality(IntEnum):
    """Recall quality reported by the learner.

    Four buttons collapse the classic 0-5 SM-2 scale; 2 is intentionally
    not a member.
    """
    AGAIN = 0  # Forgot
    HARD = 1  # Remembered with difficulty
    GOOD = 3  # Remembered correctly
    EASY = 4  # Very easy

    @property
    def passed(self) -> bool:
        return self.value >= PASS_THRESHOLD

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class SRSState:
    """The part of a review record that drives scheduling."""
    interval_days: int
    ease_factor: float
    repetitions: int

    @classmethod
    def from_review(cls, review: VocabularyReview) -> "SRSState":
        return cls(
            interval_days=review.interval_days,
            ease_factor=review.ease_factor,
            repetitions=review.repetitions,
        )


@dataclass
class ItemWithReview:
    """A vocabulary item selected for review together with its record."""
    item: Vocabulary
    review: Optional[VocabularyReview]
    is_due_for_review: bool
    days_until_review: int

    @property
    def vocabulary_id(self) -> int:
        return self.item.id


class SessionState(Enum):
    """States of a review session."""
    IDLE = "idle"
    PRESENTING_FRONT = "presenting_front"
    PRESENTING_BACK = "presenting_back"
    PERSISTING = "persisting"
    COMPLETE = "complete"
    ABANDONED = "abandoned"


@dataclass
class CardResult:
    """Outcome of rating one card in a session."""
    entry: ItemWithReview
    quality: ReviewQuality
    review: Optional[VocabularyReview] = None  # None when persistence failed
    warning: Optional[str] = None

    @property
    def persisted(self) -> bool:
        return self.warning is None


@dataclass
class SessionProgress:
    """Position and running counts of an ongoing session."""
    current: int
    total: int
    correct_count: int
    incorrect_count: int


@dataclass
class SessionSummary:
    """Statistics produced when a session completes."""
    total: int
    correct_count: int
    incorrect_count: int
    elapsed_seconds: int
    persistence_failures: int = 0

    @property
    def accuracy(self) -> int:
        """Percentage of cards rated correct, rounded half up."""
        if self.total == 0:
            return 0
        return math.floor(self.correct_count * 100 / self.total + 0.5)
