"""Review service: scheduling operations exposed to request handlers."""
import logging
from datetime import UTC, datetime, timedelta
from typing import List, Optional, Tuple

from lingosrs.exceptions import PersistenceError, ReviewUpdateError
from lingosrs.models.models import VocabularyReview
from lingosrs.models.review_models import ItemWithReview, SRSState
from lingosrs.monitoring import (
    due_words_selected,
    persistence_errors,
    reviews_initialized,
    reviews_recorded,
)
from lingosrs.services.due_selector import select_due
from lingosrs.services.review_repository import ReviewRepository
from lingosrs.services.srs_engine import (
    calculate_next_review,
    initial_review_fields,
    update_review_stats,
    validate_quality,
)

logger = logging.getLogger(__name__)


class ReviewService:
    """Service for initializing, recording and selecting vocabulary reviews.

    Every operation takes the id of the user it acts for; the service never
    resolves identity on its own. ``now`` may be passed for deterministic
    scheduling and defaults to the current UTC time.
    """

    def __init__(self, repository: ReviewRepository):
        """Initialize the service with a review repository."""
        self.repository = repository

    def get_review(self, user_id: str, vocabulary_id: int) -> Optional[VocabularyReview]:
        """Get the review record of a vocabulary item, None if it has none."""
        return self.repository.get_review_record(vocabulary_id, user_id)

    def _new_review(self, user_id: str, vocabulary_id: int, now: datetime) -> VocabularyReview:
        return VocabularyReview(
            vocabulary_id=vocabulary_id,
            user_id=user_id,
            **initial_review_fields(now),
        )

    def initialize_review(
        self, user_id: str, vocabulary_id: int, now: Optional[datetime] = None
    ) -> VocabularyReview:
        """Create the default review record unless one already exists."""
        if now is None:
            now = datetime.now(UTC)
        try:
            existing = self.repository.get_review_record(vocabulary_id, user_id)
            if existing is not None:
                return existing

            review = self.repository.upsert_review_record(self._new_review(user_id, vocabulary_id, now))
        except PersistenceError as e:
            persistence_errors.labels(operation="initialize_review").inc()
            logger.error(f"Error initializing review of vocabulary {vocabulary_id} for user {user_id}: {e}")
            raise ReviewUpdateError("Failed to initialize review") from e

        reviews_initialized.inc()
        logger.info(f"Initialized review of vocabulary {vocabulary_id} for user {user_id}")
        return review

    def record_review(
        self, user_id: str, vocabulary_id: int, quality: int, now: Optional[datetime] = None
    ) -> VocabularyReview:
        """Apply a quality rating to a word and persist its new schedule.

        Words without a record are initialized first. Raises
        InvalidQualityError before touching storage when the rating is not
        one of 0, 1, 3 or 4, and ReviewUpdateError when the update could
        not be saved.
        """
        quality = validate_quality(quality)
        if now is None:
            now = datetime.now(UTC)

        try:
            review = self.repository.get_review_record(vocabulary_id, user_id)
            created = review is None
            if created:
                logger.debug(f"No review for vocabulary {vocabulary_id}, initializing")
                review = self._new_review(user_id, vocabulary_id, now)

            new_state = calculate_next_review(quality, SRSState.from_review(review))
            for key, value in update_review_stats(review, quality, new_state, now).items():
                setattr(review, key, value)

            review = self.repository.upsert_review_record(review)
        except PersistenceError as e:
            persistence_errors.labels(operation="record_review").inc()
            logger.error(f"Error recording review of vocabulary {vocabulary_id} for user {user_id}: {e}")
            raise ReviewUpdateError("Failed to record review") from e

        if created:
            reviews_initialized.inc()
        reviews_recorded.labels(outcome="pass" if quality.passed else "fail").inc()
        logger.info(
            f"Recorded {quality.label} for vocabulary {vocabulary_id} (user {user_id}): "
            f"next review in {new_state.interval_days} day(s), ease {new_state.ease_factor:.2f}"
        )
        return review

    def get_due_words(
        self, user_id: str, limit: Optional[int] = None, now: Optional[datetime] = None
    ) -> List[ItemWithReview]:
        """Get the user's words that are due for review, most overdue first.

        The limit is applied after sorting. Storage read failures are logged
        and produce an empty list.
        """
        if limit is not None and limit < 1:
            raise ValueError("limit must be a positive integer")
        if now is None:
            now = datetime.now(UTC)

        try:
            items = self.repository.list_vocabulary_items(user_id)
            if not items:
                return []
            reviews = self.repository.list_review_records(user_id)
        except PersistenceError as e:
            logger.error(f"Error fetching due words for user {user_id}: {e}")
            return []

        reviews_by_item_id = {review.vocabulary_id: review for review in reviews}
        due = select_due(items, reviews_by_item_id, now)
        if limit is not None:
            due = due[:limit]

        due_words_selected.observe(len(due))
        logger.debug(f"User {user_id} has {len(due)} due words (of {len(items)})")
        return due

    def get_due_words_count(self, user_id: str, now: Optional[datetime] = None) -> int:
        """Get the number of words due for review."""
        return len(self.get_due_words(user_id, now=now))

    def initialize_all_reviews(self, user_id: str, now: Optional[datetime] = None) -> int:
        """Create review records for every word of the user that has none.

        Returns the number of records created.
        """
        if now is None:
            now = datetime.now(UTC)
        try:
            items = self.repository.list_vocabulary_items(user_id)
            existing_ids = {review.vocabulary_id for review in self.repository.list_review_records(user_id)}
            new_reviews = [
                self._new_review(user_id, item.id, now)
                for item in items
                if item.id not in existing_ids
            ]
            if not new_reviews:
                return 0
            self.repository.upsert_review_records(new_reviews)
        except PersistenceError as e:
            persistence_errors.labels(operation="initialize_all_reviews").inc()
            logger.error(f"Error initializing reviews for user {user_id}: {e}")
            raise ReviewUpdateError("Failed to initialize reviews") from e

        reviews_initialized.inc(len(new_reviews))
        logger.info(f"Initialized {len(new_reviews)} reviews for user {user_id}")
        return len(new_reviews)

    def mark_all_due(self, user_id: str, now: Optional[datetime] = None) -> Tuple[int, int]:
        """Move every word's next review to yesterday so it shows up as due.

        Maintenance utility for testing sessions. Returns the number of
        words updated and the number that failed.
        """
        if now is None:
            now = datetime.now(UTC)
        yesterday = now - timedelta(days=1)

        try:
            items = self.repository.list_vocabulary_items(user_id)
        except PersistenceError as e:
            logger.error(f"Error fetching vocabulary for user {user_id}: {e}")
            raise ReviewUpdateError("Failed to mark words as due") from e

        success = 0
        failed = 0
        for item in items:
            try:
                review = self.repository.get_review_record(item.id, user_id)
                if review is None:
                    review = self._new_review(user_id, item.id, now)
                review.next_review_date = yesterday
                self.repository.upsert_review_record(review)
                success += 1
            except PersistenceError as e:
                persistence_errors.labels(operation="mark_all_due").inc()
                logger.error(f"Error marking {item.word!r} as due: {e}")
                failed += 1

        logger.info(f"Marked {success} words as due for user {user_id} ({failed} failed)")
        return success, failed
