"""Storage of review records and vocabulary."""
import logging
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from lingosrs.exceptions import ConcurrentUpdateError, PersistenceError
from lingosrs.models.models import Vocabulary, VocabularyReview
from lingosrs.monitoring import db_errors, db_operations

logger = logging.getLogger(__name__)


class ReviewRepository(ABC):
    """Keyed store of one review record per (vocabulary item, user)."""

    @abstractmethod
    def get_review_record(self, vocabulary_id: int, user_id: str) -> Optional[VocabularyReview]:
        """Get the record for a vocabulary item, or None if it was never initialized."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def upsert_review_record(self, record: VocabularyReview) -> VocabularyReview:
        """Insert or update a record and return the stored version."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def list_review_records(self, user_id: str) -> List[VocabularyReview]:
        """List every review record of a user."""
        raise NotImplementedError("Subclasses must implement this method")

    @abstractmethod
    def list_vocabulary_items(self, user_id: str) -> List[Vocabulary]:
        """List every vocabulary item of a user in creation order."""
        raise NotImplementedError("Subclasses must implement this method")

    def upsert_review_records(self, records: Iterable[VocabularyReview]) -> List[VocabularyReview]:
        """Insert or update several records."""
        return [self.upsert_review_record(record) for record in records]


class SQLAlchemyReviewRepository(ReviewRepository):
    """Review repository backed by a SQLAlchemy session."""

    def __init__(self, db: Session):
        """Initialize the repository with a database session."""
        self.db = db

    def get_review_record(self, vocabulary_id: int, user_id: str) -> Optional[VocabularyReview]:
        db_operations.labels(operation_type="get_review").inc()
        try:
            return (
                self.db.query(VocabularyReview)
                .filter(
                    and_(
                        VocabularyReview.vocabulary_id == vocabulary_id,
                        VocabularyReview.user_id == user_id,
                    )
                )
                .first()
            )
        except SQLAlchemyError as e:
            self._rollback(e, "get_review")
            raise PersistenceError(f"Failed to fetch review for vocabulary {vocabulary_id}") from e

    def upsert_review_record(self, record: VocabularyReview) -> VocabularyReview:
        db_operations.labels(operation_type="upsert_review").inc()
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
            return record
        except StaleDataError as e:
            self._rollback(e, "upsert_review")
            raise ConcurrentUpdateError(
                f"Review for vocabulary {record.vocabulary_id} was modified concurrently"
            ) from e
        except SQLAlchemyError as e:
            self._rollback(e, "upsert_review")
            raise PersistenceError(f"Failed to save review for vocabulary {record.vocabulary_id}") from e

    def upsert_review_records(self, records: Iterable[VocabularyReview]) -> List[VocabularyReview]:
        records = list(records)
        db_operations.labels(operation_type="upsert_reviews").inc()
        try:
            self.db.add_all(records)
            self.db.commit()
            for record in records:
                self.db.refresh(record)
            return records
        except StaleDataError as e:
            self._rollback(e, "upsert_reviews")
            raise ConcurrentUpdateError("Reviews were modified concurrently") from e
        except SQLAlchemyError as e:
            self._rollback(e, "upsert_reviews")
            raise PersistenceError(f"Failed to save {len(records)} reviews") from e

    def list_review_records(self, user_id: str) -> List[VocabularyReview]:
        db_operations.labels(operation_type="list_reviews").inc()
        try:
            return (
                self.db.query(VocabularyReview)
                .filter(VocabularyReview.user_id == user_id)
                .order_by(VocabularyReview.id)
                .all()
            )
        except SQLAlchemyError as e:
            self._rollback(e, "list_reviews")
            raise PersistenceError(f"Failed to list reviews for user {user_id}") from e

    def list_vocabulary_items(self, user_id: str) -> List[Vocabulary]:
        db_operations.labels(operation_type="list_vocabulary").inc()
        try:
            return (
                self.db.query(Vocabulary)
                .filter(Vocabulary.user_id == user_id)
                .order_by(Vocabulary.id)
                .all()
            )
        except SQLAlchemyError as e:
            self._rollback(e, "list_vocabulary")
            raise PersistenceError(f"Failed to list vocabulary for user {user_id}") from e

    def _rollback(self, error: Exception, operation: str) -> None:
        logger.error(f"Database error during {operation}: {error}")
        db_errors.labels(error_type=type(error).__name__).inc()
        self.db.rollback()
