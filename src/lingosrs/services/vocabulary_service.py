"""Service for managing a user's vocabulary."""
import logging
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session

from lingosrs.config import MIN_COMPREHENSION
from lingosrs.models.models import Vocabulary

logger = logging.getLogger(__name__)


class VocabularyService:
    """Service for managing vocabulary items."""

    def __init__(self, db: Session):
        """Initialize the service with a database session."""
        self.db = db

    def get_word(self, user_id: str, vocabulary_id: int) -> Optional[Vocabulary]:
        """Get one of the user's words by its ID."""
        return (
            self.db.query(Vocabulary)
            .filter(
                and_(
                    Vocabulary.id == vocabulary_id,
                    Vocabulary.user_id == user_id,
                )
            )
            .first()
        )

    def add_word(
        self,
        user_id: str,
        word: str,
        translation: str,
        language: str,
        comprehension: int = MIN_COMPREHENSION,
    ) -> Vocabulary:
        """Save a new word for the user."""
        vocabulary = Vocabulary(
            user_id=user_id,
            word=word,
            translation=translation,
            language=language,
            comprehension=comprehension,
        )
        self.db.add(vocabulary)
        self.db.commit()
        self.db.refresh(vocabulary)
        logger.info(f"Added word {word!r} for user {user_id}")
        return vocabulary

    def get_user_words(self, user_id: str, language: Optional[str] = None) -> List[Vocabulary]:
        """Get the user's words in the order they were added."""
        query = self.db.query(Vocabulary).filter(Vocabulary.user_id == user_id)
        if language is not None:
            query = query.filter(Vocabulary.language == language)
        return query.order_by(Vocabulary.id).all()

    def update_comprehension(self, user_id: str, vocabulary_id: int, comprehension: int) -> Optional[Vocabulary]:
        """Set the user's own comprehension tag on a word."""
        vocabulary = self.get_word(user_id, vocabulary_id)
        if not vocabulary:
            return None

        vocabulary.comprehension = comprehension
        self.db.commit()
        self.db.refresh(vocabulary)
        return vocabulary

    def delete_word(self, user_id: str, vocabulary_id: int) -> bool:
        """Delete a word together with its review records."""
        vocabulary = self.get_word(user_id, vocabulary_id)
        if not vocabulary:
            return False

        self.db.delete(vocabulary)
        self.db.commit()
        logger.info(f"Deleted word {vocabulary_id} for user {user_id}")
        return True
