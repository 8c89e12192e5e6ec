"""Database models for vocabulary and review scheduling."""
from sqlalchemy import (
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship, validates

from lingosrs.config import (
    INITIAL_EASE_FACTOR,
    INITIAL_INTERVAL_DAYS,
    MAX_COMPREHENSION,
    MIN_COMPREHENSION,
)
from lingosrs.models.base import Base, TimestampMixin


class Vocabulary(Base, TimestampMixin):
    """A word saved by a user."""

    __tablename__ = "vocabulary"

    id = Column(Integer, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    word = Column(String, nullable=False)
    translation = Column(String, nullable=False)
    language = Column(String, nullable=False)  # e.g., "es"
    comprehension = Column(Integer, nullable=False, default=MIN_COMPREHENSION)  # 0-5, set by the user

    # Relationships
    reviews = relationship(
        "VocabularyReview",
        back_populates="vocabulary",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("comprehension")
    def validate_comprehension(self, key, value):
        if value is None:
            return value
        if not MIN_COMPREHENSION <= value <= MAX_COMPREHENSION:
            raise ValueError(
                f"comprehension must be between {MIN_COMPREHENSION} and {MAX_COMPREHENSION}"
            )
        return value

    def __repr__(self) -> str:
        return f"<Vocabulary id={self.id} word={self.word!r} user={self.user_id!r}>"


class VocabularyReview(Base, TimestampMixin):
    """Spaced-repetition state of one vocabulary item for one user."""

    __tablename__ = "vocabulary_reviews"
    __table_args__ = (
        UniqueConstraint("vocabulary_id", "user_id", name="uq_vocabulary_reviews_vocabulary_user"),
        Index("ix_vocabulary_reviews_user_next_review", "user_id", "next_review_date"),
    )

    id = Column(Integer, primary_key=True)
    vocabulary_id = Column(
        Integer, ForeignKey("vocabulary.id", ondelete="CASCADE"), nullable=False
    )
    user_id = Column(String, nullable=False)
    interval_days = Column(Integer, nullable=False, default=INITIAL_INTERVAL_DAYS)
    ease_factor = Column(Float, nullable=False, default=INITIAL_EASE_FACTOR)
    repetitions = Column(Integer, nullable=False, default=0)
    next_review_date = Column(DateTime(timezone=True), nullable=True)
    last_reviewed_at = Column(DateTime(timezone=True), nullable=True)
    # Statistics only, never used for scheduling
    review_count = Column(Integer, nullable=False, default=0)
    consecutive_correct = Column(Integer, nullable=False, default=0)
    consecutive_incorrect = Column(Integer, nullable=False, default=0)
    version = Column(Integer, nullable=False)

    # Relationships
    vocabulary = relationship("Vocabulary", back_populates="reviews")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<VocabularyReview vocabulary={self.vocabulary_id} user={self.user_id!r} "
            f"interval={self.interval_days} ease={self.ease_factor} next={self.next_review_date}>"
        )
