"""Test configuration."""
import os
from pathlib import Path
from typing import Callable, Generator, List

import pytest
from dotenv import load_dotenv
from faker import Faker

# Set test environment before any imports
os.environ["ENV"] = "test"

# Load test environment variables
test_env_path = Path(__file__).parent.parent.parent.parent / ".env.test"
load_dotenv(test_env_path)
os.environ.setdefault("DATABASE_URL", "sqlite:///test_lingosrs.db")

# Import after environment setup
from sqlalchemy.orm import Session

from lingosrs.models.base import Base, SessionLocal, engine, init_db
from lingosrs.models.models import Vocabulary
from lingosrs.services.review_repository import SQLAlchemyReviewRepository
from lingosrs.services.review_service import ReviewService
from lingosrs.services.vocabulary_service import VocabularyService

fake = Faker()


@pytest.fixture(autouse=True)
def setup_database():
    """Drop and recreate all tables before each test."""
    Base.metadata.drop_all(bind=engine)
    init_db()

    yield

    engine.dispose()


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create a fresh database session for each test."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def repository(db: Session) -> SQLAlchemyReviewRepository:
    """Create a review repository bound to the test session."""
    return SQLAlchemyReviewRepository(db)


@pytest.fixture
def review_service(repository: SQLAlchemyReviewRepository) -> ReviewService:
    """Create a review service instance."""
    return ReviewService(repository)


@pytest.fixture
def vocabulary_service(db: Session) -> VocabularyService:
    """Create a vocabulary service instance."""
    return VocabularyService(db)


@pytest.fixture
def user_id() -> str:
    """Id of the user under test."""
    return fake.uuid4()


@pytest.fixture
def add_words(vocabulary_service: VocabularyService, user_id: str) -> Callable[[int], List[Vocabulary]]:
    """Factory that saves a number of random words for the test user."""

    def _add_words(count: int) -> List[Vocabulary]:
        return [
            vocabulary_service.add_word(
                user_id=user_id,
                word=fake.word(),
                translation=fake.word(),
                language="es",
            )
            for _ in range(count)
        ]

    return _add_words
