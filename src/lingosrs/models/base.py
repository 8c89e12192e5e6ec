"""Base model configuration."""
import sqlite3
from datetime import UTC, datetime
from typing import Generator

from sqlalchemy import Column, DateTime, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from lingosrs.config import settings


def _connect_args(url: str) -> dict:
    # Review persistence runs in a worker thread during sessions
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# Create SQLAlchemy engine
engine = create_engine(
    settings.database.url,
    echo=settings.database.echo,
    connect_args=_connect_args(settings.database.url),
)


@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign keys so review records cascade with their vocabulary."""
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base class
Base = declarative_base()


class TimestampMixin:
    """Mixin to add timestamp columns to models."""
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


def get_db() -> Generator[Session, None, None]:
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Initialize database."""
    # Register mapped classes before creating tables
    from lingosrs.models import models  # noqa: F401

    Base.metadata.create_all(bind=engine)  # Create tables if they don't exist
