"""Configuration settings for the review scheduler."""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Define base directory
BASE_DIR = Path(__file__).parent.parent.parent

# Load environment variables from .env file
env_file = ".env.test" if os.getenv("ENV") == "test" else ".env"
load_dotenv(env_file)


# SM-2 scheduling constants
INITIAL_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
INITIAL_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
FAILURE_EASE_PENALTY = 0.2
PASS_THRESHOLD = 3  # qualities below this reset the item

# Comprehension tag range on vocabulary items
MIN_COMPREHENSION = 0
MAX_COMPREHENSION = 5


def _optional_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    return int(value) if value else None


def _log_dir() -> Optional[Path]:
    value = os.getenv("LOG_DIR")
    if not value:
        return None
    path = Path(value)
    return path if path.is_absolute() else BASE_DIR / path


@dataclass
class DatabaseSettings:
    """Database configuration settings."""
    url: str = field(default_factory=lambda: os.getenv("DATABASE_URL", "sqlite:///lingosrs.db"))
    echo: bool = field(default_factory=lambda: os.getenv("DATABASE_ECHO", "false").lower() == "true")


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    dir: Optional[Path] = field(default_factory=_log_dir)
    rotation: str = field(default_factory=lambda: os.getenv("LOG_ROTATION", "midnight"))
    interval: int = field(default_factory=lambda: int(os.getenv("LOG_INTERVAL", "1")))
    backup_count: int = field(default_factory=lambda: int(os.getenv("LOG_BACKUP_COUNT", "7")))


@dataclass
class ReviewSettings:
    """Review session settings."""
    session_size_limit: Optional[int] = field(default_factory=lambda: _optional_int("SESSION_SIZE_LIMIT"))
    default_user_id: str = field(default_factory=lambda: os.getenv("DEFAULT_USER_ID", "local"))


@dataclass
class MonitoringSettings:
    """Prometheus exporter settings."""
    enabled: bool = field(default_factory=lambda: os.getenv("METRICS_ENABLED", "false").lower() == "true")
    port: int = field(default_factory=lambda: int(os.getenv("METRICS_PORT", "9090")))


def get_database_settings() -> DatabaseSettings:
    """Get database settings."""
    return DatabaseSettings()


def get_logging_settings() -> LoggingSettings:
    """Get logging settings."""
    return LoggingSettings()


def get_review_settings() -> ReviewSettings:
    """Get review settings."""
    return ReviewSettings()


def get_monitoring_settings() -> MonitoringSettings:
    """Get monitoring settings."""
    return MonitoringSettings()


@dataclass
class Settings:
    """Main settings class that combines all configuration settings."""
    database: DatabaseSettings = field(default_factory=get_database_settings)
    logging: LoggingSettings = field(default_factory=get_logging_settings)
    review: ReviewSettings = field(default_factory=get_review_settings)
    monitoring: MonitoringSettings = field(default_factory=get_monitoring_settings)

    def validate(self) -> None:
        """Validate settings and raise ValueError if invalid."""
        if not self.database.url:
            raise ValueError("DATABASE_URL is required")

        if not isinstance(logging.getLevelName(self.logging.level.upper()), int):
            raise ValueError(f"LOG_LEVEL {self.logging.level!r} is not a known logging level")

        if self.review.session_size_limit is not None and self.review.session_size_limit < 1:
            raise ValueError("SESSION_SIZE_LIMIT must be positive")

        if not 0 < self.monitoring.port < 65536:
            raise ValueError("METRICS_PORT must be between 1 and 65535")


# Create global settings instance
settings = Settings()
settings.validate()
