"""Console entry point: run a review session for one user."""
import asyncio
import logging
import sys
from typing import Optional

from lingosrs.config import settings
from lingosrs.logging_config import setup_logging
from lingosrs.models.base import SessionLocal, init_db
from lingosrs.models.review_models import ReviewQuality
from lingosrs.monitoring import start_monitoring
from lingosrs.services.review_repository import SQLAlchemyReviewRepository
from lingosrs.services.review_service import ReviewService
from lingosrs.services.session_controller import ReviewSessionController

logger = logging.getLogger(__name__)

# Keyboard layout of the rating buttons
KEY_TO_QUALITY = {
    "1": ReviewQuality.AGAIN,
    "2": ReviewQuality.HARD,
    "3": ReviewQuality.GOOD,
    "4": ReviewQuality.EASY,
}


async def _prompt(message: str) -> str:
    return (await asyncio.to_thread(input, message)).strip().lower()


async def _ask_quality() -> Optional[ReviewQuality]:
    prompt = "  ".join(f"[{key}] {quality.label}" for key, quality in KEY_TO_QUALITY.items())
    while True:
        answer = await _prompt(f"{prompt}  [q] quit > ")
        if answer == "q":
            return None
        if answer in KEY_TO_QUALITY:
            return KEY_TO_QUALITY[answer]
        print("Please press 1, 2, 3 or 4.")


async def run_session(controller: ReviewSessionController) -> None:
    """Drive a review session from the terminal."""
    entry = controller.start(limit=settings.review.session_size_limit)
    if entry is None:
        print("No words to review")
        return

    while entry is not None:
        progress = controller.progress
        print(f"\n[{progress.current}/{progress.total}] {entry.item.word} ({entry.item.language})")
        if await _prompt("Press Enter to reveal, q to quit > ") == "q":
            controller.abandon()
            return
        controller.reveal()
        print(f"    {entry.item.translation}")

        quality = await _ask_quality()
        if quality is None:
            controller.abandon()
            return
        result = await controller.rate(quality)
        if result.warning:
            print(f"Warning: {result.warning}")
        entry = controller.current_item

    summary = controller.summary
    print(
        f"\nSession complete: {summary.correct_count}/{summary.total} correct, "
        f"{summary.incorrect_count} incorrect, {summary.accuracy}% accuracy, {summary.elapsed_seconds}s"
    )


def main(argv: Optional[list] = None) -> None:
    """Run a review session for the user given on the command line."""
    argv = sys.argv[1:] if argv is None else argv
    user_id = argv[0] if argv else settings.review.default_user_id

    setup_logging("Starting lingosrs review session ...")
    init_db()
    if settings.monitoring.enabled:
        start_monitoring(settings.monitoring.port)
        logger.info(f"Metrics exposed on port {settings.monitoring.port}")

    db = SessionLocal()
    try:
        service = ReviewService(SQLAlchemyReviewRepository(db))
        controller = ReviewSessionController(service, user_id)
        asyncio.run(run_session(controller))
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        db.close()


if __name__ == "__main__":
    main()
