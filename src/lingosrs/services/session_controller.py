"""Review session state machine."""
import asyncio
import logging
import time
from typing import Callable, List, Optional

from lingosrs.exceptions import ReviewUpdateError, SessionStateError
from lingosrs.models.review_models import (
    CardResult,
    ItemWithReview,
    SessionProgress,
    SessionState,
    SessionSummary,
)
from lingosrs.monitoring import review_sessions, session_duration
from lingosrs.services.review_service import ReviewService
from lingosrs.services.srs_engine import validate_quality

logger = logging.getLogger(__name__)


class ReviewSessionController:
    """Drives one user's review session card by card.

    The queue is a snapshot of the due words taken by ``start()``; words
    that become due, or are rescheduled, while the session runs are never
    added to it. A failed save is reported on the card's result and the
    session moves on regardless.
    """

    def __init__(
        self,
        review_service: ReviewService,
        user_id: str,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.review_service = review_service
        self.user_id = user_id
        self.clock = clock
        self.state = SessionState.IDLE
        self.queue: List[ItemWithReview] = []
        self.results: List[CardResult] = []
        self.warnings: List[str] = []
        self.position = 0
        self.correct_count = 0
        self.incorrect_count = 0
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

    def _require(self, *states: SessionState) -> None:
        if self.state not in states:
            allowed = ", ".join(state.value for state in states)
            raise SessionStateError(f"Session is {self.state.value}, expected {allowed}")

    @property
    def current_item(self) -> Optional[ItemWithReview]:
        """The card being shown, None outside of presentation."""
        if self.state in (SessionState.PRESENTING_FRONT, SessionState.PRESENTING_BACK, SessionState.PERSISTING):
            return self.queue[self.position]
        return None

    @property
    def progress(self) -> SessionProgress:
        return SessionProgress(
            current=min(self.position + 1, len(self.queue)),
            total=len(self.queue),
            correct_count=self.correct_count,
            incorrect_count=self.incorrect_count,
        )

    def start(self, limit: Optional[int] = None) -> Optional[ItemWithReview]:
        """Take the due-word snapshot and show the first card."""
        self._require(SessionState.IDLE)
        self.queue = list(self.review_service.get_due_words(self.user_id, limit=limit))
        self._started_at = self.clock()
        review_sessions.labels(state="started").inc()
        logger.info(f"Started review session for user {self.user_id} with {len(self.queue)} words")

        if not self.queue:
            self._complete()
            return None
        self.state = SessionState.PRESENTING_FRONT
        return self.current_item

    def reveal(self) -> ItemWithReview:
        """Flip the current card to its back face."""
        self._require(SessionState.PRESENTING_FRONT)
        self.state = SessionState.PRESENTING_BACK
        return self.current_item

    async def rate(self, quality: int) -> CardResult:
        """Rate the revealed card, persist the new schedule and advance.

        The card is counted and the session advanced even when the save is
        interrupted; an abandoned session stays abandoned.
        """
        self._require(SessionState.PRESENTING_BACK)
        quality = validate_quality(quality)
        entry = self.current_item

        self.state = SessionState.PERSISTING
        result = CardResult(entry=entry, quality=quality)
        try:
            result.review = await asyncio.to_thread(
                self.review_service.record_review,
                self.user_id,
                entry.vocabulary_id,
                quality,
            )
        except ReviewUpdateError as e:
            self._warn(result, f"Rating for {entry.item.word!r} was not saved: {e}")
        except BaseException:
            self._warn(result, f"Saving the rating for {entry.item.word!r} was interrupted")
            raise
        finally:
            self._finish_card(result)
        return result

    def _warn(self, result: CardResult, warning: str) -> None:
        result.warning = warning
        self.warnings.append(warning)
        logger.warning(warning)

    def _finish_card(self, result: CardResult) -> None:
        if result.quality.passed:
            self.correct_count += 1
        else:
            self.incorrect_count += 1
        self.results.append(result)

        self.position += 1
        if self.state != SessionState.PERSISTING:
            return
        if self.position < len(self.queue):
            self.state = SessionState.PRESENTING_FRONT
        else:
            self._complete()

    def abandon(self) -> None:
        """Leave the session; ratings already saved stay saved.

        A rating still being saved is allowed to finish.
        """
        self._require(
            SessionState.IDLE,
            SessionState.PRESENTING_FRONT,
            SessionState.PRESENTING_BACK,
            SessionState.PERSISTING,
        )
        self.state = SessionState.ABANDONED
        review_sessions.labels(state="abandoned").inc()
        logger.info(
            f"Review session for user {self.user_id} abandoned after {len(self.results)} of {len(self.queue)} words"
        )

    def _complete(self) -> None:
        self.state = SessionState.COMPLETE
        self._finished_at = self.clock()
        review_sessions.labels(state="completed").inc()
        session_duration.observe(self._finished_at - self._started_at)
        logger.info(
            f"Review session for user {self.user_id} complete: "
            f"{self.correct_count} correct, {self.incorrect_count} incorrect"
        )

    @property
    def summary(self) -> SessionSummary:
        """Statistics of a completed session."""
        self._require(SessionState.COMPLETE)
        return SessionSummary(
            total=len(self.queue),
            correct_count=self.correct_count,
            incorrect_count=self.incorrect_count,
            elapsed_seconds=int(self._finished_at - self._started_at),
            persistence_failures=len(self.warnings),
        )
