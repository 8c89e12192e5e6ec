"""Selection of the vocabulary that is due for review."""
import logging
from datetime import UTC, datetime
from typing import Iterable, List, Mapping, Optional

from lingosrs.models.models import Vocabulary, VocabularyReview
from lingosrs.models.review_models import ItemWithReview
from lingosrs.services.srs_engine import days_until_review, ensure_utc, is_due_for_review

logger = logging.getLogger(__name__)


def _sort_key(entry: ItemWithReview):
    # Words that were never scheduled count as the most overdue
    if entry.review is None or entry.review.next_review_date is None:
        return (0, datetime.min.replace(tzinfo=UTC))
    return (1, ensure_utc(entry.review.next_review_date).astimezone(UTC))


def select_due(
    vocabulary_items: Iterable[Vocabulary],
    reviews_by_item_id: Mapping[int, VocabularyReview],
    now: datetime,
) -> List[ItemWithReview]:
    """Return the due items ordered by next review date, oldest first.

    Items without a record (or without a date) come first. The sort is
    stable, so equal dates keep the order of ``vocabulary_items``.
    """
    due: List[ItemWithReview] = []
    for item in vocabulary_items:
        review: Optional[VocabularyReview] = reviews_by_item_id.get(item.id)
        if not is_due_for_review(review, now):
            continue
        due.append(
            ItemWithReview(
                item=item,
                review=review,
                is_due_for_review=True,
                days_until_review=days_until_review(review, now),
            )
        )

    due.sort(key=_sort_key)
    logger.debug(f"Selected {len(due)} due items")
    return due
