"""Exceptions raised by the review scheduler."""


class ReviewError(Exception):
    """Base class for review scheduling errors."""


class InvalidQualityError(ReviewError, ValueError):
    """Quality rating outside the accepted Again/Hard/Good/Easy values."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"quality must be 0, 1, 3, or 4 (got {value!r})")


class PersistenceError(ReviewError):
    """A repository read or write failed."""


class ConcurrentUpdateError(PersistenceError):
    """A review record was changed by someone else since it was loaded."""


class ReviewUpdateError(ReviewError):
    """Initializing or recording a review could not be persisted."""


class SessionStateError(ReviewError):
    """A session operation was called in a state that does not allow it."""
