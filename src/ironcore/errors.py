"""Exceptions raised by the ranking engine and its service layer."""

from typing import Any


class RankingError(Exception):
    """Base class for ranking errors.

    When raised out of a weekly refresh, last_known_rating holds the rating
    that is still current (a RatingRead), if one could be loaded.
    """

    last_known_rating: Any = None


class ActivityUnavailableError(RankingError):
    """The activity source could not supply data for the requested week.

    Distinct from a week that was scored as zero: nothing is written when
    this is raised.
    """


class PersistenceError(RankingError):
    """Reading or writing ranking rows failed. Prior state is retained."""


class RatingConflictError(PersistenceError):
    """The rating row changed underneath a read-modify-write."""


class InvariantViolationError(RankingError):
    """A value broke an engine invariant (programming error, not retryable)."""
