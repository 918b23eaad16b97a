"""Database models."""

from .base import Base, TimestampMixin
from .enums import ASLEEP_STAGES, Rank, SleepStage
from .ratings import DEFAULT_DIVISION, DEFAULT_LP, DEFAULT_MMR, Rating
from .weekly_scores import WeeklyScore

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Enums
    "ASLEEP_STAGES",
    "Rank",
    "SleepStage",
    # Ratings
    "DEFAULT_DIVISION",
    "DEFAULT_LP",
    "DEFAULT_MMR",
    "Rating",
    # Weekly scores
    "WeeklyScore",
]
