"""Service layer for ranking operations."""

from .ranking import (
    LeaderboardEntry,
    RankingService,
    RankSummary,
    UserLocks,
    WeeklyRefreshResult,
)
from .schemas import (
    RatingRead,
    RatingUpdateRequest,
    ScoreComponentsRecord,
    WeeklyScoreRead,
    WeeklyScoreRequest,
)

__all__ = [
    "RankingService",
    "RankSummary",
    "LeaderboardEntry",
    "UserLocks",
    "WeeklyRefreshResult",
    "RatingRead",
    "RatingUpdateRequest",
    "ScoreComponentsRecord",
    "WeeklyScoreRead",
    "WeeklyScoreRequest",
]
