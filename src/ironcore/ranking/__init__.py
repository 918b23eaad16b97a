"""Pure ranking logic: rank catalog, weekly scoring and rating updates."""

from .catalog import (
    RANK_TIERS,
    RankTier,
    division_lp_range,
    next_tier,
    progress,
    resolve_division,
    tier_by_rank,
    tier_for,
)
from .rating import (
    RatingUpdate,
    calculate_delta_lp,
    calculate_expected_score,
    calculate_new_rating,
    get_volatility_factor,
)
from .scoring import (
    ScoreComponents,
    SleepInterval,
    WorkoutRecord,
    calculate_weekly_score,
    week_start_for,
    week_window,
)

__all__ = [
    # Catalog
    "RANK_TIERS",
    "RankTier",
    "division_lp_range",
    "next_tier",
    "progress",
    "resolve_division",
    "tier_by_rank",
    "tier_for",
    # Rating
    "RatingUpdate",
    "calculate_delta_lp",
    "calculate_expected_score",
    "calculate_new_rating",
    "get_volatility_factor",
    # Scoring
    "ScoreComponents",
    "SleepInterval",
    "WorkoutRecord",
    "calculate_weekly_score",
    "week_start_for",
    "week_window",
]
