"""Weekly rating update - MMR and LP from a week's score."""

import math
from dataclasses import dataclass

from ..db.models.enums import Rank
from ..errors import InvariantViolationError
from .catalog import resolve_division

BASELINE_MMR = 1000
BASELINE_EXPECTED_SCORE = 50.0
MMR_PER_EXPECTED_POINT = 20
MIN_EXPECTED_SCORE = 20.0
MAX_EXPECTED_SCORE = 85.0
MAX_SCORE = 100

# (exclusive upper LP bound, factor); anything above the last bound gets the floor factor
VOLATILITY_BANDS: tuple[tuple[int, float], ...] = (
    (300, 1.2),
    (1000, 1.0),
    (2100, 0.8),
    (3600, 0.7),
)
MIN_VOLATILITY_FACTOR = 0.6


@dataclass(frozen=True)
class RatingUpdate:
    """Result of a weekly rating calculation."""

    mmr: int
    lp: int
    rank: Rank
    division: int | None
    delta_lp: int
    mmr_change: int
    expected_score: float
    factor: float


def calculate_expected_score(mmr: int) -> float:
    """Calculate the score a player at this MMR is expected to post.

    Linear around a baseline of 1000 MMR -> 50 points, 20 MMR per point,
    clamped to [20, 85].

    Args:
        mmr: Player's current MMR

    Returns:
        Expected weekly score
    """
    expected = BASELINE_EXPECTED_SCORE + (mmr - BASELINE_MMR) / MMR_PER_EXPECTED_POINT
    return max(MIN_EXPECTED_SCORE, min(MAX_EXPECTED_SCORE, expected))


def get_volatility_factor(lp: int) -> float:
    """Get the K-style volatility factor for the current LP.

    Low-ranked players move faster, high-ranked players more stably.

    Args:
        lp: Player's current league points

    Returns:
        Multiplier applied to the score difference
    """
    for upper_bound, factor in VOLATILITY_BANDS:
        if lp < upper_bound:
            return factor
    return MIN_VOLATILITY_FACTOR


def _round_half_away_from_zero(value: float) -> int:
    magnitude = math.floor(abs(value) + 0.5)
    return magnitude if value >= 0 else -magnitude


def calculate_delta_lp(score: int, mmr: int, lp: int) -> int:
    """LP change for a week: (score - expected) * factor, rounded."""
    difference = score - calculate_expected_score(mmr)
    return _round_half_away_from_zero(difference * get_volatility_factor(lp))


def calculate_new_rating(mmr: int, lp: int, score: int) -> RatingUpdate:
    """Calculate a player's rating after a scored week.

    LP is floored at zero with no ceiling. MMR moves by half the LP delta
    (truncated toward zero) and is unbounded. Rank and division are
    resolved from the new LP.

    Args:
        mmr: Current MMR
        lp: Current league points (non-negative)
        score: The week's total score (0-100)

    Returns:
        RatingUpdate with the new values and how they were reached
    """
    if lp < 0:
        raise InvariantViolationError(f"LP must be non-negative, got {lp}")
    if not 0 <= score <= MAX_SCORE:
        raise InvariantViolationError(f"Score must be within [0, {MAX_SCORE}], got {score}")

    expected = calculate_expected_score(mmr)
    factor = get_volatility_factor(lp)
    delta_lp = calculate_delta_lp(score, mmr, lp)

    new_lp = max(0, lp + delta_lp)
    mmr_change = int(delta_lp / 2)
    tier, division = resolve_division(new_lp)

    return RatingUpdate(
        mmr=mmr + mmr_change,
        lp=new_lp,
        rank=tier.rank,
        division=division,
        delta_lp=delta_lp,
        mmr_change=mmr_change,
        expected_score=expected,
        factor=factor,
    )
