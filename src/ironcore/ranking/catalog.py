"""Rank catalog - the six ladder tiers and their LP bounds.

The tiers are contiguous and cover every non-negative LP value. The top
tier is unbounded on the ladder; it carries a finite display ceiling so
progress bars still have something to fill towards.
"""

from dataclasses import dataclass

from ..db.models.enums import Rank
from ..errors import InvariantViolationError

TOP_TIER_DISPLAY_MAX_LP = 9999
DIVISIONS_PER_TIER = 3


@dataclass(frozen=True)
class RankTier:
    """A named band of the LP ladder."""

    rank: Rank
    display_name: str
    min_lp: int
    max_lp: int | None  # None = unbounded (top tier)
    description: str
    concept: str

    @property
    def name(self) -> str:
        return self.rank.value

    @property
    def is_top(self) -> bool:
        return self.max_lp is None

    @property
    def display_max_lp(self) -> int:
        """Upper bound used for progress display."""
        return TOP_TIER_DISPLAY_MAX_LP if self.max_lp is None else self.max_lp

    def contains(self, lp: int) -> bool:
        return lp >= self.min_lp and (self.max_lp is None or lp <= self.max_lp)


RANK_TIERS: tuple[RankTier, ...] = (
    RankTier(
        rank=Rank.UNTRAINED,
        display_name="Untrained",
        min_lp=0,
        max_lp=499,
        description="The beginning of your journey",
        concept="Raw potential",
    ),
    RankTier(
        rank=Rank.CONDITIONED,
        display_name="Conditioned",
        min_lp=500,
        max_lp=999,
        description="Consistent training shows results",
        concept="Activation",
    ),
    RankTier(
        rank=Rank.STRONG,
        display_name="Strong",
        min_lp=1000,
        max_lp=1499,
        description="Building real strength",
        concept="Structure",
    ),
    RankTier(
        rank=Rank.ATHLETIC,
        display_name="Athletic",
        min_lp=1500,
        max_lp=1999,
        description="Peak performance achieved",
        concept="Performance",
    ),
    RankTier(
        rank=Rank.ELITE,
        display_name="Elite",
        min_lp=2000,
        max_lp=2499,
        description="Among the best",
        concept="Respect",
    ),
    RankTier(
        rank=Rank.FORGED,
        display_name="Forged",
        min_lp=2500,
        max_lp=None,
        description="Absolute discipline mastered",
        concept="Legendary",
    ),
)


def _check_lp(lp: int) -> None:
    if lp < 0:
        raise InvariantViolationError(f"LP must be non-negative, got {lp}")


def tier_for(lp: int) -> RankTier:
    """Get the tier whose LP range contains lp.

    Args:
        lp: League points (non-negative)

    Returns:
        The matching tier; the top tier for anything above the last finite bound
    """
    _check_lp(lp)
    for tier in reversed(RANK_TIERS):
        if lp >= tier.min_lp:
            return tier
    # Unreachable: the first tier starts at 0
    return RANK_TIERS[0]


def tier_by_rank(rank: Rank) -> RankTier:
    """Look up a tier by its rank tag."""
    for tier in RANK_TIERS:
        if tier.rank == rank:
            return tier
    raise KeyError(rank)


def next_tier(lp: int) -> RankTier | None:
    """Get the tier above the one lp is in, or None at the top."""
    index = RANK_TIERS.index(tier_for(lp))
    if index + 1 < len(RANK_TIERS):
        return RANK_TIERS[index + 1]
    return None


def progress(lp: int) -> float:
    """Fraction of the current tier completed, in [0, 1]."""
    tier = tier_for(lp)
    lp_range = tier.display_max_lp - tier.min_lp + 1
    return min(1.0, (lp - tier.min_lp) / lp_range)


def resolve_division(lp: int) -> tuple[RankTier, int | None]:
    """Resolve tier and division for an LP value.

    Each bounded tier is split into three contiguous thirds using integer
    division: division 3 is the lowest third, division 1 the highest.
    The top tier has no divisions.

    Args:
        lp: League points (non-negative)

    Returns:
        (tier, division) with division None for the top tier
    """
    tier = tier_for(lp)
    if tier.max_lp is None:
        return tier, None

    lp_range = tier.max_lp - tier.min_lp + 1
    lp_into_tier = lp - tier.min_lp

    if lp_into_tier < lp_range // 3:
        return tier, 3
    if lp_into_tier < (lp_range * 2) // 3:
        return tier, 2
    return tier, 1


def division_lp_range(rank: Rank, division: int | None) -> tuple[int, int | None]:
    """LP sub-range covered by a division of a tier.

    Returns:
        (lowest LP, highest LP) inclusive; highest is None for the top tier
    """
    tier = tier_by_rank(rank)
    if tier.max_lp is None:
        if division is not None:
            raise InvariantViolationError(f"{tier.name} has no divisions, got {division}")
        return tier.min_lp, None

    if division not in (1, 2, 3):
        raise InvariantViolationError(f"Division must be 1, 2 or 3 for {tier.name}, got {division}")

    lp_range = tier.max_lp - tier.min_lp + 1
    bounds = {
        3: (tier.min_lp, tier.min_lp + lp_range // 3 - 1),
        2: (tier.min_lp + lp_range // 3, tier.min_lp + (lp_range * 2) // 3 - 1),
        1: (tier.min_lp + (lp_range * 2) // 3, tier.max_lp),
    }
    return bounds[division]
