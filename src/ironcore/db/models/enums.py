"""Enums for ranking models."""

from enum import Enum


class Rank(str, Enum):
    """The six ladder tiers, lowest first."""

    UNTRAINED = "UNTRAINED"
    CONDITIONED = "CONDITIONED"
    STRONG = "STRONG"
    ATHLETIC = "ATHLETIC"
    ELITE = "ELITE"
    FORGED = "FORGED"


class SleepStage(str, Enum):
    """Sleep analysis stages reported by the health-data source."""

    IN_BED = "in_bed"
    AWAKE = "awake"
    ASLEEP_UNSPECIFIED = "asleep_unspecified"
    ASLEEP_CORE = "asleep_core"
    ASLEEP_DEEP = "asleep_deep"
    ASLEEP_REM = "asleep_rem"

    @property
    def is_asleep(self) -> bool:
        return self in ASLEEP_STAGES


ASLEEP_STAGES = frozenset(
    {
        SleepStage.ASLEEP_UNSPECIFIED,
        SleepStage.ASLEEP_CORE,
        SleepStage.ASLEEP_DEEP,
        SleepStage.ASLEEP_REM,
    }
)
