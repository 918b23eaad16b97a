"""Typed records exchanged with the persistence layer.

Every write goes through a request model so out-of-range values are
rejected before they reach a table; read models snapshot rows for callers.
"""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..db.models.enums import Rank
from ..ranking.catalog import resolve_division
from ..ranking.scoring import (
    MAX_CONSISTENCY,
    MAX_INTENSITY,
    MAX_RECOVERY,
    MAX_VOLUME,
    ScoreComponents,
)

USER_ID_MAX_LENGTH = 64


class ScoreComponentsRecord(BaseModel):
    """Component breakdown of a weekly score."""

    model_config = ConfigDict(from_attributes=True)

    consistency: int = Field(ge=0, le=MAX_CONSISTENCY, description="Training days, 8 points each")
    volume: int = Field(ge=0, le=MAX_VOLUME, description="Training minutes / 10")
    intensity: int = Field(ge=0, le=MAX_INTENSITY, description="Active kcal / 40")
    recovery: int = Field(ge=0, le=MAX_RECOVERY, description="Nights of 6.5h+ sleep, 2 points each")

    @property
    def total(self) -> int:
        return self.consistency + self.volume + self.intensity + self.recovery

    def to_components(self) -> ScoreComponents:
        return ScoreComponents(
            consistency=self.consistency,
            volume=self.volume,
            intensity=self.intensity,
            recovery=self.recovery,
        )


class WeeklyScoreRequest(BaseModel):
    """Upsert payload for the weekly_scores table."""

    user_id: str = Field(min_length=1, max_length=USER_ID_MAX_LENGTH)
    week_start: date = Field(description="First day of the week, no time component")
    score: int = Field(ge=0, le=100)
    components: ScoreComponentsRecord

    @model_validator(mode="after")
    def _score_matches_components(self) -> "WeeklyScoreRequest":
        if self.score != self.components.total:
            raise ValueError(
                f"score {self.score} does not match component total {self.components.total}"
            )
        return self


class RatingUpdateRequest(BaseModel):
    """Write payload for the ratings table."""

    user_id: str = Field(min_length=1, max_length=USER_ID_MAX_LENGTH)
    mmr: int
    lp: int = Field(ge=0)
    rank: Rank
    division: int | None = Field(default=None, ge=1, le=3)

    @model_validator(mode="after")
    def _rank_matches_lp(self) -> "RatingUpdateRequest":
        tier, division = resolve_division(self.lp)
        if (self.rank, self.division) != (tier.rank, division):
            raise ValueError(
                f"rank {self.rank.value}/{self.division} inconsistent with {self.lp} LP "
                f"(expected {tier.rank.value}/{division})"
            )
        return self


class RatingRead(BaseModel):
    """Snapshot of a ratings row."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    mmr: int
    lp: int
    rank: Rank
    division: int | None
    updated_at: datetime | None = None


class WeeklyScoreRead(BaseModel):
    """Snapshot of a weekly_scores row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    week_start: date
    score: int
    consistency: int
    volume: int
    intensity: int
    recovery: int
    created_at: datetime | None = None

    @property
    def components(self) -> ScoreComponents:
        return ScoreComponents(
            consistency=self.consistency,
            volume=self.volume,
            intensity=self.intensity,
            recovery=self.recovery,
        )
