"""Activity sources - where recorded workouts and sleep come from.

The service only depends on the ActivitySource protocol. JsonActivitySource
reads a health-data export file and is what the command-line runner uses.
"""

import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..db.models.enums import SleepStage
from ..errors import ActivityUnavailableError
from ..ranking.scoring import SleepInterval, WorkoutRecord

logger = logging.getLogger(__name__)


class ActivitySource(Protocol):
    """Supplies recorded activity for a time window.

    Both methods return records whose start falls in [start, end), or None
    when the source has no data available for the window (for example,
    health-data access was never granted). Transport failures are raised.
    """

    async def fetch_workouts(
        self, start: datetime, end: datetime
    ) -> Sequence[WorkoutRecord] | None: ...

    async def fetch_sleep(
        self, start: datetime, end: datetime
    ) -> Sequence[SleepInterval] | None: ...


def _as_utc(value: datetime) -> datetime:
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


class ExportedWorkout(BaseModel):
    """One workout in a health-data export."""

    start: datetime
    end: datetime
    active_energy_kcal: float | None = Field(default=None, ge=0)

    @field_validator("start", "end")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @model_validator(mode="after")
    def _ordered(self) -> "ExportedWorkout":
        if self.end < self.start:
            raise ValueError("workout ends before it starts")
        return self

    def to_record(self) -> WorkoutRecord:
        return WorkoutRecord(
            start=self.start, end=self.end, active_energy_kcal=self.active_energy_kcal
        )


class ExportedSleepSample(BaseModel):
    """One sleep analysis sample in a health-data export."""

    start: datetime
    end: datetime
    stage: SleepStage = SleepStage.ASLEEP_UNSPECIFIED

    @field_validator("start", "end")
    @classmethod
    def _aware(cls, value: datetime) -> datetime:
        return _as_utc(value)

    def to_interval(self) -> SleepInterval:
        return SleepInterval(start=self.start, end=self.end, stage=self.stage)


class ActivityExport(BaseModel):
    """Top-level shape of a health-data export file."""

    workouts: list[ExportedWorkout] = Field(default_factory=list)
    sleep: list[ExportedSleepSample] = Field(default_factory=list)


class JsonActivitySource:
    """Activity source backed by a JSON health-data export.

    Expected shape::

        {
          "workouts": [{"start": "...", "end": "...", "active_energy_kcal": 310}],
          "sleep": [{"start": "...", "end": "...", "stage": "asleep_core"}]
        }

    Naive timestamps are read as UTC.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._export: ActivityExport | None = None

    def _load(self) -> ActivityExport:
        if self._export is None:
            try:
                raw = json.loads(self.path.read_text(encoding="utf-8"))
                self._export = ActivityExport.model_validate(raw)
            except (OSError, json.JSONDecodeError, ValidationError) as exc:
                raise ActivityUnavailableError(
                    f"Could not read activity export {self.path}: {exc}"
                ) from exc
            logger.debug(
                "Loaded %d workouts and %d sleep samples from %s",
                len(self._export.workouts),
                len(self._export.sleep),
                self.path,
            )
        return self._export

    async def fetch_workouts(self, start: datetime, end: datetime) -> list[WorkoutRecord]:
        return [w.to_record() for w in self._load().workouts if start <= w.start < end]

    async def fetch_sleep(self, start: datetime, end: datetime) -> list[SleepInterval]:
        return [s.to_interval() for s in self._load().sleep if start <= s.start < end]
