"""Weekly score calculation.

Turns one week of recorded activity into four independently capped
components. Everything here is pure: the same records give the same
score regardless of order or how often it is called.
"""

import math
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo

from ..db.models.enums import SleepStage
from ..errors import InvariantViolationError

# Component caps
MAX_CONSISTENCY = 40
MAX_VOLUME = 25
MAX_INTENSITY = 25
MAX_RECOVERY = 10

# Scoring rules
CONSISTENCY_DAY_CAP = 5
CONSISTENCY_POINTS_PER_DAY = 8
VOLUME_MINUTES_CAP = 250.0
VOLUME_MINUTES_PER_POINT = 10  # 0.1 points per minute
INTENSITY_KCAL_CAP = 1000.0
INTENSITY_KCAL_PER_POINT = 40  # 0.025 points per kcal
RECOVERY_NIGHT_CAP = 5
RECOVERY_POINTS_PER_NIGHT = 2
RECOVERY_MIN_SLEEP = timedelta(hours=6.5)

DAYS_PER_WEEK = 7


@dataclass(frozen=True)
class WorkoutRecord:
    """A recorded workout session."""

    start: datetime
    end: datetime
    active_energy_kcal: float | None = None

    @property
    def duration(self) -> timedelta:
        return max(self.end - self.start, timedelta(0))


@dataclass(frozen=True)
class SleepInterval:
    """A recorded sleep analysis sample."""

    start: datetime
    end: datetime
    stage: SleepStage = SleepStage.ASLEEP_UNSPECIFIED

    @property
    def duration(self) -> timedelta:
        return max(self.end - self.start, timedelta(0))


@dataclass(frozen=True)
class ScoreComponents:
    """The four parts of a weekly score.

    Fields are checked against their caps on creation; the calculator
    clamps before building one, so a violation here is a bug upstream.
    """

    consistency: int = 0
    volume: int = 0
    intensity: int = 0
    recovery: int = 0

    def __post_init__(self) -> None:
        for name, cap in (
            ("consistency", MAX_CONSISTENCY),
            ("volume", MAX_VOLUME),
            ("intensity", MAX_INTENSITY),
            ("recovery", MAX_RECOVERY),
        ):
            value = getattr(self, name)
            if not 0 <= value <= cap:
                raise InvariantViolationError(f"{name}={value} outside [0, {cap}]")

    @property
    def total(self) -> int:
        return self.consistency + self.volume + self.intensity + self.recovery


def _zone(tz: tzinfo | str) -> tzinfo:
    return ZoneInfo(tz) if isinstance(tz, str) else tz


def local_date(moment: datetime, tz: tzinfo | str) -> date:
    """Calendar day of a moment in the given zone.

    Naive datetimes are taken to already be local to that zone.
    """
    zone = _zone(tz)
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(zone).date()


def week_start_for(moment: datetime, tz: tzinfo | str, first_weekday: int = 0) -> date:
    """Local date of the start of the week containing moment.

    Args:
        moment: Any point in the week
        tz: User's time zone
        first_weekday: 0 = Monday ... 6 = Sunday

    Returns:
        The week-start date, without a time component
    """
    day = local_date(moment, tz)
    offset = (day.weekday() - first_weekday) % DAYS_PER_WEEK
    return day - timedelta(days=offset)


def week_window(week_start: date, tz: tzinfo | str) -> tuple[datetime, datetime]:
    """Aware [start, end) datetimes spanning the seven days from week_start."""
    zone = _zone(tz)
    start = datetime.combine(week_start, time.min, tzinfo=zone)
    end = datetime.combine(week_start + timedelta(days=DAYS_PER_WEEK), time.min, tzinfo=zone)
    return start, end


def calculate_consistency(workouts: Iterable[WorkoutRecord], tz: tzinfo | str) -> int:
    """8 points per distinct local workout day, up to 5 days."""
    days = {local_date(workout.start, tz) for workout in workouts}
    return min(len(days), CONSISTENCY_DAY_CAP) * CONSISTENCY_POINTS_PER_DAY


def calculate_volume(workouts: Iterable[WorkoutRecord]) -> int:
    """One point per 10 minutes of training, minutes capped at 250."""
    total_minutes = sum(workout.duration.total_seconds() for workout in workouts) / 60.0
    capped_minutes = min(total_minutes, VOLUME_MINUTES_CAP)
    return math.floor(capped_minutes / VOLUME_MINUTES_PER_POINT)


def calculate_intensity(workouts: Iterable[WorkoutRecord]) -> int:
    """One point per 40 active kcal, kcal capped at 1000."""
    total_kcal = sum(max(workout.active_energy_kcal or 0.0, 0.0) for workout in workouts)
    capped_kcal = min(total_kcal, INTENSITY_KCAL_CAP)
    return math.floor(capped_kcal / INTENSITY_KCAL_PER_POINT)


def calculate_recovery(sleep: Iterable[SleepInterval], tz: tzinfo | str) -> int:
    """2 points per night with at least 6.5 hours asleep, up to 5 nights.

    Intervals are attributed whole to the local day they start on.
    """
    asleep_by_day: dict[date, timedelta] = defaultdict(timedelta)
    for interval in sleep:
        if not interval.stage.is_asleep:
            continue
        asleep_by_day[local_date(interval.start, tz)] += interval.duration

    good_nights = sum(1 for total in asleep_by_day.values() if total >= RECOVERY_MIN_SLEEP)
    return min(good_nights, RECOVERY_NIGHT_CAP) * RECOVERY_POINTS_PER_NIGHT


def calculate_weekly_score(
    workouts: Iterable[WorkoutRecord],
    sleep: Iterable[SleepInterval],
    tz: tzinfo | str = "UTC",
) -> ScoreComponents:
    """Calculate the score components for one week of activity.

    Args:
        workouts: Workouts recorded in the week
        sleep: Sleep samples recorded in the week (any stage)
        tz: User's time zone, used to bucket records into calendar days

    Returns:
        ScoreComponents with every field within its cap
    """
    workouts = list(workouts)
    return ScoreComponents(
        consistency=min(calculate_consistency(workouts, tz), MAX_CONSISTENCY),
        volume=min(calculate_volume(workouts), MAX_VOLUME),
        intensity=min(calculate_intensity(workouts), MAX_INTENSITY),
        recovery=min(calculate_recovery(sleep, tz), MAX_RECOVERY),
    )
