"""Tests for weekly score calculation."""

import random
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest
from conftest import WEEK_START, at, full_week, sleep, workout

from ironcore.db.models.enums import SleepStage
from ironcore.errors import InvariantViolationError
from ironcore.ranking.scoring import (
    ScoreComponents,
    WorkoutRecord,
    calculate_consistency,
    calculate_intensity,
    calculate_recovery,
    calculate_volume,
    calculate_weekly_score,
    week_start_for,
    week_window,
)


class TestScoreComponents:
    """Tests for the ScoreComponents value."""

    def test_total_is_sum(self):
        components = ScoreComponents(consistency=16, volume=9, intensity=7, recovery=4)
        assert components.total == 36

    def test_defaults_to_zero(self):
        assert ScoreComponents().total == 0

    @pytest.mark.parametrize(
        "fields",
        [
            {"consistency": 41},
            {"volume": 26},
            {"intensity": 26},
            {"recovery": 11},
            {"consistency": -1},
        ],
    )
    def test_out_of_range_field_rejected(self, fields):
        with pytest.raises(InvariantViolationError):
            ScoreComponents(**fields)


class TestExampleWeeks:
    """Scenarios from the scoring rules."""

    def test_zero_activity_week(self):
        components = calculate_weekly_score([], [])
        assert components == ScoreComponents(0, 0, 0, 0)
        assert components.total == 0

    def test_maxed_out_week(self):
        """5 days, 300 min, 1200 kcal, 5 good nights -> every cap reached."""
        workouts, nights = full_week()
        components = calculate_weekly_score(workouts, nights)

        assert components.consistency == 40
        assert components.volume == 25  # 300 minutes clamped to 250
        assert components.intensity == 25  # 1200 kcal clamped to 1000
        assert components.recovery == 10
        assert components.total == 100


class TestConsistency:
    """Tests for the consistency component."""

    def test_counts_distinct_days(self):
        workouts = [
            workout(WEEK_START, 7, 30),
            workout(WEEK_START, 18, 30),  # same day
            workout(WEEK_START + timedelta(days=2), 7, 30),
        ]
        assert calculate_consistency(workouts, "UTC") == 16

    def test_capped_at_five_days(self):
        workouts = [workout(WEEK_START + timedelta(days=i), 7, 30) for i in range(7)]
        assert calculate_consistency(workouts, "UTC") == 40

    def test_midnight_crossing_counts_start_day(self):
        workouts = [workout(WEEK_START, 23, 120)]
        assert calculate_consistency(workouts, "UTC") == 8

    def test_days_are_local_to_time_zone(self):
        """Two UTC days can be one local day."""
        workouts = [
            WorkoutRecord(
                start=datetime(2026, 10, 12, 23, 30, tzinfo=timezone.utc),
                end=datetime(2026, 10, 13, 0, 0, tzinfo=timezone.utc),
            ),
            WorkoutRecord(
                start=datetime(2026, 10, 13, 1, 0, tzinfo=timezone.utc),
                end=datetime(2026, 10, 13, 1, 30, tzinfo=timezone.utc),
            ),
        ]
        assert calculate_consistency(workouts, "UTC") == 16
        # Both fall on 12 October in New York
        assert calculate_consistency(workouts, "America/New_York") == 8


class TestVolume:
    """Tests for the volume component."""

    def test_one_point_per_ten_minutes(self):
        assert calculate_volume([workout(WEEK_START, 7, 45)]) == 4

    def test_capped_at_250_minutes(self):
        assert calculate_volume([workout(WEEK_START, 7, 600)]) == 25

    def test_negative_duration_counts_zero(self):
        start = at(WEEK_START, 7)
        broken = WorkoutRecord(start=start, end=start - timedelta(minutes=30))
        assert calculate_volume([broken]) == 0

    def test_full_duration_across_midnight(self):
        assert calculate_volume([workout(WEEK_START, 23, 90)]) == 9


class TestIntensity:
    """Tests for the intensity component."""

    def test_one_point_per_40_kcal(self):
        assert calculate_intensity([workout(WEEK_START, 7, 30, 300)]) == 7

    def test_capped_at_1000_kcal(self):
        assert calculate_intensity([workout(WEEK_START, 7, 30, 5000)]) == 25

    def test_missing_energy_counts_zero(self):
        assert calculate_intensity([workout(WEEK_START, 7, 30, None)]) == 0


class TestRecovery:
    """Tests for the recovery component."""

    def test_night_needs_six_and_a_half_hours(self):
        nights = [sleep(WEEK_START, 22, 6.5), sleep(WEEK_START + timedelta(days=1), 22, 6.4)]
        assert calculate_recovery(nights, "UTC") == 2

    def test_intervals_on_same_day_are_summed(self):
        nights = [sleep(WEEK_START, 0, 3, SleepStage.ASLEEP_DEEP), sleep(WEEK_START, 4, 4)]
        assert calculate_recovery(nights, "UTC") == 2

    def test_non_asleep_stages_ignored(self):
        nights = [
            sleep(WEEK_START, 22, 8, SleepStage.IN_BED),
            sleep(WEEK_START + timedelta(days=1), 22, 8, SleepStage.AWAKE),
        ]
        assert calculate_recovery(nights, "UTC") == 0

    def test_capped_at_five_nights(self):
        nights = [sleep(WEEK_START + timedelta(days=i), 22, 8) for i in range(7)]
        assert calculate_recovery(nights, "UTC") == 10


class TestProperties:
    """Bounds and determinism over random weeks."""

    @staticmethod
    def _random_week(rng: random.Random):
        workouts = [
            workout(WEEK_START + timedelta(days=rng.randrange(7)), rng.randrange(24), rng.uniform(0, 400), rng.uniform(0, 2000))
            for _ in range(rng.randrange(15))
        ]
        nights = [
            sleep(WEEK_START + timedelta(days=rng.randrange(7)), rng.randrange(24), rng.uniform(0, 12), rng.choice(list(SleepStage)))
            for _ in range(rng.randrange(15))
        ]
        return workouts, nights

    def test_components_within_caps(self):
        rng = random.Random(42)
        for _ in range(300):
            workouts, nights = self._random_week(rng)
            components = calculate_weekly_score(workouts, nights)
            assert 0 <= components.consistency <= 40
            assert 0 <= components.volume <= 25
            assert 0 <= components.intensity <= 25
            assert 0 <= components.recovery <= 10
            assert 0 <= components.total <= 100

    def test_deterministic_and_order_independent(self):
        rng = random.Random(7)
        for _ in range(50):
            workouts, nights = self._random_week(rng)
            first = calculate_weekly_score(workouts, nights)
            again = calculate_weekly_score(workouts, nights)
            shuffled_workouts = workouts[:]
            shuffled_nights = nights[:]
            rng.shuffle(shuffled_workouts)
            rng.shuffle(shuffled_nights)
            assert first == again
            assert first == calculate_weekly_score(shuffled_workouts, shuffled_nights)


class TestWeekBoundaries:
    """Tests for week start and window helpers."""

    def test_monday_start(self):
        assert week_start_for(at(date(2026, 10, 15), 12), "UTC") == WEEK_START
        assert week_start_for(at(WEEK_START, 0), "UTC") == WEEK_START

    def test_sunday_start(self):
        assert week_start_for(at(date(2026, 10, 15), 12), "UTC", first_weekday=6) == date(2026, 10, 11)

    def test_local_zone_shifts_week(self):
        """Monday 02:00 UTC is still Sunday in Los Angeles."""
        moment = at(WEEK_START, 2)
        assert week_start_for(moment, "America/Los_Angeles") == date(2026, 10, 5)

    def test_window_spans_seven_local_days(self):
        start, end = week_window(WEEK_START, "Europe/Berlin")
        assert start == datetime(2026, 10, 12, tzinfo=ZoneInfo("Europe/Berlin"))
        assert end == datetime(2026, 10, 19, tzinfo=ZoneInfo("Europe/Berlin"))
        assert start.tzinfo is not None
