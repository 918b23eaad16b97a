"""Ranking service - weekly scoring pipeline over the database.

Loads (or bootstraps) a user's rating, scores the week from the activity
source, upserts the weekly score and applies the week's rating delta.
Each week's delta is applied once: re-scoring the same week recomputes it
from the rating as it stood before that week, never on top of itself.
"""

import asyncio
import logging
import weakref
from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from ..activity.sources import ActivitySource
from ..config import Settings, get_settings
from ..db.models.enums import Rank
from ..db.models.ratings import DEFAULT_DIVISION, DEFAULT_LP, DEFAULT_MMR, Rating
from ..db.models.weekly_scores import WeeklyScore
from ..errors import (
    ActivityUnavailableError,
    InvariantViolationError,
    PersistenceError,
    RankingError,
    RatingConflictError,
)
from ..ranking.catalog import RankTier, next_tier, progress, resolve_division
from ..ranking.rating import RatingUpdate, calculate_new_rating
from ..ranking.scoring import (
    ScoreComponents,
    calculate_weekly_score,
    week_start_for,
    week_window,
)
from .schemas import (
    RatingRead,
    RatingUpdateRequest,
    ScoreComponentsRecord,
    WeeklyScoreRead,
    WeeklyScoreRequest,
)

logger = logging.getLogger(__name__)


class UserLocks:
    """Per-user asyncio locks, dropped once nobody holds a reference."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def for_user(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[user_id] = lock
        return lock


# Shared by every RankingService in the process unless one is injected
_default_locks = UserLocks()


@dataclass
class WeeklyRefreshResult:
    """Outcome of a weekly refresh."""

    rating: RatingRead
    weekly_score: WeeklyScoreRead
    components: ScoreComponents
    delta_lp: int
    rating_applied: bool  # False when the week is older than the last scored week


@dataclass
class RankSummary:
    """Current ladder position for display."""

    rating: RatingRead
    tier: RankTier
    division: int | None
    next_tier: RankTier | None
    progress: float


@dataclass
class LeaderboardEntry:
    """One row of a weekly leaderboard."""

    user_id: str
    score: int | None
    lp: int | None
    rank: Rank | None
    division: int | None


def _check_rating(rating: Rating) -> Rating:
    """Fail fast on a stored rating that breaks the ladder invariants."""
    if rating.lp < 0:
        raise InvariantViolationError(f"Rating for {rating.user_id} has negative LP {rating.lp}")
    tier, division = resolve_division(rating.lp)
    if (rating.rank, rating.division) != (tier.rank, division):
        raise InvariantViolationError(
            f"Rating for {rating.user_id} stores {rating.rank.value}/{rating.division} "
            f"but {rating.lp} LP resolves to {tier.rank.value}/{division}"
        )
    return rating


class RankingService:
    """Service for weekly scoring and rating operations."""

    def __init__(
        self,
        session: AsyncSession,
        activity_source: ActivitySource | None = None,
        settings: Settings | None = None,
        locks: UserLocks | None = None,
    ) -> None:
        self.session = session
        self.activity_source = activity_source
        self.settings = settings or get_settings()
        self.locks = locks or _default_locks

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    async def get_rating(self, user_id: str) -> Rating | None:
        """Get a user's rating row, checked against the ladder invariants."""
        stmt = select(Rating).where(Rating.user_id == user_id)
        result = await self.session.execute(stmt)
        rating = result.scalar_one_or_none()
        return _check_rating(rating) if rating else None

    async def get_or_create_rating(self, user_id: str) -> Rating:
        """Get existing rating or create the default one.

        Args:
            user_id: User the rating belongs to

        Returns:
            Rating instance (flushed, not committed)
        """
        rating = await self.get_rating(user_id)
        if rating:
            return rating

        rating = Rating(
            user_id=user_id,
            mmr=DEFAULT_MMR,
            lp=DEFAULT_LP,
            rank=Rank.UNTRAINED,
            division=DEFAULT_DIVISION,
            base_mmr=DEFAULT_MMR,
            base_lp=DEFAULT_LP,
        )
        self.session.add(rating)
        await self.session.flush()
        logger.info("Created default rating for user %s", user_id)
        return rating

    async def apply_weekly_rating(
        self, user_id: str, week_start: date, score: int
    ) -> tuple[Rating, RatingUpdate | None]:
        """Apply a week's score to the user's rating.

        The delta for a week is computed from the rating as it stood before
        that week. Re-applying the same week replaces its earlier delta;
        a new week first moves the baseline to the current rating. Weeks
        older than the last scored week leave the rating untouched.

        Args:
            user_id: User to update
            week_start: Week the score belongs to
            score: The week's total score

        Returns:
            (rating, update) with update None when the rating was not changed
        """
        self._check_week_start(week_start)
        rating = await self.get_or_create_rating(user_id)

        if rating.scored_week_start is not None and week_start < rating.scored_week_start:
            logger.info(
                "Week %s for user %s predates last scored week %s; rating unchanged",
                week_start,
                user_id,
                rating.scored_week_start,
            )
            return rating, None

        if rating.scored_week_start != week_start:
            rating.base_mmr = rating.mmr
            rating.base_lp = rating.lp
            rating.scored_week_start = week_start

        update = calculate_new_rating(rating.base_mmr, rating.base_lp, score)
        try:
            request = RatingUpdateRequest(
                user_id=user_id,
                mmr=update.mmr,
                lp=update.lp,
                rank=update.rank,
                division=update.division,
            )
        except ValidationError as exc:
            raise InvariantViolationError(str(exc)) from exc

        previous_lp = rating.lp
        rating.mmr = request.mmr
        rating.lp = request.lp
        rating.rank = request.rank
        rating.division = request.division
        await self.session.flush()

        logger.info(
            "Rating for user %s week %s: score %d vs expected %.1f, LP %d -> %d (%+d), %s %s",
            user_id,
            week_start,
            score,
            update.expected_score,
            previous_lp,
            rating.lp,
            rating.lp - previous_lp,
            rating.rank.value,
            rating.division if rating.division is not None else "-",
        )
        return rating, update

    # ------------------------------------------------------------------
    # Weekly scores
    # ------------------------------------------------------------------

    def _zone(self, tz: tzinfo | str | None) -> tzinfo:
        zone = tz if tz is not None else self.settings.default_timezone
        if not isinstance(zone, str):
            return zone
        try:
            return ZoneInfo(zone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvariantViolationError(f"Unknown time zone {zone!r}") from exc

    def _check_week_start(self, week_start: date) -> None:
        """Weekly rows are keyed by the first day of the week only."""
        if week_start.weekday() != self.settings.week_start_weekday:
            raise InvariantViolationError(
                f"{week_start} is not a week start (expected weekday "
                f"{self.settings.week_start_weekday}, got {week_start.weekday()})"
            )

    def current_week_start(self, now: datetime | None = None, tz: tzinfo | str | None = None) -> date:
        """Start date of the week containing now (default: current time)."""
        return week_start_for(
            now or datetime.now(timezone.utc),
            self._zone(tz),
            self.settings.week_start_weekday,
        )

    async def calculate_week_score(
        self, week_start: date, tz: tzinfo | str | None = None
    ) -> ScoreComponents:
        """Score one week from the activity source.

        Raises:
            ActivityUnavailableError: if the source fails or has no data
        """
        if self.activity_source is None:
            raise ActivityUnavailableError("No activity source configured")

        zone = self._zone(tz)
        start, end = week_window(week_start, zone)
        try:
            workouts = await self.activity_source.fetch_workouts(start, end)
            sleep = await self.activity_source.fetch_sleep(start, end)
        except ActivityUnavailableError:
            raise
        except Exception as exc:
            logger.warning("Activity source failed for week %s: %s", week_start, exc)
            raise ActivityUnavailableError(f"Activity source failed: {exc}") from exc

        if workouts is None or sleep is None:
            raise ActivityUnavailableError(f"No activity data available for week {week_start}")

        logger.debug(
            "Scoring week %s: %d workouts, %d sleep samples", week_start, len(workouts), len(sleep)
        )
        return calculate_weekly_score(workouts, sleep, zone)

    async def get_weekly_score(self, user_id: str, week_start: date) -> WeeklyScore | None:
        stmt = select(WeeklyScore).where(
            WeeklyScore.user_id == user_id,
            WeeklyScore.week_start == week_start,
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def submit_weekly_score(
        self, user_id: str, week_start: date, components: ScoreComponents
    ) -> WeeklyScore:
        """Upsert the score for (user_id, week_start).

        Args:
            user_id: User the score belongs to
            week_start: First day of the week
            components: The computed components

        Returns:
            The stored WeeklyScore (flushed, not committed)
        """
        self._check_week_start(week_start)
        try:
            request = WeeklyScoreRequest(
                user_id=user_id,
                week_start=week_start,
                score=components.total,
                components=ScoreComponentsRecord.model_validate(components),
            )
        except ValidationError as exc:
            raise InvariantViolationError(str(exc)) from exc

        weekly = await self.get_weekly_score(user_id, week_start)
        if weekly is None:
            weekly = WeeklyScore(user_id=request.user_id, week_start=request.week_start)
            self.session.add(weekly)
            action = "Submitted"
        else:
            action = "Updated"

        weekly.score = request.score
        weekly.consistency = request.components.consistency
        weekly.volume = request.components.volume
        weekly.intensity = request.components.intensity
        weekly.recovery = request.components.recovery
        await self.session.flush()

        logger.info("%s weekly score %d for user %s week %s", action, weekly.score, user_id, week_start)
        return weekly

    async def get_recent_weekly_scores(
        self, user_id: str, limit: int | None = None
    ) -> list[WeeklyScore]:
        """Get a user's most recent weekly scores, newest week first."""
        stmt = (
            select(WeeklyScore)
            .where(WeeklyScore.user_id == user_id)
            .order_by(WeeklyScore.week_start.desc())
            .limit(limit or self.settings.history_limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def refresh_week(
        self,
        user_id: str,
        week_start: date | None = None,
        now: datetime | None = None,
        tz: tzinfo | str | None = None,
    ) -> WeeklyRefreshResult:
        """Score a week and update the user's rating.

        Safe to repeat: the weekly score is upserted and the week's delta is
        applied once. Runs under a per-user lock and commits once; on any
        failure the transaction is rolled back and the error carries the
        last committed rating.

        Args:
            user_id: User to refresh
            week_start: Week to score (default: the week containing now)
            now: Reference time for the current week
            tz: User's time zone (default from settings)

        Returns:
            WeeklyRefreshResult with the committed rating and score

        Raises:
            ActivityUnavailableError: activity could not be read; nothing changed
            PersistenceError: a read or write failed; nothing changed
            RatingConflictError: the rating was changed concurrently
            InvariantViolationError: week_start is not a week start or tz is unknown
        """
        week_start = week_start or self.current_week_start(now, tz)
        self._check_week_start(week_start)

        async with self.locks.for_user(user_id):
            last_known: RatingRead | None = None
            try:
                rating = await self.get_or_create_rating(user_id)
                await self.session.commit()
                last_known = RatingRead.model_validate(rating)

                components = await self.calculate_week_score(week_start, tz)
                weekly = await self.submit_weekly_score(user_id, week_start, components)
                rating, update = await self.apply_weekly_rating(
                    user_id, week_start, components.total
                )
                await self.session.commit()
            except RankingError as exc:
                await self.session.rollback()
                exc.last_known_rating = last_known
                raise
            except StaleDataError as exc:
                await self.session.rollback()
                logger.warning("Rating for user %s changed concurrently", user_id)
                error = RatingConflictError(f"Rating for {user_id} was modified concurrently")
                error.last_known_rating = last_known
                raise error from exc
            except SQLAlchemyError as exc:
                await self.session.rollback()
                logger.error("Weekly refresh for user %s failed: %s", user_id, exc)
                error = PersistenceError(f"Could not store weekly results for {user_id}: {exc}")
                error.last_known_rating = last_known
                raise error from exc

        return WeeklyRefreshResult(
            rating=RatingRead.model_validate(rating),
            weekly_score=WeeklyScoreRead.model_validate(weekly),
            components=components,
            delta_lp=update.delta_lp if update else 0,
            rating_applied=update is not None,
        )

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    async def get_rank_summary(self, user_id: str) -> RankSummary:
        """Current tier, division and progress for a user."""
        rating = await self.get_or_create_rating(user_id)
        tier, division = resolve_division(rating.lp)
        return RankSummary(
            rating=RatingRead.model_validate(rating),
            tier=tier,
            division=division,
            next_tier=next_tier(rating.lp),
            progress=progress(rating.lp),
        )

    async def get_weekly_leaderboard(
        self, user_ids: list[str], week_start: date
    ) -> list[LeaderboardEntry]:
        """Scores and ratings for a group of users in one week.

        Sorted by score, then LP, highest first; users with no score or
        rating sort last.
        """
        if not user_ids:
            return []

        scores_result = await self.session.execute(
            select(WeeklyScore).where(
                WeeklyScore.user_id.in_(user_ids),
                WeeklyScore.week_start == week_start,
            )
        )
        scores = {row.user_id: row for row in scores_result.scalars().all()}

        ratings_result = await self.session.execute(
            select(Rating).where(Rating.user_id.in_(user_ids))
        )
        ratings = {row.user_id: row for row in ratings_result.scalars().all()}

        entries = []
        for user_id in dict.fromkeys(user_ids):
            score = scores.get(user_id)
            rating = ratings.get(user_id)
            entries.append(
                LeaderboardEntry(
                    user_id=user_id,
                    score=score.score if score else None,
                    lp=rating.lp if rating else None,
                    rank=rating.rank if rating else None,
                    division=rating.division if rating else None,
                )
            )

        entries.sort(key=lambda e: (e.score if e.score is not None else -1, e.lp or 0), reverse=True)
        return entries
