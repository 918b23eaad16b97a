"""Weekly score model."""

from datetime import date

from sqlalchemy import Date, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class WeeklyScore(Base, TimestampMixin):
    """A user's composite score for one week.

    At most one row per (user_id, week_start); resubmissions overwrite it.
    """

    __tablename__ = "weekly_scores"
    __table_args__ = (
        UniqueConstraint("user_id", "week_start", name="uq_weekly_score_user_week"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    week_start: Mapped[date] = mapped_column(Date, nullable=False)

    score: Mapped[int] = mapped_column(Integer, nullable=False)

    # Components
    consistency: Mapped[int] = mapped_column(Integer, nullable=False)
    volume: Mapped[int] = mapped_column(Integer, nullable=False)
    intensity: Mapped[int] = mapped_column(Integer, nullable=False)
    recovery: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<WeeklyScore(user={self.user_id}, week={self.week_start}, score={self.score})>"
