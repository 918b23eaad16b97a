"""Rating model - one ladder row per user."""

from datetime import date

from sqlalchemy import CheckConstraint, Date, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin
from .enums import Rank

DEFAULT_MMR = 1000
DEFAULT_LP = 0
DEFAULT_DIVISION = 3


class Rating(Base, TimestampMixin):
    """A user's skill rating and ladder position.

    rank and division are derived from lp and rewritten together with it.
    base_mmr/base_lp hold the rating as it stood before the delta of
    scored_week_start was applied, so a week can be re-scored without
    compounding its delta.
    """

    __tablename__ = "ratings"
    __table_args__ = (CheckConstraint("lp >= 0", name="ck_rating_lp_non_negative"),)

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)

    mmr: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_MMR)
    lp: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_LP)
    rank: Mapped[Rank] = mapped_column(
        SQLEnum(Rank, name="rank_tier"), nullable=False, default=Rank.UNTRAINED
    )
    division: Mapped[int | None] = mapped_column(
        Integer, nullable=True, default=DEFAULT_DIVISION
    )

    # Single-application bookkeeping for the last scored week
    scored_week_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    base_mmr: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_MMR)
    base_lp: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_LP)

    # Optimistic concurrency counter
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return (
            f"<Rating(user={self.user_id}, lp={self.lp}, mmr={self.mmr}, "
            f"rank={self.rank.value}, division={self.division})>"
        )
