"""Command-line entry point.

Usage:
    python -m ironcore score --user-id USER --activity export.json [--week YYYY-MM-DD]
    python -m ironcore tiers
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ironcore.activity import JsonActivitySource
from ironcore.config import get_settings
from ironcore.db.engine import create_tables, get_engine, get_session_factory
from ironcore.errors import RankingError
from ironcore.ranking import RANK_TIERS
from ironcore.services import RankingService


def zone_arg(value: str) -> ZoneInfo:
    """Parse an IANA time zone name."""
    try:
        return ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise argparse.ArgumentTypeError(f"unknown time zone {value!r}") from exc


def create_parser() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="ironcore",
        description="Iron Core weekly scoring and ladder",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    score = subparsers.add_parser("score", help="Score a week and update the user's rating")
    score.add_argument("--user-id", required=True, help="User to score")
    score.add_argument("--activity", required=True, help="Path to a JSON health-data export")
    score.add_argument(
        "--week",
        type=date.fromisoformat,
        default=None,
        help="Week start date (default: current week)",
    )
    score.add_argument("--timezone", type=zone_arg, default=None, help="IANA time zone of the user")

    subparsers.add_parser("tiers", help="List rank tiers")
    return parser


def print_tiers() -> None:
    for tier in RANK_TIERS:
        upper = tier.max_lp if tier.max_lp is not None else "+"
        print(f"{tier.display_name:<12} {tier.min_lp:>5} - {upper:<5} {tier.description}")


async def score_week(args: argparse.Namespace) -> int:
    """Run one weekly refresh and print the result."""
    engine = get_engine()
    await create_tables(engine)
    session_factory = get_session_factory(engine)

    try:
        async with session_factory() as session:
            service = RankingService(session, JsonActivitySource(args.activity))
            try:
                result = await service.refresh_week(
                    args.user_id, week_start=args.week, tz=args.timezone
                )
            except RankingError as exc:
                logging.error("Weekly scoring failed: %s", exc)
                if exc.last_known_rating is not None:
                    rating = exc.last_known_rating
                    print(f"Current rating: {rating.rank.value} {rating.division or ''} ({rating.lp} LP)")
                return 1
    finally:
        await engine.dispose()

    components = result.weekly_score.components
    rating = result.rating
    print(f"Week of {result.weekly_score.week_start}: {components.total}/100")
    print(
        f"  consistency {components.consistency}, volume {components.volume}, "
        f"intensity {components.intensity}, recovery {components.recovery}"
    )
    print(
        f"Rating: {rating.rank.value} {rating.division or ''} "
        f"{rating.lp} LP ({result.delta_lp:+d}), MMR {rating.mmr}"
    )
    return 0


async def main(argv: list[str] | None = None) -> int:
    """Parse arguments and dispatch."""
    args = create_parser().parse_args(argv)

    if args.command == "tiers":
        print_tiers()
        return 0

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    return await score_week(args)


def run() -> None:
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    run()
