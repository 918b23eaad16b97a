"""Tests for command-line argument parsing."""

from datetime import date
from zoneinfo import ZoneInfo

import pytest

from ironcore.__main__ import create_parser


class TestScoreArguments:
    """Tests for the score subcommand arguments."""

    def test_parses_week_and_timezone(self):
        args = create_parser().parse_args(
            ["score", "--user-id", "u1", "--activity", "export.json", "--week", "2026-10-12", "--timezone", "Europe/Berlin"]
        )

        assert args.week == date(2026, 10, 12)
        assert args.timezone == ZoneInfo("Europe/Berlin")

    def test_unknown_timezone_is_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(
                ["score", "--user-id", "u1", "--activity", "export.json", "--timezone", "Nowhere/Atlantis"]
            )

        assert exc_info.value.code == 2
        assert "unknown time zone" in capsys.readouterr().err
