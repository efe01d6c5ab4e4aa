"""Unit tests for CLI argument parsing."""
from __future__ import annotations

import pytest

from lending_hub.cli import build_parser
from lending_hub.registry import Protocol
from lending_hub.services import ALL


class TestBuildParser:
    def test_markets_command(self) -> None:
        args = build_parser().parse_args(["markets"])
        assert args.command == "markets"

    def test_positions_default_address(self) -> None:
        args = build_parser().parse_args(["positions"])
        assert args.command == "positions"
        assert args.address is None

    def test_positions_with_address(self) -> None:
        args = build_parser().parse_args(["positions", "0xABC"])
        assert args.address == "0xABC"

    def test_claim_protocol_is_case_insensitive(self) -> None:
        args = build_parser().parse_args(["claim", "suilend"])
        assert args.target is Protocol.SUILEND
        assert args.no_swap is False
        assert args.swap_target is None

    def test_claim_all_with_options(self) -> None:
        args = build_parser().parse_args(["claim", "all", "--no-swap", "--target", "SUI"])
        assert args.target == ALL
        assert args.no_swap is True
        assert args.swap_target == "SUI"

    def test_claim_unknown_protocol_exits(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args(["claim", "compound"])

    def test_preview_command(self) -> None:
        args = build_parser().parse_args(["preview", "AlphaLend"])
        assert args.target is Protocol.ALPHALEND

    def test_watch_default_interval(self) -> None:
        args = build_parser().parse_args(["watch"])
        assert args.interval == 60

    def test_watch_custom_interval(self) -> None:
        args = build_parser().parse_args(["watch", "10"])
        assert args.interval == 10

    def test_config_flag(self) -> None:
        args = build_parser().parse_args(["--config", "/tmp/c.yaml", "markets"])
        assert args.config == "/tmp/c.yaml"

    def test_log_level_flag(self) -> None:
        args = build_parser().parse_args(["--log-level", "DEBUG", "markets"])
        assert args.log_level == "DEBUG"

    def test_no_command(self) -> None:
        args = build_parser().parse_args([])
        assert args.command is None
