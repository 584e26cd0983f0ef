"""Tests for the discord_archiver.ingest command line."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

from discord_archiver.ingest.__main__ import build_parser, main, option_overrides


# ---------------------------------------------------------------------------
# TestCli
# ---------------------------------------------------------------------------


class TestCli:
    """Tests for argument parsing in ingest/__main__.py."""

    def test_only_given_options_override(self):
        args = build_parser().parse_args(["--skip", "500", "--guild-id", "123"])

        assert option_overrides(args) == {"skip": 500}
        assert args.guild_id == "123"
        assert args.members is None

    def test_members_flag(self):
        args = build_parser().parse_args(["--members", "--last-id", "999"])

        assert args.members is True
        assert option_overrides(args) == {"last_id": "999"}

    @patch("discord_archiver.ingest.__main__.setup_logging")
    @patch("discord_archiver.ingest.__main__.run_archive", new_callable=AsyncMock)
    def test_main_passes_targets_and_overrides(self, mock_run, mock_setup):
        main(["--config", "c.json", "--channel-id", "456", "--limit", "20"])

        mock_run.assert_awaited_once_with(
            config_path="c.json",
            guild_id=None,
            channel_id="456",
            members=None,
            overrides={"limit": 20},
        )
        assert mock_setup.call_args.kwargs["debug_third_party"] is False
