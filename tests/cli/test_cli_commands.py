"""Tests for the kvindex CLI commands."""

import asyncio
import json
from typing import Optional
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from kvindex.backends.in_memory import InMemoryBackend
from kvindex.cli.commands import run_with_layer
from kvindex.cli.main import cli
from kvindex.config import StoreConfig
from kvindex.data_layer import SiteDataLayer
from kvindex.errors import BackendUnavailableError
from kvindex.observability.logging import correlation_id_var

from conftest import FakeClock


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def seeded_layer(clock: FakeClock) -> SiteDataLayer:
    """Data layer with two pages, three events and two uptime checks."""
    layer = SiteDataLayer(InMemoryBackend(), StoreConfig(backend="memory"), clock=clock)

    async def seed() -> None:
        await layer.create_page({"title": "Home", "status": "published"})
        clock.advance(seconds=1)
        await layer.create_page({"title": "Docs", "status": "draft"})
        await layer.track_event({"type": "pageview"})
        await layer.track_event({"type": "pageview"})
        await layer.track_event({"type": "signup"})
        await layer.record_uptime_check({"service": "api", "status": "up", "responseTime": 40})
        await layer.record_uptime_check({"service": "db", "status": "down", "responseTime": 60})

    asyncio.run(seed())
    return layer


def test_version(cli_runner: CliRunner) -> None:
    """--version should print the program version."""
    result = cli_runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "kvindex" in result.output


class TestStatsCommands:
    """Tests for `kvindex stats`."""

    def test_daily_json(self, cli_runner: CliRunner, seeded_layer: SiteDataLayer) -> None:
        """stats daily --format json should print the day's counts."""
        with patch("kvindex.cli.commands.open_data_layer", return_value=seeded_layer):
            result = cli_runner.invoke(cli, ["stats", "daily", "2026-10-19", "--format", "json"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "date": "2026-10-19",
            "counts": {"pageview": 2, "signup": 1},
        }

    def test_daily_table(self, cli_runner: CliRunner, seeded_layer: SiteDataLayer) -> None:
        """stats daily should render a table of counts."""
        with patch("kvindex.cli.commands.open_data_layer", return_value=seeded_layer):
            result = cli_runner.invoke(cli, ["stats", "daily", "2026-10-19"])

        assert result.exit_code == 0
        assert "pageview" in result.output
        assert "signup" in result.output

    def test_daily_empty(self, cli_runner: CliRunner, seeded_layer: SiteDataLayer) -> None:
        """A day without events should say so."""
        with patch("kvindex.cli.commands.open_data_layer", return_value=seeded_layer):
            result = cli_runner.invoke(cli, ["stats", "daily", "1999-01-01"])

        assert result.exit_code == 0
        assert "No events recorded" in result.output

    def test_uptime_json(self, cli_runner: CliRunner, seeded_layer: SiteDataLayer) -> None:
        """stats uptime --format json should print the window summary."""
        with patch("kvindex.cli.commands.open_data_layer", return_value=seeded_layer):
            result = cli_runner.invoke(cli, ["stats", "uptime", "--format", "json"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["total_count"] == 2
        assert payload["success_count"] == 1
        assert payload["failure_count"] == 1
        assert payload["average"] == 50.0
        assert payload["success_rate"] == 0.5
        assert "samples" not in payload

    def test_uptime_table_shows_success_rate(
        self, cli_runner: CliRunner, seeded_layer: SiteDataLayer
    ) -> None:
        """The uptime table should include the share of successful checks."""
        with patch("kvindex.cli.commands.open_data_layer", return_value=seeded_layer):
            result = cli_runner.invoke(cli, ["stats", "uptime"])

        assert result.exit_code == 0
        assert "Success rate" in result.output
        assert "50.0%" in result.output

    def test_uptime_backend_failure(self, cli_runner: CliRunner) -> None:
        """Backend errors should become a clean CLI error."""

        def broken() -> SiteDataLayer:
            raise BackendUnavailableError("zrangebyscore", "uptime:index", "refused")

        with patch("kvindex.cli.commands.open_data_layer", side_effect=broken):
            result = cli_runner.invoke(cli, ["stats", "uptime"])

        assert result.exit_code != 0
        assert "refused" in result.output


class TestPagesCommands:
    """Tests for `kvindex pages`."""

    def test_list_json(self, cli_runner: CliRunner, seeded_layer: SiteDataLayer) -> None:
        """pages list --format json should list newest pages first."""
        with patch("kvindex.cli.commands.open_data_layer", return_value=seeded_layer):
            result = cli_runner.invoke(cli, ["pages", "list", "--format", "json"])

        assert result.exit_code == 0
        titles = [page["title"] for page in json.loads(result.output)]
        assert titles == ["Docs", "Home"]

    def test_list_limit_table(self, cli_runner: CliRunner, seeded_layer: SiteDataLayer) -> None:
        """--limit should cap the rendered rows."""
        with patch("kvindex.cli.commands.open_data_layer", return_value=seeded_layer):
            result = cli_runner.invoke(cli, ["pages", "list", "--limit", "1"])

        assert result.exit_code == 0
        assert "Docs" in result.output
        assert "Home" not in result.output


def test_each_run_logs_under_its_own_correlation_id(seeded_layer: SiteDataLayer) -> None:
    """run_with_layer should set a fresh correlation ID per run and clear it after."""
    seen: list[Optional[str]] = []

    async def capture(layer: SiteDataLayer) -> None:
        seen.append(correlation_id_var.get())

    with patch("kvindex.cli.commands.open_data_layer", return_value=seeded_layer):
        run_with_layer(capture)
        run_with_layer(capture)

    assert None not in seen
    assert seen[0] != seen[1]
    assert correlation_id_var.get() is None
