"""Read-only commands over the site data layer.

The backend is chosen from KVINDEX_* environment variables (see
``kvindex.config.load_config_from_env``).
"""

import asyncio
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar

import click
from rich.console import Console
from rich.table import Table

from kvindex.backends import open_backend
from kvindex.config import load_config_from_env
from kvindex.data_layer import SiteDataLayer
from kvindex.errors import KVIndexError
from kvindex.observability.logging import (
    clear_correlation_id,
    set_correlation_id,
    setup_logging,
)

console = Console()

T = TypeVar("T")

FORMAT_OPTION = click.option(
    "--format",
    "output_format",
    type=click.Choice(["table", "json"], case_sensitive=False),
    default="table",
    help="Output format (table or json)",
)


def open_data_layer() -> SiteDataLayer:
    """Open a data layer on the backend configured in the environment."""
    config = load_config_from_env()
    setup_logging(log_level=config.log_level, json_logs=config.json_logs)
    return SiteDataLayer(open_backend(config), config)


def run_with_layer(action: Callable[[SiteDataLayer], Awaitable[T]]) -> T:
    """Run ``action`` against a freshly opened data layer, then close it.

    Each run logs under its own correlation ID.

    Raises:
        click.ClickException: If the layer reports an error
    """

    async def _run() -> T:
        set_correlation_id(str(uuid.uuid4()))
        try:
            layer = open_data_layer()
            try:
                return await action(layer)
            finally:
                await layer.close()
        finally:
            clear_correlation_id()

    try:
        return asyncio.run(_run())
    except KVIndexError as exc:
        raise click.ClickException(exc.message) from exc


def _emit_json(payload: Any) -> None:
    click.echo(json.dumps(payload, indent=2, default=str))


@click.group(name="stats")
def stats() -> None:
    """Show event counters and uptime statistics."""
    pass


@stats.command(name="daily")
@click.argument("day", required=False)
@FORMAT_OPTION
def daily(day: Optional[str], output_format: str) -> None:
    """Show per-type event counts for DAY (YYYY-MM-DD, default today).

    Examples:
        kvindex stats daily
        kvindex stats daily 2026-10-19 --format json
    """
    bucket = day or datetime.now(timezone.utc).date().isoformat()
    counts = run_with_layer(lambda layer: layer.get_daily_stats(bucket))

    if output_format == "json":
        _emit_json({"date": bucket, "counts": counts})
        return

    if not counts:
        console.print(f"[yellow]No events recorded for {bucket}[/yellow]")
        return

    table = Table(title=f"Events on {bucket}")
    table.add_column("Type", style="cyan")
    table.add_column("Count", justify="right")
    for event_type, count in sorted(counts.items()):
        table.add_row(event_type, str(count))
    console.print(table)


@stats.command(name="uptime")
@click.option("--hours", type=float, default=24.0, help="Window size in hours")
@FORMAT_OPTION
def uptime(hours: float, output_format: str) -> None:
    """Summarize uptime checks over the last N hours.

    Examples:
        kvindex stats uptime
        kvindex stats uptime --hours 1 --format json
    """
    summary = run_with_layer(lambda layer: layer.get_uptime_stats(hours))

    if output_format == "json":
        payload = summary.model_dump(mode="json", exclude={"samples"})
        payload["success_rate"] = summary.success_rate
        _emit_json(payload)
        return

    if not summary.has_data:
        console.print(f"[yellow]No uptime checks in the last {hours:g} hours[/yellow]")
        return

    table = Table(title=f"Uptime, last {hours:g} hours")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Checks", str(summary.total_count))
    table.add_row("Up", str(summary.success_count))
    table.add_row("Down", str(summary.failure_count))
    rate = "n/a" if summary.success_rate is None else f"{summary.success_rate:.1%}"
    table.add_row("Success rate", rate)
    average = "n/a" if summary.average is None else f"{summary.average:.1f} ms"
    table.add_row("Avg response", average)
    for service, count in sorted(summary.per_category_counts.items()):
        table.add_row(f"  {service}", str(count))
    console.print(table)


@click.group(name="pages")
def pages() -> None:
    """Inspect stored pages."""
    pass


@pages.command(name="list")
@click.option("--limit", type=int, default=None, help="Maximum number of pages to display")
@FORMAT_OPTION
def list_pages(limit: Optional[int], output_format: str) -> None:
    """List the most recently created pages.

    Examples:
        kvindex pages list
        kvindex pages list --limit 10 --format json
    """
    rows = run_with_layer(lambda layer: layer.list_pages(limit))

    if output_format == "json":
        _emit_json(rows)
        return

    if not rows:
        console.print("[yellow]No pages found[/yellow]")
        return

    table = Table(title="Pages")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("Created")
    for row in rows:
        table.add_row(
            row["id"], row.get("title", ""), row.get("status", ""), row.get("createdAt", "")
        )
    console.print(table)
