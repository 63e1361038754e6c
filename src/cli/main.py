# SPDX-FileCopyrightText: 2026 Andrew Grimberg <tykeal@bardicgrove.org>
# SPDX-License-Identifier: Apache-2.0
"""PMPulse command line interface."""

import asyncio
import math
import sys
import time
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from typing import Any, TypeVar

import click
from rich.console import Console
from rich.table import Table
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import close_db, get_session, init_db
from src.services import seeders
from src.services.alert_service import AlertService, build_alert_message
from src.services.utility_account_service import UtilityAccountService
from src.services.utility_type_service import UtilityTypeService
from src.utils.logging import setup_logging

console = Console()

T = TypeVar("T")


def run_in_session(func: Callable[[AsyncSession], Awaitable[T]]) -> T:
    """Run a coroutine function with a committed database session."""

    async def _run() -> T:
        await init_db()
        try:
            async with get_session() as session:
                return await func(session)
        finally:
            await close_db()

    return asyncio.run(_run())


def _counts_table(title: str, rows: list[tuple[str, Any]]) -> Table:
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")
    for label, value in rows:
        table.add_row(label, str(value))
    return table


def _describe_range(date_from: date | None, date_to: date | None) -> str:
    if date_from and date_to:
        return f"{date_from} to {date_to}"
    if date_from:
        return f"from {date_from}"
    if date_to:
        return f"up to {date_to}"
    return "all time"


@click.group()
@click.version_option(version="0.1.0", prog_name="pmpulse")
def cli() -> None:
    """PMPulse back office maintenance commands."""
    setup_logging()


@cli.command("utilities:reprocess")
@click.option(
    "--from",
    "date_from",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Start date (YYYY-MM-DD) of expenses to reprocess",
)
@click.option(
    "--to",
    "date_to",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="End date (YYYY-MM-DD) of expenses to reprocess",
)
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def reprocess(date_from: datetime | None, date_to: datetime | None, force: bool) -> None:
    """Reclassify stored expenses with the current GL account mappings."""
    start = date_from.date() if date_from else None
    end = date_to.date() if date_to else None
    if start and end and start > end:
        raise click.BadParameter("--from must not be after --to", param_hint="--from")

    console.print(
        f"[cyan]Reprocessing utility expenses for: {_describe_range(start, end)}[/cyan]"
    )
    if not force and not click.confirm("Do you want to continue?"):
        console.print("Operation cancelled.")
        return

    started = time.monotonic()
    stats = run_in_session(
        lambda session: UtilityAccountService(session).reprocess(start, end)
    )
    duration = time.monotonic() - started

    console.print(
        _counts_table(
            "Reprocessing complete",
            [
                ("Processed", stats["processed"]),
                ("Reclassified", stats["reclassified"]),
                ("Classified", stats["classified"]),
                ("Cleared", stats["cleared"]),
                ("Unchanged", stats["unchanged"]),
                ("Errors", stats["errors"]),
            ],
        )
    )
    console.print(f"Duration: {duration:.2f} seconds")

    if stats["errors"] > 0:
        console.print("[yellow]Some records had errors. Check the logs for details.[/yellow]")
        sys.exit(1)


@cli.command("db:seed")
def seed() -> None:
    """Seed default settings, utility types, sample mappings and alerts."""
    counts = run_in_session(seeders.run_all)
    console.print(
        _counts_table(
            "Seeding complete",
            [(name.replace("_", " ").title(), count) for name, count in counts.items()],
        )
    )


@cli.command("utility-types:reset")
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def reset_utility_types(force: bool) -> None:
    """Remove unused custom utility types and restore the built-in ones."""
    if not force and not click.confirm(
        "Remove every unused custom utility type?"
    ):
        console.print("Operation cancelled.")
        return

    stats = run_in_session(
        lambda session: UtilityTypeService(session).reset_to_defaults()
    )
    console.print(
        f"[green]Utility types reset, {stats['removed']} custom type(s) removed, "
        f"{stats['restored']} restored[/green]"
    )

    if stats["errors"] > 0:
        for detail in stats["error_details"]:
            console.print(f"[yellow]{detail['key']}: {detail['error']}[/yellow]")
        sys.exit(1)


def _parse_metric(
    _ctx: click.Context, _param: click.Parameter, values: tuple[str, ...]
) -> dict[str, float]:
    metrics = {}
    for item in values:
        name, sep, raw = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected name=value, got {item!r}")
        try:
            number = float(raw)
        except ValueError as e:
            raise click.BadParameter(f"{raw!r} is not a number") from e
        if not math.isfinite(number):
            raise click.BadParameter(f"{raw!r} is not a finite number")
        metrics[name.strip()] = number
    return metrics


@cli.command("alerts:evaluate")
@click.option(
    "--metric",
    "metrics",
    multiple=True,
    callback=_parse_metric,
    help="Current metric value as name=value; repeatable",
)
def evaluate_alerts(metrics: dict[str, float]) -> None:
    """Evaluate alert rules against current metric values."""
    console.print("[cyan]Evaluating alert rules...[/cyan]")

    async def _evaluate(session: AsyncSession) -> list[tuple[str, str]]:
        triggered = await AlertService(session).evaluate(metrics)
        return [
            (rule.name, build_alert_message(rule, metrics[rule.metric]))
            for rule in triggered
        ]

    triggered = run_in_session(_evaluate)
    if not triggered:
        console.print("No alerts triggered.")
        return

    table = Table(title="Triggered alerts")
    table.add_column("Rule", style="yellow", no_wrap=True)
    table.add_column("Message")
    for name, message in triggered:
        table.add_row(name, message)
    console.print(table)


if __name__ == "__main__":
    cli()
