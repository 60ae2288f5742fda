"""CLI for Stall Sync.

Commands:
    sync                 - Run one reconciliation pass
    runs                 - List recent sync runs
    show-stall <slug>    - Show a stall and its locations
    init-db              - Create tables if they don't exist
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stall_sync.db import async_session_factory, init_db
from stall_sync.models import StallStatus, SyncMode, SyncStatus
from stall_sync.sync.repository import StallRepository
from stall_sync.sync.runner import build_default_engine
from stall_sync.sync.summary import SyncSummary

app = typer.Typer(
    name="stall-sync",
    help="Stall Sync: reconcile food-stall sources into one canonical catalog",
    no_args_is_help=True,
)
console = Console()

STATUS_STYLES = {
    SyncStatus.SUCCESS: "green",
    SyncStatus.GUARDED: "yellow",
    SyncStatus.FAILED: "red",
}


def run_async(coro):
    """Run an async coroutine in sync context."""
    return asyncio.run(coro)


@app.callback()
def main_options(
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log debug output")
    ] = False,
):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def print_summary(summary: SyncSummary) -> None:
    style = STATUS_STYLES.get(summary.status, "white")
    changes = summary.change_stats
    panel_content = [
        f"[bold]Run:[/bold] {summary.run_id}",
        f"[bold]Status:[/bold] [{style}]{summary.status.value}[/{style}]",
        f"[bold]Mode:[/bold] {summary.mode.value}",
        f"[bold]Trigger:[/bold] {summary.trigger_source}",
        f"[bold]Records / catalog / canonical:[/bold] "
        f"{summary.source_stats.records} / {summary.source_stats.catalog} / "
        f"{summary.source_stats.canonical}",
        f"[bold]Changes:[/bold] +{changes.new} ~{changes.updated} -{changes.closed} "
        f"={changes.unchanged}",
        f"[bold]Closure ratio:[/bold] {changes.closure_ratio:.2f} "
        f"(max {changes.max_closure_ratio:.2f}, {changes.existing_active_count} active before)",
    ]
    if summary.source_stats.used_static_seed:
        panel_content.append("[yellow]Static seed used[/yellow]")
    if summary.mode is SyncMode.APPLY:
        applied = summary.apply_stats
        panel_content.append(
            f"[bold]Applied:[/bold] {applied.upserted_stalls} stalls, "
            f"{applied.upserted_locations} locations, {applied.closed_stalls} closed"
        )
    if summary.error:
        panel_content.append(f"[red]Error:[/red] {summary.error}")

    console.print(Panel("\n".join(panel_content), title="Stall Sync"))
    for warning in summary.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


@app.command()
def sync(
    mode: Annotated[
        SyncMode | None, typer.Option(help="dry-run or apply (default from STALL_SYNC_MODE)")
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", help="Apply even if the closure guardrail trips")
    ] = False,
    records: Annotated[
        str | None, typer.Option(help="Path to the source records JSON file")
    ] = None,
    catalog: Annotated[
        str | None, typer.Option(help="Path to the media catalog JSON file")
    ] = None,
    trigger: Annotated[str, typer.Option(help="Trigger label stored on the run")] = "cli",
):
    """Run one sync pass and print its summary.

    Exits with code 1 when the run is guarded or failed.
    """
    async def _sync() -> SyncSummary:
        await init_db()
        engine = build_default_engine(records_path=records, catalog_path=catalog)
        return await engine.run(trigger, mode=mode, force_apply=force or None)

    summary = run_async(_sync())
    print_summary(summary)
    if summary.status is not SyncStatus.SUCCESS:
        raise typer.Exit(1)


@app.command()
def runs(
    limit: Annotated[int, typer.Option(help="Maximum number of runs to show")] = 20,
):
    """List recent sync runs, newest first."""
    async def _runs():
        await init_db()
        async with async_session_factory() as session:
            sync_runs = await StallRepository(session).list_sync_runs(limit=limit)

        if not sync_runs:
            console.print("[yellow]No sync runs recorded.[/yellow]")
            return

        table = Table(title="Sync Runs")
        table.add_column("Run", style="cyan")
        table.add_column("Started")
        table.add_column("Trigger")
        table.add_column("Mode")
        table.add_column("Status")
        table.add_column("Changes", justify="right")

        for run in sync_runs:
            style = STATUS_STYLES.get(run.status, "white")
            changes = run.summary.get("change_stats", {})
            table.add_row(
                run.id,
                str(run.started_at),
                run.trigger_source,
                run.mode.value,
                f"[{style}]{run.status.value}[/{style}]",
                f"+{changes.get('new', 0)} ~{changes.get('updated', 0)} -{changes.get('closed', 0)}",
            )
        console.print(table)

    run_async(_runs())


@app.command("show-stall")
def show_stall(
    slug: Annotated[str, typer.Argument(help="Stall slug")],
):
    """Show details for a stall."""
    async def _show():
        await init_db()
        async with async_session_factory() as session:
            stall = await StallRepository(session).get_stall_by_slug(slug)

            if not stall:
                console.print(f"[red]Error:[/red] Stall not found: {slug}")
                raise typer.Exit(1)

            status_style = "green" if stall.status == StallStatus.ACTIVE else "red"
            panel_content = [
                f"[bold]ID:[/bold] {stall.id}",
                f"[bold]Name:[/bold] {stall.name}",
                f"[bold]Status:[/bold] [{status_style}]{stall.status.value}[/{status_style}]",
                f"[bold]Cuisine:[/bold] {stall.cuisine_label or stall.cuisine}",
                f"[bold]Dish:[/bold] {stall.dish_name} (${stall.price:.2f})",
                f"[bold]Opening:[/bold] {stall.opening_times}",
                f"[bold]Time Categories:[/bold] {', '.join(stall.time_categories)}",
                f"[bold]Rank:[/bold] {stall.rank_score}",
            ]
            if stall.media_url:
                panel_content.append(f"[bold]Video:[/bold] {stall.media_title} {stall.media_url}")
            if stall.awards:
                panel_content.append(f"[bold]Awards:[/bold] {', '.join(stall.awards)}")
            panel_content.append(f"[bold]Last Synced:[/bold] {stall.last_synced_at}")
            console.print(Panel("\n".join(panel_content), title=f"Stall: {slug}"))

            if stall.locations:
                table = Table(title="Locations")
                table.add_column("Address")
                table.add_column("Primary")
                table.add_column("Active")
                for location in stall.locations:
                    table.add_row(
                        location.address,
                        "yes" if location.is_primary else "",
                        "yes" if location.is_active else "[dim]no[/dim]",
                    )
                console.print(table)

    run_async(_show())


@app.command("init-db")
def init_db_command():
    """Initialize the database schema (creates tables if they don't exist)."""
    async def _init():
        await init_db()
        console.print("[green]Database initialized successfully.[/green]")

    run_async(_init())


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
