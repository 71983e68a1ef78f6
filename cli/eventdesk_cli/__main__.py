"""EventDesk CLI - Entry Point."""

import asyncio
import sys
from typing import Optional

import click
import httpx
from rich.console import Console
from rich.table import Table

from eventdesk_cli.api import ApiClient, ApiError
from eventdesk_cli.config import Settings, get_settings
from eventdesk_cli.logs import configure_logging

console = Console()


def _settings(ctx: click.Context) -> Settings:
    return ctx.obj["settings"]


def _launch(settings: Settings, event=None) -> None:
    from eventdesk_cli.app import run_app

    configure_logging(settings.log_level, log_file=settings.log_file, tui=True)
    run_app(event=event, settings=settings)


@click.group(invoke_without_command=True)
@click.option("--api-url", default=None, help="EventDesk server URL (default: from config)")
@click.pass_context
def main(ctx, api_url: Optional[str]):
    """EventDesk - Manage events from the terminal.

    Run without arguments to open the create-event form.
    """
    settings = get_settings()
    if api_url:
        settings = settings.model_copy(update={"api_base_url": api_url.rstrip("/")})
    ctx.obj = {"settings": settings}

    if ctx.invoked_subcommand is None:
        _launch(settings)


@main.command()
@click.pass_context
def new(ctx):
    """Open the create-event form."""
    _launch(_settings(ctx))


@main.command()
@click.argument("event_id", type=int)
@click.pass_context
def edit(ctx, event_id: int):
    """Open the edit form for an existing event.

    Example: eventdesk edit 12
    """
    settings = _settings(ctx)
    configure_logging(settings.log_level, log_file=settings.log_file)

    async def _load():
        async with ApiClient.from_settings(settings) as api:
            return await api.get_event(event_id)

    try:
        event = asyncio.run(_load())
    except (httpx.HTTPError, ApiError) as e:
        console.print(f"[red]Error:[/] Could not load event {event_id}: {e}")
        sys.exit(1)

    _launch(settings, event=event)


@main.command()
@click.argument("query")
@click.option("-n", "--limit", default=None, type=int, help="Number of venues to show")
@click.pass_context
def venues(ctx, query: str, limit: Optional[int]):
    """Search venues by name, city or state.

    Example: eventdesk venues "grand"
    """
    settings = _settings(ctx)
    configure_logging(settings.log_level, log_file=settings.log_file)
    limit = limit or settings.search_limit

    async def _search():
        async with ApiClient.from_settings(settings) as api:
            return await api.search_venues(query, limit=limit)

    try:
        results = asyncio.run(_search())
    except (httpx.HTTPError, ApiError) as e:
        console.print(f"[red]Error:[/] Venue search failed: {e}")
        sys.exit(1)

    if not results:
        console.print(f"[yellow]No venues found for:[/] {query}")
        return

    table = Table(title=f'Venues matching "{query}"')
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Location")

    for venue in results:
        table.add_row(str(venue.id), venue.name, venue.location or "-")

    console.print(table)


if __name__ == "__main__":
    main()
