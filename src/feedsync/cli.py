"""CLI entry point."""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from feedsync.core.config import Settings, get_settings
from feedsync.core.exceptions import ConfigurationError, StorageError
from feedsync.core.feedsync import FeedSync, MergeResult
from feedsync.core.logging import configure_logging

app = typer.Typer(
    name="feedsync",
    help="Scheduled RSS ingestion into a local store",
    no_args_is_help=True,
)
console = Console()


def _settings(**overrides: object) -> Settings:
    values = {k: v for k, v in overrides.items() if v is not None}
    try:
        settings = get_settings(**values)
    except ConfigurationError as e:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(e))}")
        raise typer.Exit(code=2) from e
    configure_logging(settings.log_level, settings.log_format)
    return settings


def _report(result: MergeResult) -> None:
    stamp = f"[dim]{result.merged_at:%H:%M:%S}[/dim]"
    if result.ok:
        console.print(f"{stamp} [green]Merged[/green] {result.channels} channels, {result.entries} entries")
    else:
        console.print(f"{stamp} [yellow]Batch dropped:[/yellow] {escape(result.error or '')}")


async def _open(settings: Settings) -> FeedSync:
    app_ = FeedSync.create(settings)
    try:
        await app_.initialize()
    except StorageError as e:
        await app_.close()
        path = escape(str(settings.database_path))
        console.print(f"[red]Cannot open store[/red] {path}: {escape(str(e))}")
        raise typer.Exit(code=1) from e
    return app_


@app.command()
def run(
    database: str = typer.Option(None, "--database", "-d", help="SQLite database path"),
    interval: float = typer.Option(None, "--interval", help="Seconds between syncs"),
) -> None:
    """Sync on a schedule until interrupted."""
    settings = _settings(database_path=database, sync_interval=interval)

    async def main() -> None:
        feedsync = await _open(settings)
        console.print(
            f"Syncing {len(settings.sources)} sources every {settings.sync_interval:g}s "
            f"into {settings.database_path}"
        )
        try:
            await feedsync.run(on_merge=_report)
        finally:
            await feedsync.close()

    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        console.print("Stopped")


@app.command()
def sync(
    database: str = typer.Option(None, "--database", "-d", help="SQLite database path"),
) -> None:
    """Fetch every source once and store the results."""
    settings = _settings(database_path=database)

    async def main() -> None:
        feedsync = await _open(settings)
        try:
            result = await feedsync.sync_now()
        finally:
            await feedsync.close()
        if not result.ok:
            console.print(f"[yellow]Nothing stored:[/yellow] {escape(result.error or '')}")
            raise typer.Exit(code=1)
        console.print(f"Stored {result.entries} entries from {result.channels} channels")

    asyncio.run(main())


@app.command()
def channels(
    database: str = typer.Option(None, "--database", "-d", help="SQLite database path"),
) -> None:
    """List stored channels."""
    settings = _settings(database_path=database)

    async def main() -> None:
        feedsync = await _open(settings)
        try:
            stats = await feedsync.storage.get_stats()
            table = Table("Title", "URL", "Entries")
            for channel in feedsync.channels:
                table.add_row(
                    escape(channel.title) or "[dim](untitled)[/dim]",
                    escape(channel.url),
                    str(stats["by_channel"].get(channel.id, 0)),
                )
            console.print(table)
        finally:
            await feedsync.close()

    asyncio.run(main())


@app.command()
def entries(
    database: str = typer.Option(None, "--database", "-d", help="SQLite database path"),
    channel: str = typer.Option(None, "--channel", "-c", help="Channel URL; all channels if omitted"),
    pages: int = typer.Option(1, "--pages", "-p", min=1, help="Number of pages to load"),
) -> None:
    """Show the most recent entries."""
    settings = _settings(database_path=database)

    async def main() -> None:
        feedsync = await _open(settings)
        try:
            view = await feedsync.open_view(channel)
            for _ in range(pages - 1):
                if view.all_loaded:
                    break
                view = await feedsync.load_more()
            total = await feedsync.storage.count_entries(channel)
        finally:
            await feedsync.close()

        table = Table("Published", "Title", "Link")
        for entry in view.entries:
            table.add_row(
                entry.published.strftime("%d %b %Y  %H:%M"),
                escape(entry.title),
                escape(entry.link),
            )
        console.print(table)
        if not view.entries:
            console.print("No articles yet. Run [bold]feedsync sync[/bold].")
        elif view.all_loaded:
            console.print(f"All {view.loaded_count} articles loaded")
        else:
            console.print(f"{view.loaded_count} of {total} loaded")

    asyncio.run(main())


@app.command()
def version() -> None:
    """Show version."""
    from feedsync import __version__

    console.print(f"feedsync {__version__}")


if __name__ == "__main__":
    app()
