"""Typer CLI for SteamHistory.

Each batch command runs one operation to completion and is meant to be
triggered by cron or a systemd timer.
"""

import asyncio
from typing import Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console

from steamhistory.common.logging import get_logger, setup_logging
from steamhistory.common.pool import BatchResult

app = typer.Typer(name="steamhistory", help="SteamHistory: Steam concurrent-user history collector")
console = Console()
logger = get_logger("cli")

T = TypeVar("T")


def _run(operation: Callable[[], Awaitable[T]]) -> T:
    """Run one core operation with the database and Steam client set up."""
    from steamhistory.common.config import get_settings
    from steamhistory.deps import get_db, get_steam_client

    setup_logging(get_settings().log_level)

    async def main() -> T:
        db = get_db()
        await db.init()
        try:
            await db.create_all()
            return await operation()
        finally:
            await get_steam_client().close()
            await db.close()

    try:
        return asyncio.run(main())
    except Exception as e:
        logger.exception("Operation failed")
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _report(result: BatchResult) -> None:
    console.print(
        f"[bold green]{result.operation}[/bold green] — "
        f"{result.succeeded} ok, {result.failed} failed of {result.total}"
    )
    if result.changed:
        console.print(f"  Changed: {len(result.changed)} apps")


@app.command("record-history")
def record_history():
    """Record the current number of users of every usable app."""
    from steamhistory.deps import get_tracker_service

    console.print("Recording app usage...")
    _report(_run(lambda: get_tracker_service().record_history()))


@app.command("update-metadata")
def update_metadata():
    """Refresh the app catalog from Steam."""
    from steamhistory.deps import get_tracker_service

    created, renamed = _run(lambda: get_tracker_service().update_metadata())
    console.print(f"[bold green]Catalog updated[/bold green] — {created} new, {renamed} renamed")


@app.command("detect-unusable")
def detect_unusable():
    """Mark apps without players as unusable and drop their history."""
    from steamhistory.deps import get_analysis_service

    _report(_run(lambda: get_analysis_service().detect_unusable_apps()))


@app.command("detect-usable")
def detect_usable():
    """Mark unusable apps that have players again as usable."""
    from steamhistory.deps import get_analysis_service

    _report(_run(lambda: get_analysis_service().detect_usable_apps()))


@app.command()
def stats():
    """Show catalog counters."""
    from steamhistory.deps import get_analysis_service

    async def counts() -> tuple[int, int, int]:
        svc = get_analysis_service()
        return (
            await svc.count_all_apps(),
            await svc.count_usable_apps(),
            await svc.count_unusable_apps(),
        )

    total, usable, unusable = _run(counts)
    console.print(f"[bold]{total}[/bold] apps: {usable} usable, {unusable} unusable")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind host (default: STEAMHISTORY_HOST)"),
    port: Optional[int] = typer.Option(None, help="Bind port (default: STEAMHISTORY_PORT)"),
):
    """Start the SteamHistory API server."""
    import uvicorn
    from steamhistory.app import create_app
    from steamhistory.common.config import get_settings

    settings = get_settings()
    host = host or settings.host
    port = port or settings.port

    console.print(f"[bold green]Starting SteamHistory on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    app()
