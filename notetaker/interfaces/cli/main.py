"""
CLI Main - Typer-based command-line interface.

Usage:
    notetaker serve
    notetaker init
    notetaker purge-otps
    notetaker users
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

app = typer.Typer(
    name="notetaker",
    help="NoteTaker - Notes with email one-time-code and Google sign-in",
    add_completion=False,
)
console = Console()


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    from notetaker.config import get_settings

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting NoteTaker API server[/green]")
    console.print(f"[dim]http://{host}:{port}  ({settings.environment})[/dim]\n")

    uvicorn.run(
        "notetaker.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload or settings.api_debug,
        factory=True,
    )


@app.command()
def init(
    db_path: Path | None = typer.Option(None, "--db", "-d", help="SQLite database path"),
) -> None:
    """Create the database and its tables."""
    asyncio.run(_init_async(db_path))


async def _init_async(db_path: Path | None) -> None:
    from notetaker.adapters.sqlite import Database
    from notetaker.config import get_settings

    path = db_path or get_settings().db_path

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Initializing SQLite database...", total=None)
        db = Database(path)
        try:
            await db.initialize()
        finally:
            await db.close()

    console.print("\n[green]Initialization complete![/green]")
    console.print(f"[dim]Database: {path}[/dim]")


@app.command("purge-otps")
def purge_otps(
    db_path: Path | None = typer.Option(None, "--db", "-d", help="SQLite database path"),
) -> None:
    """Clear one-time codes that have expired."""
    cleared = asyncio.run(_purge_async(db_path))
    console.print(f"[green]Cleared {cleared} expired OTP(s)[/green]")


async def _purge_async(db_path: Path | None) -> int:
    from datetime import datetime, timezone

    from notetaker.adapters.sqlite import Database, SQLiteUserStore
    from notetaker.config import get_settings

    db = Database(db_path or get_settings().db_path)
    try:
        await db.initialize()
        return await SQLiteUserStore(db).clear_expired_otps(datetime.now(timezone.utc))
    finally:
        await db.close()


@app.command()
def users(
    email: str = typer.Argument(..., help="Email address to look up"),
    db_path: Path | None = typer.Option(None, "--db", "-d", help="SQLite database path"),
) -> None:
    """Show the account registered for an email."""
    user = asyncio.run(_lookup_async(email, db_path))
    if user is None:
        console.print(f"[yellow]No account for {email}[/yellow]")
        raise typer.Exit(1)

    table = Table(title=user.email)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    for key, value in user.public().items():
        table.add_row(key, "" if value is None else str(value))
    console.print(table)


async def _lookup_async(email: str, db_path: Path | None):
    from notetaker.adapters.sqlite import Database, SQLiteUserStore
    from notetaker.config import get_settings

    db = Database(db_path or get_settings().db_path)
    try:
        await db.initialize()
        return await SQLiteUserStore(db).get_by_email(email)
    finally:
        await db.close()


@app.command()
def version() -> None:
    """Show version information."""
    from notetaker import __version__

    console.print(f"NoteTaker v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
