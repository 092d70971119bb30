from __future__ import annotations

import asyncio
import json
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Optional

import typer
from loguru import logger
from rich import print

from .config import Settings
from .errors import TennisImportError, troubleshooting
from .importer import TennisImporter
from .models import DateWindow
from .storage import init_db, recent_matches

app = typer.Typer(add_completion=False)


def _setup(db: Optional[Path], verbose: bool) -> Settings:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")
    settings = Settings.from_env()
    if db is not None:
        settings = replace(settings, db_path=str(db))
    return settings


def _fail(e: TennisImportError) -> None:
    headline, hints = troubleshooting(e.kind)
    print(f"[red]{headline}[/]: {e}")
    for hint in hints:
        print(f"- {hint}")
    raise typer.Exit(code=1)


def _run_import(settings: Settings, window: DateWindow, limit: int) -> None:
    async def runner():
        await init_db(settings.db_path)
        async with TennisImporter.from_settings(settings) as importer:
            return await importer.import_matches(window, limit)

    try:
        result = asyncio.run(runner())
    except TennisImportError as e:
        _fail(e)
        return
    print(
        f"[green]{result.imported} imported[/], {result.skipped} skipped, "
        f"[red]{result.errors} errors[/] ({result.requests_used} requests, "
        f"{result.quota_remaining} left)"
    )
    for ex in result.examples:
        print(f"- {ex}")


DbOption = typer.Option(None, help="SQLite database path (defaults to TENNIS_DB_PATH)")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Debug logging")


@app.command("init-db")
def init_db_cmd(db: Optional[Path] = DbOption, verbose: bool = VerboseOption):
    """Create the database schema."""
    settings = _setup(db, verbose)
    asyncio.run(init_db(settings.db_path))
    print(f"[green]Schema ready[/] in {settings.db_path}")


@app.command("test-connection")
def test_connection(db: Optional[Path] = DbOption, verbose: bool = VerboseOption):
    """Check that the tennis API answers with match data."""
    settings = _setup(db, verbose)

    async def runner():
        async with TennisImporter.from_settings(settings) as importer:
            return await importer.test_connection()

    report = asyncio.run(runner())
    colour = "green" if report.success else "red"
    print(f"[{colour}]{report.message}[/]")
    print(report.sample_data)
    if not report.success:
        raise typer.Exit(code=1)


@app.command("import-atp")
def import_atp(
    start: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="First day, YYYY-MM-DD"),
    end: Optional[datetime] = typer.Option(None, formats=["%Y-%m-%d"], help="Day after the last one, YYYY-MM-DD"),
    days: int = typer.Option(31, min=1, help="Window size when no start/end is given"),
    limit: int = typer.Option(50, min=1, max=150, help="Max matches to import"),
    db: Optional[Path] = DbOption,
    verbose: bool = VerboseOption,
):
    """Import recent official ATP matches."""
    settings = _setup(db, verbose)
    if start and end:
        window = DateWindow(start.date(), end.date())
    elif start or end:
        raise typer.BadParameter("--start and --end go together")
    else:
        window = DateWindow.last_days(days)
    _run_import(settings, window, limit)


@app.command("import-july-2025")
def import_july_2025(db: Optional[Path] = DbOption, verbose: bool = VerboseOption):
    """Import official ATP matches played in July 2025."""
    settings = _setup(db, verbose)
    _run_import(settings, DateWindow.july_2025(), 50)


@app.command()
def quota(db: Optional[Path] = DbOption, verbose: bool = VerboseOption):
    """Show the request quota."""
    settings = _setup(db, verbose)

    async def runner():
        async with TennisImporter.from_settings(settings) as importer:
            return await importer.quota_status()

    status = asyncio.run(runner())
    print(status.to_dict())


@app.command()
def debug(db: Optional[Path] = DbOption, verbose: bool = VerboseOption):
    """Dump the raw provider structure (uses two requests)."""
    settings = _setup(db, verbose)

    async def runner():
        async with TennisImporter.from_settings(settings) as importer:
            return await importer.debug_api_response()

    try:
        out = asyncio.run(runner())
    except TennisImportError as e:
        _fail(e)
        return
    print(json.dumps(out, indent=2, ensure_ascii=False, default=str))


@app.command()
def recent(limit: int = typer.Option(20, min=1), db: Optional[Path] = DbOption, verbose: bool = VerboseOption):
    """List the latest imported tennis matches."""
    settings = _setup(db, verbose)
    rows = asyncio.run(recent_matches(settings.db_path, limit))
    if not rows:
        print("[yellow]No tennis match stored yet[/]")
        return
    for r in rows:
        print(
            f"[bold]{r['date'][:10]}[/] {r['home_team']} {r['home_score']}-{r['away_score']} "
            f"{r['away_team']} - {r['competition']} ({r['details']['tournament']['level']})"
        )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(5000, help="Bind port"),
    db: Optional[Path] = DbOption,
    verbose: bool = VerboseOption,
):
    """Run the operator HTTP endpoint."""
    from .api import create_app

    settings = _setup(db, verbose)
    asyncio.run(init_db(settings.db_path))
    create_app(settings).run(host=host, port=port)


if __name__ == "__main__":
    app()  # pragma: no cover
