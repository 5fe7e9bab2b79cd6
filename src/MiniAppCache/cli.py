"""Command-line access to the descriptor and resource cache.

Commands:
  - descriptor: Resolve an application descriptor and print it as JSON
  - resource: Resolve a resource URL to a cached file path
  - records: List tracked resource records
  - verify: Check the cached file for a URL against its recorded digest
  - destroy: Delete the cache database (cached files are kept)

Usage:
    miniappcache --db ./cache.db --cache-dir ./files descriptor https://api.example.com my-app
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from .context import CacheContext
from .errors import AssetCacheError
from .logging_config import setup_logging
from .settings import get_settings

logger = logging.getLogger(__name__)
app = typer.Typer(help="Offline-tolerant mini-app descriptor and resource cache")


def _context(ctx: typer.Context) -> CacheContext:
    return ctx.obj["context"]


@app.callback()
def main(
    ctx: typer.Context,
    db_path: Optional[Path] = typer.Option(None, "--db", help="SQLite database file"),
    cache_dir: Optional[Path] = typer.Option(None, "--cache-dir", help="Resource cache directory"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING or ERROR"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir", help="Also write JSON logs here"),
) -> None:
    settings = get_settings()
    setup_logging(log_level or settings.log_level, log_dir)
    ctx.obj = {
        "context": CacheContext(
            db_path or settings.db_path,
            cache_dir or settings.cache_dir,
            settings=settings,
        )
    }


@app.command()
def descriptor(
    ctx: typer.Context,
    server: str = typer.Argument(..., help="Server base URL"),
    app_id: str = typer.Argument(..., help="Application identifier"),
) -> None:
    """Resolve a descriptor (network first, cached copy as fallback)."""
    try:
        payload = _context(ctx).resolve_descriptor_json(server, app_id)
    except AssetCacheError as e:
        typer.echo(f"✗ Error: {e}", err=True)
        raise typer.Exit(1)

    if payload is None:
        typer.echo(f"No descriptor available for {app_id}", err=True)
        raise typer.Exit(2)
    typer.echo(json.dumps(json.loads(payload), indent=2))


@app.command()
def resource(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Resource URL"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Ignore any cached copy"),
) -> None:
    """Resolve a resource URL to a local file path."""
    try:
        path = _context(ctx).resolve_resource(url, disable_cache=no_cache)
    except AssetCacheError as e:
        typer.echo(f"✗ Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(path)


@app.command()
def records(ctx: typer.Context) -> None:
    """List resource records tracked in the database."""
    context = _context(ctx)
    try:
        context.store.ensure_schema()
        rows = context.store.list_resources()
    except AssetCacheError as e:
        typer.echo(f"✗ Error: {e}", err=True)
        raise typer.Exit(1)

    if not rows:
        typer.echo("No resource records")
        return
    for row in rows:
        typer.echo(f"{row.id}\t{row.hash_code}\t{row.url}\t{row.path}")


@app.command()
def verify(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Resource URL"),
) -> None:
    """Verify the cached file for URL against its recorded digest."""
    try:
        ok = _context(ctx).resources.verify(url)
    except AssetCacheError as e:
        typer.echo(f"✗ Error: {e}", err=True)
        raise typer.Exit(1)

    if ok:
        typer.echo(f"✓ {url} verified")
    else:
        typer.echo(f"✗ {url} missing or corrupted", err=True)
        raise typer.Exit(1)


@app.command()
def destroy(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete the cache database. Cached resource files are not removed."""
    context = _context(ctx)
    if not yes:
        typer.confirm(f"Delete {context.db_path}?", abort=True)
    try:
        removed = context.destroy()
    except AssetCacheError as e:
        typer.echo(f"✗ Error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"✓ deleted {context.db_path}" if removed else "Nothing to delete")


if __name__ == "__main__":
    app()
