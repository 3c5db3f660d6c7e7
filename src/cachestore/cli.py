"""CLI interface for cachestore"""

import asyncio
import json
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cachestore.config import BackendKind, Config, load_config
from cachestore.drivers.base import FOREVER
from cachestore.errors import CacheError
from cachestore.factory import get_supported_backends, store_from_config
from cachestore.store import Store
from cachestore.values import ScanType

app = typer.Typer(
    name="cachestore",
    help="Backend-agnostic key-value cache",
    no_args_is_help=True,
)
console = Console()


def parse_value(text: str) -> Any:
    """Parse a command line value

    Numbers and booleans given as JSON literals (42, 1.5, true) keep their
    type; everything else is stored as a string.
    """
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(value, (bool, int, float, str)):
        return value
    return text


def _load(ctx: typer.Context) -> Config:
    options = ctx.obj or {}
    try:
        config = load_config(options.get("config"))
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    if options.get("backend") is not None:
        config.backend = options["backend"]
    return config


def _run(ctx: typer.Context, operation: Callable[[Store], Awaitable[Any]]) -> Any:
    """Run one operation against a freshly built store"""
    config = _load(ctx)
    try:
        store = store_from_config(config)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    async def runner() -> Any:
        try:
            return await operation(store)
        finally:
            await store.close()

    try:
        return asyncio.run(runner())
    except CacheError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Path | None, typer.Option("--config", "-c", help="Path to .cachestore.yaml")
    ] = None,
    backend: Annotated[
        BackendKind | None, typer.Option("--backend", "-b", help="Override backend")
    ] = None,
) -> None:
    """Backend-agnostic key-value cache"""
    ctx.obj = {"config": config, "backend": backend}


@app.command()
def get(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
    scan_type: Annotated[
        ScanType | None, typer.Option("--type", "-t", help="Coerce to this type")
    ] = None,
) -> None:
    """Print a cached value"""
    if scan_type is None:
        value = _run(ctx, lambda store: store.get(key))
    else:
        value = _run(ctx, lambda store: store.get_scan(key, scan_type))

    if value is None:
        console.print("[yellow](nil)[/yellow]")
        raise typer.Exit(1)
    console.print(escape(repr(value) if isinstance(value, bytes) else str(value)))


@app.command()
def put(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
    value: Annotated[str, typer.Argument(help="Value (JSON literals keep their type)")],
    ttl: Annotated[
        float | None, typer.Option("--ttl", help="Expiration in seconds")
    ] = None,
    forever: Annotated[
        bool, typer.Option("--forever", help="Never expire")
    ] = False,
) -> None:
    """Store a value"""
    if forever and ttl is not None:
        msg = "--ttl and --forever are mutually exclusive"
        raise typer.BadParameter(msg)

    parsed = parse_value(value)
    if forever:
        ok = _run(ctx, lambda store: store.put(key, parsed, FOREVER))
    elif ttl is not None:
        ok = _run(ctx, lambda store: store.put(key, parsed, ttl))
    else:
        ok = _run(ctx, lambda store: store.put_default(key, parsed))

    if not ok:
        console.print(f"[red]✗[/red] Failed to store {escape(key)}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Stored {escape(key)}")


@app.command()
def add(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
    value: Annotated[str, typer.Argument(help="Value (JSON literals keep their type)")],
) -> None:
    """Store a value only if the key is absent"""
    parsed = parse_value(value)
    if not _run(ctx, lambda store: store.add_default(key, parsed)):
        console.print(f"[yellow]Not stored:[/yellow] {escape(key)} already exists")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Stored {escape(key)}")


@app.command()
def forget(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
) -> None:
    """Delete a key"""
    if not _run(ctx, lambda store: store.forget(key)):
        console.print(f"[yellow]Not found:[/yellow] {escape(key)}")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Deleted {escape(key)}")


@app.command()
def has(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
) -> None:
    """Check whether a key exists"""
    console.print("true" if _run(ctx, lambda store: store.has(key)) else "false")


@app.command()
def incr(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
    step: Annotated[int, typer.Option("--step", "-s")] = 1,
) -> None:
    """Increment a numeric value"""
    console.print(str(_run(ctx, lambda store: store.increment(key, step))))


@app.command()
def decr(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key")],
    step: Annotated[int, typer.Option("--step", "-s")] = 1,
) -> None:
    """Decrement a numeric value"""
    console.print(str(_run(ctx, lambda store: store.decrement(key, step))))


@app.command()
def flush(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Remove every key in the backend (all prefixes)"""
    if not yes:
        typer.confirm("This clears the whole backend, not just this prefix. Continue?", abort=True)
    if not _run(ctx, lambda store: store.flush()):
        console.print("[red]✗[/red] Flush failed")
        raise typer.Exit(1)
    console.print("[green]✓[/green] Flushed")


@app.command()
def info(ctx: typer.Context) -> None:
    """Show the resolved store configuration"""
    config = _load(ctx)
    try:
        resolved = config.store.resolve()
    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    table = Table(title="cachestore")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("backend", config.backend.value)
    table.add_row("prefix", escape(resolved.prefix))
    table.add_row("expiration", f"{resolved.expiration:g}s")
    if config.backend is BackendKind.MEMORY:
        table.add_row("cleanup_interval", f"{resolved.cleanup_interval:g}s")
    elif config.backend is BackendKind.REDIS:
        table.add_row("addr", resolved.addr)
        table.add_row("db", str(resolved.db))
    else:
        table.add_row("database_url", resolved.database_url)
    table.add_row("supported", ", ".join(get_supported_backends()))
    console.print(table)


if __name__ == "__main__":
    app()
