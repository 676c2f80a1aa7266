"""mysql-auth-state CLI using Typer.

Operator commands for inspecting and resetting an auth state table
without starting a messaging client.
"""

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable
from typing import Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from mysql_auth_state.config import AuthStateSettings, get_settings
from mysql_auth_state.exceptions import AuthStateError
from mysql_auth_state.keys import CREDS_KEY, KeyCategory
from mysql_auth_state.logging_config import configure_logging
from mysql_auth_state.state import MySQLAuthState

T = TypeVar("T")

app = typer.Typer(
    name="mysql-auth-state",
    help="Inspect and manage persisted messaging auth state",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    table_name: Optional[str] = typer.Option(
        None,
        "--table-name",
        "-t",
        help="Table to operate on (default: MYSQL_TABLE_NAME or 'auth')",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (default: MYSQL_LOG_LEVEL or INFO)",
    ),
) -> None:
    configure_logging(log_level or get_settings().log_level)
    ctx.obj = {"table_name": table_name}


def _settings(ctx: typer.Context) -> AuthStateSettings:
    table_name = ctx.obj.get("table_name") if ctx.obj else None
    if table_name:
        return AuthStateSettings(table_name=table_name)
    return get_settings()


def _run(
    settings: AuthStateSettings,
    action: Callable[[MySQLAuthState], Awaitable[T]],
) -> T:
    """Open the store, run one action against it and close it again."""

    async def _session() -> T:
        async with await MySQLAuthState.open(settings) as auth:
            return await action(auth)

    try:
        return asyncio.run(_session())
    except AuthStateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1) from e


def _confirm(question: str, yes: bool) -> None:
    if not yes:
        typer.confirm(question, abort=True)


def _require(done: bool, action: str) -> None:
    """Exit with an error when a statement was given up after all retries."""
    if not done:
        console.print(f"[red]Error:[/red] Could not {action}, retries exhausted")
        raise typer.Exit(code=1)


@app.command("init")
def init(ctx: typer.Context) -> None:
    """Create the table if missing and report whether credentials exist."""
    settings = _settings(ctx)

    async def _init(auth: MySQLAuthState) -> bool:
        return auth.creds_persisted

    persisted = _run(settings, _init)
    console.print(f"Table [bold]{settings.table_name}[/bold] is ready")
    if persisted:
        console.print("[green]Credentials are stored[/green]")
    else:
        console.print("[yellow]No credentials stored yet[/yellow]")


@app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show the number of stored rows per key category."""
    settings = _settings(ctx)

    async def _list(auth: MySQLAuthState) -> list[str]:
        return await auth.list_ids()

    counts: Counter[str] = Counter()
    for key in _run(settings, _list):
        if key == CREDS_KEY:
            counts[CREDS_KEY] += 1
            continue
        category = KeyCategory.from_storage_key(key)
        counts[category.value if category else "other"] += 1

    table = Table(title=f"Auth state in '{settings.table_name}'")
    table.add_column("Category", style="cyan")
    table.add_column("Rows", justify="right")
    for name, count in sorted(counts.items()):
        table.add_row(name, str(count))
    table.add_row("[bold]total[/bold]", f"[bold]{sum(counts.values())}[/bold]")
    console.print(table)


@app.command("clear")
def clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete all key material but keep the credentials."""
    settings = _settings(ctx)
    _confirm(f"Delete all key material in '{settings.table_name}'?", yes)

    async def _clear(auth: MySQLAuthState) -> bool:
        return await auth.clear()

    _require(_run(settings, _clear), "clear key material")
    console.print("[green]Key material cleared[/green]")


@app.command("remove-creds")
def remove_creds(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete every row, credentials included (the session must re-pair)."""
    settings = _settings(ctx)
    _confirm(f"Delete ALL rows in '{settings.table_name}'?", yes)

    async def _remove(auth: MySQLAuthState) -> bool:
        return await auth.remove_creds()

    _require(_run(settings, _remove), "remove credentials")
    console.print("[green]Credentials and key material removed[/green]")


@app.command("drop-table")
def drop_table(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Drop the auth state table."""
    settings = _settings(ctx)
    _confirm(f"Drop table '{settings.table_name}'?", yes)

    async def _drop(auth: MySQLAuthState) -> bool:
        return await auth.drop_table()

    _require(_run(settings, _drop), f"drop table {settings.table_name}")
    console.print(f"[green]Table {settings.table_name} dropped[/green]")


def cli() -> None:
    """Entry point for the CLI application."""
    app()


if __name__ == "__main__":
    cli()
