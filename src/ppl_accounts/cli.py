"""CLI entry point for ppl-accounts."""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .auth import SupabaseAuthService
from .config import Settings, load_env_files
from .logger import setup_logging
from .session import (
    AccountError,
    AddMode,
    FileStorage,
    NeedsRegistrationError,
    SessionManager,
    SessionStore,
)

app = typer.Typer(
    name="ppl-accounts",
    help="Manage the accounts signed in to the PPL workout tracker",
    no_args_is_help=True,
)
console = Console()


def create_manager(settings: Optional[Settings] = None) -> SessionManager:
    """Create a session manager backed by Supabase and on-disk storage."""
    settings = settings or Settings.from_env()
    storage = FileStorage(settings.storage_dir)
    auth = SupabaseAuthService(
        settings.supabase_url,
        settings.supabase_anon_key,
        storage=storage,
    )
    return SessionManager(auth=auth, store=SessionStore(storage))


@app.callback()
def configure(
    ctx: typer.Context,
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR). Defaults to PPL_LOG_LEVEL.",
    ),
):
    """
    Configuration is loaded from .env file (current directory or ~/.ppl-accounts/.env).

    Examples:
        ppl-accounts status                     # Show the active account
        ppl-accounts add me@example.com         # Sign in another account
        ppl-accounts add new@example.com -r     # Register a new account
        ppl-accounts switch <user-id>           # Switch to a cached account
        ppl-accounts tui                        # Interactive account switcher
    """
    load_env_files()
    settings = Settings.from_env()
    setup_logging(log_level or settings.log_level)
    settings.warn_if_unconfigured()
    ctx.obj = settings


def _run(coro):
    """Run a manager coroutine, turning account errors into exit code 1."""
    try:
        return asyncio.run(coro)
    except AccountError as e:
        console.print(f"[red]Error: {e.message}[/]")
        raise typer.Exit(code=1)


def _print_accounts(manager: SessionManager) -> None:
    accounts = manager.list_accounts()
    if not accounts:
        console.print("[yellow]No cached accounts.[/]")
        return

    active_id = manager.active.id if manager.active else None
    table = Table(title="Cached Accounts")
    table.add_column("", width=1)
    table.add_column("User ID", style="cyan")
    table.add_column("Name")
    table.add_column("Email")
    for account in accounts:
        marker = "*" if account.id == active_id else ""
        table.add_row(marker, account.id, account.display_name, account.email)
    console.print(table)


@app.command()
def status(ctx: typer.Context):
    """Show the active account and the cached accounts."""
    manager = create_manager(ctx.obj)
    _run(manager.initialize())

    if manager.active is None:
        console.print("[yellow]Not signed in.[/]")
    else:
        user = manager.active.user
        profile = manager.active.profile
        name = profile.name if profile and profile.name else user.email
        console.print(f"[bold]Current Account:[/] {name} <{user.email}>")
        console.print(f"  [dim]{user.id}[/]")
    console.print()
    _print_accounts(manager)


@app.command("list")
def list_accounts(ctx: typer.Context):
    """List cached accounts. The active one is marked with *."""
    manager = create_manager(ctx.obj)
    _run(manager.initialize())
    _print_accounts(manager)


@app.command()
def add(
    ctx: typer.Context,
    email: str = typer.Argument(..., help="Account email"),
    password: str = typer.Option(
        ...,
        "--password", "-p",
        prompt=True,
        hide_input=True,
        help="Account password (prompted when omitted)",
    ),
    register: bool = typer.Option(
        False,
        "--register", "-r",
        help="Create a new account instead of signing in",
    ),
):
    """Sign in (or register) another account and make it active."""
    manager = create_manager(ctx.obj)
    mode = AddMode.REGISTER if register else AddMode.SIGN_IN

    async def run():
        await manager.initialize()
        try:
            return await manager.add_account(email, password, mode)
        except NeedsRegistrationError as e:
            console.print(f"[yellow]{e.message}[/]")
            if not typer.confirm("Register a new account?", default=False):
                raise
            return await manager.add_account(email, password, AddMode.REGISTER)

    account = _run(run())
    console.print(f"[green]Signed in as {account.display_name}[/] ([cyan]{account.id}[/])")


@app.command()
def switch(ctx: typer.Context, user_id: str = typer.Argument(..., help="User ID of a cached account")):
    """Switch the active session to a cached account."""
    manager = create_manager(ctx.obj)

    async def run():
        await manager.initialize()
        return await manager.switch_to_account(user_id)

    session = _run(run())
    console.print(f"[green]Switched to {session.user.email}[/]")


@app.command()
def remove(ctx: typer.Context, user_id: str = typer.Argument(..., help="User ID of a cached account")):
    """Forget a cached account. Removing the active account signs out."""
    manager = create_manager(ctx.obj)

    async def run():
        await manager.initialize()
        was_active = manager.active is not None and manager.active.id == user_id
        removed = await manager.remove_account(user_id)
        return removed, was_active

    removed, was_active = _run(run())
    if not removed:
        console.print(f"[yellow]No cached account {user_id}[/]")
    else:
        console.print(f"[green]Removed {user_id}[/]")
    if was_active:
        console.print("Signed out.")


@app.command("sign-out")
def sign_out(ctx: typer.Context):
    """Sign out of the active account. Cached accounts are kept."""
    manager = create_manager(ctx.obj)

    async def run():
        await manager.initialize()
        await manager.sign_out()

    _run(run())
    console.print("Signed out.")


@app.command()
def tui(ctx: typer.Context):
    """Run the interactive account switcher."""
    from .tui import AccountSwitcherApp

    AccountSwitcherApp(manager=create_manager(ctx.obj)).run()


if __name__ == "__main__":
    app()
