"""Shared CLI helpers: console, logger, session construction, result formatting."""

from datetime import datetime, timezone
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from arr_auth.auth.session import AuthSession
from arr_auth.config import CLIENT_ID
from arr_auth.models import Account, LoginResult
from arr_auth.utils.logger import get_logger

console = Console()
logger = get_logger("arr_auth.cli")


def build_session(cache_path: Path | None = None, interactive_mode: str | None = None) -> AuthSession:
    """Session for one CLI invocation, prepared on the main thread."""
    return AuthSession(cache_path=cache_path, interactive_mode=interactive_mode).prepare()


def require_client_id(client_id: str | None) -> str:
    """Return the effective client id or exit with a message."""
    effective = (client_id or CLIENT_ID or "").strip()
    if not effective:
        console.print("[red]Provide the application (client) id via --client-id or set ARR_CLIENT_ID in .env[/red]")
        logger.warning("cli.missing_client_id")
        raise typer.Exit(1)
    return effective


def format_expiry(expires_on: int) -> str:
    return datetime.fromtimestamp(expires_on, tz=timezone.utc).isoformat(timespec="seconds")


def print_accounts(accounts: list[Account]) -> None:
    if not accounts:
        console.print("[dim]No cached accounts.[/dim]")
        return
    table = Table(title="Cached accounts")
    table.add_column("Username", style="cyan")
    table.add_column("Home account id", style="green")
    table.add_column("Environment")
    for account in accounts:
        table.add_row(account.username, account.home_account_id, account.environment or "")
    console.print(table)


def print_login_result(result: LoginResult, show_token: bool = False) -> None:
    """Print a login outcome; the token itself only when asked for."""
    if not result.succeeded:
        style = "yellow" if result.cancelled else "red"
        console.print(f"[{style}]Sign-in {result.status.value}[/{style}]: {result.error or ''}")
        if result.error_kind:
            console.print(f"  Error kind: {result.error_kind.value}")
        return

    credential = result.credential
    console.print("[green]Signed in.[/green]")
    console.print(f"  Account: {credential.account}")
    console.print(f"  Scopes: {' '.join(credential.scopes)}")
    expiry = format_expiry(credential.expires_on)
    if credential.is_expired():
        expiry += " [red](expired)[/red]"
    console.print(f"  Expires: {expiry}")
    console.print(f"  Source: {'interactive sign-in' if result.interactive else 'token cache'}")
    if show_token:
        console.print(f"  Access token: {result.access_token}")
