"""Accounts and logout commands: inspect or clear the persisted token cache."""

import asyncio
from pathlib import Path

import typer

from arr_auth.auth.errors import CacheCorruptionError
from arr_auth.config import AUTHORITY, TENANT_ID

from .shared import build_session, console, logger, print_accounts, require_client_id


def list_accounts(
    client_id: str | None = typer.Option(None, "--client-id", help="Override ARR_CLIENT_ID"),
    tenant_id: str | None = typer.Option(None, "--tenant", help="Override ARR_TENANT_ID"),
    cache_path: Path | None = typer.Option(None, "--cache-path", help="Override ARR_TOKEN_CACHE_PATH"),
) -> None:
    """List accounts in the persisted token cache."""
    effective_client_id = require_client_id(client_id)
    log = logger.bind(command="accounts")
    session = build_session(cache_path)
    try:
        accounts = asyncio.run(
            session.list_accounts(effective_client_id, AUTHORITY or None, tenant_id or TENANT_ID or None)
        )
    except CacheCorruptionError as e:
        console.print(f"[red]Token cache is unreadable: {e}[/red]")
        console.print("Run [bold]logout[/bold] to delete it.")
        log.error("accounts.cache_corrupt", error=str(e))
        raise typer.Exit(1) from e
    print_accounts(accounts)
    log.info("accounts.listed", count=len(accounts))


def logout(
    client_id: str | None = typer.Option(None, "--client-id", help="Override ARR_CLIENT_ID"),
    tenant_id: str | None = typer.Option(None, "--tenant", help="Override ARR_TENANT_ID"),
    cache_path: Path | None = typer.Option(None, "--cache-path", help="Override ARR_TOKEN_CACHE_PATH"),
) -> None:
    """Sign out every cached account and delete the token cache file."""
    effective_client_id = require_client_id(client_id)
    log = logger.bind(command="logout")
    session = build_session(cache_path)
    try:
        removed = asyncio.run(
            session.sign_out(effective_client_id, AUTHORITY or None, tenant_id or TENANT_ID or None)
        )
    except CacheCorruptionError as e:
        log.warning("logout.cache_corrupt", error=str(e))
        session.heal_cache()
        removed = 0
    console.print(f"[green]Signed out {removed} account(s); token cache cleared.[/green]")
    log.info("logout.done", removed=removed)
