"""Login command: acquire a token for a scope, silently if possible."""

import asyncio
import signal
from pathlib import Path

import typer

from arr_auth.auth.account_selector import console_account_prompt, select_sole_account
from arr_auth.auth.scopes import Scope
from arr_auth.config import AUTHORITY, REDIRECT_URI, TENANT_ID
from arr_auth.models import LoginResult
from arr_auth.utils.logger import bind_context, clear_context

from .shared import build_session, console, logger, print_login_result, require_client_id

EXIT_CANCELLED = 130


def login(
    scope: Scope = typer.Option(Scope.PRIMARY, "--scope", "-s", help="Resource domain to request a token for"),
    client_id: str | None = typer.Option(None, "--client-id", help="Override ARR_CLIENT_ID"),
    tenant_id: str | None = typer.Option(None, "--tenant", help="Override ARR_TENANT_ID"),
    authority: str | None = typer.Option(None, "--authority", help="Audience name or authority URL"),
    redirect_uri: str | None = typer.Option(None, "--redirect-uri", help="Loopback redirect URI"),
    device_code: bool = typer.Option(False, "--device-code", help="Sign in with a device code instead of a browser"),
    auto_select: bool = typer.Option(False, "--auto-select", help="Use the cached account without asking when there is exactly one"),
    show_token: bool = typer.Option(False, "--show-token", help="Print the access token"),
    cache_path: Path | None = typer.Option(None, "--cache-path", help="Override ARR_TOKEN_CACHE_PATH"),
) -> None:
    """Sign in and print the account and token expiry."""
    effective_client_id = require_client_id(client_id)
    log = logger.bind(command="login", scope=scope.value)
    log.info("login_command.start", device_code=device_code)
    bind_context(command="login")

    session = build_session(cache_path, interactive_mode="device_code" if device_code else None)
    selector = select_sole_account if auto_select else console_account_prompt(console)

    async def _run() -> LoginResult:
        cancel_event = asyncio.Event()
        loop = asyncio.get_running_loop()

        def _on_sigint() -> None:
            # First Ctrl+C cancels the sign-in; a second one interrupts
            cancel_event.set()
            loop.remove_signal_handler(signal.SIGINT)

        try:
            loop.add_signal_handler(signal.SIGINT, _on_sigint)
        except (NotImplementedError, RuntimeError):
            pass  # Windows: Ctrl+C raises KeyboardInterrupt instead
        return await session.try_login(
            effective_client_id,
            scope,
            selector,
            cancel_event,
            authority=authority or AUTHORITY or None,
            tenant_id=tenant_id or TENANT_ID or None,
            redirect_uri=redirect_uri or REDIRECT_URI or None,
            on_device_code=lambda message: console.print(f"[bold]{message}[/bold]"),
        )

    try:
        result = asyncio.run(_run())
    except KeyboardInterrupt:
        console.print("[yellow]Sign-in cancelled.[/yellow]")
        log.info("login_command.interrupted")
        clear_context()
        raise typer.Exit(EXIT_CANCELLED)

    print_login_result(result, show_token=show_token)
    clear_context()
    if result.cancelled:
        raise typer.Exit(EXIT_CANCELLED)
    if not result.succeeded:
        raise typer.Exit(1)
