"""Validate sign-in settings from the environment and print a summary table."""

from rich.table import Table

from arr_auth.auth.orchestrator import INTERACTIVE_MODES
from arr_auth.config import (
    AUTHORITY,
    CLIENT_ID,
    INTERACTIVE_MODE,
    REDIRECT_URI,
    STRICT_SILENT,
    TENANT_ID,
    TOKEN_CACHE_PATH,
)
from arr_auth.identity_provider.authority import resolve_authority
from .shared import console, logger


def validate_config() -> None:
    """Check ARR_* settings and print the effective configuration."""
    log = logger.bind(command="validate-config")
    log.info("validate_config.start")

    errors = []
    if not CLIENT_ID:
        errors.append("ARR_CLIENT_ID is not set")
    if INTERACTIVE_MODE not in INTERACTIVE_MODES:
        errors.append(f"ARR_INTERACTIVE_MODE must be one of {', '.join(INTERACTIVE_MODES)}, got {INTERACTIVE_MODE!r}")
    if REDIRECT_URI and not REDIRECT_URI.startswith("http://localhost"):
        errors.append(f"ARR_REDIRECT_URI must be a loopback URI (http://localhost[:port]), got {REDIRECT_URI!r}")
    if TOKEN_CACHE_PATH.exists() and TOKEN_CACHE_PATH.is_dir():
        errors.append(f"Token cache path {TOKEN_CACHE_PATH} is a directory")

    table = Table(title="Sign-in settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Client id", CLIENT_ID or "(not set)")
    table.add_row("Authority", resolve_authority(AUTHORITY or None, TENANT_ID or None))
    table.add_row("Redirect URI", REDIRECT_URI or "(default)")
    table.add_row("Interactive mode", INTERACTIVE_MODE)
    table.add_row("Strict silent", "yes" if STRICT_SILENT else "no")
    table.add_row("Token cache", str(TOKEN_CACHE_PATH))
    console.print(table)

    if errors:
        for msg in errors:
            console.print(f"[red]{msg}[/red]")
        log.error("validate_config.validation_failed", errors=errors)
        raise SystemExit(1)

    console.print("[green]Config valid.[/green]")
    log.info("validate_config.ok")
