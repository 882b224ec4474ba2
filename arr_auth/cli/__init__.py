"""CLI commands: one module per command (login, accounts/logout, validate-config)."""

from typer import Typer

from arr_auth.cli import accounts, login as login_module, validate_config as validate_config_module
from arr_auth.utils.tracing import init_tracing

init_tracing()

app = Typer(help="Azure AD sign-in for Azure Remote Rendering and Storage")


def register_commands() -> None:
    """Register all CLI commands on the global app."""
    app.command()(login_module.login)
    app.command(name="accounts")(accounts.list_accounts)
    app.command()(accounts.logout)
    app.command(name="validate-config")(validate_config_module.validate_config)


register_commands()
