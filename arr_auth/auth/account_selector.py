"""Account selection policies.

A selector receives every account found in the token cache and returns the
one to sign in with, or None to force a fresh interactive sign-in. Selectors
may be plain functions or coroutines.
"""

import inspect
from typing import Awaitable, Callable, Optional, Sequence, Union

from rich.console import Console
from rich.prompt import Prompt

from arr_auth.models.account import Account

AccountSelector = Callable[
    [Sequence[Account]],
    Union[Optional[Account], Awaitable[Optional[Account]]],
]
AccountConfirmer = Callable[[Account], Union[bool, Awaitable[bool]]]


async def resolve_selection(selector: AccountSelector, accounts: Sequence[Account]) -> Optional[Account]:
    """Run a sync or async selector and return its choice."""
    choice = selector(accounts)
    if inspect.isawaitable(choice):
        choice = await choice
    return choice


def select_first_account(accounts: Sequence[Account]) -> Optional[Account]:
    return accounts[0] if accounts else None


def select_sole_account(accounts: Sequence[Account]) -> Optional[Account]:
    """Pick the account only when there is exactly one; otherwise sign in again."""
    return accounts[0] if len(accounts) == 1 else None


def reject_all(accounts: Sequence[Account]) -> None:
    return None


def confirm_first_account(confirm: AccountConfirmer) -> AccountSelector:
    """Offer the first cached account and keep it only if ``confirm`` agrees."""

    async def _select(accounts: Sequence[Account]) -> Optional[Account]:
        if not accounts:
            return None
        candidate = accounts[0]
        answer = confirm(candidate)
        if inspect.isawaitable(answer):
            answer = await answer
        return candidate if answer else None

    return _select


def format_username(username: str, max_len: int = 30, max_breaks: int = 4) -> str:
    """Wrap a long username for display, breaking after '@' or '.' where possible."""
    lines = [username]
    while len(lines[-1]) > max_len and max_breaks > 0:
        last = lines[-1]
        at = last.find("@")
        dot = last.find(".")
        if 0 <= at < max_len:
            lines[-1:] = [last[: at + 1], last[at + 1 :]]
        elif 0 <= dot < max_len:
            lines[-1:] = [last[: dot + 1], last[dot + 1 :]]
        else:
            lines[-1:] = [last[:max_len], last[max_len:]]
        max_breaks -= 1
    return "\n    ".join(lines)


def console_account_prompt(console: Console | None = None) -> AccountSelector:
    """Selector that asks on the terminal which cached account to use ("0" signs in fresh)."""
    console = console or Console()

    def _select(accounts: Sequence[Account]) -> Optional[Account]:
        if not accounts:
            return None
        console.print("[bold]This app has cached credentials for:[/bold]")
        for i, account in enumerate(accounts, start=1):
            console.print(f"  {i}. {format_username(str(account))}")
        console.print("  0. Sign in with a different account")
        choices = [str(i) for i in range(len(accounts) + 1)]
        answer = Prompt.ask("Use which account?", choices=choices, default="1", console=console)
        index = int(answer)
        return accounts[index - 1] if index else None

    return _select
