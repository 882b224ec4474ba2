"""Identity provider protocol (what the login orchestrator needs from MSAL)."""

import asyncio
from typing import Callable, Optional, Protocol, Sequence

from arr_auth.models import Account, Credential, SilentResult


class IdentityProvider(Protocol):
    """Async token acquisition against one application registration."""

    @property
    def client_id(self) -> str:
        ...

    async def get_accounts(self) -> list[Account]:
        """Accounts currently in the token cache."""
        ...

    async def remove_account(self, account: Account) -> None:
        """Sign the account out: drop its tokens from the cache."""
        ...

    async def acquire_token_silent(self, scopes: Sequence[str], account: Account) -> SilentResult:
        """Cached token or refresh-token redemption. Never raises; failures come back tagged."""
        ...

    async def acquire_token_interactive(
        self,
        scopes: Sequence[str],
        extra_scopes: Sequence[str] = (),
        *,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[int] = None,
    ) -> Credential:
        """Browser sign-in requesting ``scopes`` and pre-consenting ``extra_scopes``.

        Raises SignInCancelledError when ``cancel_event`` fires first, and a
        ProviderError subclass when the provider returns an error.
        """
        ...

    async def acquire_token_by_device_code(
        self,
        scopes: Sequence[str],
        *,
        on_message: Optional[Callable[[str], None]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Credential:
        """Device code sign-in; ``on_message`` receives the "go to URL, enter code" text."""
        ...
