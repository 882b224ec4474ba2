"""Sign-in session: the token cache, provider client and selected account for one application run."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Callable, Optional

import msal

from arr_auth.auth.account_selector import AccountSelector
from arr_auth.auth.credential_store import CredentialStore, FileCredentialStore
from arr_auth.auth.errors import CacheCorruptionError
from arr_auth.auth.orchestrator import LoginOrchestrator
from arr_auth.auth.scopes import Scope
from arr_auth.auth.token_cache import HookedTokenCache, TokenCacheBridge
from arr_auth.config import (
    DEFAULT_REDIRECT_URI,
    INTERACTIVE_MODE,
    INTERACTIVE_TIMEOUT_SECONDS,
    STRICT_SILENT,
    TOKEN_CACHE_PATH,
)
from arr_auth.identity_provider.authority import resolve_authority
from arr_auth.identity_provider.protocol import IdentityProvider
from arr_auth.models import Account, LoginResult
from arr_auth.utils.logger import get_logger

logger = get_logger("arr_auth.auth.session")

ProviderFactory = Callable[[str, str, Optional[str], msal.SerializableTokenCache], IdentityProvider]


def _msal_provider_factory(
    client_id: str,
    authority: str,
    redirect_uri: Optional[str],
    token_cache: msal.SerializableTokenCache,
) -> IdentityProvider:
    from arr_auth.identity_provider.msal_provider import MsalIdentityProvider

    return MsalIdentityProvider(client_id, authority, redirect_uri=redirect_uri, token_cache=token_cache)


class AuthSession:
    """State shared by every login in this application run.

    Holds the credential store, the cache bridge (and its lock), the MSAL
    token cache, at most one provider client and the selected account.
    Call ``prepare()`` once, on the thread that will do cache I/O, before the
    first login.
    """

    def __init__(
        self,
        cache_path: str | Path | None = None,
        store: CredentialStore | None = None,
        provider_factory: ProviderFactory | None = None,
        strict_silent: bool | None = None,
        interactive_mode: str | None = None,
        interactive_timeout: int | None = None,
    ):
        self._cache_path = Path(cache_path) if cache_path else TOKEN_CACHE_PATH
        self._store = store
        self._provider_factory = provider_factory or _msal_provider_factory
        self.strict_silent = STRICT_SILENT if strict_silent is None else strict_silent
        self.interactive_mode = interactive_mode or INTERACTIVE_MODE
        self.interactive_timeout = (
            INTERACTIVE_TIMEOUT_SECONDS if interactive_timeout is None else interactive_timeout
        )
        self._prepare_lock = threading.Lock()
        self._bridge: TokenCacheBridge | None = None
        self._token_cache: HookedTokenCache | None = None
        self._provider: IdentityProvider | None = None
        self._selected_account: Account | None = None
        self._orchestrator = LoginOrchestrator(self)

    def prepare(self) -> "AuthSession":
        """Build the store, bridge and token cache. Safe to call any number of times."""
        with self._prepare_lock:
            if self._bridge is None:
                if self._store is None:
                    self._store = FileCredentialStore(self._cache_path)
                self._bridge = TokenCacheBridge(self._store)
                self._token_cache = self._bridge.create_cache()
                logger.debug("session.prepared", cache_path=str(self._store.path) if self._store.path else None)
        return self

    @property
    def prepared(self) -> bool:
        return self._bridge is not None

    @property
    def store(self) -> CredentialStore:
        self.prepare()
        return self._store

    @property
    def bridge(self) -> TokenCacheBridge:
        self.prepare()
        return self._bridge

    @property
    def token_cache(self) -> HookedTokenCache:
        self.prepare()
        return self._token_cache

    @property
    def provider(self) -> IdentityProvider | None:
        return self._provider

    @property
    def selected_account(self) -> Account | None:
        return self._selected_account

    @selected_account.setter
    def selected_account(self, account: Account | None) -> None:
        self._selected_account = account

    def clear_selected_account(self) -> None:
        self._selected_account = None

    def heal_cache(self) -> None:
        """Forget the selected account and delete the persisted cache so the next login starts clean."""
        self._selected_account = None
        self.bridge.reset(self.token_cache)

    def get_provider(
        self,
        client_id: str,
        authority: str | None = None,
        tenant_id: str | None = None,
        redirect_uri: str | None = None,
    ) -> IdentityProvider:
        """Return the provider client for ``client_id``, building a new one if the id changed.

        Only a client id change rebuilds the client; the persisted cache is kept.
        """
        if not client_id:
            raise ValueError("client_id is required")
        self.prepare()
        if self._provider is None or self._provider.client_id != client_id:
            if self._provider is not None:
                logger.info(
                    "session.provider_rebuilt",
                    previous_client_id=self._provider.client_id[:8],
                    client_id=client_id[:8],
                )
            self._provider = self._provider_factory(
                client_id,
                resolve_authority(authority, tenant_id),
                redirect_uri or DEFAULT_REDIRECT_URI,
                self._token_cache,
            )
        return self._provider

    async def try_login(
        self,
        client_id: str,
        scope: Scope | str,
        select_account: AccountSelector,
        cancel_event: Optional[asyncio.Event] = None,
        authority: Optional[str] = None,
        tenant_id: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        **kwargs,
    ) -> LoginResult:
        """See ``LoginOrchestrator.try_login``."""
        self.prepare()
        return await self._orchestrator.try_login(
            client_id,
            scope,
            select_account,
            cancel_event,
            authority,
            tenant_id,
            redirect_uri,
            **kwargs,
        )

    async def list_accounts(
        self,
        client_id: str,
        authority: str | None = None,
        tenant_id: str | None = None,
    ) -> list[Account]:
        """Accounts in the persisted cache. Raises CacheCorruptionError if the blob could not be loaded."""
        accounts = await self.get_provider(client_id, authority, tenant_id).get_accounts()
        failure = self.bridge.take_read_failure()
        if failure is not None:
            raise CacheCorruptionError(failure)
        return accounts

    async def sign_out(
        self,
        client_id: str,
        authority: str | None = None,
        tenant_id: str | None = None,
    ) -> int:
        """Remove every cached account and delete the cache file. Returns the number of accounts removed."""
        provider = self.get_provider(client_id, authority, tenant_id)
        accounts = await provider.get_accounts()
        for account in accounts:
            await provider.remove_account(account)
        self.heal_cache()
        logger.info("session.signed_out", accounts=len(accounts))
        return len(accounts)


_default_session: AuthSession | None = None
_default_session_lock = threading.Lock()


def get_default_session() -> AuthSession:
    """Process-wide session for callers that do not manage their own."""
    global _default_session
    with _default_session_lock:
        if _default_session is None:
            _default_session = AuthSession().prepare()
        return _default_session
