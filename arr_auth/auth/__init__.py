"""Azure AD sign-in: scopes, persistent token cache, account selection and login orchestration."""

from arr_auth.auth.errors import (
    AuthError,
    CacheCorruptionError,
    InteractionRequiredError,
    LoginFailedError,
    ProviderClientError,
    ProviderError,
    ProviderServiceError,
    SignInCancelledError,
    StoreIOError,
    UiUnavailableError,
)
from arr_auth.auth.scopes import Scope, ScopeBundle, resolve_scopes
from arr_auth.auth.credential_store import CredentialStore, FileCredentialStore, MemoryCredentialStore
from arr_auth.auth.token_cache import CacheAccessHooks, HookedTokenCache, TokenCacheBridge
from arr_auth.auth.account_selector import (
    AccountSelector,
    confirm_first_account,
    console_account_prompt,
    reject_all,
    select_first_account,
    select_sole_account,
)
from arr_auth.auth.orchestrator import LoginOrchestrator
from arr_auth.auth.session import AuthSession, get_default_session
from arr_auth.auth.credential import SessionTokenCredential

__all__ = [
    "AuthError",
    "CacheCorruptionError",
    "InteractionRequiredError",
    "LoginFailedError",
    "ProviderClientError",
    "ProviderError",
    "ProviderServiceError",
    "SignInCancelledError",
    "StoreIOError",
    "UiUnavailableError",
    "Scope",
    "ScopeBundle",
    "resolve_scopes",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "CacheAccessHooks",
    "HookedTokenCache",
    "TokenCacheBridge",
    "AccountSelector",
    "confirm_first_account",
    "console_account_prompt",
    "reject_all",
    "select_first_account",
    "select_sole_account",
    "LoginOrchestrator",
    "AuthSession",
    "get_default_session",
    "SessionTokenCredential",
]
