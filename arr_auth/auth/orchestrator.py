"""Login orchestration: pick an account, try silently, fall back to interactive sign-in.

States per ``try_login`` call::

    Idle -> SelectingAccount -> SilentAttempt -> Success
                                              -> InteractiveAttempt -> Success | Failed | Cancelled

Account selection happens once per session; the chosen account is reused by
every later call until the cache is found corrupt.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Callable, Optional

from arr_auth.auth.account_selector import AccountSelector, resolve_selection
from arr_auth.auth.errors import (
    CacheCorruptionError,
    InteractionRequiredError,
    ProviderClientError,
    ProviderServiceError,
    SignInCancelledError,
    StoreIOError,
    UiUnavailableError,
)
from arr_auth.auth.scopes import Scope, ScopeBundle, resolve_scopes
from arr_auth.models import (
    Account,
    ErrorKind,
    InteractionRequired,
    LoginResult,
    SilentError,
    SilentSuccess,
)
from arr_auth.utils.logger import BoundLogger, get_logger
from arr_auth.utils.tracing import get_tracer

if TYPE_CHECKING:
    from arr_auth.auth.session import AuthSession
    from arr_auth.identity_provider.protocol import IdentityProvider

logger = get_logger("arr_auth.auth.orchestrator")

INTERACTIVE_MODES = ("browser", "device_code")

_ERROR_KINDS = (
    (CacheCorruptionError, ErrorKind.CACHE_CORRUPTION),
    (StoreIOError, ErrorKind.STORE_IO),
    (InteractionRequiredError, ErrorKind.INTERACTION_REQUIRED),
    (UiUnavailableError, ErrorKind.UI_UNAVAILABLE),
    (ProviderServiceError, ErrorKind.PROVIDER_SERVICE),
    (ProviderClientError, ErrorKind.PROVIDER_CLIENT),
    (ValueError, ErrorKind.PROVIDER_CLIENT),
)


def _error_kind(exc: BaseException) -> ErrorKind:
    for exc_type, kind in _ERROR_KINDS:
        if isinstance(exc, exc_type):
            return kind
    return ErrorKind.UNEXPECTED


class LoginOrchestrator:
    """Runs sign-in attempts against the provider, cache and selected account held by ``session``."""

    def __init__(self, session: "AuthSession"):
        self._session = session

    async def try_login(
        self,
        client_id: str,
        scope: Scope | str,
        select_account: AccountSelector,
        cancel_event: Optional[asyncio.Event] = None,
        authority: Optional[str] = None,
        tenant_id: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        *,
        interactive_mode: Optional[str] = None,
        on_device_code: Optional[Callable[[str], None]] = None,
    ) -> LoginResult:
        """Return a credential for ``scope``, signing in interactively only if needed.

        ``cancel_event`` is only watched while interactive sign-in is running;
        setting it then yields a CANCELLED result. Never raises for sign-in
        failures: every outcome is a LoginResult.
        """
        scope = Scope(scope)
        mode = interactive_mode or self._session.interactive_mode
        if mode not in INTERACTIVE_MODES:
            raise ValueError(f"interactive_mode must be one of {INTERACTIVE_MODES}, got {mode!r}")

        log = logger.bind(client_id=client_id[:8], scope=scope.value)
        tracer = get_tracer()
        with tracer.start_as_current_span(
            "try_login",
            attributes={"login.scope": scope.value, "login.interactive_mode": mode},
        ) as span:
            result = await self._run(
                log,
                client_id=client_id,
                bundle=resolve_scopes(scope),
                select_account=select_account,
                cancel_event=cancel_event,
                authority=authority,
                tenant_id=tenant_id,
                redirect_uri=redirect_uri,
                mode=mode,
                on_device_code=on_device_code,
            )
            span.set_attribute("login.status", result.status.value)
            span.set_attribute("login.interactive", result.interactive)
            if result.error_kind is not None:
                span.set_attribute("login.error_kind", result.error_kind.value)

        log.info(
            "login.complete",
            status=result.status.value,
            interactive=result.interactive,
            error_kind=result.error_kind.value if result.error_kind else None,
            username=result.credential.account.username if result.credential else None,
        )
        return result

    async def _run(
        self,
        log: BoundLogger,
        *,
        client_id: str,
        bundle: ScopeBundle,
        select_account: AccountSelector,
        cancel_event: Optional[asyncio.Event],
        authority: Optional[str],
        tenant_id: Optional[str],
        redirect_uri: Optional[str],
        mode: str,
        on_device_code: Optional[Callable[[str], None]],
    ) -> LoginResult:
        session = self._session
        try:
            provider = session.get_provider(client_id, authority, tenant_id, redirect_uri)
        except Exception as e:
            log.error("login.provider_init_failed", error=str(e), error_type=type(e).__name__)
            return LoginResult.failed(_error_kind(e), str(e))

        await self._select_account(provider, select_account, log)

        account = session.selected_account
        if account is None:
            log.info("login.silent.skipped", reason="no_selected_account")
        else:
            silent = await self._silent_attempt(provider, bundle, account, log)
            if isinstance(silent, SilentSuccess):
                return LoginResult.success(silent.credential)
            healed = self._heal_if_unreadable(log, "silent")
            if isinstance(silent, SilentError):
                if silent.kind == ErrorKind.CACHE_CORRUPTION:
                    if not healed:
                        session.heal_cache()
                elif session.strict_silent and not healed:
                    return LoginResult.failed(silent.kind, silent.error)

        return await self._interactive_attempt(
            provider, bundle, log, cancel_event=cancel_event, mode=mode, on_device_code=on_device_code
        )

    def _heal_if_unreadable(self, log: BoundLogger, phase: str) -> bool:
        """Heal the session if the cache blob could not be loaded during ``phase``."""
        failure = self._session.bridge.take_read_failure()
        if failure is None:
            return False
        log.warning("login.cache_unreadable", phase=phase, error=failure)
        self._session.heal_cache()
        return True

    async def _select_account(
        self,
        provider: "IdentityProvider",
        select_account: AccountSelector,
        log: BoundLogger,
    ) -> None:
        """Choose this session's account once, then sign every other cached account out."""
        session = self._session
        if session.selected_account is not None:
            return

        with get_tracer().start_as_current_span("select_account") as span:
            try:
                accounts = await provider.get_accounts()
                span.set_attribute("login.cached_accounts", len(accounts))
                if self._heal_if_unreadable(log, "select_account"):
                    return
                if not accounts:
                    log.info("login.select.no_cached_accounts")
                    return
                chosen = await resolve_selection(select_account, accounts)
            except CacheCorruptionError as e:
                log.warning("login.select.cache_unusable", error=str(e))
                session.heal_cache()
                return
            except Exception as e:
                log.error("login.select.failed", error=str(e), error_type=type(e).__name__)
                session.clear_selected_account()
                return

            session.selected_account = chosen
            log.info(
                "login.select.done",
                username=chosen.username if chosen else None,
                cached_accounts=len(accounts),
            )
            for account in accounts:
                if chosen is not None and account == chosen:
                    continue
                try:
                    await provider.remove_account(account)
                except Exception as e:
                    log.warning(
                        "login.select.evict_failed",
                        username=account.username,
                        error=str(e),
                        error_type=type(e).__name__,
                    )

    async def _silent_attempt(
        self,
        provider: "IdentityProvider",
        bundle: ScopeBundle,
        account: Account,
        log: BoundLogger,
    ):
        with get_tracer().start_as_current_span("silent_attempt") as span:
            result = await provider.acquire_token_silent(bundle.primary, account)
            span.set_attribute("login.silent.result", type(result).__name__)

        if isinstance(result, InteractionRequired):
            log.warning("login.silent.interaction_required", reason=result.reason, username=account.username)
        elif isinstance(result, SilentError):
            log.error(
                "login.silent.error",
                error_kind=result.kind.value,
                error=result.error,
                username=account.username,
                strict=self._session.strict_silent,
            )
        else:
            log.debug("login.silent.success", username=account.username)
        return result

    async def _interactive_attempt(
        self,
        provider: "IdentityProvider",
        bundle: ScopeBundle,
        log: BoundLogger,
        *,
        cancel_event: Optional[asyncio.Event],
        mode: str,
        on_device_code: Optional[Callable[[str], None]],
    ) -> LoginResult:
        session = self._session
        if cancel_event is not None and cancel_event.is_set():
            log.info("login.interactive.cancelled", before_start=True)
            return LoginResult.cancelled_by_caller()

        def _log_device_code(message: str) -> None:
            log.warning("login.device_code", message=message)

        with get_tracer().start_as_current_span("interactive_attempt", attributes={"login.interactive_mode": mode}):
            log.info("login.interactive.start", mode=mode)
            try:
                if mode == "device_code":
                    credential = await provider.acquire_token_by_device_code(
                        bundle.primary,
                        on_message=on_device_code or _log_device_code,
                        cancel_event=cancel_event,
                    )
                else:
                    credential = await provider.acquire_token_interactive(
                        bundle.primary,
                        bundle.extra,
                        cancel_event=cancel_event,
                        timeout=session.interactive_timeout,
                    )
            except SignInCancelledError:
                log.info("login.interactive.cancelled")
                return LoginResult.cancelled_by_caller()
            except Exception as e:
                kind = _error_kind(e)
                if kind == ErrorKind.UNEXPECTED:
                    log.exception("login.interactive.unexpected_error")
                else:
                    log.error("login.interactive.failed", error_kind=kind.value, error=str(e))
                if not self._heal_if_unreadable(log, "interactive") and kind == ErrorKind.CACHE_CORRUPTION:
                    session.heal_cache()
                return LoginResult.failed(kind, str(e), interactive=True)

        failure = session.bridge.take_read_failure()
        if failure is not None:
            # The new tokens were written over the unreadable blob
            log.warning("login.cache_unreadable", phase="interactive", error=failure, replaced=True)
        session.selected_account = credential.account
        return LoginResult.success(credential, interactive=True)
