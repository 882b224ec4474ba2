"""MSAL public client identity provider (async wrapper over msal.PublicClientApplication)."""

import asyncio
import contextvars
import threading
from typing import Any, Callable, Optional, Sequence
from urllib.parse import urlparse

import msal

from arr_auth.auth.errors import (
    CacheCorruptionError,
    InteractionRequiredError,
    ProviderClientError,
    ProviderServiceError,
    SignInCancelledError,
    UiUnavailableError,
)
from arr_auth.models import (
    Account,
    Credential,
    ErrorKind,
    InteractionRequired,
    SilentError,
    SilentResult,
    SilentSuccess,
)
from arr_auth.utils.logger import get_logger

logger = get_logger("arr_auth.identity_provider.msal")

# Error codes meaning "the user has to sign in (again)"
_INTERACTION_ERRORS = {
    "interaction_required",
    "login_required",
    "consent_required",
    "invalid_grant",
}


def _port_from_redirect(redirect_uri: str | None) -> int | None:
    """Loopback port MSAL should listen on; None lets MSAL pick one."""
    if not redirect_uri:
        return None
    return urlparse(redirect_uri).port


def _error_message(result: dict[str, Any]) -> str:
    return result.get("error_description") or result.get("error") or "Unknown error"


def _raise_for_error(result: dict[str, Any]) -> None:
    error = result.get("error", "")
    message = _error_message(result)
    if error in _INTERACTION_ERRORS:
        raise InteractionRequiredError(message, error_code=error)
    raise ProviderServiceError(message, error_code=error or None)


def _run_in_daemon_thread(fn: Callable[[], Any]) -> asyncio.Future:
    """Start ``fn`` on a daemon thread and return a future for its result.

    Unlike ``asyncio.to_thread`` the thread is not owned by the loop's default
    executor, so neither ``asyncio.run`` nor interpreter exit waits for a sign-in
    that was abandoned.
    """
    loop = asyncio.get_running_loop()
    future = loop.create_future()
    context = contextvars.copy_context()

    def _deliver(setter: Callable[[Any], None], value: Any) -> None:
        if not future.done():
            setter(value)

    def _target() -> None:
        try:
            result = context.run(fn)
        except BaseException as e:
            outcome = (future.set_exception, e)
        else:
            outcome = (future.set_result, result)
        try:
            loop.call_soon_threadsafe(_deliver, *outcome)
        except RuntimeError:
            # Loop already closed: the caller cancelled and moved on
            logger.debug("msal_provider.late_result_dropped")

    threading.Thread(target=_target, name="msal-sign-in", daemon=True).start()
    return future


async def _run_cancellable(
    fn: Callable[[], Any],
    cancel_event: Optional[asyncio.Event],
    on_cancel: Optional[Callable[[], None]] = None,
) -> Any:
    """Run blocking ``fn`` in a worker thread; give up waiting if ``cancel_event`` is set first.

    A blocking MSAL call cannot be interrupted; ``on_cancel`` is the hook to ask
    it to stop (the browser flow has none and runs until its own timeout).
    """
    work = _run_in_daemon_thread(fn)
    if cancel_event is None:
        return await work

    waiter = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
    if work in done:
        return work.result()

    if on_cancel is not None:
        on_cancel()
    work.cancel()
    raise SignInCancelledError("Sign-in cancelled")


class MsalIdentityProvider:
    """Public client (desktop/device) token acquisition through MSAL.

    Every MSAL call blocks on HTTP or on the browser, so each one runs in a
    worker thread. The token cache passed in is shared by all calls.
    """

    def __init__(
        self,
        client_id: str,
        authority: str,
        redirect_uri: str | None = None,
        token_cache: msal.SerializableTokenCache | None = None,
        app: Any = None,
    ):
        self._client_id = client_id
        self._authority = authority
        self._port = _port_from_redirect(redirect_uri)
        self._app = app or msal.PublicClientApplication(
            client_id,
            authority=authority,
            token_cache=token_cache,
        )
        logger.info("msal_provider.init", client_id=client_id[:8], authority=authority)

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def authority(self) -> str:
        return self._authority

    async def get_accounts(self) -> list[Account]:
        accounts = await asyncio.to_thread(self._app.get_accounts)
        return [Account.from_msal(a) for a in accounts or []]

    async def remove_account(self, account: Account) -> None:
        await asyncio.to_thread(self._app.remove_account, account.raw)
        logger.info("msal_provider.remove_account", username=account.username)

    async def acquire_token_silent(self, scopes: Sequence[str], account: Account) -> SilentResult:
        scope_list = list(scopes)
        try:
            result = await asyncio.to_thread(
                self._app.acquire_token_silent_with_error, scope_list, account=account.raw
            )
        except CacheCorruptionError as e:
            return SilentError(ErrorKind.CACHE_CORRUPTION, str(e))
        except ValueError as e:
            return SilentError(ErrorKind.PROVIDER_CLIENT, str(e))
        except Exception as e:
            return SilentError(ErrorKind.UNEXPECTED, f"{type(e).__name__}: {e}")

        if not result:
            return InteractionRequired("no_cached_token")
        if "access_token" in result:
            return SilentSuccess(Credential.from_msal_result(result, account, scope_list))
        error = result.get("error", "")
        if error in _INTERACTION_ERRORS or result.get("suberror"):
            return InteractionRequired(error)
        return SilentError(ErrorKind.PROVIDER_SERVICE, _error_message(result))

    def _account_for(self, result: dict[str, Any]) -> Account:
        """Find the cache account the token was issued to (called on the worker thread)."""
        claims = result.get("id_token_claims") or {}
        username = claims.get("preferred_username")
        if username:
            matches = self._app.get_accounts(username=username)
            if matches:
                return Account.from_msal(matches[0])
        oid, tid = claims.get("oid"), claims.get("tid")
        home_account_id = f"{oid}.{tid}" if oid and tid else claims.get("sub", "")
        return Account(home_account_id=home_account_id, username=username or "")

    def _credential_from(self, result: dict[str, Any], scopes: list[str]) -> Credential:
        if "access_token" not in result:
            _raise_for_error(result)
        return Credential.from_msal_result(result, self._account_for(result), scopes)

    async def acquire_token_interactive(
        self,
        scopes: Sequence[str],
        extra_scopes: Sequence[str] = (),
        *,
        cancel_event: Optional[asyncio.Event] = None,
        timeout: Optional[int] = None,
    ) -> Credential:
        scope_list = list(scopes)

        def _interactive() -> Credential:
            try:
                result = self._app.acquire_token_interactive(
                    scope_list,
                    prompt="select_account",
                    extra_scopes_to_consent=list(extra_scopes) or None,
                    timeout=timeout,
                    port=self._port,
                )
            except ValueError as e:
                raise ProviderClientError(str(e)) from e
            except OSError as e:
                # No loopback listener or no browser to send the user to
                raise UiUnavailableError(str(e)) from e
            return self._credential_from(result, scope_list)

        return await _run_cancellable(_interactive, cancel_event)

    async def acquire_token_by_device_code(
        self,
        scopes: Sequence[str],
        *,
        on_message: Optional[Callable[[str], None]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Credential:
        scope_list = list(scopes)
        try:
            flow = await asyncio.to_thread(self._app.initiate_device_flow, scopes=scope_list)
        except ValueError as e:
            raise ProviderClientError(str(e)) from e
        if "user_code" not in flow:
            raise ProviderServiceError(
                f"Failed to create device flow: {_error_message(flow)}",
                error_code=flow.get("error"),
            )

        message = flow.get("message", "")
        logger.info("msal_provider.device_code", user_code=flow["user_code"])
        if on_message is not None:
            on_message(message)

        def _poll() -> Credential:
            result = self._app.acquire_token_by_device_flow(flow)
            return self._credential_from(result, scope_list)

        def _stop_polling() -> None:
            # MSAL checks this between polls
            flow["expires_at"] = 0

        return await _run_cancellable(_poll, cancel_event, on_cancel=_stop_polling)
