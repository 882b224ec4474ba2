"""azure-core credential backed by an AuthSession, for Azure SDK clients (e.g. blob storage)."""

import asyncio
from typing import Any, Optional

from azure.core.credentials import AccessToken

from arr_auth.auth.account_selector import AccountSelector, select_sole_account
from arr_auth.auth.errors import LoginFailedError
from arr_auth.auth.scopes import Scope
from arr_auth.auth.session import AuthSession
from arr_auth.utils.logger import get_logger

logger = get_logger("arr_auth.auth.credential")


class SessionTokenCredential:
    """AsyncTokenCredential that signs in through ``session`` for a fixed scope.

    Scopes passed to ``get_token`` are ignored: the token is always requested
    for ``scope`` so that one consent covers both resource domains.
    """

    def __init__(
        self,
        session: AuthSession,
        client_id: str,
        scope: Scope | str = Scope.STORAGE,
        select_account: AccountSelector = select_sole_account,
        cancel_event: Optional[asyncio.Event] = None,
        authority: Optional[str] = None,
        tenant_id: Optional[str] = None,
        redirect_uri: Optional[str] = None,
    ):
        self._session = session
        self._client_id = client_id
        self._scope = Scope(scope)
        self._select_account = select_account
        self._cancel_event = cancel_event
        self._authority = authority
        self._tenant_id = tenant_id
        self._redirect_uri = redirect_uri

    async def get_token(self, *scopes: str, **kwargs: Any) -> AccessToken:
        if scopes:
            logger.debug("credential.scopes_ignored", requested=list(scopes), scope=self._scope.value)
        result = await self._session.try_login(
            self._client_id,
            self._scope,
            self._select_account,
            self._cancel_event,
            self._authority,
            self._tenant_id,
            self._redirect_uri,
        )
        if not result.succeeded:
            raise LoginFailedError(
                f"Azure AD sign-in {result.status.value}: {result.error or 'no credential'}",
                result=result,
            )
        return AccessToken(result.credential.access_token, result.credential.expires_on)

    async def close(self) -> None:
        return None

    async def __aenter__(self) -> "SessionTokenCredential":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
