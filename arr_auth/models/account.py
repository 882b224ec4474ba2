"""Account and credential models (subset of what MSAL returns)."""

import time
from typing import Any

from pydantic import BaseModel, Field


class Account(BaseModel):
    """An identity known to the token cache.

    ``raw`` is the dict MSAL handed us; it is passed back unchanged whenever
    the provider needs the account (silent acquisition, removal).
    """

    home_account_id: str
    username: str = ""
    environment: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict, repr=False)

    @classmethod
    def from_msal(cls, data: dict[str, Any]) -> "Account":
        return cls(
            home_account_id=data.get("home_account_id") or "",
            username=data.get("username") or "",
            environment=data.get("environment"),
            raw=dict(data),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Account):
            return NotImplemented
        return self.home_account_id == other.home_account_id

    def __hash__(self) -> int:
        return hash(self.home_account_id)

    def __str__(self) -> str:
        return self.username or self.home_account_id


class Credential(BaseModel):
    """Access token issued to an account."""

    access_token: str = Field(repr=False)
    account: Account
    expires_on: int  # epoch seconds
    scopes: list[str] = []
    token_type: str = "Bearer"

    @classmethod
    def from_msal_result(cls, result: dict[str, Any], account: Account, scopes: list[str]) -> "Credential":
        """Build from an MSAL token response dict."""
        granted = result.get("scope")
        if isinstance(granted, str):
            granted_scopes = granted.split()
        else:
            granted_scopes = list(scopes)
        return cls(
            access_token=result["access_token"],
            account=account,
            expires_on=int(time.time()) + int(result.get("expires_in", 0)),
            scopes=granted_scopes,
            token_type=result.get("token_type", "Bearer"),
        )

    def is_expired(self, skew_seconds: int = 0) -> bool:
        return time.time() + skew_seconds >= self.expires_on
