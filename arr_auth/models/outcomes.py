"""Outcome types: the tagged silent-acquisition result and the overall login result."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel

from arr_auth.models.account import Credential


class LoginStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ErrorKind(str, Enum):
    CACHE_CORRUPTION = "cache_corruption"
    INTERACTION_REQUIRED = "interaction_required"
    UI_UNAVAILABLE = "ui_unavailable"
    PROVIDER_SERVICE = "provider_service"
    PROVIDER_CLIENT = "provider_client"
    STORE_IO = "store_io"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class SilentSuccess:
    credential: Credential


@dataclass(frozen=True)
class InteractionRequired:
    reason: str = ""


@dataclass(frozen=True)
class SilentError:
    kind: ErrorKind
    error: str = ""


SilentResult = Union[SilentSuccess, InteractionRequired, SilentError]


class LoginResult(BaseModel):
    """Terminal outcome of one ``try_login`` call."""

    status: LoginStatus
    credential: Optional[Credential] = None
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None
    interactive: bool = False  # True when the credential came from the interactive phase

    @property
    def succeeded(self) -> bool:
        return self.status == LoginStatus.SUCCESS

    @property
    def cancelled(self) -> bool:
        return self.status == LoginStatus.CANCELLED

    @property
    def access_token(self) -> str:
        """Token string, or an empty string when the login did not succeed."""
        return self.credential.access_token if self.credential else ""

    @classmethod
    def success(cls, credential: Credential, interactive: bool = False) -> "LoginResult":
        return cls(status=LoginStatus.SUCCESS, credential=credential, interactive=interactive)

    @classmethod
    def failed(cls, kind: ErrorKind, error: str = "", interactive: bool = False) -> "LoginResult":
        return cls(status=LoginStatus.FAILED, error_kind=kind, error=error, interactive=interactive)

    @classmethod
    def cancelled_by_caller(cls) -> "LoginResult":
        return cls(status=LoginStatus.CANCELLED, error="Sign-in cancelled", interactive=True)
