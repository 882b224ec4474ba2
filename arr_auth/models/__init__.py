"""Pydantic models and result types for the sign-in flow."""

from arr_auth.models.account import Account, Credential
from arr_auth.models.outcomes import (
    ErrorKind,
    InteractionRequired,
    LoginResult,
    LoginStatus,
    SilentError,
    SilentResult,
    SilentSuccess,
)

__all__ = [
    "Account",
    "Credential",
    "ErrorKind",
    "InteractionRequired",
    "LoginResult",
    "LoginStatus",
    "SilentError",
    "SilentResult",
    "SilentSuccess",
]
