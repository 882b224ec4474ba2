"""Identity provider: token acquisition interface and MSAL implementation."""

from arr_auth.identity_provider.authority import resolve_authority
from arr_auth.identity_provider.protocol import IdentityProvider
from arr_auth.identity_provider.msal_provider import MsalIdentityProvider

__all__ = [
    "IdentityProvider",
    "MsalIdentityProvider",
    "resolve_authority",
]
