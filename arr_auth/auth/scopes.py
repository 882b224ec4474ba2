"""Permission scopes for the two resource domains.

Each scope requests its own permissions and pre-consents the other domain's,
so one consent prompt covers both Remote Rendering and Storage.
"""

from enum import Enum
from typing import NamedTuple

REMOTE_RENDERING_SCOPES = ("https://sts.mixedreality.azure.com/mixedreality.signin",)
STORAGE_SCOPES = ("https://storage.azure.com/user_impersonation",)


class Scope(str, Enum):
    PRIMARY = "primary"  # Azure Remote Rendering
    STORAGE = "storage"  # Azure Storage (model containers)

    @property
    def other(self) -> "Scope":
        return Scope.STORAGE if self is Scope.PRIMARY else Scope.PRIMARY


class ScopeBundle(NamedTuple):
    primary: tuple[str, ...]
    extra: tuple[str, ...]


_PRIMARY_SCOPES: dict[Scope, tuple[str, ...]] = {
    Scope.PRIMARY: REMOTE_RENDERING_SCOPES,
    Scope.STORAGE: STORAGE_SCOPES,
}


def resolve_scopes(scope: Scope | str) -> ScopeBundle:
    """Map a scope to (permissions to request, permissions to pre-consent)."""
    scope = Scope(scope)
    return ScopeBundle(primary=_PRIMARY_SCOPES[scope], extra=_PRIMARY_SCOPES[scope.other])
