"""Error types raised inside the sign-in stack.

None of these escape ``LoginOrchestrator.try_login``: the orchestrator maps
them onto ``LoginResult`` with an ``ErrorKind``.
"""


class AuthError(Exception):
    """Base class for sign-in and token cache errors."""


class StoreIOError(AuthError):
    """The credential store could not read, write or delete the cache blob."""


class CacheCorruptionError(AuthError):
    """The cache blob could not be loaded into the in-memory token cache."""


class ProviderError(AuthError):
    """The identity provider rejected a token request."""

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code


class InteractionRequiredError(ProviderError):
    """The request cannot complete without the user signing in again."""


class UiUnavailableError(ProviderError):
    """Interactive sign-in was required but no UI could be shown."""


class ProviderServiceError(ProviderError):
    """The identity provider returned an error response."""


class ProviderClientError(ProviderError):
    """The request was rejected locally (misconfiguration, bad arguments)."""


class LoginFailedError(AuthError):
    """A login attempt finished without a credential."""

    def __init__(self, message: str, result=None):
        super().__init__(message)
        self.result = result


class SignInCancelledError(AuthError):
    """The caller cancelled an interactive sign-in before it completed."""
