"""MSAL token cache kept in sync with a credential store around every access.

``HookedTokenCache`` intercepts the primitives every MSAL cache operation
goes through: ``search`` (reads), ``modify`` and ``add`` (writes). ``TokenCacheBridge``
supplies the hooks: reload the blob before an access, flush it after a change.
Both hooks share one lock, so no two cache accesses in this process ever see
a half-loaded cache or interleave their store writes.
"""

from __future__ import annotations

import json
import threading
from typing import Any, Protocol

import msal

from arr_auth.auth.credential_store import CredentialStore
from arr_auth.auth.errors import StoreIOError
from arr_auth.utils.logger import get_logger

logger = get_logger("arr_auth.auth.token_cache")


class CacheAccessHooks(Protocol):
    """Interception points around each token cache access."""

    lock: threading.RLock

    def on_before_access(self, cache: msal.SerializableTokenCache) -> None:
        ...

    def on_after_access(self, cache: msal.SerializableTokenCache) -> None:
        ...


class HookedTokenCache(msal.SerializableTokenCache):
    """SerializableTokenCache that calls ``hooks`` around each read and write.

    MSAL's own cache lock is replaced by ``hooks.lock`` so there is a single
    lock to take, whichever of MSAL or the hooks gets there first.
    """

    def __init__(self, hooks: CacheAccessHooks):
        super().__init__()
        self._hooks = hooks
        self._lock = hooks.lock
        self._in_add = False

    def search(self, credential_type, *args: Any, **kwargs: Any):
        # Reads never change state, so only the before-access hook runs.
        self._hooks.on_before_access(self)
        return super().search(credential_type, *args, **kwargs)

    def modify(self, credential_type, old_entry, new_key_value_pairs=None):
        with self._hooks.lock:
            if self._in_add:
                super().modify(credential_type, old_entry, new_key_value_pairs)
                return
            self._hooks.on_before_access(self)
            super().modify(credential_type, old_entry, new_key_value_pairs)
            self._hooks.on_after_access(self)

    def add(self, event, **kwargs: Any):
        # One token response becomes several entries; load once, store them all, flush once.
        with self._hooks.lock:
            self._hooks.on_before_access(self)
            self._in_add = True
            try:
                super().add(event, **kwargs)
            finally:
                self._in_add = False
            self._hooks.on_after_access(self)


class TokenCacheBridge:
    """Loads the in-memory cache from the store before access and flushes it after changes.

    A blob that cannot be read or parsed never fails the access: the cache is
    emptied and the failure is kept until ``take_read_failure()`` collects it.
    """

    def __init__(self, store: CredentialStore, lock: threading.RLock | None = None):
        self.store = store
        self.lock = lock or threading.RLock()
        self._read_failure: str | None = None

    def create_cache(self) -> HookedTokenCache:
        """Return a new MSAL token cache wired to this bridge."""
        return HookedTokenCache(self)

    def take_read_failure(self) -> str | None:
        """Return and clear the last read failure, or None if every load since the last call succeeded."""
        with self.lock:
            failure, self._read_failure = self._read_failure, None
        return failure

    def on_before_access(self, cache: msal.SerializableTokenCache) -> None:
        """Replace the in-memory cache with the stored blob.

        Changes that an earlier flush failed to persist are written first and
        kept in memory; the blob is not reloaded over them.
        """
        with self.lock:
            if cache.has_state_changed:
                logger.info("token_cache.retry_write")
                self._flush(cache)
                return

            try:
                blob = self.store.read_all()
            except StoreIOError as e:
                self._discard(cache, str(e))
                return

            if not blob:
                cache.deserialize(None)
                return

            try:
                text = blob.decode("utf-8")
                if not isinstance(json.loads(text), dict):
                    raise ValueError("cache root is not a JSON object")
                cache.deserialize(text)
            except ValueError as e:
                # UnicodeDecodeError and JSONDecodeError are both ValueErrors
                self._discard(cache, f"Token cache blob is unreadable: {e}")

    def on_after_access(self, cache: msal.SerializableTokenCache) -> None:
        """Persist the cache if the access changed it. Write failures are logged, not raised."""
        if not cache.has_state_changed:
            return
        with self.lock:
            self._flush(cache)

    def _flush(self, cache: msal.SerializableTokenCache) -> None:
        data = cache.serialize().encode("utf-8")
        try:
            self.store.write_all(data)
        except StoreIOError as e:
            logger.error("token_cache.write_failed", error=str(e))
            cache.has_state_changed = True  # serialize() cleared it
            return
        cache.has_state_changed = False

    def _discard(self, cache: msal.SerializableTokenCache, reason: str) -> None:
        logger.warning("token_cache.unreadable", error=reason)
        self._read_failure = reason
        cache.deserialize(None)

    def reset(self, cache: msal.SerializableTokenCache | None = None) -> None:
        """Delete the stored blob and empty ``cache``."""
        with self.lock:
            self._read_failure = None
            try:
                self.store.delete()
            except StoreIOError as e:
                logger.error("token_cache.delete_failed", error=str(e))
            if cache is not None:
                cache.deserialize(None)
        logger.warning("token_cache.reset", path=str(self.store.path) if self.store.path else None)
