"""Tests for the token cache bridge: load before access, flush after change, one lock."""

import json
import sys
import tempfile
import threading
import time
import unittest
from pathlib import Path

import msal

sys.path.insert(0, str(Path(__file__).resolve().parent))
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from _fakes import RecordingStore, token_response
from arr_auth.auth.credential_store import FileCredentialStore
from arr_auth.auth.token_cache import HookedTokenCache, TokenCacheBridge

ACCOUNT = msal.TokenCache.CredentialType.ACCOUNT


def account_entry(username: str) -> dict:
    return {
        "home_account_id": f"{username}-uid.utid",
        "environment": "login.microsoftonline.com",
        "realm": "contoso",
        "local_account_id": f"{username}-uid",
        "username": username,
        "authority_type": "MSSTS",
    }


def add_account(cache, username: str) -> None:
    entry = account_entry(username)
    cache.modify(ACCOUNT, entry, entry)


def usernames(cache) -> list:
    return sorted(e["username"] for e in cache.search(ACCOUNT))


class SlowStore(RecordingStore):
    """Store that sleeps inside each call and records how many calls overlap."""

    def __init__(self):
        super().__init__()
        self._guard = threading.Lock()
        self.active = 0
        self.max_active = 0

    def _enter(self):
        with self._guard:
            self.active += 1
            self.max_active = max(self.max_active, self.active)

    def _exit(self):
        with self._guard:
            self.active -= 1

    def read_all(self):
        self._enter()
        try:
            time.sleep(0.002)
            return super().read_all()
        finally:
            self._exit()

    def write_all(self, data):
        self._enter()
        try:
            time.sleep(0.002)
            super().write_all(data)
        finally:
            self._exit()


class TestTokenCacheBridge(unittest.TestCase):
    def test_create_cache_is_hooked(self):
        bridge = TokenCacheBridge(RecordingStore())
        cache = bridge.create_cache()
        self.assertIsInstance(cache, HookedTokenCache)
        self.assertIsInstance(cache, msal.SerializableTokenCache)

    def test_empty_store_gives_empty_cache(self):
        bridge = TokenCacheBridge(RecordingStore())
        cache = bridge.create_cache()
        self.assertEqual(usernames(cache), [])

    def test_modify_persists_and_reloads_in_new_process(self):
        """A change written through one bridge is visible through a fresh bridge on the same file."""
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "msalcache.bin3"
            cache = TokenCacheBridge(FileCredentialStore(path)).create_cache()
            add_account(cache, "alice@contoso.com")

            stored = json.loads(path.read_text(encoding="utf-8"))
            self.assertIn(ACCOUNT, stored)
            self.assertEqual(
                [e["username"] for e in stored[ACCOUNT].values()],
                ["alice@contoso.com"],
            )

            restarted = TokenCacheBridge(FileCredentialStore(path)).create_cache()
            self.assertEqual(usernames(restarted), ["alice@contoso.com"])

    def test_read_reloads_changes_from_other_cache(self):
        store = RecordingStore()
        bridge = TokenCacheBridge(store)
        first, second = bridge.create_cache(), bridge.create_cache()
        add_account(first, "alice@contoso.com")
        self.assertEqual(usernames(second), ["alice@contoso.com"])
        add_account(second, "bob@contoso.com")
        self.assertEqual(usernames(first), ["alice@contoso.com", "bob@contoso.com"])

    def test_unchanged_cache_is_not_written(self):
        store = RecordingStore()
        bridge = TokenCacheBridge(store)
        cache = bridge.create_cache()
        usernames(cache)
        bridge.on_after_access(cache)
        self.assertEqual(store.writes, [])

    def test_removal_is_written(self):
        store = RecordingStore()
        cache = TokenCacheBridge(store).create_cache()
        add_account(cache, "alice@contoso.com")
        cache.modify(ACCOUNT, account_entry("alice@contoso.com"))
        self.assertEqual(len(store.writes), 2)
        self.assertEqual(usernames(cache), [])

    def test_corrupt_blob_loads_as_empty_and_is_recorded(self):
        for blob in (b"{not json", b"\xff\xfe\x00garbage", b"[1, 2, 3]"):
            with self.subTest(blob=blob):
                bridge = TokenCacheBridge(RecordingStore(data=blob))
                cache = bridge.create_cache()
                self.assertEqual(usernames(cache), [])
                self.assertIn("unreadable", bridge.take_read_failure())
                self.assertIsNone(bridge.take_read_failure())

    def test_read_failure_resets_to_empty_cache(self):
        store = RecordingStore(data=json.dumps({ACCOUNT: {}}).encode("utf-8"), fail_reads=True)
        bridge = TokenCacheBridge(store)
        cache = bridge.create_cache()
        self.assertEqual(usernames(cache), [])
        self.assertEqual(bridge.take_read_failure(), "permission denied")

    def test_unreadable_store_still_accepts_new_tokens(self):
        """msal's add() after a sign-in modifies the cache several times; none of it may raise."""
        store = RecordingStore(fail_reads=True)
        bridge = TokenCacheBridge(store)
        cache = bridge.create_cache()
        cache.add(token_response("bob@contoso.com"))
        self.assertEqual(len(store.writes), 1)
        written = json.loads(store.writes[-1].decode("utf-8"))
        self.assertEqual([e["username"] for e in written[ACCOUNT].values()], ["bob@contoso.com"])
        self.assertIsNotNone(bridge.take_read_failure())

    def test_write_failure_does_not_raise(self):
        store = RecordingStore(fail_writes=True)
        cache = TokenCacheBridge(store).create_cache()
        add_account(cache, "alice@contoso.com")
        self.assertTrue(cache.has_state_changed)
        self.assertEqual(store.writes, [])

    def test_failed_write_keeps_entries_and_is_retried(self):
        store = RecordingStore(fail_writes=True)
        bridge = TokenCacheBridge(store)
        cache = bridge.create_cache()
        cache.add(token_response("alice@contoso.com"))
        self.assertEqual(usernames(cache), ["alice@contoso.com"])
        self.assertEqual(store.writes, [])

        store.fail_writes = False
        self.assertEqual(usernames(cache), ["alice@contoso.com"])
        self.assertEqual(len(store.writes), 1)
        self.assertFalse(cache.has_state_changed)

        restarted = TokenCacheBridge(RecordingStore(data=store.data)).create_cache()
        self.assertEqual(usernames(restarted), ["alice@contoso.com"])

    def test_reset_deletes_blob_and_empties_cache(self):
        store = RecordingStore(data=b"{broken")
        bridge = TokenCacheBridge(store)
        cache = bridge.create_cache()
        bridge.reset(cache)
        self.assertEqual(store.deleted, 1)
        self.assertEqual(usernames(cache), [])

    def test_hooks_share_one_lock_across_threads(self):
        """Concurrent accesses never overlap in the store and every blob written is a whole cache image."""
        store = SlowStore()
        bridge = TokenCacheBridge(store)
        names = [f"user{i}@contoso.com" for i in range(6)]

        def worker(name):
            cache = bridge.create_cache()
            for _ in range(3):
                add_account(cache, name)
                usernames(cache)

        threads = [threading.Thread(target=worker, args=(n,)) for n in names]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(store.max_active, 1)
        for blob in store.writes:
            self.assertIsInstance(json.loads(blob.decode("utf-8")), dict)
        final = json.loads(store.data.decode("utf-8"))
        self.assertEqual(sorted(e["username"] for e in final[ACCOUNT].values()), names)


if __name__ == "__main__":
    unittest.main()
