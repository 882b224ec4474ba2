"""Tests for the file-backed credential store."""

import json
import sys
import tempfile
import threading
import unittest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from arr_auth.auth.credential_store import FileCredentialStore, MemoryCredentialStore
from arr_auth.auth.errors import StoreIOError


class TestFileCredentialStore(unittest.TestCase):
    def test_absent_file_reads_empty(self):
        with tempfile.TemporaryDirectory() as tmp:
            store = FileCredentialStore(Path(tmp) / "msalcache.bin3")
            self.assertEqual(store.read_all(), b"")

    def test_write_then_read_survives_new_instance(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "msalcache.bin3"
            FileCredentialStore(path).write_all(b'{"Account": {}}')
            self.assertEqual(FileCredentialStore(path).read_all(), b'{"Account": {}}')

    def test_overwrite_leaves_no_temp_files(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "msalcache.bin3"
            store = FileCredentialStore(path)
            store.write_all(b"first")
            store.write_all(b"second")
            self.assertEqual(store.read_all(), b"second")
            self.assertEqual([p.name for p in Path(tmp).iterdir()], ["msalcache.bin3"])

    def test_delete_is_idempotent(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "msalcache.bin3"
            store = FileCredentialStore(path)
            store.write_all(b"data")
            store.delete()
            self.assertFalse(path.exists())
            store.delete()
            self.assertEqual(store.read_all(), b"")

    def test_io_errors_are_store_errors(self):
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "not-a-dir"
            blocker.write_text("x")
            store = FileCredentialStore(blocker / "msalcache.bin3")
            with self.assertRaises(StoreIOError):
                store.write_all(b"data")

            dir_store = FileCredentialStore(Path(tmp))
            with self.assertRaises(StoreIOError):
                dir_store.read_all()

    def test_concurrent_writes_are_whole_blobs(self):
        """Readers racing writers only ever see one complete blob."""
        with tempfile.TemporaryDirectory() as tmp:
            store = FileCredentialStore(Path(tmp) / "msalcache.bin3")
            blobs = [json.dumps({"writer": i, "pad": "x" * 50_000}).encode() for i in range(4)]
            seen = []

            def write(blob):
                for _ in range(10):
                    store.write_all(blob)

            def read():
                for _ in range(40):
                    data = store.read_all()
                    if data:
                        seen.append(data)

            threads = [threading.Thread(target=write, args=(b,)) for b in blobs]
            threads.append(threading.Thread(target=read))
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            for data in seen + [store.read_all()]:
                self.assertIn(data, blobs)


class TestMemoryCredentialStore(unittest.TestCase):
    def test_round_trip_and_delete(self):
        store = MemoryCredentialStore()
        self.assertEqual(store.read_all(), b"")
        store.write_all(b"blob")
        self.assertEqual(store.read_all(), b"blob")
        store.delete()
        self.assertEqual(store.read_all(), b"")
        self.assertIsNone(store.path)


if __name__ == "__main__":
    unittest.main()
