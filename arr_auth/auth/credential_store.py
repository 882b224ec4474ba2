"""Durable byte-blob storage for the serialized token cache."""

import os
import tempfile
import threading
from pathlib import Path
from typing import Protocol

from arr_auth.auth.errors import StoreIOError
from arr_auth.utils.logger import get_logger

logger = get_logger("arr_auth.auth.credential_store")


class CredentialStore(Protocol):
    """Whole-blob read/write of the cache image."""

    @property
    def path(self) -> Path | None:
        ...

    def read_all(self) -> bytes:
        """Return the stored blob, or b"" when nothing is stored."""
        ...

    def write_all(self, data: bytes) -> None:
        """Replace the stored blob."""
        ...

    def delete(self) -> None:
        """Remove the stored blob. No-op if absent."""
        ...


class FileCredentialStore:
    """Credential store backed by a single file.

    Writes go to a temp file in the same directory which is then renamed over
    the target, so a reader sees either the old blob or the new one.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def read_all(self) -> bytes:
        with self._lock:
            try:
                return self._path.read_bytes()
            except FileNotFoundError:
                return b""
            except OSError as e:
                raise StoreIOError(f"Cannot read token cache {self._path}: {e}") from e

    def write_all(self, data: bytes) -> None:
        with self._lock:
            tmp_name = None
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
                )
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, self._path)
                tmp_name = None
            except OSError as e:
                raise StoreIOError(f"Cannot write token cache {self._path}: {e}") from e
            finally:
                if tmp_name is not None:
                    try:
                        os.unlink(tmp_name)
                    except OSError:
                        logger.debug("credential_store.tmp_cleanup_failed", path=tmp_name)
        logger.debug("credential_store.write", path=str(self._path), size=len(data))

    def delete(self) -> None:
        with self._lock:
            try:
                self._path.unlink()
            except FileNotFoundError:
                return
            except OSError as e:
                raise StoreIOError(f"Cannot delete token cache {self._path}: {e}") from e
        logger.info("credential_store.deleted", path=str(self._path))


class MemoryCredentialStore:
    """In-process store; nothing survives a restart. Useful for headless runs and tests."""

    def __init__(self, data: bytes = b""):
        self._data = data
        self._lock = threading.Lock()

    @property
    def path(self) -> None:
        return None

    def read_all(self) -> bytes:
        with self._lock:
            return self._data

    def write_all(self, data: bytes) -> None:
        with self._lock:
            self._data = bytes(data)

    def delete(self) -> None:
        with self._lock:
            self._data = b""
