from __future__ import annotations

import io
import threading
from collections.abc import Iterator
from datetime import UTC, datetime
from typing import BinaryIO

from .base import BaseStorageBackend, ResourceInfo, matches_suffixes, normalize_suffixes


class _CommitOnClose(io.BytesIO):
    def __init__(self, backend: MemoryStorageBackend, path: str, initial: bytes = b"", append: bool = False) -> None:
        super().__init__(initial)
        self._backend = backend
        self._path = path
        if append:
            self.seek(0, io.SEEK_END)

    def close(self) -> None:
        if not self.closed:
            self._backend._store(self._path, self.getvalue())
        super().close()

    def abort(self) -> None:
        """Discard the buffered bytes; the stored resource is left unchanged."""
        io.BytesIO.close(self)


class MemoryStorageBackend(BaseStorageBackend):
    """In-process backend keeping resources as bytes in a dict.

    Written streams become visible when they are closed. All access to the
    dict goes through a lock so the backend can be shared across threads.
    """

    def __init__(self, initial: dict[str, bytes] | None = None, backend_id: str | None = "memory") -> None:
        self._lock = threading.RLock()
        self._blobs: dict[str, tuple[bytes, datetime]] = {}
        self.backend_id = backend_id
        for path, data in (initial or {}).items():
            self._store(path, data)

    @staticmethod
    def _key(path: str) -> str:
        return path.strip("/")

    def _store(self, path: str, data: bytes) -> None:
        with self._lock:
            self._blobs[self._key(path)] = (bytes(data), datetime.now(UTC))

    def put(self, path: str, data: bytes) -> None:
        self._store(path, data)

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        key = self._key(path)
        with self._lock:
            entry = self._blobs.get(key)
        if "r" in mode and "+" not in mode:
            if entry is None:
                raise FileNotFoundError(path)
            return io.BytesIO(entry[0])
        if "a" in mode or "+" in mode:
            return _CommitOnClose(self, key, entry[0] if entry else b"", append="a" in mode)
        return _CommitOnClose(self, key)

    def list_resources(self, prefix: str | None = None, suffixes: list[str] | None = None) -> Iterator[ResourceInfo]:
        eff_suffixes = normalize_suffixes(suffixes, None)
        start = self._key(prefix or "")
        with self._lock:
            snapshot = sorted(self._blobs.items())
        for key, (data, modified) in snapshot:
            if start and key != start and not key.startswith(start + "/"):
                continue
            if not matches_suffixes(key, eff_suffixes):
                continue
            yield ResourceInfo(locator=key, size=len(data), last_modified=modified)

    def remove(self, path: str) -> None:
        with self._lock:
            if self._blobs.pop(self._key(path), None) is None:
                raise FileNotFoundError(path)
