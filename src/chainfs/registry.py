from __future__ import annotations

import logging
import threading
from collections.abc import Mapping

from .errors import UnknownSchemeError
from .storage.base import StorageBackend

logger = logging.getLogger(__name__)


class BackendRegistry:
    """Mapping from locator scheme to the backend serving it.

    Registrations are serialized by a lock and publish a fresh dict, so
    resolve() reads the current snapshot without locking and many resolutions
    can run concurrently with an occasional register().
    """

    def __init__(self, backends: Mapping[str, StorageBackend] | None = None) -> None:
        self._lock = threading.RLock()
        self._backends: dict[str, StorageBackend] = {}
        for scheme, backend in (backends or {}).items():
            self.register(scheme, backend)

    def register(self, scheme: str, backend: StorageBackend) -> None:
        """Insert or replace the backend for scheme."""
        if not scheme:
            raise ValueError("scheme must be a non-empty string")
        with self._lock:
            updated = dict(self._backends)
            replaced = updated.get(scheme)
            updated[scheme] = backend
            self._backends = updated
        if replaced is not None and replaced is not backend:
            logger.info("replaced backend for scheme %r: %r -> %r", scheme, replaced, backend)
        else:
            logger.info("registered backend for scheme %r: %r", scheme, backend)

    def unregister(self, scheme: str) -> None:
        with self._lock:
            if scheme not in self._backends:
                return
            updated = dict(self._backends)
            del updated[scheme]
            self._backends = updated

    def resolve(self, scheme: str) -> StorageBackend:
        backend = self._backends.get(scheme)
        if backend is None:
            raise UnknownSchemeError(scheme)
        return backend

    def schemes(self) -> list[str]:
        return sorted(self._backends)

    def __contains__(self, scheme: object) -> bool:
        return scheme in self._backends

    def __len__(self) -> int:
        return len(self._backends)
