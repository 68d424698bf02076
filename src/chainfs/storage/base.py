from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Protocol, runtime_checkable

from ..errors import UnsupportedOperationError


@dataclass
class ResourceInfo:
    locator: str
    size: int | None
    last_modified: datetime | None
    is_dir: bool = False


def normalize_suffixes(suffixes: list[str] | None, default_suffixes: list[str] | None) -> list[str] | None:
    """Resolve the effective suffix filter.

    None -> use default_suffixes; [] -> no filtering; otherwise each suffix is
    given a leading dot if it lacks one.
    """
    if suffixes is None:
        return default_suffixes
    if len(suffixes) == 0:
        return None
    return [(s if s.startswith(".") else f".{s}") for s in suffixes]


def matches_suffixes(name: str, suffixes: list[str] | None) -> bool:
    if suffixes is None:
        return True
    lowered = name.lower()
    return any(lowered.endswith(s.lower()) for s in suffixes)


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for pluggable storage backends.

    A backend serves one or more locator schemes. Backends that hold
    physical resources implement open/list_resources/remove; container
    backends (archives) implement open_within/list_within and read their
    container from the stream of the enclosing hop.

    Implementations raise FileNotFoundError for missing resources and
    UnsupportedOperationError for capabilities they lack. backend_id
    identifies the configured instance and is used in log messages.
    """

    backend_id: str | None

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        """Return a binary stream for path. The caller owns and closes it.

        A write stream that only commits on close may also offer abort(),
        which closes it without touching the stored resource.
        """
        ...

    def open_within(self, outer: BinaryIO, path: str, mode: str = "rb") -> BinaryIO:
        """Return a binary stream for path read out of the outer stream.

        The returned stream must not close outer; the caller closes each
        stream of a chain itself.
        """
        ...

    def list_resources(self, prefix: str | None = None, suffixes: list[str] | None = None) -> Iterator[ResourceInfo]:
        """List resources under the optional prefix, optionally filtering by file suffixes.

        Args:
            prefix: Optional relative path prefix to list under.
            suffixes: List of suffix strings (e.g. ['.zip']). If None the
                backend's default filter applies. If an empty list is
                provided, no filtering is applied.
        """
        ...

    def list_within(self, outer: BinaryIO, prefix: str | None = None) -> Iterator[ResourceInfo]:
        """List entries of the container held by the outer stream."""
        ...

    def remove(self, path: str) -> None:
        ...


class BaseStorageBackend:
    """Default implementations that refuse every capability.

    Concrete backends inherit from this and override what they support.
    """

    backend_id: str | None = None

    def _unsupported(self, operation: str) -> UnsupportedOperationError:
        return UnsupportedOperationError(type(self).__name__, operation)

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        raise self._unsupported("open")

    def open_within(self, outer: BinaryIO, path: str, mode: str = "rb") -> BinaryIO:
        raise self._unsupported("open_within")

    def list_resources(self, prefix: str | None = None, suffixes: list[str] | None = None) -> Iterator[ResourceInfo]:
        raise self._unsupported("list_resources")

    def list_within(self, outer: BinaryIO, prefix: str | None = None) -> Iterator[ResourceInfo]:
        raise self._unsupported("list_within")

    def remove(self, path: str) -> None:
        raise self._unsupported("remove")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(backend_id={self.backend_id!r})"
