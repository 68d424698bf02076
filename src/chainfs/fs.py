from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence

from .bootstrap import build_registry
from .config import Settings
from .errors import HopNotFoundError, UnknownSchemeError, UnsupportedOperationError
from .locator import Hop, parse_locator
from .registry import BackendRegistry
from .resolver import ChainResolver, OpenStream
from .storage.base import ResourceInfo

logger = logging.getLogger(__name__)


class ChainedFS:
    """File-like operations over chained locators.

    Example:
        fs = filesystem()
        with fs.open("zip://images/logo.png::local://assets.zip") as f:
            data = f.read()
        fs.ls("zip://images/::local://assets.zip")
    """

    def __init__(self, registry: BackendRegistry) -> None:
        self.registry = registry
        self.resolver = ChainResolver(registry)

    def _backend(self, hop: Hop, index: int):
        try:
            return self.registry.resolve(hop.scheme)
        except UnknownSchemeError:
            raise UnknownSchemeError(hop.scheme, hop_index=index) from None

    def open(self, locator: str | Sequence[Hop], mode: str = "rb") -> OpenStream:
        return self.resolver.open(locator, mode)

    def cat(self, locator: str | Sequence[Hop]) -> bytes:
        with self.open(locator) as f:
            return f.read()

    def ls(self, locator: str, suffixes: list[str] | None = None) -> list[ResourceInfo]:
        """List the entries addressed by locator.

        A single hop lists through the backend's list_resources. A chained
        locator opens every container hop and lists the innermost one with
        list_within, using the innermost path as a prefix; suffixes only
        apply to single-hop listings.
        """
        hops = parse_locator(locator)
        inner_index = len(hops) - 1
        inner = hops[-1]
        backend = self._backend(inner, inner_index)
        if len(hops) == 1:
            try:
                return list(backend.list_resources(inner.path or None, suffixes))
            except FileNotFoundError as e:
                raise HopNotFoundError(0, inner.scheme, inner.path) from e

        with self.resolver.open(hops[:-1]) as container:
            try:
                return list(backend.list_within(container, inner.path or None))
            except FileNotFoundError as e:
                raise HopNotFoundError(inner_index, inner.scheme, inner.path) from e

    def copy(self, src: str | Sequence[Hop], dst: str | Sequence[Hop]) -> None:
        """Stream the bytes of src into dst, replacing dst.

        If reading src fails part way, dst keeps its previous content.
        """
        with self.open(src) as reader, self.open(dst, "wb") as writer:
            shutil.copyfileobj(reader, writer)
        logger.debug("copied %s -> %s", reader.locator, writer.locator)

    def rm(self, locator: str) -> None:
        """Remove the resource at a single-hop locator."""
        hops = parse_locator(locator)
        if len(hops) > 1:
            raise UnsupportedOperationError(type(self).__name__, "rm inside a container")
        hop = hops[0]
        backend = self._backend(hop, 0)
        try:
            backend.remove(hop.path)
        except FileNotFoundError as e:
            raise HopNotFoundError(0, hop.scheme, hop.path) from e

    def exists(self, locator: str | Sequence[Hop]) -> bool:
        """True when every hop of locator resolves.

        Only a missing resource answers False. UnknownSchemeError,
        UnsupportedOperationError and MalformedLocatorError propagate: they
        describe a locator that can never resolve under this registry.
        """
        try:
            with self.open(locator):
                return True
        except HopNotFoundError:
            return False


def filesystem(settings: Settings | None = None, registry: BackendRegistry | None = None) -> ChainedFS:
    """Build a ChainedFS from an explicit registry, or from settings."""
    if registry is None:
        registry = build_registry(settings)
    return ChainedFS(registry)
