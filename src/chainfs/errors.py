from __future__ import annotations


class ChainError(Exception):
    """Base class for every error raised while resolving a chained locator."""


class MalformedLocatorError(ChainError, ValueError):
    def __init__(self, locator: str, reason: str) -> None:
        super().__init__(f"malformed locator {locator!r}: {reason}")
        self.locator = locator
        self.reason = reason


class UnknownSchemeError(ChainError, LookupError):
    """No backend is registered for a scheme.

    hop_index is None when the lookup did not happen as part of a chain
    resolution (e.g. a direct registry.resolve call).
    """

    def __init__(self, scheme: str, hop_index: int | None = None) -> None:
        where = f" (hop {hop_index})" if hop_index is not None else ""
        super().__init__(f"no backend registered for scheme {scheme!r}{where}")
        self.scheme = scheme
        self.hop_index = hop_index


class HopNotFoundError(ChainError, FileNotFoundError):
    """A backend could not locate the path of one hop of the chain."""

    def __init__(self, hop_index: int, scheme: str, path: str) -> None:
        super().__init__(f"hop {hop_index} not found: {scheme}://{path}")
        self.hop_index = hop_index
        self.scheme = scheme
        self.path = path


class UnsupportedOperationError(ChainError, NotImplementedError):
    def __init__(self, backend: str, operation: str) -> None:
        super().__init__(f"{backend} does not support {operation}")
        self.backend = backend
        self.operation = operation
