"""Resolve chained locators such as ``zip://inner.png::local://archive.zip``."""

from .errors import (
    ChainError,
    HopNotFoundError,
    MalformedLocatorError,
    UnknownSchemeError,
    UnsupportedOperationError,
)
from .fs import ChainedFS, filesystem
from .locator import Hop, format_locator, parse_locator
from .registry import BackendRegistry
from .resolver import ChainResolver, OpenStream

__version__ = "0.1.0"

__all__ = [
    "BackendRegistry",
    "ChainError",
    "ChainResolver",
    "ChainedFS",
    "Hop",
    "HopNotFoundError",
    "MalformedLocatorError",
    "OpenStream",
    "UnknownSchemeError",
    "UnsupportedOperationError",
    "filesystem",
    "format_locator",
    "parse_locator",
]
