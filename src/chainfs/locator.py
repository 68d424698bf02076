from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .errors import MalformedLocatorError

HOP_SEPARATOR = "::"
SCHEME_SEPARATOR = "://"


@dataclass(frozen=True)
class Hop:
    scheme: str
    path: str

    def __str__(self) -> str:
        return f"{self.scheme}{SCHEME_SEPARATOR}{self.path}"


def _parse_segment(locator: str, segment: str) -> Hop:
    scheme, sep, path = segment.partition(SCHEME_SEPARATOR)
    if not sep:
        raise MalformedLocatorError(locator, f"segment {segment!r} has no '{SCHEME_SEPARATOR}'")
    if not scheme:
        raise MalformedLocatorError(locator, f"segment {segment!r} has an empty scheme")
    return Hop(scheme=scheme, path=path)


def parse_locator(locator: str) -> tuple[Hop, ...]:
    """Parse a chained locator into its hops, outermost first.

    The textual form lists the innermost resource first, e.g.
    ``zip://inner.png::local://archive.zip`` parses to
    ``(Hop("local", "archive.zip"), Hop("zip", "inner.png"))``.

    Paths are returned verbatim: wildcards and percent-escapes are left for
    the responsible backend.
    """
    if not locator:
        raise MalformedLocatorError(locator, "empty locator")
    segments = locator.split(HOP_SEPARATOR)
    hops = [_parse_segment(locator, seg) for seg in segments]
    hops.reverse()
    return tuple(hops)


def format_locator(hops: Sequence[Hop]) -> str:
    """Inverse of parse_locator: join outermost-first hops back into a locator."""
    if not hops:
        raise ValueError("cannot format an empty hop sequence")
    return HOP_SEPARATOR.join(str(h) for h in reversed(hops))
