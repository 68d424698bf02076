from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from contextlib import ExitStack
from typing import BinaryIO

from .errors import HopNotFoundError, UnknownSchemeError
from .locator import Hop, format_locator, parse_locator
from .registry import BackendRegistry

logger = logging.getLogger(__name__)


def _release(stream: BinaryIO) -> None:
    """Close one stream of a chain; a failure here must not hide the error being unwound."""
    try:
        stream.close()
    except Exception:
        logger.debug("failed to close stream %r", stream, exc_info=True)


class OpenStream(io.BufferedIOBase):
    """The innermost stream of a resolved chain.

    Reads, writes and seeks go to the innermost stream. Closing releases
    every stream of the chain, innermost first; close() is idempotent and
    also runs when the object is used as a context manager or collected.
    A with block left by an exception calls abort() instead, so a partial
    write is discarded rather than committed.
    """

    def __init__(self, hops: Sequence[Hop], streams: Sequence[BinaryIO]) -> None:
        super().__init__()
        self.hops = tuple(hops)
        self._streams = list(streams)
        self._released = False

    @property
    def locator(self) -> str:
        return format_locator(self.hops)

    @property
    def raw_stream(self) -> BinaryIO:
        return self._streams[-1]

    def __repr__(self) -> str:
        return f"<OpenStream {self.locator!r} closed={self.closed}>"

    def _check_open(self) -> None:
        if self.closed:
            raise ValueError("I/O operation on closed stream")

    def readable(self) -> bool:
        return self.raw_stream.readable()

    def writable(self) -> bool:
        return self.raw_stream.writable()

    def seekable(self) -> bool:
        return self.raw_stream.seekable()

    def read(self, size: int | None = -1) -> bytes:
        self._check_open()
        return self.raw_stream.read(-1 if size is None else size)

    def read1(self, size: int = -1) -> bytes:
        self._check_open()
        inner = self.raw_stream
        if hasattr(inner, "read1"):
            return inner.read1(size)
        return inner.read(size)

    def readinto(self, b) -> int:
        data = self.read(len(b))
        b[: len(data)] = data
        return len(data)

    def write(self, data) -> int:
        self._check_open()
        return self.raw_stream.write(data)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        self._check_open()
        return self.raw_stream.seek(offset, whence)

    def tell(self) -> int:
        self._check_open()
        return self.raw_stream.tell()

    def flush(self) -> None:
        if not self._released:
            self.raw_stream.flush()

    def close(self) -> None:
        if self._released:
            return
        self._released = True
        first_error: BaseException | None = None
        for stream in reversed(self._streams):
            try:
                stream.close()
            except Exception as e:
                logger.debug("failed to close stream %r", stream, exc_info=True)
                if first_error is None:
                    first_error = e
        super().close()
        if first_error is not None:
            raise first_error

    def abort(self) -> None:
        """Close the chain, discarding pending writes of the innermost stream.

        Streams that commit on close (memory, blob uploads, filesystem
        writes) expose abort(); for the others this is a plain close().
        """
        if self._released:
            return
        discard = getattr(self.raw_stream, "abort", None)
        try:
            if discard is not None:
                discard()
        finally:
            self.close()

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()
        else:
            self.close()


class ChainResolver:
    """Turn a chained locator into a single OpenStream.

    The outermost hop is opened on its backend; each following hop is opened
    by its own backend through the stream of the hop before it. Outer hops
    are always opened for reading, mode applies to the innermost hop.

    Any failure closes the streams opened so far in reverse order before the
    error propagates. Nothing is retried. The resolver keeps no state between
    calls, so one instance may be shared by many threads.
    """

    def __init__(self, registry: BackendRegistry) -> None:
        self.registry = registry

    def open(self, locator: str | Sequence[Hop], mode: str = "rb") -> OpenStream:
        hops = parse_locator(locator) if isinstance(locator, str) else tuple(locator)
        if not hops:
            raise ValueError("cannot resolve an empty hop sequence")

        streams: list[BinaryIO] = []
        with ExitStack() as stack:
            last = len(hops) - 1
            for index, hop in enumerate(hops):
                try:
                    backend = self.registry.resolve(hop.scheme)
                except UnknownSchemeError:
                    raise UnknownSchemeError(hop.scheme, hop_index=index) from None

                hop_mode = mode if index == last else "rb"
                try:
                    if index == 0:
                        stream = backend.open(hop.path, hop_mode)
                    else:
                        stream = backend.open_within(streams[-1], hop.path, hop_mode)
                except FileNotFoundError as e:
                    raise HopNotFoundError(index, hop.scheme, hop.path) from e

                stack.callback(_release, stream)
                streams.append(stream)
                logger.debug("opened hop %d %s via %r", index, hop, backend)

            stack.pop_all()
        return OpenStream(hops, streams)
