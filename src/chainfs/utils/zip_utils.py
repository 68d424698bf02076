from __future__ import annotations

import io
import logging
import shutil
import tempfile
import zipfile
from datetime import datetime
from typing import BinaryIO

logger = logging.getLogger(__name__)

DEFAULT_SPOOL_MAX_SIZE = 16 * 1024 * 1024


def ensure_seekable(stream: BinaryIO, spool_max_size: int = DEFAULT_SPOOL_MAX_SIZE) -> tuple[BinaryIO, bool]:
    """Return a seekable view of stream and whether a copy was made.

    Zip archives need random access to their central directory. Streams that
    cannot seek (e.g. raw network bodies) are copied into a spooled temporary
    file which stays in memory up to spool_max_size bytes and rolls over to
    disk beyond that. The caller must close the copy; the original stream is
    left untouched either way.
    """
    seekable = getattr(stream, "seekable", None)
    if seekable is not None and seekable():
        return stream, False
    spool = tempfile.SpooledTemporaryFile(max_size=spool_max_size, prefix="chainfs_zip_")
    try:
        shutil.copyfileobj(stream, spool)
        size = spool.tell()
        spool.seek(0)
    except Exception:
        spool.close()
        raise
    logger.debug("spooled non-seekable stream (%d bytes)", size)
    return spool, True


def zipinfo_modified(info: zipfile.ZipInfo) -> datetime | None:
    try:
        return datetime(*info.date_time)
    except ValueError:
        return None


class ZipMemberStream(io.BufferedIOBase):
    """Read-only stream over one archive member.

    Owns the ZipFile it was opened from (and the spooled copy of the
    container, if one was needed) and closes them with itself. The container
    stream handed to ZipFile is never closed here.
    """

    def __init__(self, archive: zipfile.ZipFile, member: BinaryIO, spool: BinaryIO | None = None) -> None:
        super().__init__()
        self._archive = archive
        self._member = member
        self._spool = spool
        self.name = member.name

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return self._member.seekable()

    def read(self, size: int | None = -1) -> bytes:
        return self._member.read(-1 if size is None else size)

    def read1(self, size: int = -1) -> bytes:
        return self._member.read1(size)

    def readinto(self, b) -> int:
        data = self._member.read(len(b))
        b[: len(data)] = data
        return len(data)

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> int:
        return self._member.seek(offset, whence)

    def tell(self) -> int:
        return self._member.tell()

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._member.close()
            self._archive.close()
        finally:
            if self._spool is not None:
                self._spool.close()
            super().close()
