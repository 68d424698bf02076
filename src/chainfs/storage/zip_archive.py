from __future__ import annotations

import logging
import zipfile
from collections.abc import Iterator
from typing import BinaryIO

from ..utils.zip_utils import DEFAULT_SPOOL_MAX_SIZE, ZipMemberStream, ensure_seekable, zipinfo_modified
from .base import BaseStorageBackend, ResourceInfo

logger = logging.getLogger(__name__)


class ZipArchiveBackend(BaseStorageBackend):
    """Container backend reading zip members out of the enclosing hop's stream.

    Only the *_within capabilities are supported: a zip hop can never be the
    outermost hop of a chain, and members are read-only. A corrupt container
    and a missing member are both reported as FileNotFoundError.
    """

    def __init__(self, spool_max_size: int = DEFAULT_SPOOL_MAX_SIZE, backend_id: str | None = "zip") -> None:
        self.spool_max_size = spool_max_size
        self.backend_id = backend_id

    def _open_archive(self, outer: BinaryIO) -> tuple[zipfile.ZipFile, BinaryIO | None]:
        source, copied = ensure_seekable(outer, self.spool_max_size)
        spool = source if copied else None
        try:
            return zipfile.ZipFile(source, "r"), spool
        except zipfile.BadZipFile as e:
            if spool is not None:
                spool.close()
            raise FileNotFoundError(f"not a readable zip archive: {e}") from e

    @staticmethod
    def _discard(archive: zipfile.ZipFile, spool: BinaryIO | None) -> None:
        archive.close()
        if spool is not None:
            spool.close()

    def open_within(self, outer: BinaryIO, path: str, mode: str = "rb") -> BinaryIO:
        if any(flag in mode for flag in "wax+"):
            raise self._unsupported(f"open_within(mode={mode!r})")
        member_name = path.lstrip("/")
        archive, spool = self._open_archive(outer)
        try:
            member = archive.open(member_name, "r")
        except (KeyError, zipfile.BadZipFile) as e:
            self._discard(archive, spool)
            raise FileNotFoundError(path) from e
        except BaseException:
            self._discard(archive, spool)
            raise
        logger.debug("opened zip member %s", member_name)
        return ZipMemberStream(archive, member, spool)

    def list_within(self, outer: BinaryIO, prefix: str | None = None) -> Iterator[ResourceInfo]:
        """Yield the archive entries named prefix or lying under it, in archive order.

        The prefix matches whole path components: "images" selects
        images/x.png but not images2/y.png.
        """
        start = (prefix or "").lstrip("/")
        under = start.rstrip("/") + "/"
        archive, spool = self._open_archive(outer)
        try:
            for info in archive.infolist():
                if start and info.filename != start and not info.filename.startswith(under):
                    continue
                yield ResourceInfo(
                    locator=info.filename,
                    size=None if info.is_dir() else info.file_size,
                    last_modified=zipinfo_modified(info),
                    is_dir=info.is_dir(),
                )
        finally:
            self._discard(archive, spool)
