from __future__ import annotations

import io
import os
import tempfile
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import BinaryIO

from .base import BaseStorageBackend, ResourceInfo, matches_suffixes, normalize_suffixes


def _info_for(path: Path, locator: str) -> ResourceInfo:
    try:
        st = path.stat()
    except OSError:
        return ResourceInfo(locator=locator, size=None, last_modified=None)
    return ResourceInfo(locator=locator, size=st.st_size, last_modified=datetime.fromtimestamp(st.st_mtime))


class _ReplaceOnClose(io.FileIO):
    """Write to a temporary sibling file and move it over the target on close.

    abort() deletes the temporary file, so the target keeps its old content.
    """

    def __init__(self, target: Path) -> None:
        fd, tmp = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.", suffix=".tmp")
        super().__init__(fd, "wb", closefd=True)
        self._target = target
        self._tmp = tmp

    def close(self) -> None:
        if self.closed:
            return
        super().close()
        os.replace(self._tmp, self._target)

    def abort(self) -> None:
        if self.closed:
            return
        super().close()
        os.unlink(self._tmp)


class FilesystemStorageBackend(BaseStorageBackend):
    """
    Filesystem-backed storage backend.

    Args:
        root_dir: Base directory that holds resources. This directory will be
            created if it does not exist. Accepts either a str or pathlib.Path.
        root_prefix: Optional subpath inside root_dir that will act as the logical root
            for all operations (useful to restrict the backend to a subtree).
        default_suffixes: Default suffix filter used when list_resources is called
            with suffixes=None. None (the default) lists every file.
        backend_id: Optional identifier for this instance.
    Behavior:
        - open returns a file object for the given locator; write modes create
          missing parent directories. "w" writes land in a temporary file that
          replaces the target only when closed normally.
        - list_resources yields ResourceInfo entries for files under the combined root.
        - remove deletes a single file.
        - Path traversal is prevented by resolving absolute paths and ensuring they
          remain inside the configured root directory.
    """

    def __init__(
        self,
        root_dir: str | Path,
        root_prefix: None | str | Path = None,
        default_suffixes: list[str] | None = None,
        backend_id: str | None = None,
    ):
        self.root_dir: Path = Path(root_dir).resolve()
        # normalize root_prefix to a string without leading separators
        rp = root_prefix or ""
        if isinstance(rp, Path):
            rp = rp.as_posix()
        self.root_prefix = str(rp).lstrip("/\\")
        self.default_suffixes = normalize_suffixes(default_suffixes, None) if default_suffixes else None
        self.backend_id = backend_id or f"file:{self.root_dir.as_posix()}"

        self.root_dir.mkdir(parents=True, exist_ok=True)
        self._base = (self.root_dir / self.root_prefix).resolve() if self.root_prefix else self.root_dir

    def _resolve(self, relative: str | Path) -> Path:
        """Resolve a relative locator (may include nested subdirs) to an absolute Path
        under self.root_dir + self.root_prefix. Raises FileNotFoundError on unsafe locators.
        """
        relative = str(relative or "").lstrip("/\\")
        full = (self._base / relative).resolve()

        try:
            # will raise ValueError if full is not inside the logical root
            full.relative_to(self._base)
        except ValueError:
            raise FileNotFoundError(f"Unsafe locator or path traversal attempt: {relative!r}") from None

        return full

    def _locator(self, full: Path) -> str:
        return full.relative_to(self._base).as_posix()

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        """
        Return a binary stream for path. The caller is responsible for closing it.

        Raises FileNotFoundError if the locator is invalid or, for read modes,
        the file does not exist.
        """
        if "b" not in mode:
            mode += "b"
        full = self._resolve(path)
        if "r" in mode and "+" not in mode:
            if not full.is_file():
                raise FileNotFoundError(path)
        else:
            full.parent.mkdir(parents=True, exist_ok=True)
            if "w" in mode and "+" not in mode:
                return _ReplaceOnClose(full)
        return full.open(mode)

    def list_resources(
        self, prefix: str | None = None, suffixes: list[str] | None = None
    ) -> Iterator[ResourceInfo]:
        """
        List files under the optional prefix, interpreted relative to the
        configured root_prefix. Yields ResourceInfo with locator set to a
        posix-style path relative to the logical root, so it can be passed
        back to open and remove. A prefix naming a single file
        yields just that file; an unsafe or missing prefix yields nothing.
        """
        eff_suffixes = normalize_suffixes(suffixes, self.default_suffixes)

        try:
            start = self._resolve(prefix or "")
        except FileNotFoundError:
            return

        if not start.exists():
            return

        if start.is_file():
            if matches_suffixes(start.name, eff_suffixes):
                yield _info_for(start, self._locator(start))
            return

        for p in sorted(start.rglob("*")):
            if not p.is_file() or not matches_suffixes(p.name, eff_suffixes):
                continue
            yield _info_for(p, self._locator(p))

    def remove(self, path: str) -> None:
        full = self._resolve(path)
        if not full.is_file():
            raise FileNotFoundError(path)
        full.unlink()
