from __future__ import annotations

import io
import logging
from collections.abc import Iterator
from datetime import datetime
from email.utils import parsedate_to_datetime
from html.parser import HTMLParser
from typing import BinaryIO
from urllib.parse import urljoin, urlparse

import requests

from .base import BaseStorageBackend, ResourceInfo, matches_suffixes, normalize_suffixes

logger = logging.getLogger(__name__)


class _LinkParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.links: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag.lower() != "a":
            return
        for k, v in attrs:
            if k.lower() == "href" and v:
                self.links.append(v)


def _is_parent_link(href: str) -> bool:
    return href in ("..", "../")


class HTTPStorageBackend(BaseStorageBackend):
    """Read-only HTTP backend.

    With a base_url (e.g. https://example.org/data/) paths are posix-style
    locators relative to base_url plus the optional root_prefix. Without one,
    the path of a hop is the URL minus its scheme, so ``https://host/a.zip``
    is served as-is when the backend is registered for ``https``.

    Listing parses HTML directory indexes (typical Apache/Nginx style) to
    discover files and subdirectories. Downloads are buffered into memory.
    """

    def __init__(
        self,
        base_url: str | None = None,
        protocol: str = "https",
        root_prefix: None | str = None,
        default_suffixes: list[str] | None = None,
        timeout: float | None = 10,
        session: requests.Session | None = None,
        backend_id: str | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") + "/" if base_url else None
        self.protocol = protocol
        rp = root_prefix or ""
        self.root_prefix = str(rp).lstrip("/\\")
        if self.root_prefix and not self.root_prefix.endswith("/"):
            self.root_prefix = self.root_prefix.rstrip("/") + "/"

        self.default_suffixes = normalize_suffixes(default_suffixes, None) if default_suffixes else None
        self.timeout = timeout
        self.session = session or requests.Session()
        self.backend_id = backend_id or (self.base_url or f"{protocol}://")

    def _root_url(self) -> str:
        if self.base_url is None:
            return f"{self.protocol}://{self.root_prefix}"
        return urljoin(self.base_url, self.root_prefix or "")

    def _resolve_url(self, locator: str | None = None) -> str:
        """Resolve a posix locator to an absolute URL under the configured root.

        Raises FileNotFoundError when the locator would leave the root.
        """
        root = self._root_url()
        if not locator:
            return root
        loc = str(locator).lstrip("/")
        if self.base_url is None:
            return root + loc
        candidate = urljoin(root, loc)
        rp = urlparse(root)
        cp = urlparse(candidate)
        if cp.netloc != rp.netloc or not cp.path.startswith(rp.path):
            raise FileNotFoundError(f"Locator resolves outside configured root: {locator}")
        return candidate

    def _locator_from_url(self, url: str) -> str | None:
        """Return the locator (path relative to configured root) for an absolute URL, or None if outside root."""
        root = self._root_url()
        if not url.startswith(root):
            return None
        return url[len(root):].lstrip("/")

    def _get_listing(self, url: str) -> list[str]:
        """Fetch an HTML listing page and return discovered hrefs as absolute URLs.

        Unreachable or non-200 pages produce an empty list.
        """
        try:
            r = self.session.get(url, timeout=self.timeout)
        except requests.RequestException:
            logger.debug("listing request failed for %s", url, exc_info=True)
            return []
        if r.status_code != 200:
            return []
        parser = _LinkParser()
        parser.feed(r.text)
        links: list[str] = []
        root = self._root_url()
        for href in parser.links:
            if _is_parent_link(href):
                continue
            abs_url = urljoin(url, href)
            if abs_url.startswith(root):
                links.append(abs_url)
        return links

    def _head_info(self, url: str) -> tuple[int | None, datetime | None]:
        size = None
        last_modified = None
        try:
            head = self.session.head(url, timeout=self.timeout)
        except requests.RequestException:
            return size, last_modified
        if head.status_code != 200:
            return size, last_modified
        cl = head.headers.get("Content-Length")
        if cl and cl.isdigit():
            size = int(cl)
        lm = head.headers.get("Last-Modified")
        if lm:
            try:
                last_modified = parsedate_to_datetime(lm)
            except (TypeError, ValueError):
                last_modified = None
        return size, last_modified

    def list_resources(self, prefix: str | None = None, suffixes: list[str] | None = None) -> Iterator[ResourceInfo]:
        """Breadth-first walk of the directory indexes under prefix."""
        eff_suffixes = normalize_suffixes(suffixes, self.default_suffixes)

        try:
            start_url = self._resolve_url(prefix)
        except FileNotFoundError:
            return

        seen: set[str] = set()
        queue: list[str] = [start_url]
        while queue:
            current = queue.pop(0)
            if current in seen:
                continue
            seen.add(current)

            path = urlparse(current).path
            if path and not path.endswith("/"):
                # file-like URL
                locator = self._locator_from_url(current)
                if locator is None:
                    continue
                if not matches_suffixes(locator.split("/")[-1], eff_suffixes):
                    continue
                size, last_modified = self._head_info(current)
                yield ResourceInfo(locator=locator, size=size, last_modified=last_modified)
                continue

            for child in self._get_listing(current):
                if child not in seen:
                    queue.append(child)

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        """Return an in-memory copy of the resource at path.

        Raises FileNotFoundError if the locator is invalid or the resource is not accessible.
        """
        if "r" not in mode or "+" in mode:
            raise self._unsupported(f"open(mode={mode!r})")
        url = self._resolve_url(path)
        try:
            r = self.session.get(url, stream=True, timeout=self.timeout)
        except requests.RequestException as e:
            raise FileNotFoundError(path) from e
        try:
            if r.status_code != 200:
                raise FileNotFoundError(path)
            data = r.content
        finally:
            r.close()
        logger.debug("downloaded %s (%d bytes)", url, len(data))
        return io.BytesIO(data)
