from __future__ import annotations

import io
import logging
from collections.abc import Iterator
from typing import Any, BinaryIO

from azure.core.exceptions import ResourceNotFoundError
from azure.storage.blob import ContainerClient

from .base import BaseStorageBackend, ResourceInfo, matches_suffixes, normalize_suffixes

logger = logging.getLogger(__name__)


class _BlobUploader(io.BytesIO):
    """Buffer that uploads its content to a blob when closed."""

    def __init__(self, client: ContainerClient, name: str) -> None:
        super().__init__()
        self._client = client
        self._name = name

    def close(self) -> None:
        if not self.closed:
            data = self.getvalue()
            self._client.get_blob_client(self._name).upload_blob(data, overwrite=True)
            logger.debug("uploaded blob %s (%d bytes)", self._name, len(data))
        super().close()

    def abort(self) -> None:
        """Discard the buffer without uploading."""
        io.BytesIO.close(self)


class AzureBlobStorageBackend(BaseStorageBackend):
    """Remote object store backend over one Azure blob container.

    Paths are blob names relative to the optional root_prefix. Reads download
    the blob into memory; writes are buffered and uploaded on close.
    A pre-built ContainerClient may be passed instead of a connection string.
    """

    def __init__(
        self,
        connection_string: str | None = None,
        container: str | None = None,
        root_prefix: str | None = None,
        default_suffixes: list[str] | None = None,
        client: Any = None,
        backend_id: str | None = None,
    ):
        if client is None:
            if not connection_string or not container:
                raise ValueError("AzureBlobStorageBackend requires connection_string and container (or client)")
            client = ContainerClient.from_connection_string(connection_string, container_name=container)
        self.client = client
        self.root_prefix = (root_prefix or "").lstrip("/")
        if self.root_prefix and not self.root_prefix.endswith("/"):
            self.root_prefix += "/"
        self.default_suffixes = normalize_suffixes(default_suffixes, None) if default_suffixes else None
        self.backend_id = backend_id or f"azure:{container or getattr(client, 'container_name', '')}"

    def _blob_name(self, path: str) -> str:
        return self.root_prefix + path.lstrip("/")

    def open(self, path: str, mode: str = "rb") -> BinaryIO:
        name = self._blob_name(path)
        if "r" in mode and "+" not in mode:
            blob_client = self.client.get_blob_client(name)
            stream = io.BytesIO()
            try:
                downloader = blob_client.download_blob()
                downloader.readinto(stream)
            except ResourceNotFoundError:
                raise FileNotFoundError(path) from None
            stream.seek(0)
            return stream
        if "w" in mode:
            return _BlobUploader(self.client, name)
        raise self._unsupported(f"open(mode={mode!r})")

    def list_resources(self, prefix: str | None = None, suffixes: list[str] | None = None) -> Iterator[ResourceInfo]:
        """
        List blobs under the optional prefix, optionally filtering by suffixes.

        Locators are reported relative to root_prefix so they can be fed back
        to open and remove.
        """
        eff_suffixes = normalize_suffixes(suffixes, self.default_suffixes)
        full_prefix = self._blob_name(prefix or "")
        for blob in self.client.list_blobs(name_starts_with=full_prefix):
            name = blob.name
            if not matches_suffixes(name, eff_suffixes):
                continue
            yield ResourceInfo(
                locator=name[len(self.root_prefix):],
                size=blob.size,
                last_modified=blob.last_modified,
            )

    def remove(self, path: str) -> None:
        try:
            self.client.delete_blob(self._blob_name(path))
        except ResourceNotFoundError:
            raise FileNotFoundError(path) from None
