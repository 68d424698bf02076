"""Startup wiring: build a BackendRegistry from Settings.

The registry is constructed once, explicitly, and handed to the resolver
or the ChainedFS facade. There is no module-level default registry.
"""
from __future__ import annotations

import logging

from .config import Settings
from .registry import BackendRegistry
from .storage.azure_blob import AzureBlobStorageBackend
from .storage.filesystem import FilesystemStorageBackend
from .storage.http_listing import HTTPStorageBackend
from .storage.memory import MemoryStorageBackend
from .storage.zip_archive import ZipArchiveBackend

logger = logging.getLogger(__name__)


def build_registry(settings: Settings | None = None) -> BackendRegistry:
    settings = settings or Settings()
    registry = BackendRegistry()

    if settings.filesystem_root:
        fs_backend = FilesystemStorageBackend(
            settings.filesystem_root,
            root_prefix=settings.filesystem_root_prefix or None,
        )
        for scheme in settings.get_filesystem_schemes():
            registry.register(scheme, fs_backend)

    if settings.memory_enabled:
        memory_backend = MemoryStorageBackend()
        for scheme in settings.get_memory_schemes():
            registry.register(scheme, memory_backend)

    if settings.zip_enabled:
        zip_backend = ZipArchiveBackend(spool_max_size=settings.zip_spool_max_size)
        for scheme in settings.get_zip_schemes():
            registry.register(scheme, zip_backend)

    if settings.http_enabled:
        for scheme in settings.get_http_schemes():
            registry.register(
                scheme,
                HTTPStorageBackend(
                    base_url=settings.http_base_url,
                    protocol=scheme,
                    timeout=settings.http_timeout,
                ),
            )

    if settings.azure_enabled:
        azure_backend = AzureBlobStorageBackend(
            settings.azure_connection_string.get_secret_value(),
            settings.azure_container,
            root_prefix=settings.azure_root_prefix,
        )
        for scheme in settings.get_azure_schemes():
            registry.register(scheme, azure_backend)

    logger.info("backend registry ready: %s", ", ".join(registry.schemes()) or "<empty>")
    return registry
