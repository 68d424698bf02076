from .base import BaseStorageBackend, ResourceInfo, StorageBackend
from .filesystem import FilesystemStorageBackend
from .http_listing import HTTPStorageBackend
from .memory import MemoryStorageBackend
from .zip_archive import ZipArchiveBackend

__all__ = [
    "BaseStorageBackend",
    "FilesystemStorageBackend",
    "HTTPStorageBackend",
    "MemoryStorageBackend",
    "ResourceInfo",
    "StorageBackend",
    "ZipArchiveBackend",
]
