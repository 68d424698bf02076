from __future__ import annotations

import datetime
from types import SimpleNamespace

import pytest
from azure.core.exceptions import ResourceNotFoundError

from chainfs.registry import BackendRegistry
from chainfs.resolver import ChainResolver
from chainfs.storage.azure_blob import AzureBlobStorageBackend
from chainfs.storage.zip_archive import ZipArchiveBackend
from factories.archive_factories import make_zip_bytes

MODIFIED = datetime.datetime(2024, 5, 1, tzinfo=datetime.UTC)


class FakeDownloader:
    def __init__(self, data: bytes):
        self.data = data

    def readinto(self, stream):
        stream.write(self.data)
        return len(self.data)


class FakeBlobClient:
    def __init__(self, container: FakeContainerClient, name: str):
        self.container = container
        self.name = name

    def download_blob(self):
        if self.name not in self.container.blobs:
            raise ResourceNotFoundError(f"blob {self.name} not found")
        return FakeDownloader(self.container.blobs[self.name])

    def upload_blob(self, data, overwrite=False):
        if not overwrite and self.name in self.container.blobs:
            raise AssertionError("upload without overwrite")
        self.container.blobs[self.name] = bytes(data)


class FakeContainerClient:
    container_name = "crates"

    def __init__(self, blobs: dict[str, bytes]):
        self.blobs = dict(blobs)

    def get_blob_client(self, name):
        return FakeBlobClient(self, name)

    def list_blobs(self, name_starts_with=None):
        for name in sorted(self.blobs):
            if name_starts_with and not name.startswith(name_starts_with):
                continue
            yield SimpleNamespace(name=name, size=len(self.blobs[name]), last_modified=MODIFIED)

    def delete_blob(self, name):
        if name not in self.blobs:
            raise ResourceNotFoundError(f"blob {name} not found")
        del self.blobs[name]


@pytest.fixture
def client():
    return FakeContainerClient(
        {
            "prefix/a.zip": make_zip_bytes({"inner.png": b"png-bytes"}),
            "prefix/b.txt": b"text",
            "other/c.zip": b"c",
        }
    )


def test_requires_connection_details():
    with pytest.raises(ValueError):
        AzureBlobStorageBackend()


def test_list_relative_to_root_prefix(client):
    backend = AzureBlobStorageBackend(client=client, root_prefix="prefix")
    items = list(backend.list_resources())
    assert [it.locator for it in items] == ["a.zip", "b.txt"]
    assert items[0].last_modified == MODIFIED
    assert [it.locator for it in backend.list_resources(suffixes=[".zip"])] == ["a.zip"]
    assert backend.backend_id == "azure:crates"


def test_read_write_remove(client):
    backend = AzureBlobStorageBackend(client=client, root_prefix="prefix/")
    with backend.open("b.txt") as stream:
        assert stream.read() == b"text"

    with backend.open("new/d.bin", "wb") as stream:
        stream.write(b"fresh")
    assert client.blobs["prefix/new/d.bin"] == b"fresh"

    backend.remove("b.txt")
    assert "prefix/b.txt" not in client.blobs
    with pytest.raises(FileNotFoundError):
        backend.remove("b.txt")
    with pytest.raises(FileNotFoundError):
        backend.open("b.txt")


def test_chain_into_blob_archive(client):
    registry = BackendRegistry({"az": AzureBlobStorageBackend(client=client), "zip": ZipArchiveBackend()})
    with ChainResolver(registry).open("zip://inner.png::az://prefix/a.zip") as stream:
        assert stream.read() == b"png-bytes"


def test_aborted_upload_is_discarded(client):
    backend = AzureBlobStorageBackend(client=client, root_prefix="prefix")
    stream = backend.open("b.txt", "wb")
    stream.write(b"PART")
    stream.abort()
    stream.close()
    assert client.blobs["prefix/b.txt"] == b"text"
