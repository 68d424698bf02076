from chainfs.bootstrap import build_registry
from chainfs.config import Settings
from chainfs.storage.azure_blob import AzureBlobStorageBackend
from chainfs.storage.filesystem import FilesystemStorageBackend
from chainfs.storage.http_listing import HTTPStorageBackend


def test_env_prefix(monkeypatch, tmp_path):
    monkeypatch.setenv("CHAINFS_FILESYSTEM_ROOT", str(tmp_path))
    monkeypatch.setenv("CHAINFS_FILESYSTEM_SCHEMES", " disk , local ,")
    monkeypatch.setenv("CHAINFS_ZIP_SPOOL_MAX_SIZE_MB", "2")
    settings = Settings(_env_file=None)
    assert settings.filesystem_root == str(tmp_path)
    assert settings.get_filesystem_schemes() == ["disk", "local"]
    assert settings.zip_spool_max_size == 2 * 1024 * 1024
    assert not settings.azure_enabled


def test_build_registry_defaults(tmp_path):
    registry = build_registry(Settings(filesystem_root=str(tmp_path), _env_file=None))
    assert registry.schemes() == ["file", "http", "https", "local", "memory", "zip"]
    assert isinstance(registry.resolve("local"), FilesystemStorageBackend)
    assert registry.resolve("file") is registry.resolve("local")
    assert registry.resolve("https").protocol == "https"
    assert isinstance(registry.resolve("http"), HTTPStorageBackend)


def test_build_registry_toggles():
    settings = Settings(
        filesystem_root="",
        memory_enabled=False,
        http_enabled=False,
        zip_schemes="zip,jar",
        _env_file=None,
    )
    assert build_registry(settings).schemes() == ["jar", "zip"]


def test_build_registry_with_azure(monkeypatch):
    created = {}

    def fake_from_connection_string(conn_str, container_name):
        created["args"] = (conn_str, container_name)
        return object()

    monkeypatch.setattr(
        "chainfs.storage.azure_blob.ContainerClient.from_connection_string",
        fake_from_connection_string,
    )
    settings = Settings(
        filesystem_root="",
        memory_enabled=False,
        http_enabled=False,
        zip_enabled=False,
        azure_connection_string="UseDevelopmentStorage=true",
        azure_container="crates",
        _env_file=None,
    )
    registry = build_registry(settings)
    assert registry.schemes() == ["abfs", "az"]
    assert isinstance(registry.resolve("az"), AzureBlobStorageBackend)
    assert created["args"] == ("UseDevelopmentStorage=true", "crates")
