from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(raw: str | None) -> list[str]:
    return [p.strip() for p in (raw or "").split(",") if p.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CHAINFS_", env_file=".env", extra="ignore")

    # Filesystem backend settings; set filesystem_root to "" to disable
    filesystem_root: str | None = "."
    filesystem_root_prefix: str | None = None
    # Comma-separated list of schemes served by the filesystem backend
    filesystem_schemes: str = "file,local"

    # In-process backend, mostly useful for tests and scratch data
    memory_enabled: bool = True
    memory_schemes: str = "memory"

    # Zip container backend
    zip_enabled: bool = True
    zip_schemes: str = "zip"
    # Containers read from non-seekable streams are spooled to memory up to this
    # size, then to a temporary file on disk.
    zip_spool_max_size_mb: int = 16

    # Azure blob backend, enabled when both connection string and container are set
    azure_connection_string: SecretStr | None = None
    azure_container: str | None = None
    azure_root_prefix: str | None = None
    azure_schemes: str = "az,abfs"

    # HTTP backend (read-only)
    http_enabled: bool = True
    # Without a base URL the hop path is the URL minus its scheme
    http_base_url: str | None = None
    http_timeout: float = 10.0
    http_schemes: str = "http,https"

    def get_filesystem_schemes(self) -> list[str]:
        return _split_csv(self.filesystem_schemes)

    def get_memory_schemes(self) -> list[str]:
        return _split_csv(self.memory_schemes)

    def get_zip_schemes(self) -> list[str]:
        return _split_csv(self.zip_schemes)

    def get_azure_schemes(self) -> list[str]:
        return _split_csv(self.azure_schemes)

    def get_http_schemes(self) -> list[str]:
        return _split_csv(self.http_schemes)

    @property
    def azure_enabled(self) -> bool:
        return bool(self.azure_connection_string and self.azure_container)

    @property
    def zip_spool_max_size(self) -> int:
        return max(0, self.zip_spool_max_size_mb) * 1024 * 1024
