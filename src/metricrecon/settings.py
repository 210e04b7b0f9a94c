"""Application settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings, read from METRICRECON_* environment variables or .env."""

    data_home: Path = Path.home() / ".metricrecon"
    metadata_cache_minutes: int = 10  # 0 disables the describe cache
    timeout_minutes: int = 10
    environments_file: Path = Path("environments.yaml")
    log_level: str = "WARNING"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_prefix="METRICRECON_",
        extra="ignore",
    )

    @property
    def metadata_cache_path(self) -> Path:
        return self.data_home / "metadata-cache.json"
