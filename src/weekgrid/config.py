"""Application settings."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Default data directory
DATA_DIR = Path(__file__).parent.parent.parent / "data"


class Settings(BaseSettings):
    """Settings read from ``WEEKGRID_*`` environment variables or ``.env``."""

    data_dir: Path = Field(default=DATA_DIR)
    user_id: str = "local"
    log_level: str = "INFO"
    log_file: str | None = None
    burst_window_ms: int = Field(default=60_000, ge=0)
    collapse_supersets: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="WEEKGRID_",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @property
    def db_path(self) -> Path:
        """Database file inside the data directory."""
        return self.data_dir / "weekgrid.db"


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings (read once)."""
    return Settings()
