"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from nutrition_log.domain.transfer import ImportCommitMode

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    admin_token: str
    storage_backend: str = "memory"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    data_dir: str = "data"
    timezone: str = "UTC"
    export_progress_interval: int = 10
    import_commit_mode: ImportCommitMode = ImportCommitMode.PER_ROW
    goals_file: str = "goals.json"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def resolve_data_file(data_dir: str, name: str) -> Path:
    """Return a path for ``name`` inside ``data_dir``, rejecting traversal."""
    base = Path(data_dir).expanduser().resolve()
    candidate = (base / name).resolve()
    if candidate.parent != base or not candidate.name:
        raise ValueError(f"File name {name!r} must be a plain name inside {base}")
    return candidate
