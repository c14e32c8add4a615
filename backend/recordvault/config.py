from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from recordvault.constants import APP_DIR, MAX_FILES_PER_UPLOAD, MAX_UPLOAD_SIZE


class Settings(BaseSettings):
    app_name: str = "RecordVault Audio Server"

    upload_dir: Path = Field(default_factory=lambda: APP_DIR.parent / "uploads")
    public_dir: Path = Field(default_factory=lambda: APP_DIR.parent / "public")

    # Single fixed account; there is no user database.
    username: str = "admin"
    password: str = "123456"

    session_backend: Literal["memory", "database"] = "memory"
    session_database_url: str = Field(
        default_factory=lambda: f"sqlite:///{(APP_DIR.parent / 'data').as_posix()}/sessions.db"
    )
    session_cookie_name: str = "recordvault.sid"
    # Must be enabled when served behind TLS.
    session_cookie_secure: bool = False
    session_max_age: Optional[int] = None

    max_upload_size: int = MAX_UPLOAD_SIZE
    max_files_per_upload: int = MAX_FILES_PER_UPLOAD

    frontend_url: str = "http://localhost:3000"
    host: str = "0.0.0.0"
    port: int = 8001
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="RECORDVAULT_", case_sensitive=False)


@lru_cache
def get_settings() -> Settings:
    return Settings()
