from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8')

    app_name: str = 'FS Browser'
    app_host: str = '0.0.0.0'
    app_port: int = 4444
    base_path: str = '/srv/files'
    create_base_path: bool = True
    strict_containment: bool = True
    cors_origins: str = 'http://localhost:8080'
    log_level: str = 'info'
    log_file: str = ''
    log_max_bytes: int = Field(default=10 * 1024 * 1024, ge=1024)
    log_backup_count: int = Field(default=5, ge=0)
    upload_chunk_bytes: int = Field(default=1024 * 1024, ge=4096, le=64 * 1024 * 1024)


settings = Settings()
