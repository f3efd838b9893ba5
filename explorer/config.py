from __future__ import annotations

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MIB = 1024 * 1024


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_file_encoding='utf-8')

    app_name: str = 'Home Explorer'
    home_directory: str = os.path.abspath(os.sep)
    max_upload_file_size: int = Field(default=10 * MIB, ge=1)
    search_result_limit: int = Field(default=50, ge=1)
    path_case_insensitive: bool = False
    static_dir: str = 'static'
    log_level: str = 'info'
    cors_origins: str = ''


settings = Settings()
