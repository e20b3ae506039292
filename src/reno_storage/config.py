from __future__ import annotations

from functools import lru_cache
from typing import List, Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings


class SupabaseSettings(BaseModel):
    url: Optional[str] = None
    service_key: Optional[str] = None
    timeout_seconds: float = 30.0


class UploadSettings(BaseModel):
    bucket: str = "inspiration-photos"
    photos_table: str = "inspiration_photos"
    max_photos: int = 5
    max_photo_bytes: int = 5 * 1024 * 1024
    # Seconds; sent to storage as "max-age=<n>".
    cache_control: str = "3600"
    # Never overwrite an existing object.
    upsert: bool = False


class Settings(BaseSettings):
    # App
    APP_ENV: str = "development"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Security: Parse JSON list
    CORS_ORIGINS: List[str] = ["*"]

    # Object/record storage backend: "supabase" or "memory".
    # "memory" keeps everything in-process and is meant for local dev only.
    STORAGE_BACKEND: str = "supabase"

    supabase: SupabaseSettings = SupabaseSettings()
    uploads: UploadSettings = UploadSettings()

    class Config:
        env_file = ".env"
        env_nested_delimiter = "__"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
