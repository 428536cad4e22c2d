"""
Application configuration using pydantic-settings.
"""
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )
    
    # Application
    app_name: str = "RECY"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"
    
    # Database
    database_url: str = "sqlite+aiosqlite:///./recy.db"
    
    # Supabase Storage
    supabase_url: str = ""
    supabase_service_role_key: str = ""
    storage_bucket: str = "recy-documents"
    public_bucket: str = "detrash-public"
    read_url_expires_in: int = 3600
    # Upper bound for a single storage call; the whole submission fails past it
    storage_timeout_seconds: float = 10.0
    
    # Optional service key checked on every /api request
    api_key: Optional[str] = None
    
    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
