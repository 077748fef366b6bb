"""
Service Settings

Pydantic settings for the API server and storage backend.
"""

from pydantic_settings import BaseSettings
from pydantic import Field
from typing import List, Optional
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings, read from VADIS_* environment variables and .env."""

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    debug: bool = Field(default=False)
    log_level: str = Field(default="info")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    # Storage: "memory" or "supabase"
    storage_backend: str = Field(default="memory")
    supabase_url: str = Field(default="")
    supabase_key: str = Field(default="")

    # Analysis
    analysis_config_path: Optional[str] = Field(default=None)
    offline: bool = Field(default=False)
    analysis_rate_limit: str = Field(default="10/minute")

    class Config:
        env_prefix = "VADIS_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
