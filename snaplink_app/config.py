from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False  # Only toggles uvicorn auto-reload

    # Application
    app_name: str = "SnapLink"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: List[str] = ["*"]

    # Database
    database_url: str = "sqlite:///./snaplink.db"
    url_store_backend: str = "sqlalchemy"  # Options: "sqlalchemy", "memory"

    # Short links
    base_url: str = "http://127.0.0.1:8000"
    short_code_length: int = 6
    max_code_generation_attempts: int = 10

    # Cache settings
    cache_backend: str = "redis"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    cache_ttl: int = 3600  # Cache TTL in seconds (1 hour)

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # Options: "text", "json"

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
