from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


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
    debug: bool = False
    
    # Application
    app_name: str = "Short Link Service"
    app_version: str = "1.0.0"
    
    # Logging
    log_level: str = "INFO"
    log_json: bool = False
    
    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    # Browser origins allowed to call the API; JSON list in the env, e.g. CORS_ORIGINS='["https://app.example"]'
    cors_origins: List[str] = ["*"]
    
    # Durable store
    store_backend: str = "sqlalchemy"  # Options: "sqlalchemy", "memory"
    database_url: str = "sqlite:///./shortlinks.db"
    
    # Short links
    base_url: str = "http://127.0.0.1:8000"  # Prefix for every short_url
    short_id_length: int = 7
    max_insert_retries: int = 3  # Extra attempts after an id collision
    
    # Cache settings
    cache_backend: str = "redis"  # Options: "redis", "memory", "null"
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: float = 2.0  # Seconds, for connect and for each command
    # Use a per-process cache instead of failing when Redis is down at startup
    cache_fallback_to_memory: bool = False
    positive_cache_ttl: int = 86400  # Seconds a resolved URL stays cached
    negative_cache_ttl: int = 300    # Seconds an "expired" marker stays cached
    # When True, a link's cache entry never outlives the link itself
    cap_cache_ttl_to_expiry: bool = False
    
    # Cleanup of expired links (daily, UTC wall clock)
    cleanup_enabled: bool = True
    cleanup_hour: int = 3
    cleanup_minute: int = 0
    
    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
