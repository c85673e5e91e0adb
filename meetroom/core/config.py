"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Meeting Scheduler"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"  # Bind to all interfaces for external access
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./meetroom.db"
    db_timeout_seconds: float = 5.0
    store_retry_attempts: int = 3
    store_retry_backoff_seconds: float = 0.2

    # Rooms and sessions
    session_cookie_name: str = "meetroom_session"
    secret_length: int = 8
    room_ttl_hours: int = 24 * 7

    # Cleanup settings
    cleanup_interval_minutes: int = 30


settings = Settings()
