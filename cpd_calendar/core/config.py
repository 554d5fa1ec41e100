"""Application configuration via environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "CPD Calendar"
    debug: bool = False
    log_dir: str = "~/.logs/cpd-calendar"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./cpd_calendar.db"

    # Push notifications (Expo)
    expo_push_url: str = "https://exp.host/--/api/v2/push/send"
    push_enabled: bool = True
    push_timeout_seconds: float = 10.0
    push_retry_interval_minutes: int = 15
    push_max_attempts: int = 3

    # Client transport
    api_base_url: str = "http://localhost:8000"
    api_timeout_seconds: float = 15.0


settings = Settings()
