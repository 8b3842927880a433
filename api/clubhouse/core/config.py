"""Application configuration from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # App
    app_name: str = "Clubhouse"
    debug: bool = True
    log_level: str = "INFO"
    secret_key: str = "dev-secret-change-in-production"
    api_prefix: str = "/api/v1"

    # Database (single key-value table)
    database_url: str = "postgresql+asyncpg://clubhouse:clubhouse@db:5432/clubhouse"
    database_echo: bool = False

    # Store call policy
    store_timeout_seconds: float = 5.0
    store_read_attempts: int = 3
    store_retry_base_delay: float = 0.05
    admission_attempts: int = 10
    admission_max_delay: float = 1.0

    # Redis / Celery event bus
    redis_url: str = "redis://redis:6379/0"
    event_publish_timeout_seconds: float = 3.0
    event_source_prefix: str = "clubhouse"

    # Auth
    access_token_expire_minutes: int = 60 * 24
    jwt_algorithm: str = "HS256"

    # Email / SMTP
    smtp_host: str = "localhost"
    smtp_port: int = 1025
    smtp_from: str = "noreply@clubhouse.club"
    smtp_timeout_seconds: float = 10.0

    # Bookings
    duration_policy: str = "whole_hours"  # whole_hours | exact
    default_booking_notes: str = "No notes provided."

    model_config = {"env_prefix": "CH_", "env_file": ".env", "extra": "ignore"}


settings = Settings()
