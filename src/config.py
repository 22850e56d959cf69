"""
Application configuration using pydantic-settings.
Loads from environment variables with .env file support.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./learning_platform.db"

    # Security (bearer tokens issued by the identity provider)
    secret_key: str = "change-this-in-production-minimum-32-characters-long"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 1440  # 24 hours

    # OpenAI (open-text scoring oracle)
    openai_api_key: str = ""
    scoring_model: str = "gpt-4o-mini"
    scoring_timeout_seconds: float = 20.0

    # Cache TTLs (seconds)
    cache_ttl_content: float = 120.0
    cache_ttl_user: float = 60.0
    cache_ttl_stats: float = 300.0
    cache_ttl_levels: float = 3600.0

    # Scoring and certificates
    open_text_pass_score: int = 70
    completion_pass_score: int = 70
    verification_code_max_attempts: int = 10

    # Content lifecycle
    enforce_publish_order: bool = False

    # Analytics
    active_user_window_days: int = 30
    top_performers_limit: int = 10
    recent_completions_limit: int = 10

    # Application
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR

    # API Settings
    api_v1_prefix: str = "/api/v1"
    project_name: str = "Learning Platform Content Engine"
    version: str = "1.0.0"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
