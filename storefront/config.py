from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class AppConfig(BaseSettings):
    """Application configuration using Pydantic BaseSettings.

    Loads configuration from environment variables and .env file (if present).
    Fields are type-checked and validated. ``jwt_secret`` has no default and a
    minimum length of one, so loading fails when JWT_SECRET is unset or empty.
    """
    # Application
    app_env: str = "local"
    log_level: str = "INFO"

    # Access control
    jwt_secret: str = Field(min_length=1)
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60

    # HTTP
    host: str = "127.0.0.1"
    port: int = 3000
    api_prefix: str = ""
    cors_origins: List[str] = ["*"]

    # Seed data (CSV folder with items.csv and optionally users.csv)
    seed_dir: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

_config: Optional[AppConfig] = None

def get_config() -> AppConfig:
    """Return the AppConfig instance (singleton pattern)."""
    global _config
    if _config is None:
        _config = AppConfig()
    return _config

def set_config_for_test(**kwargs):
    """For testing only: override the AppConfig instance with new values."""
    global _config
    _config = AppConfig(**kwargs)
