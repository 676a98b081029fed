"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env at the project root
_env_path = Path(__file__).resolve().parent.parent / ".env"


class Settings(BaseSettings):
    app_title: str = "Waiting List API"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    # JWT: override SECRET_KEY in .env for anything but local use
    secret_key: str = "your-secret-key-keep-it-secret"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Range matching window when the caller gives no end date
    default_match_window_days: int = 30

    class Config:
        env_file = _env_path
        extra = "ignore"

    @field_validator("log_level", mode="after")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return (v or "INFO").strip().upper()


settings = Settings()
