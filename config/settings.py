"""
Centralized configuration for the admissions lead engine.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment (stg | prod) - drives tracking event suffixes
    environment: str = Field(default="stg")

    # Funnel
    timezone: str = Field(default="Asia/Kolkata")
    evaluation_delay_seconds: int = Field(default=10)
    booking_window_days: int = Field(default=7)

    # Lead forwarding
    lead_webhook_url: Optional[str] = Field(default=None)
    lead_webhook_api_key: Optional[str] = Field(default=None)
    webhook_max_retries: int = Field(default=3)
    webhook_retry_delay: float = Field(default=2.0)

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_title: str = Field(default="Admissions Lead Engine API")
    api_version: str = Field(default="1.0.0")
    cors_origins: str = Field(default="*")

    # Logging
    log_level: str = Field(default="INFO")

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() == "prod"

    @property
    def event_suffix(self) -> str:
        return "prod" if self.is_production else "stg"

    @property
    def cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
