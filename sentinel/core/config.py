import os
from functools import lru_cache
from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Smoothing / risk classification defaults
    SMOOTHING_WINDOW: int = 15
    LOW_RISK_MAX: float = 0.35
    HIGH_RISK_MIN: float = 0.65
    HYSTERESIS_ENABLED: bool = True
    HYSTERESIS_MARGIN: float = 0.05

    # Substituted for a failed inference
    NEUTRAL_SCORE: float = 0.5

    # Alerting
    ALERT_SOUND_ENABLED: bool = True

    # Streaming intervals
    SCREEN_CAPTURE_INTERVAL: float = 2.0

    # Reports
    SENTINEL_TMP: str = "./.tmp"
    MAX_REPORTS: int = 100
    REPORT_MAX_AGE_SEC: float = 24 * 3600

    # General
    ENV: str = os.getenv("ENV", "development")
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Ensure .env is loaded once
    load_dotenv(override=False)
    return Settings()
