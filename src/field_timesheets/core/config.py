from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    environment: str = "dev"

    timezone: str = "America/New_York"

    google_maps_api_key: str | None = None
    travel_time_timeout_seconds: float = 10.0
    allocation_timeout_seconds: float | None = 30.0

    default_day_hours: float = 8.0
    complexity_keywords: list[str] = [
        "install",
        "replace",
        "repair",
        "leak",
        "leaking",
        "remove",
        "service",
        "shovel",
        "snow",
        "emergency",
    ]


settings = Settings()
