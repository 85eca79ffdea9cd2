from pathlib import Path
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DATA_DIR = Path(__file__).resolve().parent.parent / "data"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # App
    app_name: str = Field(default="AeroWx Backend")
    env: str = Field(default="development")
    log_level: str = Field(default="INFO")

    # Network safety
    http_timeout_seconds: float = Field(default=12.0)

    # Rate limiting (per instance, inbound API only)
    rate_limit_per_minute: int = Field(default=30)

    # METAR/TAF cache: 10 minute window, 50 entries
    cache_ttl_seconds: int = Field(default=600)
    cache_max_entries: int = Field(default=50)

    # Providers, tried in this order
    provider_order: List[str] = Field(default=["checkwx", "aviationweather"])
    checkwx_base_url: str = Field(default="https://api.checkwx.com")
    checkwx_api_key: Optional[str] = None
    aviationweather_base_url: str = Field(default="https://aviationweather.gov/api/data")
    winds_aloft_forecast_hours: int = Field(default=6)
    winds_aloft_radius_km: float = Field(default=400.0)

    # Aerodrome dataset (OurAirports airports.csv layout)
    airports_csv_path: Path = Field(default=DATA_DIR / "airports.csv")

    # Aerodrome selection
    aerodrome_radius_km: float = Field(default=100.0)
    nearby_radius_km: float = Field(default=50.0)
    nearby_limit: int = Field(default=10)
    search_limit: int = Field(default=20)


settings = Settings()
