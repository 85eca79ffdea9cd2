import time
from typing import Dict, List, Optional, Sequence, Tuple, Type

from fastapi import Depends, HTTPException, Request

from aerowx.clients.aviationweather import AviationWeatherClient, WindsAloftClient
from aerowx.clients.base import ProviderClient
from aerowx.clients.checkwx import CheckWXClient
from aerowx.core.config import settings
from aerowx.core.errors import PremiumRequired
from aerowx.data.aerodromes import AerodromeDirectory
from aerowx.services.acquisition import WeatherAcquisitionFacade
from aerowx.services.gateway import FallbackGateway
from aerowx.utils.cache import TTLCache

PROVIDERS: Dict[str, Type[ProviderClient]] = {
    CheckWXClient.name: CheckWXClient,
    AviationWeatherClient.name: AviationWeatherClient,
}

FREE_TIER = "free"

_rate_bucket: Dict[str, Tuple[int, int]] = {}  # ip -> (window_start_epoch, count)
_weather_cache = TTLCache(ttl_seconds=settings.cache_ttl_seconds, max_entries=settings.cache_max_entries)
_nearest_cache = TTLCache(ttl_seconds=settings.cache_ttl_seconds, max_entries=256)
_directory: Optional[AerodromeDirectory] = None


async def rate_limit(request: Request):
    ip = request.client.host if request.client else "unknown"
    now = int(time.time())
    window = now - (now % 60)

    win_start, count = _rate_bucket.get(ip, (window, 0))
    if win_start != window:
        win_start, count = window, 0

    count += 1
    _rate_bucket[ip] = (win_start, count)

    if count > settings.rate_limit_per_minute:
        raise HTTPException(status_code=429, detail="Rate limit exceeded. Try again in a minute.")


def require_premium(request: Request) -> str:
    tier = (request.headers.get("X-BB-Tier") or FREE_TIER).strip().lower()
    if tier == FREE_TIER:
        raise PremiumRequired("Batch weather queries require a premium tier")
    return tier


def build_providers(names: Sequence[str]) -> List[ProviderClient]:
    out = []
    for name in names:
        cls = PROVIDERS.get(name.strip().lower())
        if cls is None:
            raise ValueError(f"Unknown weather provider: {name}. Available: {sorted(PROVIDERS)}")
        out.append(cls())
    return out


def get_directory() -> AerodromeDirectory:
    global _directory
    if _directory is None:
        directory = AerodromeDirectory(cache=_nearest_cache)
        directory.load_path(settings.airports_csv_path)
        _directory = directory
    return _directory


def get_gateway() -> FallbackGateway:
    return FallbackGateway(build_providers(settings.provider_order))


def get_facade(
    directory: AerodromeDirectory = Depends(get_directory),
    gateway: FallbackGateway = Depends(get_gateway),
) -> WeatherAcquisitionFacade:
    return WeatherAcquisitionFacade(
        directory=directory,
        gateway=gateway,
        cache=_weather_cache,
        winds_client=WindsAloftClient(),
    )
