"""Error taxonomy shared by the clients, the gateway and the facade."""
from __future__ import annotations

from typing import List, Optional, Tuple


class AviationWeatherError(Exception):
    """Root of every error the engine raises on purpose."""


class InvalidURL(AviationWeatherError):
    """A request could not be built (malformed station identifier)."""


class DatasetError(AviationWeatherError):
    """The aerodrome dataset could not be ingested at all."""


class NoAerodromeFound(AviationWeatherError):
    def __init__(self, lat: float, lon: float, radius_km: float):
        self.lat = lat
        self.lon = lon
        self.radius_km = radius_km
        super().__init__(f"No aerodrome with METAR within {radius_km:g} km of ({lat:.4f}, {lon:.4f})")


class PremiumRequired(AviationWeatherError):
    """Raised by the entitlement gate in front of batch queries."""


class ProviderError(AviationWeatherError):
    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class NetworkError(ProviderError):
    """Transport failure, or an HTTP failure when status_code is set."""

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(provider, message)


class InvalidResponse(NetworkError):
    """Non-2xx HTTP status."""

    def __init__(self, provider: str, status_code: int):
        super().__init__(provider, f"HTTP {status_code}", status_code=status_code)


class DataCorrupted(ProviderError):
    """Payload could not be decoded into the canonical model."""


class NoData(ProviderError):
    """Provider answered but had nothing for the station."""


class AllProvidersFailed(AviationWeatherError):
    def __init__(self, product: str, icao: str, errors: List[Tuple[str, ProviderError]]):
        self.product = product
        self.icao = icao
        self.errors = errors
        detail = "; ".join(str(e) for _, e in errors) or "no providers configured"
        super().__init__(f"All providers failed for {product} {icao}: {detail}")

    @property
    def providers(self) -> List[str]:
        return [name for name, _ in self.errors]


_HTTP_STATUS = (
    (NoAerodromeFound, 404),
    (InvalidURL, 400),
    (PremiumRequired, 402),
    (AllProvidersFailed, 502),
    (ProviderError, 502),
    (DatasetError, 503),
)


def http_status_for(exc: AviationWeatherError) -> int:
    for kind, status in _HTTP_STATUS:
        if isinstance(exc, kind):
            return status
    return 500
