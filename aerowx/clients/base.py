"""
Shared plumbing for weather provider adapters.

A provider turns one HTTP GET into a canonical Metar/Taf. Errors are
normalised here so the gateway only ever sees ProviderError subclasses.
"""
from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from aerowx.core.config import settings
from aerowx.core.errors import DataCorrupted, InvalidResponse, InvalidURL, NetworkError, NoData
from aerowx.models.weather import CloudCoverage, ForecastType, Metar, Taf

ICAO_RE = re.compile(r"^[A-Z]{4}$")

DEFAULT_VISIBILITY_SM = 10.0
DEFAULT_TEMPERATURE_C = 15.0
DEFAULT_DEWPOINT_C = 10.0
DEFAULT_ALTIMETER_IN_HG = 29.92
DEFAULT_ALTIMETER_HPA = 1013.25

_COVERAGE = {
    "CLR": CloudCoverage.CLEAR,
    "SKC": CloudCoverage.CLEAR,
    "NCD": CloudCoverage.CLEAR,
    "NSC": CloudCoverage.CLEAR,
    "CAVOK": CloudCoverage.CLEAR,
    "FEW": CloudCoverage.FEW,
    "SCT": CloudCoverage.SCATTERED,
    "BKN": CloudCoverage.BROKEN,
    "OVC": CloudCoverage.OVERCAST,
    "OVX": CloudCoverage.VERTICAL_VISIBILITY,
    "VV": CloudCoverage.VERTICAL_VISIBILITY,
}

_FORECAST_TYPES = {
    "TEMPO": ForecastType.TEMPO,
    "BECMG": ForecastType.BECMG,
    "PROB": ForecastType.PROB,
    "FM": ForecastType.FROM,
}

CLOUD_TYPES = {"CB", "TCU"}


def normalize_icao(icao: str) -> str:
    code = (icao or "").strip().upper()
    if not ICAO_RE.match(code):
        raise InvalidURL(f"Invalid ICAO code: {icao!r}")
    return code


def parse_coverage(code: Optional[str]) -> CloudCoverage:
    if not code:
        return CloudCoverage.CLEAR
    return _COVERAGE.get(str(code).strip().upper(), CloudCoverage.CLEAR)


def parse_forecast_type(change: Optional[str]) -> ForecastType:
    if not change:
        return ForecastType.BASE
    code = str(change).strip().upper()
    if code.startswith("PROB"):
        return ForecastType.PROB
    return _FORECAST_TYPES.get(code, ForecastType.BASE)


def parse_cloud_type(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip().upper() in CLOUD_TYPES:
        return value.strip().upper()
    return None


def parse_time(value: Any, default: Optional[datetime] = None) -> datetime:
    """Accept epoch seconds, ISO-8601 ("Z" or offset) or 'YYYY-MM-DD HH:MM:SS'."""
    fallback = default or datetime.now(timezone.utc)
    if value is None or value == "":
        return fallback
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return fallback
    if isinstance(value, str):
        text = value.strip().replace("Z", "+00:00")
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return fallback
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt
    return fallback


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(str(value).replace(",", "").strip())
    except ValueError:
        return None


def to_int(value: Any) -> Optional[int]:
    f = to_float(value)
    return int(f) if f is not None else None


class HttpSource:
    """One upstream HTTP service; maps transport and status failures to ProviderError."""

    name: str = "provider"

    def __init__(
        self,
        base_url: str,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout_seconds or settings.http_timeout_seconds
        self._client = client
        self._log = logging.getLogger(f"{__name__}.{self.name}")

    def headers(self) -> Dict[str, str]:
        return {"Accept": "application/json"}

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                r = await self._client.get(url, params=params, headers=self.headers(), timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    r = await client.get(url, params=params, headers=self.headers())
        except httpx.HTTPError as exc:
            raise NetworkError(self.name, f"{type(exc).__name__}: {exc}") from exc

        if r.status_code == 204:
            raise NoData(self.name, "empty response")
        if not 200 <= r.status_code < 300:
            self._log.debug("GET %s returned %s: %s", url, r.status_code, r.text[:200])
            raise InvalidResponse(self.name, r.status_code)
        return r

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        r = await self._get(path, params=params)
        try:
            return r.json()
        except ValueError as exc:
            raise DataCorrupted(self.name, "response is not valid JSON") from exc


class ProviderClient(HttpSource, ABC):
    """Uniform async contract for a METAR/TAF source."""

    @abstractmethod
    async def fetch_metar(self, icao: str) -> Metar:
        ...

    @abstractmethod
    async def fetch_taf(self, icao: str) -> Taf:
        ...
