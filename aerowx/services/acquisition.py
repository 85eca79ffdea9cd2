"""
Weather acquisition for a position.

Resolves the nearest METAR-reporting aerodrome, then fetches the METAR
(mandatory), TAF and winds aloft (optional) and the nearby list
concurrently. Optional branches are wrapped with ``optional()`` so that a
missing TAF never fails the bundle.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Dict, List, Optional, Sequence, TypeVar

from aerowx.clients.aviationweather import WindsAloftClient
from aerowx.core.config import settings
from aerowx.core.errors import AviationWeatherError, NoAerodromeFound, NoData
from aerowx.data.aerodromes import AerodromeDirectory
from aerowx.models.acquisition import AcquisitionBundle, BatchItem, Coordinate, DerivedConditions
from aerowx.models.aerodrome import Aerodrome
from aerowx.models.weather import Metar, Taf, WindsAloft
from aerowx.services import alerts, calculations
from aerowx.services.gateway import FallbackGateway
from aerowx.utils.cache import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

WINDS_TABLE_KEY = "windtemp_table"
# FD station identifiers drop the ICAO region letter
FD_ICAO_PREFIXES = ("K", "P", "C")


def metar_key(icao: str) -> str:
    return f"metar_{icao}"


def taf_key(icao: str) -> str:
    return f"taf_{icao}"


async def optional(awaitable: Awaitable[T], label: str) -> Optional[T]:
    """Await an optional branch; engine errors become None instead of propagating."""
    try:
        return await awaitable
    except AviationWeatherError as exc:
        logger.info("Optional %s unavailable: %s", label, exc)
        return None


class WeatherAcquisitionFacade:
    def __init__(
        self,
        directory: AerodromeDirectory,
        gateway: FallbackGateway,
        cache: TTLCache,
        winds_client: Optional[WindsAloftClient] = None,
        selection_radius_km: Optional[float] = None,
        nearby_radius_km: Optional[float] = None,
        nearby_limit: Optional[int] = None,
        winds_radius_km: Optional[float] = None,
    ):
        self.directory = directory
        self.gateway = gateway
        self.cache = cache
        self.winds_client = winds_client
        self.selection_radius_km = selection_radius_km or settings.aerodrome_radius_km
        self.nearby_radius_km = nearby_radius_km or settings.nearby_radius_km
        self.nearby_limit = nearby_limit or settings.nearby_limit
        self.winds_radius_km = winds_radius_km or settings.winds_aloft_radius_km

    # Public API ---------------------------------------------------------
    async def acquire(self, lat: float, lon: float) -> AcquisitionBundle:
        aerodrome = self.nearest_aerodrome(lat, lon)

        metar, taf, winds, nearby = await asyncio.gather(
            self.metar(aerodrome.icao),
            optional(self.taf(aerodrome.icao), "TAF"),
            optional(self.winds_aloft(lat, lon), "winds aloft"),
            self.nearby(lat, lon),
        )

        return AcquisitionBundle(
            aerodrome=aerodrome,
            metar=metar,
            taf=taf,
            winds_aloft=winds,
            nearby_aerodromes=nearby,
        )

    async def acquire_many(self, coordinates: Sequence[Coordinate]) -> List[BatchItem]:
        async def one(coord: Coordinate) -> BatchItem:
            try:
                bundle = await self.acquire(coord.lat, coord.lon)
            except AviationWeatherError as exc:
                return BatchItem(coordinate=coord, error=str(exc))
            return BatchItem(coordinate=coord, bundle=bundle)

        return list(await asyncio.gather(*(one(c) for c in coordinates)))

    def nearest_aerodrome(self, lat: float, lon: float) -> Aerodrome:
        found = self.directory.nearest(lat, lon, self.selection_radius_km, limit=1)
        if not found:
            raise NoAerodromeFound(lat, lon, self.selection_radius_km)
        return found[0]

    async def nearby(self, lat: float, lon: float) -> List[Aerodrome]:
        return self.directory.nearest(lat, lon, self.nearby_radius_km, limit=self.nearby_limit)

    async def metar(self, icao: str) -> Metar:
        key = metar_key(icao.strip().upper())
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        metar = await self.gateway.fetch_metar(icao)
        self.cache.set(key, metar)
        return metar

    async def taf(self, icao: str) -> Taf:
        key = taf_key(icao.strip().upper())
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        taf = await self.gateway.fetch_taf(icao)
        self.cache.set(key, taf)
        return taf

    async def winds_aloft(self, lat: float, lon: float) -> WindsAloft:
        if self.winds_client is None:
            raise NoData("windtemp", "no winds aloft source configured")

        table: Optional[Dict[str, WindsAloft]] = self.cache.get(WINDS_TABLE_KEY)
        if table is None:
            table = await self.winds_client.fetch_winds_table()
            self.cache.set(WINDS_TABLE_KEY, table)

        best: Optional[WindsAloft] = None
        best_km = self.winds_radius_km
        for ident, winds in table.items():
            site = self._locate_fd_station(ident)
            if site is None:
                continue
            km = calculations.distance_km(lat, lon, site.location.latitude, site.location.longitude)
            if km <= best_km:
                best, best_km = winds, km
        if best is None:
            raise NoData("windtemp", f"no winds aloft station within {self.winds_radius_km:g} km")
        return best

    def derive(self, bundle: AcquisitionBundle, runway_heading: Optional[int] = None) -> DerivedConditions:
        metar = bundle.metar
        elevation = bundle.aerodrome.elevation_ft
        pa = calculations.pressure_altitude(elevation, metar.altimeter.in_hg)
        da = calculations.density_altitude(pa, metar.temperature.celsius, metar.dewpoint_c, metar.altimeter.in_hg)

        components = None
        if runway_heading is not None and metar.wind.direction is not None:
            components = calculations.wind_components(metar.wind.direction, metar.wind.speed_kt, runway_heading)

        worst = None
        if bundle.taf is not None:
            worst = calculations.worst_flight_rules(p.flight_rules for p in bundle.taf.forecasts)

        return DerivedConditions(
            pressure_altitude_ft=pa,
            density_altitude=da,
            estimated_cloud_base_ft=calculations.estimate_cloud_base(
                metar.temperature.celsius, metar.dewpoint_c, elevation
            ),
            wind_components=components,
            taf_worst_flight_rules=worst,
            alerts=alerts.alerts(metar, bundle.aerodrome, taf=bundle.taf, runway_heading=runway_heading),
        )

    # Helpers ------------------------------------------------------------
    def _locate_fd_station(self, ident: str) -> Optional[Aerodrome]:
        for prefix in FD_ICAO_PREFIXES:
            site = self.directory.get(prefix + ident)
            if site is not None:
                return site
        return None
