"""Pytest fixtures for the aerowx tests."""

from datetime import datetime, timezone
from typing import List, Optional

import pytest

from aerowx.clients.base import ProviderClient
from aerowx.core.errors import ProviderError
from aerowx.data.aerodromes import AerodromeDirectory
from aerowx.models.weather import (
    Altimeter,
    CloudLayer,
    FlightRules,
    ForecastPeriod,
    Metar,
    Taf,
    Temperature,
    Visibility,
    Wind,
)
from aerowx.utils.cache import TTLCache

HEADER = (
    "id,ident,type,name,latitude_deg,longitude_deg,elevation_ft,continent,iso_country,"
    "iso_region,municipality,scheduled_service,gps_code,iata_code,local_code,home_link,"
    "wikipedia_link,keywords"
)

AIRPORTS_CSV = "\n".join(
    [
        HEADER,
        '3682,KATL,large_airport,"Hartsfield-Jackson Atlanta International Airport",33.6367,-84.428101,1026,NA,US,US-GA,Atlanta,yes,KATL,ATL,ATL,,,',
        "3600,KPDK,medium_airport,DeKalb-Peachtree Airport,33.8756,-84.3020,1003,NA,US,US-GA,Atlanta,no,KPDK,PDK,PDK,,,",
        "3531,KFTY,medium_airport,Fulton County Airport Brown Field,33.7791,-84.5214,841,NA,US,US-GA,Atlanta,no,KFTY,FTY,FTY,,,",
        '3537,KFFC,small_airport,"Atlanta Regional Airport, Falcon Field",33.3573,-84.5718,808,NA,US,US-GA,Peachtree City,no,KFFC,,FFC,,,',
        "9001,KHEL,heliport,Downtown Heliport,33.7500,-84.3900,1050,NA,US,US-GA,Atlanta,no,KHEL,,,,,",
        "9002,ATX,small_airport,Three Letter Field,33.6400,-84.4300,1000,NA,US,US-GA,Atlanta,no,,,,,,",
        "9003,,small_airport,No Ident Field,33.6300,-84.4200,1000,NA,US,US-GA,Atlanta,no,,,,,,",
        "9004,KBAD,small_airport,Bad Latitude Field,abc,-84.4100,1000,NA,US,US-GA,Atlanta,no,KBAD,,,,,",
        "9005,KSHT,small_airport,Short Row Field,33.6200,-84.4000",
        "3422,KBOS,large_airport,General Edward Lawrence Logan International Airport,42.3643,-71.0052,20,NA,US,US-MA,Boston,yes,KBOS,BOS,BOS,,,",
    ]
)

OBSERVED = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def build_metar(
    station: str = "KATL",
    visibility: float = 10.0,
    clouds: Optional[List[CloudLayer]] = None,
    flight_rules: FlightRules = FlightRules.VFR,
    provider: str = "fake",
    temperature_c: float = 15.0,
    dewpoint_c: float = 10.0,
    altimeter_in_hg: float = 29.92,
    wind: Optional[Wind] = None,
) -> Metar:
    return Metar(
        station=station,
        observation_time=OBSERVED,
        raw_text=f"{station} 011200Z 27010KT 10SM FEW250 15/10 A2992",
        flight_rules=flight_rules,
        wind=wind or Wind(direction=270, speed_kt=10),
        visibility=Visibility(value=visibility),
        temperature=Temperature(celsius=temperature_c, fahrenheit=temperature_c * 9 / 5 + 32),
        dewpoint_c=dewpoint_c,
        altimeter=Altimeter(in_hg=altimeter_in_hg, hpa=altimeter_in_hg * 33.8639),
        clouds=clouds or [],
        provider=provider,
    )


def build_taf(station: str = "KATL", provider: str = "fake", periods: Optional[List[ForecastPeriod]] = None) -> Taf:
    return Taf(
        station=station,
        issue_time=OBSERVED,
        valid_from=OBSERVED,
        valid_to=OBSERVED.replace(day=2),
        raw_text=f"TAF {station} 011130Z 0112/0218 27010KT P6SM FEW250",
        forecasts=periods or [],
        provider=provider,
    )


class FakeProvider(ProviderClient):
    """Provider double: returns canned products or raises a canned error."""

    def __init__(
        self,
        name: str,
        metar: Optional[Metar] = None,
        taf: Optional[Taf] = None,
        error: Optional[ProviderError] = None,
    ):
        self.name = name
        self._metar = metar
        self._taf = taf
        self._error = error
        self.calls: List[str] = []

    async def fetch_metar(self, icao: str) -> Metar:
        self.calls.append(f"metar:{icao}")
        if self._error is not None:
            raise self._error
        if self._metar is None:
            raise AssertionError("no METAR configured")
        return self._metar

    async def fetch_taf(self, icao: str) -> Taf:
        self.calls.append(f"taf:{icao}")
        if self._error is not None:
            raise self._error
        if self._taf is None:
            raise AssertionError("no TAF configured")
        return self._taf


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def airports_csv() -> str:
    return AIRPORTS_CSV


@pytest.fixture
def directory() -> AerodromeDirectory:
    d = AerodromeDirectory()
    d.load(AIRPORTS_CSV)
    return d


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> TTLCache:
    return TTLCache(ttl_seconds=600, max_entries=50, clock=clock)
