from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import httpx

from aerowx.clients.base import (
    DEFAULT_ALTIMETER_IN_HG,
    DEFAULT_DEWPOINT_C,
    DEFAULT_TEMPERATURE_C,
    DEFAULT_VISIBILITY_SM,
    HttpSource,
    ProviderClient,
    normalize_icao,
    parse_cloud_type,
    parse_coverage,
    parse_forecast_type,
    parse_time,
    to_float,
    to_int,
)
from aerowx.core.config import settings
from aerowx.core.errors import DataCorrupted, NoData
from aerowx.models.weather import (
    Altimeter,
    CloudLayer,
    ForecastPeriod,
    Metar,
    Taf,
    Temperature,
    Visibility,
    Wind,
    WindLevel,
    WindsAloft,
    ceiling_of,
)
from aerowx.services import calculations

METAR_PATH = "/metar"
TAF_PATH = "/taf"
WINDTEMP_PATH = "/windtemp"

# altim above this is already hPa
_HPA_THRESHOLD = 100.0


def _wind(row: Dict[str, Any]) -> Wind:
    wdir = row.get("wdir")
    variable = isinstance(wdir, str) and wdir.strip().upper() == "VRB"
    direction = None if variable else to_int(wdir)
    return Wind(
        direction=direction,
        speed_kt=to_int(row.get("wspd")) or 0,
        gust_kt=to_int(row.get("wgst")),
        variable=variable,
    )


def _visibility(row: Dict[str, Any]) -> Visibility:
    raw = row.get("visib")
    greater = False
    if isinstance(raw, str) and raw.strip().endswith("+"):
        greater = True
        raw = raw.strip()[:-1]
    value = to_float(raw)
    return Visibility(
        value=DEFAULT_VISIBILITY_SM if value is None else value,
        unit="SM",
        is_greater_than=greater,
    )


def _clouds(row: Dict[str, Any]) -> List[CloudLayer]:
    out = []
    for cloud in row.get("clouds") or []:
        if not isinstance(cloud, dict):
            continue
        out.append(
            CloudLayer(
                coverage=parse_coverage(cloud.get("cover")),
                altitude_ft=to_int(cloud.get("base")) or 0,
                type=parse_cloud_type(cloud.get("type")),
            )
        )
    return out


def _altimeter(value: Any) -> Altimeter:
    v = to_float(value)
    if v is None:
        v = DEFAULT_ALTIMETER_IN_HG
    if v > _HPA_THRESHOLD:
        return Altimeter(in_hg=round(calculations.hpa_to_in_hg(v), 2), hpa=v)
    return Altimeter(in_hg=v, hpa=calculations.in_hg_to_hpa(v))


def parse_metar(row: Dict[str, Any], provider: str = "aviationweather") -> Metar:
    temp = to_float(row.get("temp"))
    temp = DEFAULT_TEMPERATURE_C if temp is None else temp
    dewp = to_float(row.get("dewp"))
    clouds = _clouds(row)
    visibility = _visibility(row)
    cat = row.get("fltCat") or row.get("fltcat") or row.get("flightCategory")

    return Metar(
        station=str(row["icaoId"]).upper(),
        observation_time=parse_time(row.get("reportTime") or row.get("obsTime")),
        raw_text=row.get("rawOb") or "",
        flight_rules=calculations.flight_rules(ceiling_of(clouds), visibility.value),
        reported_flight_rules=cat.strip().upper() if isinstance(cat, str) else None,
        wind=_wind(row),
        visibility=visibility,
        temperature=Temperature(celsius=temp, fahrenheit=calculations.celsius_to_fahrenheit(temp)),
        dewpoint_c=DEFAULT_DEWPOINT_C if dewp is None else dewp,
        altimeter=_altimeter(row.get("altim")),
        clouds=clouds,
        provider=provider,
    )


def parse_taf(row: Dict[str, Any], provider: str = "aviationweather") -> Taf:
    periods = []
    for fc in row.get("fcsts") or []:
        if not isinstance(fc, dict):
            continue
        change = fc.get("fcstChange") or fc.get("change")
        clouds = _clouds(fc)
        visibility = _visibility(fc)
        periods.append(
            ForecastPeriod(
                type=parse_forecast_type(change),
                start_time=parse_time(fc.get("timeFrom")),
                end_time=parse_time(fc.get("timeTo")),
                wind=_wind(fc),
                visibility=visibility,
                clouds=clouds,
                probability=to_int(fc.get("probability", fc.get("prob"))),
                change_period=change,
                flight_rules=calculations.flight_rules(ceiling_of(clouds), visibility.value),
            )
        )

    return Taf(
        station=str(row["icaoId"]).upper(),
        issue_time=parse_time(row.get("issueTime")),
        valid_from=parse_time(row.get("validTimeFrom")),
        valid_to=parse_time(row.get("validTimeTo")),
        raw_text=row.get("rawTAF") or "",
        forecasts=periods,
        provider=provider,
    )


class AviationWeatherClient(ProviderClient):
    """aviationweather.gov data API (NOAA AWC), bare numeric fields."""

    name = "aviationweather"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url or settings.aviationweather_base_url, timeout_seconds, client)

    async def _first(self, path: str, icao: str) -> Dict[str, Any]:
        data = await self._get_json(path, params={"ids": icao, "format": "json"})
        if not isinstance(data, list):
            raise DataCorrupted(self.name, f"expected a JSON array from {path}")
        if not data:
            raise NoData(self.name, f"nothing for {icao} at {path}")
        if not isinstance(data[0], dict):
            raise DataCorrupted(self.name, f"unexpected row type from {path}")
        return data[0]

    async def fetch_metar(self, icao: str) -> Metar:
        icao = normalize_icao(icao)
        row = await self._first(METAR_PATH, icao)
        try:
            return parse_metar(row, provider=self.name)
        except (KeyError, TypeError, ValueError) as exc:
            raise DataCorrupted(self.name, f"bad METAR payload: {exc}") from exc

    async def fetch_taf(self, icao: str) -> Taf:
        icao = normalize_icao(icao)
        row = await self._first(TAF_PATH, icao)
        try:
            return parse_taf(row, provider=self.name)
        except (KeyError, TypeError, ValueError) as exc:
            raise DataCorrupted(self.name, f"bad TAF payload: {exc}") from exc


# --- Winds and temperatures aloft (FD text product) -------------------------

_VALID_RE = re.compile(r"VALID\s+(\d{2})(\d{2})(\d{2})Z")
_STATION_RE = re.compile(r"^([A-Z0-9]{3})(?:\s|$)")
_TOKEN_RE = re.compile(r"^\d{4}(?:[+-]\d{2}|\d{2})?$")


def decode_fd_group(altitude_ft: int, group: str) -> WindLevel:
    """
    Decode one FD group: DDSS, DDSS+TT / DDSS-TT, or DDSSTT above 24000 ft
    where the temperature is always negative. 9900 is light and variable;
    a direction code of 51-86 means add 100 kt and subtract 50 from DD.
    """
    if not _TOKEN_RE.match(group):
        raise ValueError(f"bad FD group {group!r}")
    dd = int(group[0:2])
    ss = int(group[2:4])
    temp: Optional[int] = None
    if len(group) == 7:
        temp = int(group[4:7])
    elif len(group) == 6:
        temp = -int(group[4:6])

    if dd == 99:
        return WindLevel(altitude_ft=altitude_ft, direction=None, speed_kt=0, temperature_c=temp)
    if 51 <= dd <= 86:
        dd -= 50
        ss += 100
    return WindLevel(altitude_ft=altitude_ft, direction=dd * 10, speed_kt=ss, temperature_c=temp)


def _valid_time(text: str, now: datetime) -> datetime:
    m = _VALID_RE.search(text)
    if not m:
        return now
    day, hour, minute = (int(x) for x in m.groups())
    candidate = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
    try:
        candidate = candidate.replace(day=day)
    except ValueError:
        return now
    # product issued late in the previous month
    if candidate - now > timedelta(days=2):
        prev = (now.replace(day=1) - timedelta(days=1))
        try:
            candidate = candidate.replace(year=prev.year, month=prev.month)
        except ValueError:
            return now
    return candidate


def parse_fd(text: str, now: Optional[datetime] = None) -> Dict[str, WindsAloft]:
    """Parse an FD bulletin into {station: WindsAloft}."""
    now = now or datetime.now(timezone.utc)
    valid = _valid_time(text, now)
    altitudes: List[int] = []
    out: Dict[str, WindsAloft] = {}

    for line in text.splitlines():
        stripped = line.strip()
        if stripped.split()[:1] == ["FT"]:
            altitudes = [int(t) for t in stripped.split()[1:] if t.isdigit()]
            continue
        if not altitudes:
            continue
        m = _STATION_RE.match(stripped)
        if not m:
            continue
        groups = stripped.split()[1:]
        if not groups or len(groups) > len(altitudes):
            continue
        # levels below station elevation are blank, so groups align right
        levels_ft = altitudes[len(altitudes) - len(groups):]
        try:
            levels = [decode_fd_group(alt, g) for alt, g in zip(levels_ft, groups)]
        except ValueError:
            continue
        out[m.group(1)] = WindsAloft(station=m.group(1), valid_time=valid, levels=levels)
    return out


class WindsAloftClient(HttpSource):
    """Fetches the FD winds/temperatures aloft bulletin from aviationweather.gov."""

    name = "windtemp"

    def __init__(
        self,
        base_url: Optional[str] = None,
        forecast_hours: Optional[int] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url or settings.aviationweather_base_url, timeout_seconds, client)
        self.forecast_hours = forecast_hours or settings.winds_aloft_forecast_hours

    def headers(self) -> Dict[str, str]:
        return {"Accept": "text/plain"}

    async def fetch_winds_table(self) -> Dict[str, WindsAloft]:
        params = {"region": "all", "level": "low", "fcst": f"{self.forecast_hours:02d}"}
        r = await self._get(WINDTEMP_PATH, params=params)
        table = parse_fd(r.text)
        if not table:
            raise DataCorrupted(self.name, "no stations in winds aloft bulletin")
        return table
