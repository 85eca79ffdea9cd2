"""
CheckWX decoded-JSON provider.

Envelope is {"results": n, "data": [{...}]}; the first element is used.
Values come as SI/imperial pairs, so little conversion is needed.
"""
from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Tuple

import httpx

from aerowx.clients.base import (
    DEFAULT_ALTIMETER_HPA,
    DEFAULT_ALTIMETER_IN_HG,
    DEFAULT_DEWPOINT_C,
    DEFAULT_TEMPERATURE_C,
    DEFAULT_VISIBILITY_SM,
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
    ceiling_of,
)
from aerowx.services import calculations

_LEADING_NUMBER = re.compile(r"[-+]?\d+(?:\.\d+)?")


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
    value = data.get(key)
    return value if isinstance(value, dict) else {}


def _wind(data: Dict[str, Any]) -> Wind:
    w = _section(data, "wind")
    direction = to_int(w.get("degrees"))
    return Wind(
        direction=direction,
        speed_kt=to_int(w.get("speed_kts")) or 0,
        gust_kt=to_int(w.get("gust_kts")),
        variable=direction is None and bool(w),
    )


def _visibility(data: Dict[str, Any]) -> Visibility:
    v = _section(data, "visibility")
    miles = v.get("miles_float", v.get("miles"))
    greater = False
    if isinstance(miles, str):
        greater = "greater" in miles.lower() or miles.strip().endswith("+")
        m = _LEADING_NUMBER.search(miles)
        miles = float(m.group()) if m else None
    value = to_float(miles)
    return Visibility(
        value=DEFAULT_VISIBILITY_SM if value is None else value,
        unit="SM",
        is_greater_than=greater,
    )


def _clouds(data: Dict[str, Any]) -> List[CloudLayer]:
    out = []
    for cloud in data.get("clouds") or []:
        if not isinstance(cloud, dict):
            continue
        base = cloud.get("base_feet_agl", cloud.get("feet"))
        out.append(
            CloudLayer(
                coverage=parse_coverage(cloud.get("code")),
                altitude_ft=to_int(base) or 0,
                type=parse_cloud_type(cloud.get("type")),
            )
        )
    return out


def _change(forecast: Dict[str, Any]) -> Tuple[Optional[str], Optional[int]]:
    """CheckWX gives either a bare string or {"indicator": {"code": ...}, "probability": n}."""
    change = forecast.get("change")
    if isinstance(change, str):
        return change, None
    if isinstance(change, dict):
        indicator = change.get("indicator")
        code = indicator.get("code") if isinstance(indicator, dict) else indicator
        return code, to_int(change.get("probability"))
    return None, None


def parse_metar(data: Dict[str, Any], provider: str = "checkwx") -> Metar:
    temp = _section(data, "temperature")
    celsius = to_float(temp.get("celsius"))
    celsius = DEFAULT_TEMPERATURE_C if celsius is None else celsius
    fahrenheit = to_float(temp.get("fahrenheit"))
    if fahrenheit is None:
        fahrenheit = calculations.celsius_to_fahrenheit(celsius)

    dew = to_float(_section(data, "dewpoint").get("celsius"))

    baro = _section(data, "barometer")
    in_hg = to_float(baro.get("hg"))
    hpa = to_float(baro.get("hpa", baro.get("mb")))
    if in_hg is None and hpa is not None:
        in_hg = calculations.hpa_to_in_hg(hpa)
    if in_hg is None:
        in_hg, hpa = DEFAULT_ALTIMETER_IN_HG, DEFAULT_ALTIMETER_HPA
    elif hpa is None:
        hpa = calculations.in_hg_to_hpa(in_hg)

    clouds = _clouds(data)
    visibility = _visibility(data)
    ceiling = ceiling_of(clouds)
    if ceiling is None:
        ceiling = to_int(_section(data, "ceiling").get("feet"))

    return Metar(
        station=str(data["icao"]).upper(),
        observation_time=parse_time(data.get("observed")),
        raw_text=data.get("raw_text") or "",
        flight_rules=calculations.flight_rules(ceiling, visibility.value),
        reported_flight_rules=data.get("flight_category"),
        wind=_wind(data),
        visibility=visibility,
        temperature=Temperature(celsius=celsius, fahrenheit=fahrenheit),
        dewpoint_c=DEFAULT_DEWPOINT_C if dew is None else dew,
        altimeter=Altimeter(in_hg=in_hg, hpa=hpa),
        clouds=clouds,
        remarks=data.get("remarks"),
        provider=provider,
    )


def parse_taf(data: Dict[str, Any], provider: str = "checkwx") -> Taf:
    stamp = _section(data, "timestamp")
    periods = []
    for fc in data.get("forecast") or []:
        if not isinstance(fc, dict):
            continue
        fstamp = _section(fc, "timestamp")
        code, probability = _change(fc)
        clouds = _clouds(fc)
        visibility = _visibility(fc)
        periods.append(
            ForecastPeriod(
                type=parse_forecast_type(code),
                start_time=parse_time(fstamp.get("from")),
                end_time=parse_time(fstamp.get("to")),
                wind=_wind(fc),
                visibility=visibility,
                clouds=clouds,
                probability=probability,
                change_period=code,
                flight_rules=calculations.flight_rules(ceiling_of(clouds), visibility.value),
            )
        )

    return Taf(
        station=str(data["icao"]).upper(),
        issue_time=parse_time(stamp.get("issued")),
        valid_from=parse_time(stamp.get("from")),
        valid_to=parse_time(stamp.get("to")),
        raw_text=data.get("raw_text") or "",
        forecasts=periods,
        provider=provider,
    )


class CheckWXClient(ProviderClient):
    name = "checkwx"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(base_url or settings.checkwx_base_url, timeout_seconds, client)
        self.api_key = api_key if api_key is not None else settings.checkwx_api_key

    def headers(self) -> Dict[str, str]:
        h = super().headers()
        if self.api_key:
            h["X-API-Key"] = self.api_key
        return h

    async def _first(self, product: str, icao: str) -> Dict[str, Any]:
        payload = await self._get_json(f"/{product}/{icao}/decoded")
        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise DataCorrupted(self.name, f"unexpected {product} envelope")
        rows = payload["data"]
        if not rows:
            raise NoData(self.name, f"no {product} for {icao}")
        row = rows[0]
        # CheckWX returns a bare string for stations it does not know
        if not isinstance(row, dict):
            raise NoData(self.name, f"no decoded {product} for {icao}")
        return row

    async def fetch_metar(self, icao: str) -> Metar:
        icao = normalize_icao(icao)
        row = await self._first("metar", icao)
        try:
            return parse_metar(row, provider=self.name)
        except (KeyError, TypeError, ValueError) as exc:
            raise DataCorrupted(self.name, f"bad METAR payload: {exc}") from exc

    async def fetch_taf(self, icao: str) -> Taf:
        icao = normalize_icao(icao)
        row = await self._first("taf", icao)
        try:
            return parse_taf(row, provider=self.name)
        except (KeyError, TypeError, ValueError) as exc:
            raise DataCorrupted(self.name, f"bad TAF payload: {exc}") from exc
