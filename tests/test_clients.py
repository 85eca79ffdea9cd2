"""Tests for the provider clients, driven through httpx.MockTransport."""

import json
from datetime import datetime, timezone

import httpx
import pytest

from aerowx.clients.aviationweather import (
    AviationWeatherClient,
    WindsAloftClient,
    decode_fd_group,
    parse_fd,
)
from aerowx.clients.base import normalize_icao, parse_coverage, parse_forecast_type, parse_time
from aerowx.clients.checkwx import CheckWXClient
from aerowx.core.errors import DataCorrupted, InvalidResponse, InvalidURL, NetworkError, NoData
from aerowx.models.weather import CloudCoverage, FlightRules, ForecastType

CHECKWX_METAR = {
    "results": 1,
    "data": [
        {
            "icao": "KATL",
            "observed": "2024-06-01T12:52:00",
            "raw_text": "KATL 011252Z 27012G20KT 10SM BKN025 OVC040 24/18 A3001",
            "flight_category": "MVFR",
            "wind": {"degrees": 270, "speed_kts": 12, "gust_kts": 20},
            "visibility": {"miles": "10", "miles_float": 10.0},
            "temperature": {"celsius": 24, "fahrenheit": 75},
            "dewpoint": {"celsius": 18},
            "barometer": {"hg": 30.01, "hpa": 1016.3},
            "clouds": [
                {"code": "BKN", "base_feet_agl": 2500},
                {"code": "OVC", "base_feet_agl": 4000},
            ],
        }
    ],
}

CHECKWX_TAF = {
    "results": 1,
    "data": [
        {
            "icao": "KATL",
            "raw_text": "TAF KATL 011130Z 0112/0218 27010KT P6SM SCT040",
            "timestamp": {
                "issued": "2024-06-01T11:30:00",
                "from": "2024-06-01T12:00:00",
                "to": "2024-06-02T18:00:00",
            },
            "forecast": [
                {
                    "timestamp": {"from": "2024-06-01T12:00:00", "to": "2024-06-01T18:00:00"},
                    "wind": {"degrees": 270, "speed_kts": 10},
                    "visibility": {"miles": "Greater than 6 miles"},
                    "clouds": [{"code": "SCT", "base_feet_agl": 4000}],
                },
                {
                    "timestamp": {"from": "2024-06-01T18:00:00", "to": "2024-06-01T22:00:00"},
                    "change": {"indicator": {"code": "TEMPO"}, "probability": 30},
                    "visibility": {"miles_float": 2.0},
                    "clouds": [{"code": "BKN", "base_feet_agl": 800, "type": "CB"}],
                },
            ],
        }
    ],
}

AWC_METAR = [
    {
        "icaoId": "KBOS",
        "reportTime": "2024-06-01 12:54:00",
        "rawOb": "KBOS 011254Z VRB03KT 10SM FEW250 18/09 A3002",
        "temp": 18.3,
        "dewp": 9.4,
        "wdir": "VRB",
        "wspd": 3,
        "visib": "10+",
        "altim": 1016.6,
        "fltCat": "VFR",
        "clouds": [{"cover": "FEW", "base": 25000}],
    }
]

AWC_TAF = [
    {
        "icaoId": "KBOS",
        "issueTime": "2024-06-01T11:20:00Z",
        "validTimeFrom": 1717243200,
        "validTimeTo": 1717351200,
        "rawTAF": "TAF KBOS 011120Z 0112/0218 24008KT P6SM FEW250",
        "fcsts": [
            {"timeFrom": 1717243200, "timeTo": 1717264800, "wdir": 240, "wspd": 8, "visib": "6+",
             "clouds": [{"cover": "FEW", "base": 25000}]},
            {"timeFrom": 1717264800, "timeTo": 1717272000, "fcstChange": "PROB", "probability": 30,
             "visib": 0.5, "clouds": [{"cover": "OVC", "base": 300}]},
            {"timeFrom": 1717272000, "timeTo": 1717351200, "fcstChange": "FM", "wdir": 200, "wspd": 12,
             "visib": 3, "clouds": [{"cover": "BKN", "base": 1500}]},
        ],
    }
]

FD_TEXT = """\
000
FBUS31 KWNO 011359
FD1US1
DATA BASED ON 011200Z
VALID 011800Z   FOR USE 1400-2100Z. TEMPS NEG ABV 24000

FT  3000    6000    9000   12000   18000   24000  30000  34000  39000
BOS 2314 2416+12 2520+06 2623+01 2735-11 2745-23 274938 276046 276556
ATL      2009+17 2111+11 2212+06 2420-06 2530-18 254934 256145 257855
DEN              2414+11 2522+05 2536-09 2548-21 256136 256846 750552
XX1 garbage here
"""


def mock_client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def json_handler(payload, status=200, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=payload)

    return handler


class TestHelpers:
    def test_normalize_icao(self):
        assert normalize_icao(" katl ") == "KATL"
        for bad in ["", "ATL", "K1TL", "KATLX", None]:
            with pytest.raises(InvalidURL):
                normalize_icao(bad)

    def test_coverage_codes(self):
        assert parse_coverage("SKC") == CloudCoverage.CLEAR
        assert parse_coverage("CAVOK") == CloudCoverage.CLEAR
        assert parse_coverage("OVX") == CloudCoverage.VERTICAL_VISIBILITY
        assert parse_coverage("bkn") == CloudCoverage.BROKEN
        assert parse_coverage("???") == CloudCoverage.CLEAR
        assert parse_coverage(None) == CloudCoverage.CLEAR

    def test_forecast_types(self):
        assert parse_forecast_type(None) == ForecastType.BASE
        assert parse_forecast_type("PROB30") == ForecastType.PROB
        assert parse_forecast_type("FM") == ForecastType.FROM
        assert parse_forecast_type("becmg") == ForecastType.BECMG
        assert parse_forecast_type("XYZ") == ForecastType.BASE

    def test_parse_time_formats(self):
        expected = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert parse_time("2024-06-01T12:00:00Z") == expected
        assert parse_time("2024-06-01 12:00:00") == expected
        assert parse_time(int(expected.timestamp())) == expected
        assert parse_time("not a time", default=expected) == expected

    def test_parse_time_out_of_range_epoch_falls_back(self):
        expected = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert parse_time(10**20, default=expected) == expected
        assert parse_time(-1e20, default=expected) == expected
        assert parse_time(float("nan"), default=expected) == expected


class TestCheckWX:
    @pytest.mark.asyncio
    async def test_metar_is_normalised(self):
        """CheckWX METAR maps to the canonical model with recomputed flight rules."""
        seen = []
        client = CheckWXClient(
            base_url="https://checkwx.test",
            api_key="secret",
            client=mock_client(json_handler(CHECKWX_METAR, seen=seen)),
        )
        metar = await client.fetch_metar("katl")

        assert seen[0].url.path == "/metar/KATL/decoded"
        assert seen[0].headers["X-API-Key"] == "secret"
        assert metar.station == "KATL"
        assert metar.provider == "checkwx"
        assert metar.wind.direction == 270
        assert metar.wind.gust_kt == 20
        assert metar.temperature.celsius == 24
        assert metar.altimeter.in_hg == pytest.approx(30.01)
        assert metar.ceiling_ft == 2500
        assert metar.flight_rules == FlightRules.MVFR
        assert metar.reported_flight_rules == "MVFR"

    @pytest.mark.asyncio
    async def test_missing_fields_use_defaults(self):
        payload = {"data": [{"icao": "KXYZ"}]}
        client = CheckWXClient(base_url="https://checkwx.test", api_key="k",
                               client=mock_client(json_handler(payload)))
        metar = await client.fetch_metar("KXYZ")
        assert metar.visibility.value == 10.0
        assert metar.temperature.celsius == 15.0
        assert metar.dewpoint_c == 10.0
        assert metar.altimeter.in_hg == 29.92
        assert metar.altimeter.hpa == 1013.25
        assert metar.flight_rules == FlightRules.VFR

    @pytest.mark.asyncio
    async def test_hpa_only_barometer(self):
        payload = {"data": [{"icao": "EGLL", "barometer": {"mb": 1013.25}}]}
        client = CheckWXClient(base_url="https://checkwx.test", api_key="k",
                               client=mock_client(json_handler(payload)))
        metar = await client.fetch_metar("EGLL")
        assert metar.altimeter.in_hg == pytest.approx(29.92, abs=0.01)

    @pytest.mark.asyncio
    async def test_taf_periods(self):
        client = CheckWXClient(base_url="https://checkwx.test", api_key="k",
                               client=mock_client(json_handler(CHECKWX_TAF)))
        taf = await client.fetch_taf("KATL")

        assert len(taf.forecasts) == 2
        base, tempo = taf.forecasts
        assert base.type == ForecastType.BASE
        assert base.visibility.is_greater_than is True
        assert base.visibility.value == 6.0
        assert base.flight_rules == FlightRules.VFR
        assert tempo.type == ForecastType.TEMPO
        assert tempo.probability == 30
        assert tempo.clouds[0].type == "CB"
        assert tempo.flight_rules == FlightRules.IFR

    @pytest.mark.asyncio
    async def test_empty_data_is_no_data(self):
        client = CheckWXClient(base_url="https://checkwx.test", api_key="k",
                               client=mock_client(json_handler({"results": 0, "data": []})))
        with pytest.raises(NoData):
            await client.fetch_metar("KATL")

    @pytest.mark.asyncio
    async def test_unknown_station_string_row(self):
        payload = {"results": 1, "data": ["KZZZ Invalid Station ICAO"]}
        client = CheckWXClient(base_url="https://checkwx.test", api_key="k",
                               client=mock_client(json_handler(payload)))
        with pytest.raises(NoData):
            await client.fetch_metar("KZZZ")

    @pytest.mark.asyncio
    async def test_bad_envelope(self):
        client = CheckWXClient(base_url="https://checkwx.test", api_key="k",
                               client=mock_client(json_handler({"error": "nope"})))
        with pytest.raises(DataCorrupted):
            await client.fetch_metar("KATL")

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        client = CheckWXClient(base_url="https://checkwx.test", api_key="k",
                               client=mock_client(json_handler({"error": "unauthorized"}, status=401)))
        with pytest.raises(InvalidResponse) as info:
            await client.fetch_metar("KATL")
        assert info.value.status_code == 401
        assert info.value.provider == "checkwx"

    @pytest.mark.asyncio
    async def test_invalid_icao_never_hits_network(self):
        seen = []
        client = CheckWXClient(base_url="https://checkwx.test", api_key="k",
                               client=mock_client(json_handler(CHECKWX_METAR, seen=seen)))
        with pytest.raises(InvalidURL):
            await client.fetch_metar("AT")
        assert seen == []


class TestAviationWeather:
    @pytest.mark.asyncio
    async def test_metar_is_normalised(self):
        seen = []
        client = AviationWeatherClient(base_url="https://awc.test/api/data",
                                       client=mock_client(json_handler(AWC_METAR, seen=seen)))
        metar = await client.fetch_metar("KBOS")

        assert seen[0].url.path == "/api/data/metar"
        assert seen[0].url.params["ids"] == "KBOS"
        assert seen[0].url.params["format"] == "json"
        assert metar.station == "KBOS"
        assert metar.provider == "aviationweather"
        assert metar.wind.variable is True
        assert metar.wind.direction is None
        assert metar.visibility.value == 10.0
        assert metar.visibility.is_greater_than is True
        assert metar.altimeter.hpa == pytest.approx(1016.6)
        assert metar.altimeter.in_hg == pytest.approx(30.02, abs=0.01)
        assert metar.temperature.fahrenheit == pytest.approx(64.94)
        assert metar.flight_rules == FlightRules.VFR
        assert metar.reported_flight_rules == "VFR"

    @pytest.mark.asyncio
    async def test_inhg_altimeter(self):
        row = dict(AWC_METAR[0], altim=29.92)
        client = AviationWeatherClient(base_url="https://awc.test",
                                       client=mock_client(json_handler([row])))
        metar = await client.fetch_metar("KBOS")
        assert metar.altimeter.in_hg == 29.92

    @pytest.mark.asyncio
    async def test_taf_periods(self):
        client = AviationWeatherClient(base_url="https://awc.test",
                                       client=mock_client(json_handler(AWC_TAF)))
        taf = await client.fetch_taf("KBOS")

        assert taf.valid_from == datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        types = [p.type for p in taf.forecasts]
        assert types == [ForecastType.BASE, ForecastType.PROB, ForecastType.FROM]
        assert taf.forecasts[1].probability == 30
        assert taf.forecasts[1].flight_rules == FlightRules.LIFR
        assert taf.forecasts[2].flight_rules == FlightRules.MVFR

    @pytest.mark.asyncio
    async def test_empty_array_is_no_data(self):
        client = AviationWeatherClient(base_url="https://awc.test", client=mock_client(json_handler([])))
        with pytest.raises(NoData):
            await client.fetch_taf("KBOS")

    @pytest.mark.asyncio
    async def test_invalid_json_is_corrupted(self):
        def handler(request):
            return httpx.Response(200, content=b"<html>maintenance</html>")

        client = AviationWeatherClient(base_url="https://awc.test", client=mock_client(handler))
        with pytest.raises(DataCorrupted):
            await client.fetch_metar("KBOS")

    @pytest.mark.asyncio
    async def test_server_error(self):
        client = AviationWeatherClient(base_url="https://awc.test",
                                       client=mock_client(json_handler({}, status=500)))
        with pytest.raises(InvalidResponse) as info:
            await client.fetch_metar("KBOS")
        assert info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_no_content(self):
        def handler(request):
            return httpx.Response(204)

        client = AviationWeatherClient(base_url="https://awc.test", client=mock_client(handler))
        with pytest.raises(NoData):
            await client.fetch_metar("KBOS")

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = AviationWeatherClient(base_url="https://awc.test", client=mock_client(handler))
        with pytest.raises(NetworkError) as info:
            await client.fetch_metar("KBOS")
        assert info.value.status_code is None

    @pytest.mark.asyncio
    async def test_missing_station_field(self):
        client = AviationWeatherClient(base_url="https://awc.test",
                                       client=mock_client(json_handler([{"rawOb": "x"}])))
        with pytest.raises(DataCorrupted):
            await client.fetch_metar("KBOS")


class TestWindsAloft:
    def test_decode_plain_group(self):
        level = decode_fd_group(3000, "2314")
        assert (level.direction, level.speed_kt, level.temperature_c) == (230, 14, None)

    def test_decode_signed_temperature(self):
        level = decode_fd_group(18000, "2735-11")
        assert (level.direction, level.speed_kt, level.temperature_c) == (270, 35, -11)

    def test_decode_implied_negative_temperature(self):
        level = decode_fd_group(30000, "274938")
        assert (level.direction, level.speed_kt, level.temperature_c) == (270, 49, -38)

    def test_decode_over_100_knots(self):
        level = decode_fd_group(39000, "750552")
        assert (level.direction, level.speed_kt, level.temperature_c) == (250, 105, -52)

    def test_decode_light_and_variable(self):
        level = decode_fd_group(6000, "9900+10")
        assert level.direction is None
        assert level.speed_kt == 0
        assert level.temperature_c == 10

    def test_decode_rejects_garbage(self):
        with pytest.raises(ValueError):
            decode_fd_group(3000, "23X4")

    def test_parse_bulletin(self):
        now = datetime(2024, 6, 1, 14, 0, tzinfo=timezone.utc)
        table = parse_fd(FD_TEXT, now=now)

        assert set(table) == {"BOS", "ATL", "DEN"}
        assert table["BOS"].valid_time == datetime(2024, 6, 1, 18, 0, tzinfo=timezone.utc)
        assert len(table["BOS"].levels) == 9
        # levels below the station are blank, so the first group is 6000 ft
        assert table["ATL"].levels[0].altitude_ft == 6000
        assert table["DEN"].levels[0].altitude_ft == 9000
        assert table["DEN"].level_at(39000).speed_kt == 105

    @pytest.mark.asyncio
    async def test_fetch_table(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, text=FD_TEXT)

        client = WindsAloftClient(base_url="https://awc.test", forecast_hours=6, client=mock_client(handler))
        table = await client.fetch_winds_table()

        assert "ATL" in table
        assert seen[0].url.path == "/windtemp"
        assert seen[0].url.params["fcst"] == "06"
        assert seen[0].headers["Accept"] == "text/plain"

    @pytest.mark.asyncio
    async def test_empty_bulletin_is_corrupted(self):
        def handler(request):
            return httpx.Response(200, text=json.dumps({"note": "not an FD product"}))

        client = WindsAloftClient(base_url="https://awc.test", client=mock_client(handler))
        with pytest.raises(DataCorrupted):
            await client.fetch_winds_table()
