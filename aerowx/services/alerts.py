"""
Hazard alerts for one aerodrome.

Alerts come from the current METAR (valid for an hour) and from the first
six TAF periods (valid until the period ends). Thresholds are strict: a
wind of exactly 25 kt does not alert, 26 kt does.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from aerowx.models.aerodrome import Aerodrome
from aerowx.models.alerts import AlertSeverity, AlertType, AviationAlert
from aerowx.models.calculations import PerformanceImpact
from aerowx.models.weather import FlightRules, Metar, Taf
from aerowx.services import calculations

STRONG_WIND_KT = 25
SEVERE_WIND_KT = 35
GUST_KT = 20
SEVERE_GUST_KT = 30
LOW_VISIBILITY_SM = 3.0
SEVERE_VISIBILITY_SM = 1.0
LOW_CEILING_FT = 1000
SEVERE_CEILING_FT = 500
ICING_MIN_C = -20.0
ICING_SEVERE_MIN_C = -10.0
ICING_MAX_SPREAD_C = 3.0
CROSSWIND_KT = 15
SEVERE_CROSSWIND_KT = 20
TAF_PERIODS = 6

METAR_VALIDITY = timedelta(hours=1)

# TS, +TSRA, VCTS ... in the body of the report, not the remarks
_THUNDERSTORM_RE = re.compile(r"(?:^|\s)[+-]?(?:VC)?TS(?:RA|SN|GR|GS|PL|UP)*(?=\s|$)")


def _severity(severe: bool) -> AlertSeverity:
    return AlertSeverity.SEVERE if severe else AlertSeverity.MODERATE


def has_thunderstorm(metar: Metar) -> bool:
    if any(c.type == "CB" for c in metar.clouds):
        return True
    body = metar.raw_text.split(" RMK", 1)[0]
    return bool(_THUNDERSTORM_RE.search(body))


def metar_alerts(
    metar: Metar,
    aerodrome: Aerodrome,
    runway_heading: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[AviationAlert]:
    now = now or datetime.now(timezone.utc)
    valid_until = now + METAR_VALIDITY
    out: List[AviationAlert] = []

    def add(kind: AlertType, severity: AlertSeverity, title: str, message: str) -> None:
        out.append(
            AviationAlert(
                type=kind,
                severity=severity,
                title=title,
                message=message,
                location=aerodrome.name,
                valid_until=valid_until,
            )
        )

    wind = metar.wind
    if wind.speed_kt > STRONG_WIND_KT:
        severe = wind.speed_kt > SEVERE_WIND_KT
        add(AlertType.STRONG_WIND, _severity(severe), "Strong wind", f"Wind {wind.speed_kt} kt")
    if wind.gust_kt is not None and wind.gust_kt > GUST_KT:
        severe = wind.gust_kt > SEVERE_GUST_KT
        add(AlertType.STRONG_WIND, _severity(severe), "Strong gusts", f"Gusts to {wind.gust_kt} kt")

    vis = metar.visibility.value
    if vis < LOW_VISIBILITY_SM:
        add(AlertType.LOW_VISIBILITY, _severity(vis < SEVERE_VISIBILITY_SM), "Low visibility", f"Visibility {vis:.1f} SM")

    ceiling = metar.ceiling_ft
    if ceiling is not None and ceiling < LOW_CEILING_FT:
        add(AlertType.LOW_CEILING, _severity(ceiling < SEVERE_CEILING_FT), "Low ceiling", f"Ceiling {ceiling} ft AGL")

    temp = metar.temperature.celsius
    if ICING_MIN_C <= temp <= 0 and temp - metar.dewpoint_c < ICING_MAX_SPREAD_C and metar.clouds:
        add(
            AlertType.ICING,
            _severity(temp >= ICING_SEVERE_MIN_C),
            "Icing risk",
            f"Visible moisture at {temp:.0f} C, spread {temp - metar.dewpoint_c:.1f} C",
        )

    if has_thunderstorm(metar):
        add(AlertType.THUNDERSTORM, AlertSeverity.SEVERE, "Thunderstorms", "Thunderstorm activity at or near the field")

    if metar.flight_rules in (FlightRules.IFR, FlightRules.LIFR):
        lifr = metar.flight_rules == FlightRules.LIFR
        add(
            AlertType.FLIGHT_RULES,
            _severity(lifr),
            f"{metar.flight_rules.value} conditions",
            f"Field is {metar.flight_rules.value}",
        )

    if runway_heading is not None and wind.direction is not None:
        xw = calculations.wind_components(wind.direction, wind.speed_kt, runway_heading).crosswind
        if xw > CROSSWIND_KT:
            add(
                AlertType.CROSSWIND,
                _severity(xw > SEVERE_CROSSWIND_KT),
                "Strong crosswind",
                f"Crosswind {int(xw)} kt on heading {runway_heading:03d}",
            )

    pa = calculations.pressure_altitude(aerodrome.elevation_ft, metar.altimeter.in_hg)
    da = calculations.density_altitude(pa, temp, metar.dewpoint_c, metar.altimeter.in_hg)
    if da.performance_impact in (PerformanceImpact.POOR, PerformanceImpact.CRITICAL):
        add(
            AlertType.HIGH_DENSITY_ALTITUDE,
            _severity(da.performance_impact == PerformanceImpact.CRITICAL),
            "High density altitude",
            f"Density altitude {da.density_altitude_ft} ft, reduced performance",
        )

    return out


def taf_alerts(taf: Taf, aerodrome: Aerodrome) -> List[AviationAlert]:
    out: List[AviationAlert] = []
    for p in taf.forecasts[:TAF_PERIODS]:
        at = p.start_time.strftime("%H%MZ")
        ceiling = p.ceiling_ft
        if ceiling is not None and ceiling < LOW_CEILING_FT:
            out.append(
                AviationAlert(
                    type=AlertType.LOW_CEILING,
                    severity=AlertSeverity.MODERATE,
                    title="Low ceiling forecast",
                    message=f"Ceiling {ceiling} ft forecast from {at}",
                    location=aerodrome.name,
                    valid_until=p.end_time,
                )
            )
        if p.wind.speed_kt > STRONG_WIND_KT:
            out.append(
                AviationAlert(
                    type=AlertType.STRONG_WIND,
                    severity=AlertSeverity.MODERATE,
                    title="Strong wind forecast",
                    message=f"Wind {p.wind.speed_kt} kt forecast from {at}",
                    location=aerodrome.name,
                    valid_until=p.end_time,
                )
            )
    return out


def alerts(
    metar: Metar,
    aerodrome: Aerodrome,
    taf: Optional[Taf] = None,
    runway_heading: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[AviationAlert]:
    """Current-conditions alerts followed by forecast alerts, in rule order."""
    out = metar_alerts(metar, aerodrome, runway_heading=runway_heading, now=now)
    if taf is not None:
        out.extend(taf_alerts(taf, aerodrome))
    return out
