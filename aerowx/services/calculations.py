"""
Aviation calculations.

Every function here is pure: no I/O, no shared state. Results that the
formulas define as whole feet or knots are truncated toward zero.
"""
from __future__ import annotations

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from pyproj import Geod

from aerowx.models.calculations import (
    CrosswindCheck,
    CrosswindDirection,
    DensityAltitude,
    PerformanceImpact,
    WindComponents,
)
from aerowx.models.weather import FlightRules

STANDARD_PRESSURE_IN_HG = 29.92
HPA_PER_IN_HG = 33.8639
METERS_PER_STATUTE_MILE = 1609.34
METERS_PER_NM = 1852.0
EARTH_RADIUS_KM = 6371.0
DEFAULT_CEILING_FT = 10000

SPHERE_GEOD = Geod(a=EARTH_RADIUS_KM * 1000.0, b=EARTH_RADIUS_KM * 1000.0)

# Magnus coefficients
_MAGNUS_A = 17.625
_MAGNUS_B = 243.04


# --- Altimetry --------------------------------------------------------------

def pressure_altitude(field_elevation_ft: int, altimeter_in_hg: float) -> int:
    # 1 inHg is roughly 1000 ft
    correction = int((STANDARD_PRESSURE_IN_HG - altimeter_in_hg) * 1000.0)
    return field_elevation_ft + correction


def isa_temperature(pressure_altitude_ft: float) -> float:
    return 15.0 - (pressure_altitude_ft / 1000.0 * 2.0)


def relative_humidity(temperature_c: float, dewpoint_c: float) -> float:
    def gamma(x: float) -> float:
        return (_MAGNUS_A * x) / (_MAGNUS_B + x)

    rh = 100.0 * math.exp(gamma(dewpoint_c) - gamma(temperature_c))
    return min(100.0, max(0.0, rh))


def performance_impact(density_altitude_ft: int) -> PerformanceImpact:
    if density_altitude_ft < 1000:
        return PerformanceImpact.EXCELLENT
    if density_altitude_ft < 3000:
        return PerformanceImpact.GOOD
    if density_altitude_ft < 5000:
        return PerformanceImpact.FAIR
    if density_altitude_ft < 8000:
        return PerformanceImpact.POOR
    return PerformanceImpact.CRITICAL


def density_altitude(
    pressure_altitude_ft: int,
    temperature_c: float,
    dewpoint_c: float,
    altimeter_in_hg: float,
) -> DensityAltitude:
    """DA = PA + 120 * (OAT - ISA)."""
    deviation = temperature_c - isa_temperature(pressure_altitude_ft)
    da = pressure_altitude_ft + int(120.0 * deviation)
    return DensityAltitude(
        pressure_altitude_ft=pressure_altitude_ft,
        density_altitude_ft=da,
        temperature_c=temperature_c,
        dewpoint_c=dewpoint_c,
        altimeter_in_hg=altimeter_in_hg,
        relative_humidity=relative_humidity(temperature_c, dewpoint_c),
        performance_impact=performance_impact(da),
    )


def altitude_correction(
    indicated_altitude_ft: int,
    temperature_c: float,
    standard_temperature_c: float,
) -> Tuple[int, int]:
    """(true altitude, correction): about 4 ft per 1000 ft per degree off standard."""
    correction = int((indicated_altitude_ft / 1000.0) * 4.0 * (temperature_c - standard_temperature_c))
    return indicated_altitude_ft + correction, correction


def estimate_cloud_base(temperature_c: float, dewpoint_c: float, field_elevation_ft: int) -> int:
    spread = temperature_c - dewpoint_c
    return field_elevation_ft + int(spread / 2.5 * 1000.0)


# --- Wind and speed ---------------------------------------------------------

def normalize_angle(angle: float) -> float:
    """Fold an angle in degrees into (-180, 180]."""
    angle = math.fmod(angle, 360.0)
    if angle > 180.0:
        angle -= 360.0
    elif angle <= -180.0:
        angle += 360.0
    return angle


def wind_components(wind_direction: int, wind_speed: float, runway_heading: int) -> WindComponents:
    if wind_speed <= 0:
        return WindComponents(
            headwind=0.0,
            crosswind=0.0,
            crosswind_direction=CrosswindDirection.NONE,
            wind_speed=0.0,
            wind_direction=wind_direction,
            runway_heading=runway_heading,
        )

    angle = normalize_angle(wind_direction - runway_heading)
    rad = math.radians(angle)
    headwind = wind_speed * math.cos(rad)
    crosswind = abs(wind_speed * math.sin(rad))

    if crosswind < 1:
        side = CrosswindDirection.NONE
    elif angle > 0:
        side = CrosswindDirection.RIGHT
    else:
        side = CrosswindDirection.LEFT

    return WindComponents(
        headwind=headwind,
        crosswind=crosswind,
        crosswind_direction=side,
        wind_speed=float(wind_speed),
        wind_direction=wind_direction,
        runway_heading=runway_heading,
    )


def true_airspeed(indicated_airspeed: int, pressure_altitude_ft: int, temperature_c: float) -> int:
    altitude_factor = pressure_altitude_ft / 1000.0
    temp_factor = (temperature_c + 273.15) / 288.15
    return int(indicated_airspeed * (1.0 + 0.02 * altitude_factor) * math.sqrt(temp_factor))


def ground_speed(true_airspeed_kt: int, wind_direction: int, wind_speed: float, heading: int) -> int:
    components = wind_components(wind_direction, wind_speed, heading)
    return max(0, int(true_airspeed_kt + components.headwind))


def crosswind_limit_check(
    crosswind: float,
    demonstrated: float,
    maximum: Optional[float] = None,
) -> CrosswindCheck:
    limit = demonstrated if maximum is None else maximum
    if crosswind <= demonstrated:
        return CrosswindCheck(within_limits=True)
    if crosswind <= limit:
        return CrosswindCheck(
            within_limits=True,
            warning=f"Above demonstrated crosswind ({int(demonstrated)} kt)",
        )
    return CrosswindCheck(
        within_limits=False,
        warning=f"Exceeds crosswind limit ({int(limit)} kt)",
    )


# --- Flight category --------------------------------------------------------

def flight_rules(ceiling_ft: Optional[int], visibility_sm: float) -> FlightRules:
    ceiling = DEFAULT_CEILING_FT if ceiling_ft is None else ceiling_ft

    if ceiling > 3000 and visibility_sm > 5:
        return FlightRules.VFR
    # worse of either factor: each band is ceiling OR visibility
    if 1000 <= ceiling <= 3000 or 3 <= visibility_sm <= 5:
        return FlightRules.MVFR
    if 500 <= ceiling < 1000 or 1 <= visibility_sm < 3:
        return FlightRules.IFR
    return FlightRules.LIFR


# --- Unit conversions -------------------------------------------------------

def statute_miles_to_meters(miles: float) -> int:
    return int(miles * METERS_PER_STATUTE_MILE)


def meters_to_statute_miles(meters: float) -> float:
    return meters / METERS_PER_STATUTE_MILE


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9.0 / 5.0 + 32.0


def fahrenheit_to_celsius(fahrenheit: float) -> float:
    return (fahrenheit - 32.0) * 5.0 / 9.0


def in_hg_to_hpa(in_hg: float) -> float:
    return in_hg * HPA_PER_IN_HG


def hpa_to_in_hg(hpa: float) -> float:
    return hpa / HPA_PER_IN_HG


# --- Navigation and planning ------------------------------------------------

def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance on a 6371 km sphere."""
    _, _, meters = SPHERE_GEOD.inv(lon1, lat1, lon2, lat2)
    return meters / 1000.0


def distances_km(lat: float, lon: float, lats: Sequence[float], lons: Sequence[float]) -> List[float]:
    """Distances from one point to many, in a single vectorised call."""
    if not lats:
        return []
    n = len(lats)
    _, _, meters = SPHERE_GEOD.inv([lon] * n, [lat] * n, list(lons), list(lats))
    return [m / 1000.0 for m in meters]


def distance_nm(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return distance_km(lat1, lon1, lat2, lon2) * 1000.0 / METERS_PER_NM


def bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Initial true bearing in degrees [0, 360)."""
    azimuth, _, _ = SPHERE_GEOD.inv(lon1, lat1, lon2, lat2)
    return azimuth % 360.0


def flight_time_seconds(distance_nm_: float, ground_speed_kt: int) -> float:
    if ground_speed_kt <= 0:
        return 0.0
    return distance_nm_ / ground_speed_kt * 3600.0


def fuel_required(flight_time_s: float, burn_rate_gph: float, reserve_minutes: int = 45) -> float:
    return (flight_time_s / 3600.0 + reserve_minutes / 60.0) * burn_rate_gph


def time_to_altitude_seconds(current_altitude_ft: int, target_altitude_ft: int, climb_rate_fpm: int) -> float:
    if climb_rate_fpm <= 0:
        return 0.0
    diff = target_altitude_ft - current_altitude_ft
    if diff <= 0:
        return 0.0
    return diff / climb_rate_fpm * 60.0


def _weight_ratio(weight_lb: int, max_weight_lb: int) -> float:
    return weight_lb / max_weight_lb if max_weight_lb > 0 else 1.0


def takeoff_distance_ft(
    density_altitude_ft: int,
    headwind_kt: float,
    weight_lb: int,
    max_weight_lb: int,
    base_distance_ft: int = 1000,
) -> int:
    """Rule-of-thumb ground roll: +10% per 1000 ft DA, -10% per 10 kt headwind."""
    da_factor = 1.0 + density_altitude_ft / 1000.0 * 0.10
    wind_factor = 1.0 - headwind_kt / 10.0 * 0.10
    weight_factor = 0.5 + _weight_ratio(weight_lb, max_weight_lb) * 0.5
    return int(base_distance_ft * da_factor * wind_factor * weight_factor)


def landing_distance_ft(
    density_altitude_ft: int,
    headwind_kt: float,
    weight_lb: int,
    max_weight_lb: int,
    base_distance_ft: int = 800,
) -> int:
    """+5% per 1000 ft DA; -10% per 10 kt headwind, +20% per 10 kt tailwind."""
    da_factor = 1.0 + density_altitude_ft / 1000.0 * 0.05
    if headwind_kt > 0:
        wind_factor = 1.0 - headwind_kt / 10.0 * 0.10
    else:
        wind_factor = 1.0 + abs(headwind_kt) / 10.0 * 0.20
    weight_factor = 0.6 + _weight_ratio(weight_lb, max_weight_lb) * 0.4
    return int(base_distance_ft * da_factor * wind_factor * weight_factor)


def worst_flight_rules(categories: Iterable[FlightRules]) -> Optional[FlightRules]:
    order = [FlightRules.VFR, FlightRules.MVFR, FlightRules.IFR, FlightRules.LIFR]
    worst = None
    for cat in categories:
        if worst is None or order.index(cat) > order.index(worst):
            worst = cat
    return worst
