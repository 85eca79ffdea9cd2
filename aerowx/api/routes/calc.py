from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from aerowx.models.calculations import CrosswindCheck, DensityAltitude, WindComponents
from aerowx.models.weather import FlightRules
from aerowx.services import calculations

router = APIRouter(prefix="/calc")


class FlightRulesResponse(BaseModel):
    flight_rules: FlightRules


@router.get("/density-altitude", response_model=DensityAltitude)
async def get_density_altitude(
    field_elevation_ft: int = Query(..., ge=-1500, le=30000),
    temperature_c: float = Query(..., ge=-90, le=60),
    dewpoint_c: float = Query(..., ge=-90, le=60),
    altimeter_in_hg: float = Query(29.92, ge=25.0, le=32.5),
):
    pa = calculations.pressure_altitude(field_elevation_ft, altimeter_in_hg)
    return calculations.density_altitude(pa, temperature_c, dewpoint_c, altimeter_in_hg)


@router.get("/wind-components", response_model=WindComponents)
async def get_wind_components(
    wind_direction: int = Query(..., ge=0, le=360),
    wind_speed: float = Query(..., ge=0, le=250),
    runway_heading: int = Query(..., ge=0, le=360),
):
    return calculations.wind_components(wind_direction, wind_speed, runway_heading)


@router.get("/flight-rules", response_model=FlightRulesResponse)
async def get_flight_rules(
    visibility_sm: float = Query(..., ge=0),
    ceiling_ft: Optional[int] = Query(None, ge=0),
):
    return FlightRulesResponse(flight_rules=calculations.flight_rules(ceiling_ft, visibility_sm))


@router.get("/crosswind-check", response_model=CrosswindCheck)
async def get_crosswind_check(
    crosswind: float = Query(..., ge=0),
    demonstrated: float = Query(..., ge=0),
    maximum: Optional[float] = Query(None, ge=0),
):
    return calculations.crosswind_limit_check(crosswind, demonstrated, maximum)
