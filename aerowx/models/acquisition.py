from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from aerowx.models.aerodrome import Aerodrome
from aerowx.models.alerts import AviationAlert
from aerowx.models.calculations import DensityAltitude, WindComponents
from aerowx.models.weather import FlightRules, Metar, Taf, WindsAloft


class AcquisitionBundle(BaseModel):
    model_config = ConfigDict(frozen=True)

    aerodrome: Aerodrome
    metar: Metar
    taf: Optional[Taf] = None
    winds_aloft: Optional[WindsAloft] = None
    nearby_aerodromes: List[Aerodrome] = Field(default_factory=list)


class DerivedConditions(BaseModel):
    model_config = ConfigDict(frozen=True)

    pressure_altitude_ft: int
    density_altitude: DensityAltitude
    estimated_cloud_base_ft: int
    wind_components: Optional[WindComponents] = None
    taf_worst_flight_rules: Optional[FlightRules] = None
    alerts: List[AviationAlert] = Field(default_factory=list)


class WeatherReport(BaseModel):
    bundle: AcquisitionBundle
    derived: DerivedConditions


class Coordinate(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)


class BatchRequest(BaseModel):
    coordinates: List[Coordinate] = Field(..., min_length=1, max_length=25)


class BatchItem(BaseModel):
    coordinate: Coordinate
    bundle: Optional[AcquisitionBundle] = None
    error: Optional[str] = None
