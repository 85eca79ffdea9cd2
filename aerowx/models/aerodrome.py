from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Location(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    city: str = ""
    country: str = ""


class Aerodrome(BaseModel):
    model_config = ConfigDict(frozen=True)

    icao: str = Field(..., pattern=r"^[A-Z]{4}$", description="ICAO code")
    iata: Optional[str] = None
    name: str
    location: Location
    elevation_ft: int = 0
    type: str = ""
    has_metar: bool = True
    has_taf: bool = False

    def __hash__(self) -> int:
        return hash(self.icao)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Aerodrome):
            return NotImplemented
        return self.icao == other.icao


class AerodromeSearchResult(BaseModel):
    icao: str
    iata: Optional[str] = None
    name: str
    city: Optional[str] = None
    country: Optional[str] = None
    lat: float
    lon: float
    elevation_ft: int
    distance_km: Optional[float] = None
