"""
Canonical weather products.

Every provider adapter produces these models; callers never see a
provider's own schema. Units: knots, statute miles, feet, Celsius
(with Fahrenheit alongside), inHg and hPa.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field


class FlightRules(str, Enum):
    VFR = "VFR"
    MVFR = "MVFR"
    IFR = "IFR"
    LIFR = "LIFR"


class CloudCoverage(str, Enum):
    CLEAR = "CLR"
    FEW = "FEW"
    SCATTERED = "SCT"
    BROKEN = "BKN"
    OVERCAST = "OVC"
    VERTICAL_VISIBILITY = "VV"


CEILING_COVERAGES = {CloudCoverage.BROKEN, CloudCoverage.OVERCAST, CloudCoverage.VERTICAL_VISIBILITY}


class ForecastType(str, Enum):
    BASE = "base"
    TEMPO = "tempo"
    BECMG = "becmg"
    PROB = "prob"
    FROM = "from"


class Wind(BaseModel):
    model_config = ConfigDict(frozen=True)

    direction: Optional[int] = Field(None, ge=0, le=360)  # None: variable or calm
    speed_kt: int = 0
    gust_kt: Optional[int] = None
    variable: bool = False


class Visibility(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float = 10.0
    unit: str = "SM"
    is_greater_than: bool = False


class Temperature(BaseModel):
    model_config = ConfigDict(frozen=True)

    celsius: float
    fahrenheit: float


class Altimeter(BaseModel):
    model_config = ConfigDict(frozen=True)

    in_hg: float
    hpa: float


class CloudLayer(BaseModel):
    model_config = ConfigDict(frozen=True)

    coverage: CloudCoverage
    altitude_ft: int = 0  # AGL
    type: Optional[str] = None  # CB / TCU


def ceiling_of(clouds: Sequence[CloudLayer]) -> Optional[int]:
    """Lowest broken, overcast or vertical-visibility layer, in ft AGL."""
    bases = [c.altitude_ft for c in clouds if c.coverage in CEILING_COVERAGES]
    return min(bases) if bases else None


class Metar(BaseModel):
    model_config = ConfigDict(frozen=True)

    station: str
    observation_time: datetime
    raw_text: str = ""
    flight_rules: FlightRules
    reported_flight_rules: Optional[str] = None
    wind: Wind
    visibility: Visibility
    temperature: Temperature
    dewpoint_c: float
    altimeter: Altimeter
    clouds: List[CloudLayer] = Field(default_factory=list)
    remarks: Optional[str] = None
    provider: Optional[str] = None

    @property
    def ceiling_ft(self) -> Optional[int]:
        return ceiling_of(self.clouds)


class ForecastPeriod(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ForecastType = ForecastType.BASE
    start_time: datetime
    end_time: datetime
    wind: Wind
    visibility: Visibility
    clouds: List[CloudLayer] = Field(default_factory=list)
    probability: Optional[int] = None
    change_period: Optional[str] = None
    flight_rules: FlightRules

    @property
    def ceiling_ft(self) -> Optional[int]:
        return ceiling_of(self.clouds)


class Taf(BaseModel):
    model_config = ConfigDict(frozen=True)

    station: str
    issue_time: datetime
    valid_from: datetime
    valid_to: datetime
    raw_text: str = ""
    forecasts: List[ForecastPeriod] = Field(default_factory=list)
    provider: Optional[str] = None


class WindLevel(BaseModel):
    model_config = ConfigDict(frozen=True)

    altitude_ft: int  # MSL
    direction: Optional[int] = None
    speed_kt: int = 0
    temperature_c: Optional[int] = None


class WindsAloft(BaseModel):
    model_config = ConfigDict(frozen=True)

    station: str
    valid_time: datetime
    levels: List[WindLevel] = Field(default_factory=list)

    def level_at(self, altitude_ft: int) -> Optional[WindLevel]:
        """Closest forecast level to the requested altitude."""
        if not self.levels:
            return None
        return min(self.levels, key=lambda lvl: abs(lvl.altitude_ft - altitude_ft))
