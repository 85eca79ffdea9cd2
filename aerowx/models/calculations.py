from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class PerformanceImpact(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    CRITICAL = "critical"


class CrosswindDirection(str, Enum):
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"


class DensityAltitude(BaseModel):
    model_config = ConfigDict(frozen=True)

    pressure_altitude_ft: int
    density_altitude_ft: int
    temperature_c: float
    dewpoint_c: float
    altimeter_in_hg: float
    relative_humidity: float
    performance_impact: PerformanceImpact


class WindComponents(BaseModel):
    model_config = ConfigDict(frozen=True)

    headwind: float  # negative is a tailwind
    crosswind: float
    crosswind_direction: CrosswindDirection
    wind_speed: float
    wind_direction: int
    runway_heading: int

    @property
    def tailwind(self) -> float:
        return max(0.0, -self.headwind)


class CrosswindCheck(BaseModel):
    model_config = ConfigDict(frozen=True)

    within_limits: bool
    warning: Optional[str] = None
