from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class AlertType(str, Enum):
    STRONG_WIND = "WIND"
    LOW_VISIBILITY = "VIS"
    LOW_CEILING = "CEIL"
    ICING = "ICE"
    THUNDERSTORM = "TS"
    FLIGHT_RULES = "FR"
    CROSSWIND = "XWIND"
    HIGH_DENSITY_ALTITUDE = "DA"


class AlertSeverity(str, Enum):
    LIGHT = "LIGHT"
    MODERATE = "MOD"
    SEVERE = "SEV"


class AviationAlert(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: AlertType
    severity: AlertSeverity
    title: str
    message: str
    location: str  # aerodrome name
    valid_until: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.valid_until < now
