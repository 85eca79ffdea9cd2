from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from aerowx.api.deps import get_facade, rate_limit, require_premium
from aerowx.models.acquisition import BatchItem, BatchRequest, WeatherReport
from aerowx.models.weather import Metar, Taf
from aerowx.services.acquisition import WeatherAcquisitionFacade

router = APIRouter()


@router.get("/weather", response_model=WeatherReport)
async def get_weather(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    runway_heading: Optional[int] = Query(None, ge=0, le=360),
    _=Depends(rate_limit),
    facade: WeatherAcquisitionFacade = Depends(get_facade),
):
    bundle = await facade.acquire(lat, lon)
    return WeatherReport(bundle=bundle, derived=facade.derive(bundle, runway_heading=runway_heading))


@router.post("/weather/batch", response_model=List[BatchItem])
async def post_weather_batch(
    payload: BatchRequest,
    _=Depends(rate_limit),
    _tier: str = Depends(require_premium),
    facade: WeatherAcquisitionFacade = Depends(get_facade),
):
    return await facade.acquire_many(payload.coordinates)


@router.get("/metar/{icao}", response_model=Metar)
async def get_metar(
    icao: str,
    _=Depends(rate_limit),
    facade: WeatherAcquisitionFacade = Depends(get_facade),
):
    return await facade.metar(icao)


@router.get("/taf/{icao}", response_model=Taf)
async def get_taf(
    icao: str,
    _=Depends(rate_limit),
    facade: WeatherAcquisitionFacade = Depends(get_facade),
):
    return await facade.taf(icao)
