from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from aerowx.api.deps import get_directory, rate_limit
from aerowx.core.config import settings
from aerowx.data.aerodromes import AerodromeDirectory
from aerowx.models.aerodrome import Aerodrome, AerodromeSearchResult

router = APIRouter()


def _to_result(rec: Aerodrome, distance_km: float | None = None) -> AerodromeSearchResult:
    return AerodromeSearchResult(
        icao=rec.icao,
        iata=rec.iata,
        name=rec.name,
        city=rec.location.city or None,
        country=rec.location.country or None,
        lat=rec.location.latitude,
        lon=rec.location.longitude,
        elevation_ft=rec.elevation_ft,
        distance_km=round(distance_km, 1) if distance_km is not None else None,
    )


@router.get("/aerodromes/search", response_model=List[AerodromeSearchResult])
async def search_aerodromes(
    q: str = Query(..., min_length=1, max_length=64),
    limit: int = Query(settings.search_limit, ge=1, le=settings.search_limit),
    _=Depends(rate_limit),
    directory: AerodromeDirectory = Depends(get_directory),
):
    return [_to_result(rec) for rec in directory.search(q, limit=limit)]


@router.get("/aerodromes/nearest", response_model=List[AerodromeSearchResult])
async def nearest_aerodromes(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(settings.nearby_radius_km, gt=0, le=500),
    limit: int = Query(settings.nearby_limit, ge=1, le=50),
    _=Depends(rate_limit),
    directory: AerodromeDirectory = Depends(get_directory),
):
    found = directory.nearest_with_distance(lat, lon, radius_km, limit=limit)
    return [_to_result(rec, km) for rec, km in found]


@router.get("/aerodromes/{icao}", response_model=Aerodrome)
async def get_aerodrome(
    icao: str,
    _=Depends(rate_limit),
    directory: AerodromeDirectory = Depends(get_directory),
):
    rec = directory.get(icao)
    if rec is None:
        raise HTTPException(status_code=404, detail=f"Unknown aerodrome: {icao.upper()}")
    return rec
