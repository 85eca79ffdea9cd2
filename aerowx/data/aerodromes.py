from __future__ import annotations

import csv
import io
import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from aerowx.core.errors import DatasetError
from aerowx.models.aerodrome import Aerodrome, Location
from aerowx.services.calculations import distances_km
from aerowx.utils.cache import TTLCache

logger = logging.getLogger(__name__)

# OurAirports airports.csv column positions
MIN_COLUMNS = 18
COL_ICAO = 1
COL_TYPE = 2
COL_NAME = 3
COL_LAT = 4
COL_LON = 5
COL_ELEVATION = 6
COL_COUNTRY = 8
COL_CITY = 10
COL_IATA = 13

ICAO_RE = re.compile(r"^[A-Z]{4}$")
IATA_RE = re.compile(r"^[A-Z0-9]{3}$")

METAR_TYPES = {"large_airport", "medium_airport", "small_airport"}
TAF_TYPES = {"large_airport", "medium_airport"}

DEFAULT_SEARCH_LIMIT = 20
KM_PER_DEG_LAT = 111.2


def _clean(value: str) -> str:
    return value.strip().strip('"').strip()


def parse_row(row: List[str]) -> Optional[Aerodrome]:
    """Build an Aerodrome from one dataset row, or None if the row is unusable."""
    if len(row) < MIN_COLUMNS:
        return None

    icao = _clean(row[COL_ICAO]).upper()
    if not ICAO_RE.match(icao):
        return None

    try:
        lat = float(_clean(row[COL_LAT]))
        lon = float(_clean(row[COL_LON]))
    except ValueError:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0):
        return None

    elev_raw = _clean(row[COL_ELEVATION])
    try:
        elevation_ft = int(float(elev_raw)) if elev_raw else 0
    except ValueError:
        elevation_ft = 0

    kind = _clean(row[COL_TYPE]).lower()
    iata = _clean(row[COL_IATA]).upper()

    return Aerodrome(
        icao=icao,
        iata=iata if IATA_RE.match(iata) else None,
        name=_clean(row[COL_NAME]),
        location=Location(
            latitude=lat,
            longitude=lon,
            city=_clean(row[COL_CITY]),
            country=_clean(row[COL_COUNTRY]),
        ),
        elevation_ft=elevation_ft,
        type=kind,
        has_metar=not kind or kind in METAR_TYPES,
        has_taf=kind in TAF_TYPES,
    )


class AerodromeDirectory:
    """
    In-memory aerodrome table loaded once from the OurAirports CSV layout.

    Lookups are by ICAO code, by substring, or by great-circle distance.
    """

    def __init__(self, cache: Optional[TTLCache] = None):
        self._by_icao: Dict[str, Aerodrome] = {}
        self._all: List[Aerodrome] = []
        self._lats: List[float] = []
        self._lons: List[float] = []
        self._cache = cache
        self.loaded = False

    def load(self, text: str) -> int:
        """
        Ingest the dataset text. Bad rows are skipped; only a missing header
        fails the load. Returns the number of aerodromes kept.
        """
        reader = csv.reader(io.StringIO(text))
        header = next(reader, None)
        if not header:
            raise DatasetError("Aerodrome dataset is empty (no header row)")

        skipped = 0
        for row in reader:
            if not row:
                continue
            rec = parse_row(row)
            if rec is None:
                skipped += 1
                continue
            if rec.icao in self._by_icao:
                # first wins
                continue
            self._by_icao[rec.icao] = rec
            self._all.append(rec)
            self._lats.append(rec.location.latitude)
            self._lons.append(rec.location.longitude)

        self.loaded = True
        if self._cache is not None:
            self._cache.clear()
        logger.info("Loaded %d aerodromes (%d rows skipped)", len(self._all), skipped)
        return len(self._all)

    def load_path(self, path: Path) -> int:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(
                f"Aerodrome dataset not found at {path}. "
                f"Run scripts/build_airports_csv.py to generate it."
            )
        return self.load(path.read_text(encoding="utf-8"))

    def __len__(self) -> int:
        return len(self._all)

    def all(self) -> List[Aerodrome]:
        return list(self._all)

    def get(self, icao: str) -> Optional[Aerodrome]:
        return self._by_icao.get((icao or "").strip().upper())

    def nearest_with_distance(
        self,
        lat: float,
        lon: float,
        max_radius_km: float,
        limit: int = 10,
    ) -> List[Tuple[Aerodrome, float]]:
        # exact coordinates: a rounded key would hand back another point's ordering
        key = f"nearest:{lat!r}:{lon!r}:{max_radius_km!r}:{limit}"
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                return list(cached)

        # Cheap latitude band before the geodesic pass
        band = max_radius_km / KM_PER_DEG_LAT + 0.1
        idx = [
            i
            for i, a in enumerate(self._all)
            if a.has_metar and abs(self._lats[i] - lat) <= band
        ]
        dists = distances_km(lat, lon, [self._lats[i] for i in idx], [self._lons[i] for i in idx])

        found = [(self._all[i], d) for i, d in zip(idx, dists) if d <= max_radius_km]
        found.sort(key=lambda x: x[1])
        out = found[: max(0, limit)]

        if self._cache is not None:
            self._cache.set(key, tuple(out))
        return out

    def nearest(self, lat: float, lon: float, max_radius_km: float, limit: int = 10) -> List[Aerodrome]:
        return [a for a, _ in self.nearest_with_distance(lat, lon, max_radius_km, limit)]

    def search(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> List[Aerodrome]:
        q = (query or "").strip().upper()
        if not q:
            return []
        limit = max(1, min(limit, DEFAULT_SEARCH_LIMIT))

        out: List[Aerodrome] = []
        for rec in self._all:
            if q in rec.icao or q in rec.name.upper() or (rec.iata and q in rec.iata):
                out.append(rec)
                if len(out) >= limit:
                    break
        return out
