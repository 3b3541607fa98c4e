"""British National Grid to WGS84 conversion."""

from __future__ import annotations

import math
from functools import lru_cache

from pyproj import CRS, Transformer

BNG_EPSG = 27700
WGS84_EPSG = 4326


@lru_cache(maxsize=1)
def _bng_to_wgs84() -> Transformer:
    return Transformer.from_crs(CRS.from_epsg(BNG_EPSG), CRS.from_epsg(WGS84_EPSG), always_xy=True)


def _valid_lat_lon(lat: float, lon: float) -> bool:
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def grid_to_wgs84(easting: int | None, northing: int | None) -> tuple[float, float] | None:
    """Return ``(lat, lon)`` for a grid reference in metres, or ``None`` if absent."""
    if easting is None or northing is None:
        return None
    lon, lat = _bng_to_wgs84().transform(easting, northing)
    if not _valid_lat_lon(lat, lon):
        return None
    return lat, lon
