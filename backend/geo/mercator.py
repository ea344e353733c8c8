from __future__ import annotations

import math
from functools import lru_cache

from pyproj import Transformer

from geo.screen import ScreenPoint
from layers.types import Coord


# EPSG:3857 spans 2 * pi * R metres; renderers draw that onto 512px at zoom 0.
_EARTH_CIRCUMFERENCE_M = 2.0 * math.pi * 6378137.0
TILE_SIZE_PX = 512.0
MAX_MERCATOR_LAT = 85.05112878


@lru_cache(maxsize=1)
def transformer_4326_to_3857() -> Transformer:
    return Transformer.from_crs("EPSG:4326", "EPSG:3857", always_xy=True)


@lru_cache(maxsize=1)
def transformer_3857_to_4326() -> Transformer:
    return Transformer.from_crs("EPSG:3857", "EPSG:4326", always_xy=True)


def metres_per_pixel(zoom: float) -> float:
    return _EARTH_CIRCUMFERENCE_M / (TILE_SIZE_PX * (2.0 ** float(zoom)))


def _clamp_lat(lat: float) -> float:
    return max(-MAX_MERCATOR_LAT, min(MAX_MERCATOR_LAT, float(lat)))


def lnglat_to_screen(
    coord: Coord,
    *,
    center: Coord,
    zoom: float,
    width: int,
    height: int,
) -> ScreenPoint:
    t = transformer_4326_to_3857()
    x, y = t.transform(float(coord[0]), _clamp_lat(coord[1]))
    cx, cy = t.transform(float(center[0]), _clamp_lat(center[1]))
    res = metres_per_pixel(zoom)
    return ScreenPoint(
        x=(x - cx) / res + width / 2.0,
        # Screen y grows downwards, mercator northing upwards.
        y=(cy - y) / res + height / 2.0,
    )


def screen_to_lnglat(
    point: ScreenPoint,
    *,
    center: Coord,
    zoom: float,
    width: int,
    height: int,
) -> Coord:
    cx, cy = transformer_4326_to_3857().transform(
        float(center[0]), _clamp_lat(center[1])
    )
    res = metres_per_pixel(zoom)
    x = cx + (point.x - width / 2.0) * res
    y = cy - (point.y - height / 2.0) * res
    lon, lat = transformer_3857_to_4326().transform(x, y)
    return float(lon), float(lat)
