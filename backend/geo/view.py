from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from shapely.geometry import shape as shapely_shape

from layers.types import Coord, Feature, geometry_to_geojson


@dataclass(frozen=True)
class LngLat:
    lng: float
    lat: float

    def as_tuple(self) -> Coord:
        return self.lng, self.lat


@dataclass(frozen=True)
class Viewport:
    """
    The camera: center coordinate and zoom level.
    """

    center: LngLat
    zoom: float


@dataclass(frozen=True)
class LngLatBounds:
    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    @property
    def center(self) -> LngLat:
        return LngLat(
            lng=(self.min_lng + self.max_lng) / 2.0,
            lat=(self.min_lat + self.max_lat) / 2.0,
        )


def features_bounds(features: Iterable[Feature]) -> LngLatBounds | None:
    """
    Union of feature extents, or None for an empty input.
    """
    min_lng = min_lat = math.inf
    max_lng = max_lat = -math.inf
    for f in features:
        x0, y0, x1, y1 = shapely_shape(geometry_to_geojson(f.geometry)).bounds
        min_lng, min_lat = min(min_lng, x0), min(min_lat, y0)
        max_lng, max_lat = max(max_lng, x1), max(max_lat, y1)
    if min_lng == math.inf:
        return None
    return LngLatBounds(min_lng=min_lng, min_lat=min_lat, max_lng=max_lng, max_lat=max_lat)


def bounds_to_zoom(
    bounds: LngLatBounds,
    *,
    width: int,
    height: int,
    padding: int = 0,
    max_zoom: float = 22.0,
) -> float:
    # WebMercator bbox -> zoom heuristic.
    def lat_to_rad(lat: float) -> float:
        s = math.sin(lat * math.pi / 180.0)
        return math.log((1 + s) / (1 - s)) / 2.0

    lon_delta = bounds.max_lng - bounds.min_lng
    lat_delta = (
        (lat_to_rad(bounds.max_lat) - lat_to_rad(bounds.min_lat)) * 180.0 / math.pi
    )

    # avoid division by zero (single point)
    lon_delta = max(lon_delta, 1e-6)
    lat_delta = max(lat_delta, 1e-6)

    usable_w = max(1, width - 2 * padding)
    usable_h = max(1, height - 2 * padding)

    # 512px world at zoom 0
    zoom_x = math.log2((usable_w * 360.0) / (512.0 * lon_delta))
    zoom_y = math.log2((usable_h * 360.0) / (512.0 * lat_delta))
    return float(max(0.0, min(max_zoom, zoom_x, zoom_y)))
