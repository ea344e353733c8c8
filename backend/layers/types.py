from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, TypeAlias, Union


GeometryClass = Literal["points", "lines", "polygons"]

Coord: TypeAlias = tuple[float, float]  # (lon, lat)
Ring: TypeAlias = list[Coord]


@dataclass(frozen=True)
class PointGeometry:
    coordinates: Coord


@dataclass(frozen=True)
class LineStringGeometry:
    coordinates: list[Coord]


@dataclass(frozen=True)
class PolygonGeometry:
    rings: list[Ring]  # [outer_ring, *holes]


@dataclass(frozen=True)
class MultiPolygonGeometry:
    polygons: list[list[Ring]]


Geometry: TypeAlias = Union[
    PointGeometry, LineStringGeometry, PolygonGeometry, MultiPolygonGeometry
]


def geometry_class(geometry: Geometry) -> GeometryClass:
    if isinstance(geometry, PointGeometry):
        return "points"
    if isinstance(geometry, LineStringGeometry):
        return "lines"
    if isinstance(geometry, (PolygonGeometry, MultiPolygonGeometry)):
        return "polygons"
    raise TypeError(f"Unsupported geometry: {type(geometry).__name__}")


def parse_geometry(raw: Any) -> Geometry | None:
    """
    Parse a renderer/GeoJSON geometry mapping into the geometry union.

    Unknown types and malformed coordinates yield None; callers treat that as
    "never matches" rather than an error.
    """
    if not isinstance(raw, dict):
        return None
    gtype = raw.get("type")
    coords = raw.get("coordinates")
    if coords is None:
        return None

    if gtype == "Point":
        c = _to_coord(coords)
        return PointGeometry(coordinates=c) if c is not None else None
    if gtype == "LineString":
        line = _to_ring(coords)
        return LineStringGeometry(coordinates=line) if line else None
    if gtype == "Polygon":
        rings = _to_rings(coords)
        return PolygonGeometry(rings=rings) if rings else None
    if gtype == "MultiPolygon":
        if not isinstance(coords, (list, tuple)):
            return None
        polys = [r for r in (_to_rings(p) for p in coords) if r]
        return MultiPolygonGeometry(polygons=polys) if polys else None
    return None


def geometry_to_geojson(geometry: Geometry) -> dict[str, Any]:
    if isinstance(geometry, PointGeometry):
        return {"type": "Point", "coordinates": list(geometry.coordinates)}
    if isinstance(geometry, LineStringGeometry):
        return {
            "type": "LineString",
            "coordinates": [list(c) for c in geometry.coordinates],
        }
    if isinstance(geometry, PolygonGeometry):
        return {
            "type": "Polygon",
            "coordinates": [[list(c) for c in r] for r in geometry.rings],
        }
    if isinstance(geometry, MultiPolygonGeometry):
        return {
            "type": "MultiPolygon",
            "coordinates": [
                [[list(c) for c in r] for r in poly] for poly in geometry.polygons
            ],
        }
    raise TypeError(f"Unsupported geometry: {type(geometry).__name__}")


def _to_coord(p: Any) -> Coord | None:
    if not isinstance(p, (list, tuple)) or len(p) < 2:
        return None
    try:
        return float(p[0]), float(p[1])
    except (TypeError, ValueError):
        return None


def _to_ring(ring: Any) -> Ring:
    if not isinstance(ring, (list, tuple)):
        return []
    out: Ring = []
    for p in ring:
        c = _to_coord(p)
        if c is None:
            # One bad vertex poisons the ring.
            return []
        out.append(c)
    return out


def _to_rings(rings: Any) -> list[Ring]:
    if not isinstance(rings, (list, tuple)):
        return []
    out = [_to_ring(r) for r in rings]
    if not out or not out[0]:
        return []
    return [r for r in out if r]


@dataclass(frozen=True)
class Feature:
    """
    A selected feature as handed to the host UI.

    `id` is unique within a single query result.
    """

    id: str
    properties: dict[str, Any]
    geometry: Geometry
    layer_id: str | None = None
    layer_name: str | None = None

    @property
    def geometry_class(self) -> GeometryClass:
        return geometry_class(self.geometry)
