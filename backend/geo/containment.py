from __future__ import annotations

from typing import Callable

from geo.screen import DrawBounds, ScreenPoint
from layers.types import (
    Coord,
    Geometry,
    LineStringGeometry,
    MultiPolygonGeometry,
    PointGeometry,
    PolygonGeometry,
)


Projector = Callable[[Coord], ScreenPoint]


def characteristic_vertices(geometry: Geometry | None) -> list[Coord]:
    """
    Vertices tested against a drawn shape.

    Approximation: segments are never intersected with the shape, so a line or
    polygon whose edges cross the region without any vertex inside is missed.
    - Point: its coordinate
    - LineString: every vertex
    - Polygon: the outer ring
    - MultiPolygon: the outer ring of the first polygon only
    """
    if isinstance(geometry, PointGeometry):
        return [geometry.coordinates]
    if isinstance(geometry, LineStringGeometry):
        return list(geometry.coordinates)
    if isinstance(geometry, PolygonGeometry):
        return list(geometry.rings[0]) if geometry.rings else []
    if isinstance(geometry, MultiPolygonGeometry):
        if not geometry.polygons or not geometry.polygons[0]:
            return []
        return list(geometry.polygons[0][0])
    return []


def geometry_in_shape(
    geometry: Geometry | None, bounds: DrawBounds, project: Projector
) -> bool:
    for coord in characteristic_vertices(geometry):
        if bounds.contains(project(coord)):
            return True
    return False
