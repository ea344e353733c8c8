from __future__ import annotations

import pytest

from geo.containment import characteristic_vertices, geometry_in_shape
from geo.mercator import lnglat_to_screen, metres_per_pixel, screen_to_lnglat
from geo.screen import DrawBounds, ScreenBox, ScreenPoint
from geo.view import LngLatBounds, bounds_to_zoom, features_bounds
from layers.types import (
    Feature,
    LineStringGeometry,
    MultiPolygonGeometry,
    PointGeometry,
    PolygonGeometry,
    geometry_class,
    geometry_to_geojson,
    parse_geometry,
)
from renderer.expressions import ExpressionError, evaluate, matches


def _identity(c):
    return ScreenPoint(c[0], c[1])


def test_parse_geometry_variants():
    assert parse_geometry({"type": "Point", "coordinates": [1, 2]}) == PointGeometry((1.0, 2.0))
    line = parse_geometry({"type": "LineString", "coordinates": [[0, 0], [1, 1]]})
    assert isinstance(line, LineStringGeometry) and len(line.coordinates) == 2
    poly = parse_geometry({"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 0]]]})
    assert geometry_class(poly) == "polygons"
    multi = parse_geometry(
        {"type": "MultiPolygon", "coordinates": [[[[0, 0], [1, 0], [1, 1], [0, 0]]]]}
    )
    assert isinstance(multi, MultiPolygonGeometry)


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "Point",
        {"type": "Point"},
        {"type": "Point", "coordinates": [1]},
        {"type": "MultiPoint", "coordinates": [[1, 2]]},
        {"type": "LineString", "coordinates": []},
        {"type": "Polygon", "coordinates": [[]]},
        {"type": "MultiPolygon", "coordinates": "nope"},
    ],
)
def test_parse_geometry_rejects_malformed(raw):
    assert parse_geometry(raw) is None


def test_geometry_to_geojson_shapes():
    poly = PolygonGeometry([[(0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 0.0)]])
    assert geometry_to_geojson(poly) == {
        "type": "Polygon",
        "coordinates": [[[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 0.0]]],
    }


def test_screen_box_normalizes_and_is_inclusive():
    box = ScreenBox(300, 300, 100, 100).normalized()
    assert box == ScreenBox(100, 100, 300, 300)
    assert box.contains(ScreenPoint(100, 300))
    assert not box.contains(ScreenPoint(99.9, 200))
    assert box.as_corners() == ((100, 100), (300, 300))


def test_circle_bounds_and_edge():
    bounds = DrawBounds("circle", ScreenPoint(200, 200), ScreenPoint(250, 200))
    assert bounds.radius == 50
    assert bounds.bounding_box() == ScreenBox(150, 150, 250, 250)
    assert bounds.contains(ScreenPoint(200, 250))  # on the rim
    assert not bounds.contains(ScreenPoint(236, 236))


def test_characteristic_vertices():
    multi = MultiPolygonGeometry(
        [
            [[(0.0, 0.0), (1.0, 0.0), (0.0, 0.0)], [(0.5, 0.5), (0.6, 0.5), (0.5, 0.5)]],
            [[(9.0, 9.0), (9.5, 9.0), (9.0, 9.0)]],
        ]
    )
    assert characteristic_vertices(multi) == [(0.0, 0.0), (1.0, 0.0), (0.0, 0.0)]
    assert characteristic_vertices(None) == []


def test_geometry_in_shape_uses_vertices_only():
    rect = DrawBounds("rectangle", ScreenPoint(10, 10), ScreenPoint(20, 20))
    crossing = LineStringGeometry([(0.0, 15.0), (30.0, 15.0)])
    assert not geometry_in_shape(crossing, rect, _identity)
    assert geometry_in_shape(PointGeometry((15.0, 15.0)), rect, _identity)


def test_mercator_center_and_round_trip():
    kw = dict(center=(-90.0, 27.5), zoom=5.0, width=1024, height=768)
    c = lnglat_to_screen((-90.0, 27.5), **kw)
    assert (c.x, c.y) == pytest.approx((512, 384))
    p = lnglat_to_screen((-90.4, 27.3), **kw)
    # West and south of the center: left and below.
    assert p.x < 512 and p.y > 384
    lng, lat = screen_to_lnglat(p, **kw)
    assert (lng, lat) == pytest.approx((-90.4, 27.3), abs=1e-7)


def test_metres_per_pixel_halves_per_zoom():
    assert metres_per_pixel(1) == pytest.approx(metres_per_pixel(0) / 2)
    assert metres_per_pixel(0) == pytest.approx(78271.517, rel=1e-6)


def test_features_bounds_and_zoom():
    features = [
        Feature(id="a", properties={}, geometry=PointGeometry((-91.0, 27.0))),
        Feature(
            id="b",
            properties={},
            geometry=LineStringGeometry([(-90.0, 27.5), (-89.0, 28.0)]),
        ),
    ]
    b = features_bounds(features)
    assert b == LngLatBounds(-91.0, 27.0, -89.0, 28.0)
    assert features_bounds([]) is None

    z = bounds_to_zoom(b, width=1024, height=768, padding=50)
    assert 0 < z < 22
    assert bounds_to_zoom(LngLatBounds(1.0, 1.0, 1.0, 1.0), width=1024, height=768) == 22.0


def test_expressions():
    props = {"severity": "High", "n": 3}
    case = ["case", ["==", ["get", "severity"], "High"], 10, ["==", ["get", "severity"], "Low"], 4, 6]
    assert evaluate(case, props) == 10
    assert evaluate(case, {"severity": "Other"}) == 6
    assert evaluate(["to-string", ["get", "n"]], props) == "3"
    assert evaluate(["id"], props, "F-1") == "F-1"
    assert matches(["all", ["has", "n"], ["!=", ["get", "n"], 4]], props)
    assert not matches(["any", ["!", ["has", "n"]], ["in", ["get", "n"], ["literal", [1, 2]]]], props)
    assert matches(None, props)
    with pytest.raises(ExpressionError):
        evaluate(["interpolate", ["linear"], 1], props)
