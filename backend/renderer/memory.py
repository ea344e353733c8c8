from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Sequence

import httpx
from shapely.geometry import LineString, Point, Polygon
from shapely.geometry import box as shapely_box
from shapely.strtree import STRtree

from geo.mercator import lnglat_to_screen, screen_to_lnglat
from geo.screen import ScreenBox, ScreenPoint
from geo.view import LngLat, LngLatBounds, Viewport, bounds_to_zoom
from layers.types import (
    LineStringGeometry,
    MultiPolygonGeometry,
    PointGeometry,
    PolygonGeometry,
    parse_geometry,
)
from renderer.expressions import evaluate, matches
from renderer.types import (
    Canvas,
    EventHandler,
    FilterExpression,
    MapEvent,
    MapMouseEvent,
    QueryGeometry,
    RenderedFeature,
)


LAYER_TYPES = {"fill", "line", "circle", "symbol"}


def load_geojson_file(location: str) -> dict[str, Any]:
    return json.loads(Path(location).read_text(encoding="utf-8"))


def httpx_data_loader(client: httpx.Client) -> Callable[[str], dict[str, Any]]:
    """
    Resolve feed locations over HTTP, e.g. against the config service.
    """

    def load(location: str) -> dict[str, Any]:
        resp = client.get(location)
        resp.raise_for_status()
        return resp.json()

    return load


@dataclass
class _Subscription:
    event: MapEvent
    handler: EventHandler
    layers: tuple[str, ...] | None = None
    once: bool = False
    # Layer-scoped mouseleave bookkeeping.
    hovering: bool = False


@dataclass
class InMemoryRenderer:
    """
    Reference renderer: keeps sources/layers in memory, projects with
    Web-Mercator and answers rendered-feature queries with an STRtree built in
    screen space.

    Behaves like a browser map renderer where it matters to the engine:
    - adding a duplicate source/layer id raises
    - `set_style` discards every custom source and layer
    - mutations raise until the style is loaded (`load()` / `signal_idle()`)
    """

    style_url: str
    center: tuple[float, float] = (0.0, 0.0)
    zoom: float = 2.0
    width: int = 1024
    height: int = 768
    # Resolves an inline-geometry feed location into a FeatureCollection.
    data_loader: Callable[[str], dict[str, Any]] = load_geojson_file
    # pmtiles location -> {source_layer: FeatureCollection}
    tiles: dict[str, dict[str, dict[str, Any]]] = field(default_factory=dict)

    camera_history: list[tuple[str, Viewport]] = field(default_factory=list, repr=False)
    _canvas: Canvas | None = field(default=None, repr=False)
    _style_loaded: bool = field(default=False, repr=False)
    _sources: dict[str, dict[str, Any]] = field(default_factory=dict, repr=False)
    _source_data: dict[str, list[dict[str, Any]]] = field(default_factory=dict, repr=False)
    _layers: list[dict[str, Any]] = field(default_factory=list, repr=False)
    _subs: list[_Subscription] = field(default_factory=list, repr=False)

    # -- lifecycle -----------------------------------------------------------

    def load(self) -> None:
        self._style_loaded = True
        self.fire("load")

    def set_style(self, style_url: str) -> None:
        self.style_url = style_url
        self._style_loaded = False
        self._sources.clear()
        self._source_data.clear()
        self._layers.clear()

    def signal_idle(self) -> None:
        self._style_loaded = True
        self.fire("idle")

    @property
    def style_loaded(self) -> bool:
        return self._style_loaded

    # -- sources & layers ----------------------------------------------------

    def add_source(self, source_id: str, source: dict[str, Any]) -> None:
        self._require_style()
        if source_id in self._sources:
            raise ValueError(f"There is already a source with id '{source_id}'")
        if source.get("type") not in ("geojson", "vector"):
            raise ValueError(f"Unsupported source type: {source.get('type')!r}")
        self._sources[source_id] = dict(source)

    def get_source(self, source_id: str) -> dict[str, Any] | None:
        return self._sources.get(source_id)

    def add_layer(self, layer: dict[str, Any]) -> None:
        self._require_style()
        lid = layer.get("id")
        if not lid:
            raise ValueError("Layer is missing an id")
        if self.get_layer(lid) is not None:
            raise ValueError(f"Layer with id '{lid}' already exists on this map")
        if layer.get("type") not in LAYER_TYPES:
            raise ValueError(f"Layer '{lid}' has unsupported type {layer.get('type')!r}")
        if layer.get("source") not in self._sources:
            raise ValueError(f"Source '{layer.get('source')}' not found for layer '{lid}'")
        stored = dict(layer)
        stored["layout"] = dict(layer.get("layout") or {})
        stored["paint"] = dict(layer.get("paint") or {})
        self._layers.append(stored)

    def get_layer(self, layer_id: str) -> dict[str, Any] | None:
        for layer in self._layers:
            if layer["id"] == layer_id:
                return layer
        return None

    def layer_ids(self) -> list[str]:
        return [layer["id"] for layer in self._layers]

    def set_layout_property(self, layer_id: str, name: str, value: Any) -> None:
        self._existing_layer(layer_id)["layout"][name] = value

    def set_filter(self, layer_id: str, expression: FilterExpression | None) -> None:
        self._existing_layer(layer_id)["filter"] = expression

    def get_filter(self, layer_id: str) -> FilterExpression | None:
        return self._existing_layer(layer_id).get("filter")

    def source_features(self, layer_id: str) -> list[dict[str, Any]]:
        """
        Raw GeoJSON features a layer draws from, before its filter.
        """
        return self._features_for_layer(self._existing_layer(layer_id))

    # -- camera --------------------------------------------------------------

    def project(self, lnglat: tuple[float, float]) -> ScreenPoint:
        return lnglat_to_screen(
            lnglat, center=self.center, zoom=self.zoom, width=self.width, height=self.height
        )

    def unproject(self, point: ScreenPoint) -> LngLat:
        lng, lat = screen_to_lnglat(
            point, center=self.center, zoom=self.zoom, width=self.width, height=self.height
        )
        return LngLat(lng=lng, lat=lat)

    def get_center(self) -> LngLat:
        return LngLat(lng=self.center[0], lat=self.center[1])

    def get_zoom(self) -> float:
        return float(self.zoom)

    def jump_to(self, *, center: LngLat, zoom: float) -> None:
        self.center = center.as_tuple()
        self.zoom = float(zoom)

    def fly_to(self, *, center: LngLat, zoom: float) -> None:
        # No animation frames here; the camera lands immediately.
        self.jump_to(center=center, zoom=zoom)
        self.camera_history.append(("fly_to", Viewport(center=center, zoom=float(zoom))))

    def fit_bounds(self, bounds: LngLatBounds, *, padding: int = 0) -> None:
        zoom = bounds_to_zoom(bounds, width=self.width, height=self.height, padding=padding)
        self.jump_to(center=bounds.center, zoom=zoom)
        self.camera_history.append(
            ("fit_bounds", Viewport(center=bounds.center, zoom=zoom))
        )

    def get_canvas(self) -> Canvas:
        if self._canvas is None:
            self._canvas = Canvas(width=self.width, height=self.height)
        return self._canvas

    # -- queries -------------------------------------------------------------

    def query_rendered_features(
        self, geometry: QueryGeometry, *, layers: Sequence[str]
    ) -> list[RenderedFeature]:
        wanted = set(layers)
        if not wanted:
            return []

        if isinstance(geometry, ScreenBox):
            b = geometry.normalized()
            query_geom = shapely_box(b.min_x, b.min_y, b.max_x, b.max_y)
        else:
            query_geom = Point(geometry.x, geometry.y)
        # Only what is on the canvas counts as rendered.
        query_geom = query_geom.intersection(shapely_box(0, 0, self.width, self.height))
        if query_geom.is_empty:
            return []

        shapes: list[Any] = []
        hits: list[RenderedFeature] = []
        # Top-most layer first, like browser renderers report hits.
        for layer in reversed(self._layers):
            if layer["id"] not in wanted:
                continue
            if layer["layout"].get("visibility", "visible") == "none":
                continue
            flt = layer.get("filter")
            for raw in self._features_for_layer(layer):
                props = raw.get("properties") or {}
                fid = raw.get("id")
                if not matches(flt, props, fid):
                    continue
                shape = self._screen_shape(layer, raw, props, fid)
                if shape is None:
                    continue
                shapes.append(shape)
                hits.append(
                    RenderedFeature(
                        layer_id=layer["id"],
                        properties=dict(props),
                        geometry=raw.get("geometry"),
                        id=fid,
                    )
                )

        if not shapes:
            return []
        tree = STRtree(shapes)
        idx = sorted(int(i) for i in tree.query(query_geom, predicate="intersects"))
        return [hits[i] for i in idx]

    # -- events --------------------------------------------------------------

    def on(
        self,
        event: MapEvent,
        handler: EventHandler,
        *,
        layers: Sequence[str] | None = None,
    ) -> None:
        self._subs.append(
            _Subscription(
                event=event,
                handler=handler,
                layers=tuple(layers) if layers is not None else None,
            )
        )

    def once(self, event: MapEvent, handler: EventHandler) -> None:
        self._subs.append(_Subscription(event=event, handler=handler, once=True))

    def off(self, event: MapEvent, handler: EventHandler) -> None:
        self._subs = [
            s for s in self._subs if not (s.event == event and s.handler == handler)
        ]

    def listener_count(self, event: MapEvent) -> int:
        return sum(1 for s in self._subs if s.event == event)

    def fire(self, event: MapEvent) -> None:
        for sub in list(self._subs):
            if sub.event != event or sub.layers is not None:
                continue
            if sub.once:
                self._subs.remove(sub)
            sub.handler()

    def fire_mouse(self, event: MapEvent, point: ScreenPoint) -> None:
        """
        Simulate a pointer event at a canvas position.

        Layer-scoped `mousemove`/`click` handlers only run when a feature of
        their layers is under the pointer; layer-scoped `mouseleave` runs when
        the pointer moves off those features or leaves the canvas.
        """
        lnglat = self.unproject(point)
        for sub in list(self._subs):
            if sub not in self._subs:
                continue
            if sub.layers is None:
                if sub.event == event:
                    sub.handler(MapMouseEvent(point=point, lnglat=lnglat))
                continue

            if event == "mouseleave":
                if sub.event == "mouseleave" and sub.hovering:
                    sub.hovering = False
                    sub.handler(MapMouseEvent(point=point, lnglat=lnglat))
                continue

            features = self.query_rendered_features(point, layers=sub.layers)
            if sub.event == "mouseleave" and event == "mousemove":
                if features:
                    sub.hovering = True
                elif sub.hovering:
                    sub.hovering = False
                    sub.handler(MapMouseEvent(point=point, lnglat=lnglat))
            elif sub.event == event and features:
                sub.handler(MapMouseEvent(point=point, lnglat=lnglat, features=features))

    # -- internals -----------------------------------------------------------

    def _require_style(self) -> None:
        if not self._style_loaded:
            raise RuntimeError("Style is not done loading")

    def _existing_layer(self, layer_id: str) -> dict[str, Any]:
        layer = self.get_layer(layer_id)
        if layer is None:
            raise ValueError(f"The layer '{layer_id}' does not exist in the map's style")
        return layer

    def _features_for_layer(self, layer: dict[str, Any]) -> list[dict[str, Any]]:
        source_id = layer["source"]
        source = self._sources.get(source_id)
        if source is None:
            return []
        if source["type"] == "vector":
            location = str(source.get("url") or "").removeprefix("pmtiles://")
            fc = (self.tiles.get(location) or {}).get(layer.get("source-layer") or "")
            return _promote(list((fc or {}).get("features") or []), None)

        cached = self._source_data.get(source_id)
        if cached is None:
            data = source.get("data")
            fc = data if isinstance(data, dict) else self.data_loader(str(data))
            cached = _promote(list(fc.get("features") or []), source.get("promoteId"))
            self._source_data[source_id] = cached
        return cached

    def _screen_shape(
        self, layer: dict[str, Any], raw: dict[str, Any], props: dict[str, Any], fid: Any
    ):
        geom = parse_geometry(raw.get("geometry"))
        if geom is None:
            return None
        paint = layer["paint"]
        ltype = layer["type"]

        if isinstance(geom, PointGeometry):
            if ltype not in ("circle", "symbol"):
                return None
            p = self.project(geom.coordinates)
            radius = _number(evaluate(paint.get("circle-radius", 5), props, fid), 5.0)
            return Point(p.x, p.y).buffer(max(radius, 0.5))

        width = _number(evaluate(paint.get("line-width", 1), props, fid), 1.0)
        if isinstance(geom, LineStringGeometry):
            if ltype != "line" or len(geom.coordinates) < 2:
                return None
            pts = [self.project(c) for c in geom.coordinates]
            return LineString([(q.x, q.y) for q in pts]).buffer(max(width / 2.0, 0.5))

        polygons = geom.polygons if isinstance(geom, MultiPolygonGeometry) else [geom.rings]
        if isinstance(geom, (PolygonGeometry, MultiPolygonGeometry)) and ltype in (
            "fill",
            "line",
        ):
            parts = []
            for rings in polygons:
                outer = [self.project(c) for c in rings[0]]
                if len(outer) < 3:
                    continue
                poly = Polygon([(q.x, q.y) for q in outer])
                if ltype == "line":
                    parts.append(poly.exterior.buffer(max(width / 2.0, 0.5)))
                else:
                    parts.append(poly if poly.is_valid else poly.buffer(0))
            if not parts:
                return None
            shape = parts[0]
            for part in parts[1:]:
                shape = shape.union(part)
            return shape
        return None


def _promote(features: list[dict[str, Any]], promote_id: str | None) -> list[dict[str, Any]]:
    if not promote_id:
        return features
    out = []
    for f in features:
        props = f.get("properties") or {}
        if props.get(promote_id) is not None:
            f = {**f, "id": props[promote_id]}
        out.append(f)
    return out


def _number(v: Any, default: float) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return default
