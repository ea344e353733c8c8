from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Protocol, Sequence, Union

from geo.screen import ScreenBox, ScreenPoint
from geo.view import LngLat, LngLatBounds


MapEvent = Literal["load", "idle", "mousemove", "mouseleave", "click"]

# Renderer expressions are plain JSON-ish lists, e.g. ["in", ["get", "id"], ["literal", [...]]].
FilterExpression = list[Any]

QueryGeometry = Union[ScreenPoint, ScreenBox]


@dataclass(frozen=True)
class RenderedFeature:
    """
    A feature as the renderer reports it from a rendered-features query.

    `geometry` is GeoJSON-shaped in lon/lat. `id` is the renderer-native id and
    may be absent.
    """

    layer_id: str
    properties: dict[str, Any]
    geometry: dict[str, Any] | None
    id: str | int | None = None


@dataclass(frozen=True)
class MapMouseEvent:
    point: ScreenPoint
    lnglat: LngLat
    # Populated for layer-scoped handlers only.
    features: list[RenderedFeature] = field(default_factory=list)


@dataclass
class Canvas:
    width: int
    height: int
    cursor: str = ""


EventHandler = Callable[..., None]


class MapRenderer(Protocol):
    """
    The narrow renderer contract the engine drives.

    Any renderer exposing these calls is substitutable; `InMemoryRenderer` is
    the reference implementation.
    """

    def add_source(self, source_id: str, source: dict[str, Any]) -> None: ...

    def get_source(self, source_id: str) -> dict[str, Any] | None: ...

    def add_layer(self, layer: dict[str, Any]) -> None: ...

    def get_layer(self, layer_id: str) -> dict[str, Any] | None: ...

    def set_layout_property(self, layer_id: str, name: str, value: Any) -> None: ...

    def set_filter(self, layer_id: str, expression: FilterExpression | None) -> None: ...

    def set_style(self, style_url: str) -> None: ...

    @property
    def style_loaded(self) -> bool: ...

    def query_rendered_features(
        self, geometry: QueryGeometry, *, layers: Sequence[str]
    ) -> list[RenderedFeature]: ...

    def project(self, lnglat: tuple[float, float]) -> ScreenPoint: ...

    def get_center(self) -> LngLat: ...

    def get_zoom(self) -> float: ...

    def fly_to(self, *, center: LngLat, zoom: float) -> None: ...

    def fit_bounds(self, bounds: LngLatBounds, *, padding: int = 0) -> None: ...

    def get_canvas(self) -> Canvas: ...

    def on(
        self,
        event: MapEvent,
        handler: EventHandler,
        *,
        layers: Sequence[str] | None = None,
    ) -> None: ...

    def once(self, event: MapEvent, handler: EventHandler) -> None: ...

    def off(self, event: MapEvent, handler: EventHandler) -> None: ...
