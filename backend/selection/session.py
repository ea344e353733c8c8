from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from loguru import logger

from geo.screen import DrawBounds, ScreenPoint
from geo.view import LngLat, features_bounds
from layers.highlight import SelectionHighlightSync
from layers.legend import LegendFilter
from layers.registry import LayerRegistry
from layers.types import Feature, parse_geometry
from mapconfig.types import BaseMapConfig, LayerConfig, MapConfig
from renderer.types import EventHandler, MapEvent, MapMouseEvent, MapRenderer, RenderedFeature
from selection.draw import DrawMode, DrawSelectionController
from selection.query import SpatialQueryEngine, feature_identifier
from selection.viewport import ViewportMemory


ZOOM_PADDING_PX = 50


@dataclass(frozen=True)
class Tooltip:
    lnglat: LngLat
    title: str
    layer_name: str | None = None
    fields: list[tuple[str, Any]] = field(default_factory=list)


class MapSession:
    """
    Host-facing glue around one map: layers, drawing, querying, highlight and
    viewport memory, plus hover/click interactivity.

    Callbacks:
    - on_draw_selection_change(features) after every completed draw + query
    - on_feature_select(feature) after a single click selection, None when
      a click on empty space clears it
    - on_hover(tooltip or None) while the pointer moves over features
    """

    def __init__(
        self,
        layers: list[LayerConfig],
        base_maps: BaseMapConfig | None = None,
        *,
        on_draw_selection_change: Callable[[list[Feature]], None] | None = None,
        on_feature_select: Callable[[Feature | None], None] | None = None,
        on_hover: Callable[[Tooltip | None], None] | None = None,
        enable_selection: bool = True,
    ) -> None:
        self.registry = LayerRegistry(layers, base_maps, enable_highlight=enable_selection)
        self.highlight = SelectionHighlightSync(self.registry)
        self.legend = LegendFilter(self.registry)
        self.query_engine = SpatialQueryEngine(self.registry)
        self.viewport = ViewportMemory(self.registry)
        self.draw = DrawSelectionController(
            on_complete=self._on_draw_complete,
            on_mode_change=self._on_mode_change,
        )

        self._on_draw_selection_change = on_draw_selection_change
        self._on_feature_select = on_feature_select
        self._on_hover = on_hover
        self._enable_selection = enable_selection

        self._candidates: list[RenderedFeature] = []
        self._selected: list[Feature] = []
        self._clicked: Feature | None = None
        self._wired: list[tuple[MapEvent, EventHandler]] = []

        self.registry.add_build_hook(self._after_build)

    @classmethod
    def from_config(cls, config: MapConfig, **kwargs: Any) -> "MapSession":
        return cls(list(config.layers), config.base_maps, **kwargs)

    # -- lifecycle -----------------------------------------------------------

    def attach(self, renderer: MapRenderer) -> None:
        self.registry.attach(renderer)

    def detach(self) -> None:
        self._unwire()
        self.registry.detach()

    def _after_build(self) -> None:
        if not self._enable_selection:
            return
        self._wire_interactivity()
        # Highlight layers come back empty after a rebuild.
        self.highlight.sync(self._highlighted())

    def _wire_interactivity(self) -> None:
        renderer = self.registry.renderer
        self._unwire()
        if renderer is None:
            return
        ids = [c.id for c in self.registry.configs if c.interactive]
        if not ids:
            return
        renderer.on("mousemove", self._handle_hover, layers=ids)
        renderer.on("mouseleave", self._handle_leave, layers=ids)
        renderer.on("click", self._handle_feature_click, layers=ids)
        renderer.on("click", self._handle_map_click)
        self._wired = [
            ("mousemove", self._handle_hover),
            ("mouseleave", self._handle_leave),
            ("click", self._handle_feature_click),
            ("click", self._handle_map_click),
        ]

    def _unwire(self) -> None:
        renderer = self.registry.renderer
        if renderer is not None:
            for event, handler in self._wired:
                renderer.off(event, handler)
        self._wired = []

    # -- state ---------------------------------------------------------------

    @property
    def draw_mode(self) -> DrawMode:
        return self.draw.mode

    @property
    def selected_features(self) -> list[Feature]:
        return list(self._selected)

    @property
    def candidate_features(self) -> list[RenderedFeature]:
        return list(self._candidates)

    @property
    def clicked_feature(self) -> Feature | None:
        return self._clicked

    @property
    def active(self) -> bool:
        return self.draw.mode != "none" or bool(self._selected)

    def _highlighted(self) -> list[Feature]:
        out = list(self._selected)
        if self._clicked is not None and all(f.id != self._clicked.id for f in out):
            out.append(self._clicked)
        return out

    # -- layers --------------------------------------------------------------

    def toggle_layer(self, layer_id: str) -> bool:
        return self.registry.toggle_visibility(layer_id)

    def change_base_style(self, style_id: str) -> None:
        self.registry.change_base_style(style_id)

    def toggle_legend_item(self, layer_id: str, label: str) -> bool:
        return self.legend.toggle(layer_id, label)

    # -- drawing -------------------------------------------------------------

    def set_draw_mode(self, mode: DrawMode) -> None:
        self.draw.select_tool(mode)

    def pointer_down(self, point: ScreenPoint) -> None:
        self.draw.pointer_down(point)

    def pointer_move(self, point: ScreenPoint) -> None:
        self.draw.pointer_move(point)

    def pointer_up(self, point: ScreenPoint | None = None) -> DrawBounds | None:
        return self.draw.pointer_up(point)

    def pointer_leave(self, point: ScreenPoint | None = None) -> DrawBounds | None:
        return self.draw.pointer_leave(point)

    def _on_mode_change(self, old: DrawMode, new: DrawMode) -> None:
        self.viewport.on_mode_change(old, new)

    def _on_draw_complete(self, bounds: DrawBounds) -> None:
        result = self.query_engine.query(bounds)
        self._candidates = result.candidates
        self._selected = result.features
        self.highlight.sync(self._highlighted())
        logger.info(f"{bounds.shape} selection returned {len(result.features)} features")
        if self._on_draw_selection_change is not None:
            self._on_draw_selection_change(list(result.features))

    # -- session end ---------------------------------------------------------

    def clear(self) -> None:
        self._end_session()

    def close_details(self) -> None:
        self._end_session()

    def _end_session(self) -> None:
        self._candidates = []
        self._selected = []
        self._clicked = None
        self.highlight.clear()
        self.draw.clear()
        self.viewport.restore()

    # -- camera --------------------------------------------------------------

    def zoom_to_feature(self, feature: Feature) -> None:
        self._fit([feature])

    def zoom_to_selection(self) -> None:
        self._fit(self._selected)

    def _fit(self, features: list[Feature]) -> None:
        renderer = self.registry.renderer
        bounds = features_bounds(features)
        if renderer is None or bounds is None:
            return
        renderer.fit_bounds(bounds, padding=ZOOM_PADDING_PX)

    # -- interactivity -------------------------------------------------------

    def _handle_hover(self, e: MapMouseEvent) -> None:
        renderer = self.registry.renderer
        if renderer is None or not e.features:
            return
        renderer.get_canvas().cursor = "pointer"
        if self._on_hover is None:
            return
        feat = e.features[0]
        props = feat.properties or {}
        cfg = self.registry.config(feat.layer_id)
        fields = [(k, props[k]) for k in (cfg.tooltip_fields or []) if k in props] if cfg else []
        self._on_hover(
            Tooltip(
                lnglat=e.lnglat,
                title=str(props.get("name") or props.get("block_name") or "Feature"),
                layer_name=cfg.name if cfg else None,
                fields=fields,
            )
        )

    def _handle_leave(self, e: MapMouseEvent) -> None:
        renderer = self.registry.renderer
        if renderer is not None:
            renderer.get_canvas().cursor = ""
        if self._on_hover is not None:
            self._on_hover(None)

    def _handle_feature_click(self, e: MapMouseEvent) -> None:
        # While a draw tool is armed, clicks belong to the drawing.
        if self.draw.mode != "none" or not e.features:
            return
        raw = e.features[0]
        geometry = parse_geometry(raw.geometry)
        if geometry is None:
            return
        feat = Feature(
            id=feature_identifier(raw, 0),
            properties=dict(raw.properties or {}),
            geometry=geometry,
            layer_id=raw.layer_id,
            layer_name=self.registry.layer_name(raw.layer_id),
        )
        self._clicked = feat
        self.highlight.sync(self._highlighted())
        if self._on_feature_select is not None:
            self._on_feature_select(feat)

    def _handle_map_click(self, e: MapMouseEvent) -> None:
        renderer = self.registry.renderer
        if renderer is None or self.draw.mode != "none" or self._clicked is None:
            return
        ids = self.registry.interactive_layer_ids()
        if ids and renderer.query_rendered_features(e.point, layers=ids):
            return
        self._clicked = None
        self.highlight.sync(self._highlighted())
        if self._on_feature_select is not None:
            self._on_feature_select(None)
