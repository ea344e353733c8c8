from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from loguru import logger

from layers.highlight import HIGHLIGHT_LAYER_IDS, highlight_layer_defs
from layers.types import GeometryClass
from mapconfig.types import BaseMapConfig, LayerConfig
from renderer.types import MapRenderer


UNKNOWN_LAYER_NAME = "Unknown layer"


class RegistryState(str, Enum):
    uninitialized = "uninitialized"
    ready = "ready"
    rebuilding = "rebuilding"


class LayerRegistry:
    """
    Owns the layer configs and the single renderer handle they are drawn on.

    Lifecycle: uninitialized -> ready (renderer `load`) -> rebuilding (base
    style swapped, custom layers gone) -> ready (renderer `idle`, everything
    re-added). `add_sources` / `add_layers` are idempotent, so redundant
    rebuilds converge on the same map.
    """

    def __init__(
        self,
        layers: list[LayerConfig],
        base_maps: BaseMapConfig | None = None,
        *,
        enable_highlight: bool = True,
    ) -> None:
        # sorted() is stable: equal z_index keeps config order.
        self._configs = sorted(layers, key=lambda c: c.z_index)
        self._by_id = {c.id: c for c in self._configs}
        self._visibility: dict[str, bool] = {c.id: c.visible for c in self._configs}
        self._base_maps = base_maps
        self._base_style = base_maps.default_style if base_maps else None
        self._enable_highlight = enable_highlight

        self._renderer: MapRenderer | None = None
        self._state = RegistryState.uninitialized
        self._build_hooks: list[Callable[[], None]] = []

    # -- lifecycle -----------------------------------------------------------

    @property
    def renderer(self) -> MapRenderer | None:
        return self._renderer

    @property
    def state(self) -> RegistryState:
        return self._state

    @property
    def base_style(self) -> str | None:
        return self._base_style

    def style_url(self) -> str | None:
        if self._base_maps is None:
            return None
        return self._base_maps.style_url(self._base_style)

    def attach(self, renderer: MapRenderer) -> None:
        if self._renderer is renderer:
            return
        if self._renderer is not None:
            self.detach()
        self._renderer = renderer
        self._state = RegistryState.uninitialized
        renderer.on("load", self._on_load)
        if renderer.style_loaded:
            # Attached after the style finished loading; no `load` will follow.
            self._on_load()

    def detach(self) -> None:
        renderer = self._renderer
        if renderer is None:
            return
        renderer.off("load", self._on_load)
        renderer.off("idle", self._on_style_ready)
        self._renderer = None
        self._state = RegistryState.uninitialized

    def add_build_hook(self, hook: Callable[[], None]) -> None:
        """
        Run `hook` after every (re)build, e.g. to re-wire interactivity.
        """
        if hook not in self._build_hooks:
            self._build_hooks.append(hook)

    def remove_build_hook(self, hook: Callable[[], None]) -> None:
        if hook in self._build_hooks:
            self._build_hooks.remove(hook)

    def _on_load(self) -> None:
        self._state = RegistryState.ready
        try:
            self._build()
        except Exception as e:
            logger.error(f"Error adding layers on map load: {e}")

    def _on_style_ready(self) -> None:
        if self._renderer is None:
            return
        logger.info(f"Base style '{self._base_style}' ready, re-adding layers")
        self._state = RegistryState.ready
        try:
            self._build()
        except Exception as e:
            logger.error(f"Error re-adding layers after style change: {e}")

    def _build(self) -> None:
        self.add_sources()
        self.add_layers()
        for hook in list(self._build_hooks):
            hook()

    def _can_mutate(self) -> bool:
        return self._renderer is not None and self._state is RegistryState.ready

    # -- sources & layers ----------------------------------------------------

    def add_sources(self) -> None:
        if not self._can_mutate():
            return
        renderer = self._renderer
        for cfg in self._configs:
            sid = cfg.source_id
            if not sid or renderer.get_source(sid) is not None:
                continue
            if cfg.source_type == "pmtiles":
                source = {"type": "vector", "url": f"pmtiles://{sid}"}
            else:
                source = {"type": "geojson", "data": sid, "promoteId": "id"}
            try:
                renderer.add_source(sid, source)
            except Exception as e:
                logger.warning(f"Failed to add source {sid}: {e}")

    def add_layers(self) -> None:
        if not self._can_mutate():
            return
        renderer = self._renderer
        for cfg in self._configs:
            if renderer.get_layer(cfg.id) is not None:
                continue
            self._try_add_layer(self._layer_def(cfg))

        if not self._enable_highlight:
            return
        for geometry_class, base in self._highlight_bases().items():
            for layer_def in highlight_layer_defs(geometry_class, base):
                if renderer.get_layer(layer_def["id"]) is None:
                    self._try_add_layer(layer_def)

    def _try_add_layer(self, layer_def: dict[str, Any]) -> None:
        try:
            self._renderer.add_layer(layer_def)
        except Exception as e:
            logger.warning(f"Failed to add layer {layer_def.get('id')}: {e}")

    def _layer_def(self, cfg: LayerConfig) -> dict[str, Any]:
        layer_def: dict[str, Any] = {"id": cfg.id, "type": cfg.type, "source": cfg.source_id}
        if cfg.source_layer:
            layer_def["source-layer"] = cfg.source_layer
        if cfg.paint:
            layer_def["paint"] = dict(cfg.paint)
        layout = dict(cfg.layout or {})
        # Visibility comes from the toggle map, so it survives style swaps.
        layout["visibility"] = "visible" if self._visibility.get(cfg.id, True) else "none"
        layer_def["layout"] = layout
        return layer_def

    def _highlight_bases(self) -> dict[GeometryClass, LayerConfig]:
        """
        First base layer (in draw order) per geometry class.

        A line layer drawn from the same source as a fill layer is a polygon
        outline and counts as a polygon layer.
        """
        fill_sources = {c.source_id for c in self._configs if c.type == "fill"}
        out: dict[GeometryClass, LayerConfig] = {}
        for cfg in self._configs:
            if not cfg.source_id:
                continue
            cls = self.geometry_class_of(cfg, fill_sources=fill_sources)
            if cls is not None and cls not in out:
                out[cls] = cfg
        return out

    def geometry_class_of(
        self, cfg: LayerConfig, *, fill_sources: set[str | None] | None = None
    ) -> GeometryClass | None:
        if cfg.type == "circle":
            return "points"
        if cfg.type == "fill":
            return "polygons"
        if cfg.type == "line":
            if fill_sources is None:
                fill_sources = {c.source_id for c in self._configs if c.type == "fill"}
            return "polygons" if cfg.source_id in fill_sources else "lines"
        return None

    # -- visibility ----------------------------------------------------------

    def toggle_visibility(self, layer_id: str) -> bool:
        return self.set_visibility(layer_id, not self._visibility.get(layer_id, True))

    def set_visibility(self, layer_id: str, visible: bool) -> bool:
        self._visibility[layer_id] = bool(visible)
        renderer = self._renderer
        # Recorded either way; only pushed when the layer is on the map.
        if self._can_mutate() and renderer.get_layer(layer_id) is not None:
            try:
                renderer.set_layout_property(
                    layer_id, "visibility", "visible" if visible else "none"
                )
            except Exception as e:
                logger.warning(f"Could not toggle layer {layer_id}: {e}")
        return bool(visible)

    @property
    def visibility(self) -> dict[str, bool]:
        return dict(self._visibility)

    # -- base style ----------------------------------------------------------

    def change_base_style(self, style_id: str) -> None:
        """
        Swap the base style and rebuild custom sources/layers once the renderer
        reports the new style ready.

        Only one readiness handler is ever pending; a second swap before the
        first settles reuses it.
        """
        if self._base_maps is None:
            logger.warning("No base maps configured, ignoring style change")
            return
        if not self._base_maps.has_style(style_id):
            fallback = self._base_maps.styles[0].id
            logger.warning(f"Unknown base style '{style_id}', using '{fallback}'")
            style_id = fallback
        self._base_style = style_id
        renderer = self._renderer
        if renderer is None:
            return

        renderer.set_style(self._base_maps.style_url(style_id))
        if self._state is RegistryState.rebuilding:
            logger.debug(f"Rebuild already pending, style now '{style_id}'")
            return
        self._state = RegistryState.rebuilding
        renderer.once("idle", self._on_style_ready)

    # -- lookups -------------------------------------------------------------

    @property
    def configs(self) -> list[LayerConfig]:
        return list(self._configs)

    def config(self, layer_id: str) -> LayerConfig | None:
        return self._by_id.get(layer_id)

    def layer_name(self, layer_id: str | None) -> str:
        cfg = self._by_id.get(layer_id or "")
        return cfg.name if cfg is not None else UNKNOWN_LAYER_NAME

    def interactive_layer_ids(self) -> list[str]:
        """
        Visible, selectable layers currently present on the renderer.
        """
        if not self._can_mutate():
            return []
        renderer = self._renderer
        return [
            c.id
            for c in self._configs
            if c.interactive
            and self._visibility.get(c.id, True)
            and renderer.get_layer(c.id) is not None
        ]

    def highlight_layer_ids(self, geometry_class: GeometryClass) -> list[str]:
        if not self._can_mutate():
            return []
        renderer = self._renderer
        return [
            lid
            for lid in HIGHLIGHT_LAYER_IDS[geometry_class]
            if renderer.get_layer(lid) is not None
        ]
