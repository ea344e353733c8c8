from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable

from loguru import logger

from layers.types import Feature, GeometryClass, PointGeometry
from mapconfig.types import LayerConfig

if TYPE_CHECKING:
    from layers.registry import LayerRegistry


# Points are keyed by the promoted `id` property of their feeds; lines and
# polygons by `uid`.
POINT_HIGHLIGHT_KEY = "id"
SHAPE_HIGHLIGHT_KEY = "uid"

HIGHLIGHT_COLOR = "#00ffff"

HIGHLIGHT_LAYER_IDS: dict[GeometryClass, tuple[str, ...]] = {
    "points": ("highlight-points",),
    "lines": ("highlight-lines",),
    "polygons": ("highlight-polygons", "highlight-polygons-outline"),
}


def selection_filter(key: str, ids: Iterable[str]) -> list[Any]:
    """
    Inclusion filter over feature ids. An empty id list matches nothing.
    """
    return ["in", ["get", key], ["literal", list(ids)]]


def highlight_layer_defs(geometry_class: GeometryClass, base: LayerConfig) -> list[dict[str, Any]]:
    """
    Renderer layer definitions for one geometry class, drawn from the source of
    `base`, with an initially empty selection filter.
    """
    key = POINT_HIGHLIGHT_KEY if geometry_class == "points" else SHAPE_HIGHLIGHT_KEY
    common: dict[str, Any] = {"source": base.source_id, "filter": selection_filter(key, [])}
    if base.source_layer:
        common["source-layer"] = base.source_layer

    if geometry_class == "points":
        return [
            {
                "id": "highlight-points",
                "type": "circle",
                **common,
                "paint": {
                    "circle-radius": 14,
                    "circle-color": "transparent",
                    "circle-stroke-color": HIGHLIGHT_COLOR,
                    "circle-stroke-width": 3,
                },
            }
        ]
    if geometry_class == "lines":
        return [
            {
                "id": "highlight-lines",
                "type": "line",
                **common,
                "paint": {"line-color": HIGHLIGHT_COLOR, "line-width": 5},
            }
        ]
    return [
        {
            "id": "highlight-polygons",
            "type": "fill",
            **common,
            "paint": {"fill-color": HIGHLIGHT_COLOR, "fill-opacity": 0.25},
        },
        {
            "id": "highlight-polygons-outline",
            "type": "line",
            **common,
            "paint": {"line-color": HIGHLIGHT_COLOR, "line-width": 2.5},
        },
    ]


class SelectionHighlightSync:
    """
    Mirrors the current selection into the highlight layers.
    """

    def __init__(self, registry: "LayerRegistry") -> None:
        self._registry = registry

    def sync(self, features: list[Feature]) -> None:
        renderer = self._registry.renderer
        if renderer is None:
            return

        point_ids: list[str] = []
        shape_ids: list[str] = []
        for f in features:
            if isinstance(f.geometry, PointGeometry):
                point_ids.append(f.id)
            else:
                shape_ids.append(f.id)

        # Always push, even when empty: a stale highlight is worse than none.
        self._push("points", selection_filter(POINT_HIGHLIGHT_KEY, point_ids))
        shape_filter = selection_filter(SHAPE_HIGHLIGHT_KEY, shape_ids)
        self._push("lines", shape_filter)
        self._push("polygons", shape_filter)

    def clear(self) -> None:
        self.sync([])

    def _push(self, geometry_class: GeometryClass, expression: list[Any]) -> None:
        renderer = self._registry.renderer
        for layer_id in self._registry.highlight_layer_ids(geometry_class):
            try:
                renderer.set_filter(layer_id, expression)
            except Exception as e:
                logger.warning(f"Could not update highlight layer {layer_id}: {e}")
