from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from geo.containment import geometry_in_shape
from geo.screen import DrawBounds
from layers.registry import LayerRegistry
from layers.types import Feature, Geometry, parse_geometry
from renderer.types import MapRenderer, RenderedFeature


# Property fallbacks for features without a renderer id, in priority order.
ID_PROPERTY_KEYS: tuple[str, ...] = ("uid", "id", "name")


@dataclass(frozen=True)
class QueryResult:
    candidates: list[RenderedFeature] = field(default_factory=list)
    features: list[Feature] = field(default_factory=list)


def feature_identifier(candidate: RenderedFeature, index: int) -> str:
    """
    Renderer id if present, else the first defined of uid/id/name, else
    `feat-<candidate index>`.

    The index fallback can collide across layers (same index, no id/uid/name);
    dedup then keeps only the first.
    """
    if candidate.id is not None and candidate.id != "":
        return str(candidate.id)
    props = candidate.properties or {}
    for key in ID_PROPERTY_KEYS:
        v = props.get(key)
        if v is not None:
            return str(v)
    return f"feat-{index}"


class SpatialQueryEngine:
    """
    Resolves a drawn shape into selected features.

    1. screen bbox of the shape
    2. coarse renderer query restricted to the given layers
    3. exact vertex containment per geometry class
    4. dedup by identifier (first seen wins)
    5. layer ids -> display names
    """

    def __init__(self, registry: LayerRegistry) -> None:
        self._registry = registry

    def query(self, bounds: DrawBounds, layer_ids: list[str] | None = None) -> QueryResult:
        renderer = self._registry.renderer
        ids = self._registry.interactive_layer_ids() if layer_ids is None else list(layer_ids)
        if renderer is None or not ids:
            return QueryResult()

        try:
            candidates = renderer.query_rendered_features(bounds.bounding_box(), layers=ids)
        except Exception as e:
            # Shows up as an empty selection, never as an error in the host.
            logger.warning(f"Rendered-feature query failed for {bounds.shape} selection: {e}")
            return QueryResult()
        if not candidates:
            return QueryResult()

        features: list[Feature] = []
        seen: set[str] = set()
        for i, cand in enumerate(candidates):
            geometry = parse_geometry(cand.geometry)
            if geometry is None or not _contains(geometry, cand, bounds, renderer):
                continue
            fid = feature_identifier(cand, i)
            if fid in seen:
                continue
            seen.add(fid)
            features.append(
                Feature(
                    id=fid,
                    properties=dict(cand.properties or {}),
                    geometry=geometry,
                    layer_id=cand.layer_id,
                    layer_name=self._registry.layer_name(cand.layer_id),
                )
            )

        logger.debug(
            f"{bounds.shape} selection: {len(candidates)} candidates, {len(features)} selected"
        )
        return QueryResult(candidates=list(candidates), features=features)

    def select(self, bounds: DrawBounds, layer_ids: list[str] | None = None) -> list[Feature]:
        return self.query(bounds, layer_ids).features


def _contains(
    geometry: Geometry, cand: RenderedFeature, bounds: DrawBounds, renderer: MapRenderer
) -> bool:
    try:
        return geometry_in_shape(geometry, bounds, renderer.project)
    except Exception as e:
        # Treated as "no match", same as an unparseable geometry.
        logger.debug(f"Projection failed for feature on {cand.layer_id}: {e}")
        return False
