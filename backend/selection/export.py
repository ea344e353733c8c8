from __future__ import annotations

import csv
import io
from typing import Any

from layers.types import Feature, geometry_to_geojson


_CLASS_LABELS = {"points": "Points", "lines": "Lines", "polygons": "Polygons"}


def group_by_layer(features: list[Feature]) -> dict[str, list[Feature]]:
    """
    Group features for the details panel tabs: by layer display name, falling
    back to the geometry class.
    """
    groups: dict[str, list[Feature]] = {}
    for f in features:
        key = f.layer_name or _CLASS_LABELS[f.geometry_class]
        groups.setdefault(key, []).append(f)
    return groups


def property_keys(features: list[Feature]) -> list[str]:
    keys: dict[str, None] = {}
    for f in features:
        for k in f.properties:
            keys.setdefault(k, None)
    return list(keys)


def to_csv(features: list[Feature]) -> str:
    """
    One row per feature: `id` first, then the union of property keys in
    first-seen order. Missing values are empty cells.
    """
    if not features:
        return ""
    headers = ["id", *[k for k in property_keys(features) if k != "id"]]
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(headers)
    for f in features:
        writer.writerow(
            [f.id, *[_cell(f.properties.get(h)) for h in headers[1:]]]
        )
    return buf.getvalue()


def to_feature_collection(features: list[Feature]) -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "id": f.id,
                "properties": dict(f.properties),
                "geometry": geometry_to_geojson(f.geometry),
            }
            for f in features
        ],
    }


def _cell(v: Any) -> Any:
    return "" if v is None else v
