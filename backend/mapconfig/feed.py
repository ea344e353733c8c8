from __future__ import annotations

import httpx
from loguru import logger

from mapconfig.types import LayerConfig, MapConfig


def fetch_layer_configs(client: httpx.Client, path: str = "/api/layers") -> list[LayerConfig]:
    """
    Fetch the layer list once from the configuration endpoint.

    Any `httpx.Client` works, including FastAPI's `TestClient`.
    """
    resp = client.get(path)
    resp.raise_for_status()
    data = resp.json()
    if not isinstance(data, list):
        raise ValueError(f"Layer feed returned {type(data).__name__}, expected a list")
    layers = [LayerConfig.model_validate(item) for item in data]
    logger.info(f"Fetched {len(layers)} layer configs from {path}")
    return layers


def fetch_map_config(client: httpx.Client, path: str = "/api/map-config") -> MapConfig:
    resp = client.get(path)
    resp.raise_for_status()
    return MapConfig.model_validate(resp.json())
