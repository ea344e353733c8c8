from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml

from mapconfig.settings import config_path
from mapconfig.types import LayerConfig, MapConfig


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid map config yaml root: {path}")
    return data


def load_map_config(path: Path) -> MapConfig:
    if not path.exists():
        raise FileNotFoundError(f"Map config not found: {path}")
    return MapConfig.model_validate(_load_yaml(path))


@lru_cache(maxsize=1)
def get_map_config() -> MapConfig:
    return load_map_config(config_path())


def get_layer_configs() -> list[LayerConfig]:
    return list(get_map_config().layers)


def clear_config_cache() -> None:
    """
    Clear the cached map config.

    The YAML is otherwise read once per process; tests that point
    `MAPSELECT_CONFIG_PATH` elsewhere call this first.
    """
    get_map_config.cache_clear()
