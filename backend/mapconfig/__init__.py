from .registry import clear_config_cache, get_layer_configs, get_map_config, load_map_config
from .types import BaseMapConfig, BaseMapStyle, LayerConfig, LegendEntry, MapConfig, MapViewConfig

__all__ = [
    "BaseMapConfig",
    "BaseMapStyle",
    "LayerConfig",
    "LegendEntry",
    "MapConfig",
    "MapViewConfig",
    "clear_config_cache",
    "get_layer_configs",
    "get_map_config",
    "load_map_config",
]
