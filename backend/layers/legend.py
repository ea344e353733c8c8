from __future__ import annotations

from typing import Any

from loguru import logger

from layers.registry import LayerRegistry


class LegendFilter:
    """
    Hide/show legend classes of a layer through renderer filters.

    Hidden labels are kept per layer and re-applied after every registry
    rebuild, since a base-style swap drops layer filters with the layers.
    """

    def __init__(self, registry: LayerRegistry) -> None:
        self._registry = registry
        self._hidden: dict[str, set[str]] = {}
        registry.add_build_hook(self.apply_all)

    def hidden_labels(self, layer_id: str) -> set[str]:
        return set(self._hidden.get(layer_id, set()))

    def toggle(self, layer_id: str, label: str) -> bool:
        """
        Flip one legend entry; returns True when the entry is now hidden.
        """
        cfg = self._registry.config(layer_id)
        if cfg is None or not cfg.legend or not cfg.legend_property:
            logger.debug(f"Layer {layer_id} has no legend to toggle")
            return False
        if label not in {e.label for e in cfg.legend}:
            logger.debug(f"Unknown legend entry '{label}' on layer {layer_id}")
            return False

        hidden = self._hidden.setdefault(layer_id, set())
        if label in hidden:
            hidden.discard(label)
        else:
            hidden.add(label)
        self.apply(layer_id)
        return label in hidden

    def filter_expression(self, layer_id: str) -> list[Any] | None:
        cfg = self._registry.config(layer_id)
        hidden = self._hidden.get(layer_id)
        if cfg is None or not cfg.legend or not cfg.legend_property or not hidden:
            return None
        values = [e.match_value() for e in cfg.legend if e.label in hidden]
        return ["!", ["in", ["get", cfg.legend_property], ["literal", values]]]

    def apply(self, layer_id: str) -> None:
        renderer = self._registry.renderer
        if renderer is None or renderer.get_layer(layer_id) is None:
            return
        try:
            renderer.set_filter(layer_id, self.filter_expression(layer_id))
        except Exception as e:
            logger.warning(f"Could not filter legend of layer {layer_id}: {e}")

    def apply_all(self) -> None:
        for layer_id in list(self._hidden):
            self.apply(layer_id)
