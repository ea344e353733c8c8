from __future__ import annotations

from loguru import logger

from geo.view import Viewport
from layers.registry import LayerRegistry
from selection.draw import DrawMode


class ViewportMemory:
    """
    Remembers the camera from the moment a selection session starts and flies
    back to it when the session ends.

    Only the first departure from "none" captures; switching between draw
    tools within the session keeps the first snapshot.
    """

    def __init__(self, registry: LayerRegistry) -> None:
        self._registry = registry
        self._saved: Viewport | None = None

    @property
    def saved(self) -> Viewport | None:
        return self._saved

    def on_mode_change(self, old: DrawMode, new: DrawMode) -> None:
        if old == "none" and new != "none" and self._saved is None:
            self.capture()

    def capture(self) -> None:
        renderer = self._registry.renderer
        if renderer is None:
            return
        self._saved = Viewport(center=renderer.get_center(), zoom=renderer.get_zoom())
        logger.debug(f"Saved viewport {self._saved}")

    def restore(self) -> bool:
        """
        Fly back to the snapshot (if any) and forget it. Returns True when a
        restore happened.
        """
        saved, self._saved = self._saved, None
        if saved is None:
            return False
        renderer = self._registry.renderer
        if renderer is None:
            return False
        renderer.fly_to(center=saved.center, zoom=saved.zoom)
        return True
