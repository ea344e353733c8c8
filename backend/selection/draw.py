from __future__ import annotations

from enum import Enum
from typing import Callable, Literal

from loguru import logger

from geo.screen import DrawBounds, ScreenPoint, ShapeKind


DrawMode = Literal["none", "rectangle", "circle"]

# Drags at or below this many pixels on either axis are accidental clicks.
MIN_DRAG_PX = 10.0


class DrawState(str, Enum):
    none = "none"
    armed = "armed"
    dragging = "dragging"


class DrawSelectionController:
    """
    Turns pointer gestures into completed `DrawBounds`.

    none --select_tool(shape)--> armed --pointer_down--> dragging
    dragging --pointer_move--> dragging
    dragging --pointer_up/leave--> armed (emits bounds if the drag was large enough)
    any --clear / select_tool("none")--> none
    """

    def __init__(
        self,
        on_complete: Callable[[DrawBounds], None] | None = None,
        on_mode_change: Callable[[DrawMode, DrawMode], None] | None = None,
        *,
        min_drag_px: float = MIN_DRAG_PX,
    ) -> None:
        self._on_complete = on_complete
        self._on_mode_change = on_mode_change
        self._min_drag_px = float(min_drag_px)
        self._mode: DrawMode = "none"
        self._state = DrawState.none
        self._start: ScreenPoint | None = None
        self._current: ScreenPoint | None = None

    @property
    def mode(self) -> DrawMode:
        return self._mode

    @property
    def state(self) -> DrawState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._state is DrawState.dragging

    def select_tool(self, mode: DrawMode) -> None:
        if self._state is DrawState.dragging:
            # Tool switches wait until the current drag is finished.
            return
        if mode not in ("none", "rectangle", "circle"):
            raise ValueError(f"Unknown draw mode: {mode!r}")
        self._set_mode(mode)

    def clear(self) -> None:
        self._start = None
        self._current = None
        self._set_mode("none")

    def pointer_down(self, point: ScreenPoint) -> None:
        if self._state is not DrawState.armed:
            return
        self._start = point
        self._current = point
        self._state = DrawState.dragging

    def pointer_move(self, point: ScreenPoint) -> None:
        if self._state is DrawState.dragging:
            self._current = point

    def pointer_up(self, point: ScreenPoint | None = None) -> DrawBounds | None:
        return self._finish(point)

    def pointer_leave(self, point: ScreenPoint | None = None) -> DrawBounds | None:
        return self._finish(point)

    def preview(self) -> DrawBounds | None:
        """
        The shape being dragged right now, for on-canvas feedback.
        """
        if self._state is not DrawState.dragging:
            return None
        return DrawBounds(shape=self._shape(), start=self._start, end=self._current)

    def _finish(self, point: ScreenPoint | None) -> DrawBounds | None:
        if self._state is not DrawState.dragging:
            return None
        if point is not None:
            self._current = point
        start, end = self._start, self._current
        self._start = None
        self._current = None
        self._state = DrawState.armed

        dx = abs(end.x - start.x)
        dy = abs(end.y - start.y)
        if dx <= self._min_drag_px or dy <= self._min_drag_px:
            logger.debug(f"Ignoring {self._mode} drag of {dx:.0f}x{dy:.0f}px")
            return None

        bounds = DrawBounds(shape=self._shape(), start=start, end=end)
        if self._on_complete is not None:
            self._on_complete(bounds)
        return bounds

    def _shape(self) -> ShapeKind:
        return "circle" if self._mode == "circle" else "rectangle"

    def _set_mode(self, mode: DrawMode) -> None:
        old = self._mode
        self._mode = mode
        self._state = DrawState.none if mode == "none" else DrawState.armed
        if old != mode and self._on_mode_change is not None:
            self._on_mode_change(old, mode)
