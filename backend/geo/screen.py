from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal


ShapeKind = Literal["rectangle", "circle"]


@dataclass(frozen=True)
class ScreenPoint:
    """
    A point in map-canvas pixel space (origin top-left, y grows downwards).
    """

    x: float
    y: float


@dataclass(frozen=True)
class ScreenBox:
    """
    Axis-aligned pixel box.

    Convention: min_x, min_y, max_x, max_y (inclusive edges).
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    def normalized(self) -> "ScreenBox":
        return ScreenBox(
            min_x=min(self.min_x, self.max_x),
            min_y=min(self.min_y, self.max_y),
            max_x=max(self.min_x, self.max_x),
            max_y=max(self.min_y, self.max_y),
        )

    def contains(self, p: ScreenPoint) -> bool:
        return self.min_x <= p.x <= self.max_x and self.min_y <= p.y <= self.max_y

    def as_corners(self) -> tuple[tuple[float, float], tuple[float, float]]:
        # The [[x0, y0], [x1, y1]] shape renderers take for box queries.
        return (self.min_x, self.min_y), (self.max_x, self.max_y)


@dataclass(frozen=True)
class DrawBounds:
    """
    A completed draw gesture.

    For circles `start` is the center and `end` any point on the rim.
    """

    shape: ShapeKind
    start: ScreenPoint
    end: ScreenPoint

    @property
    def radius(self) -> float:
        return math.hypot(self.end.x - self.start.x, self.end.y - self.start.y)

    @property
    def radius_sq(self) -> float:
        dx = self.end.x - self.start.x
        dy = self.end.y - self.start.y
        return dx * dx + dy * dy

    def bounding_box(self) -> ScreenBox:
        if self.shape == "circle":
            r = self.radius
            cx, cy = self.start.x, self.start.y
            return ScreenBox(min_x=cx - r, min_y=cy - r, max_x=cx + r, max_y=cy + r)
        return ScreenBox(
            min_x=self.start.x, min_y=self.start.y, max_x=self.end.x, max_y=self.end.y
        ).normalized()

    def contains(self, p: ScreenPoint) -> bool:
        """
        Point test for the drawn shape.

        Circles compare squared distances so no square root is taken per vertex.
        """
        if self.shape == "circle":
            dx = p.x - self.start.x
            dy = p.y - self.start.y
            return dx * dx + dy * dy <= self.radius_sq
        return self.bounding_box().contains(p)
