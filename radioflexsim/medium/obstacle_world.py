"""Index of rectangular obstacles used by the ray tracer.

Obstacles are axis-aligned rectangles stored in insertion order. Their
bounds are mirrored in a ``numpy`` array so point queries (obstacles near a
point, corners near a point) are vectorised.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator, List, Sequence

import numpy as np

from .angle_interval import AngleInterval
from .geometry import Point, Rect

logger = logging.getLogger(__name__)

# Distance (m) under which a point is considered to sit on an obstacle corner.
CORNER_TOLERANCE = 0.01
# Distance (m) under which a point is considered to touch an obstacle.
NEAR_TOLERANCE = 0.01


class ObstacleWorld:
    """Append-only collection of obstacles between explicit clears."""

    def __init__(self, obstacles: Iterable[Rect] | None = None) -> None:
        self._obstacles: List[Rect] = []
        self._bounds = np.empty((0, 4), dtype=float)
        for rect in obstacles or ():
            self.add_obstacle(rect)

    def add_obstacle(self, rect: Rect) -> Rect:
        if rect.width < 0.0 or rect.height < 0.0:
            raise ValueError("obstacle width and height must be >= 0")
        self._obstacles.append(rect)
        row = np.array([[rect.min_x, rect.min_y, rect.max_x, rect.max_y]], dtype=float)
        self._bounds = np.vstack([self._bounds, row])
        logger.debug(f"Added obstacle {rect}")
        return rect

    def add_rect(self, x: float, y: float, width: float, height: float) -> Rect:
        return self.add_obstacle(Rect(float(x), float(y), float(width), float(height)))

    def remove_all(self) -> None:
        self._obstacles.clear()
        self._bounds = np.empty((0, 4), dtype=float)

    def obstacle(self, index: int) -> Rect:
        return self._obstacles[index]

    def __len__(self) -> int:
        return len(self._obstacles)

    def __iter__(self) -> Iterator[Rect]:
        return iter(list(self._obstacles))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def obstacles_near(self, point: Point, tolerance: float = NEAR_TOLERANCE) -> List[Rect]:
        """Obstacles containing ``point`` once grown by ``tolerance``."""
        if not self._obstacles:
            return []
        x, y = point
        b = self._bounds
        mask = (
            (b[:, 0] - tolerance <= x) & (x <= b[:, 2] + tolerance)
            & (b[:, 1] - tolerance <= y) & (y <= b[:, 3] + tolerance)
        )
        return [self._obstacles[i] for i in np.flatnonzero(mask)]

    def point_is_near_corner(self, point: Point, tolerance: float = CORNER_TOLERANCE) -> bool:
        if not self._obstacles:
            return False
        x, y = point
        b = self._bounds
        xs = np.concatenate([b[:, 0], b[:, 2], b[:, 2], b[:, 0]])
        ys = np.concatenate([b[:, 1], b[:, 1], b[:, 3], b[:, 3]])
        return bool(np.any(np.hypot(xs - x, ys - y) < tolerance))

    def obstacles_in_interval(self, source: Point, interval: AngleInterval) -> List[Rect]:
        """Obstacles whose angular extent seen from ``source`` overlaps ``interval``."""
        return [
            rect
            for rect in self._obstacles
            if AngleInterval.of_rectangle(source, rect).intersects(interval)
        ]

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def to_config(self) -> List[List[float]]:
        return [[r.x, r.y, r.width, r.height] for r in self._obstacles]

    @classmethod
    def from_config(cls, data: Sequence[Sequence[float]]) -> "ObstacleWorld":
        """Build a world from ``[[x, y, width, height], ...]``.

        Raises ``ValueError``/``TypeError`` on malformed entries; callers turn
        them into configuration errors.
        """
        world = cls()
        for entry in data:
            if len(entry) != 4:
                raise ValueError(f"obstacle needs 4 values, got {entry!r}")
            world.add_rect(*(float(v) for v in entry))
        return world


__all__ = ["ObstacleWorld", "CORNER_TOLERANCE", "NEAR_TOLERANCE"]
