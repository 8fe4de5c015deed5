"""Plane geometry used by the ray tracer.

Points are plain ``(x, y)`` tuples. :class:`Line` is a segment and
:class:`Rect` an axis-aligned rectangle whose ``y`` axis grows "downwards"
(``top`` is the minimum ``y``), which only matters for the outcode naming.
Degenerate inputs (parallel lines, zero-length segments) give ``None``
instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterator, List, Optional, Tuple

Point = Tuple[float, float]

OUT_LEFT = 1
OUT_TOP = 2
OUT_RIGHT = 4
OUT_BOTTOM = 8


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


@dataclass(frozen=True, slots=True)
class Line:
    x1: float
    y1: float
    x2: float
    y2: float

    @classmethod
    def between(cls, p1: Point, p2: Point) -> "Line":
        return cls(float(p1[0]), float(p1[1]), float(p2[0]), float(p2[1]))

    @property
    def p1(self) -> Point:
        return (self.x1, self.y1)

    @property
    def p2(self) -> Point:
        return (self.x2, self.y2)

    @property
    def length(self) -> float:
        return math.hypot(self.x2 - self.x1, self.y2 - self.y1)

    @property
    def center(self) -> Point:
        return ((self.x1 + self.x2) / 2.0, (self.y1 + self.y2) / 2.0)

    def bounds(self) -> "Rect":
        x = min(self.x1, self.x2)
        y = min(self.y1, self.y2)
        return Rect(x, y, abs(self.x2 - self.x1), abs(self.y2 - self.y1))

    def intersects(self, other: "Line") -> bool:
        """Closed segment test: touching endpoints count as intersecting."""
        return segments_intersect(self.p1, self.p2, other.p1, other.p2)

    def almost_equals(self, other: "Line", tolerance: float = 0.01) -> bool:
        """Same segment up to ``tolerance`` (summed coordinate deltas), any orientation."""
        direct = (
            abs(self.x1 - other.x1) + abs(self.y1 - other.y1)
            + abs(self.x2 - other.x2) + abs(self.y2 - other.y2)
        )
        swapped = (
            abs(self.x1 - other.x2) + abs(self.y1 - other.y2)
            + abs(self.x2 - other.x1) + abs(self.y2 - other.y1)
        )
        return min(direct, swapped) < tolerance

    def __str__(self) -> str:
        return f"({self.x1:.2f}, {self.y1:.2f}) -> ({self.x2:.2f}, {self.y2:.2f})"


@dataclass(frozen=True, slots=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Point:
        return (self.x + self.width / 2.0, self.y + self.height / 2.0)

    def corners(self) -> List[Point]:
        return [
            (self.min_x, self.min_y),
            (self.max_x, self.min_y),
            (self.max_x, self.max_y),
            (self.min_x, self.max_y),
        ]

    def sides(self) -> List[Line]:
        return [
            Line(self.min_x, self.min_y, self.max_x, self.min_y),
            Line(self.max_x, self.min_y, self.max_x, self.max_y),
            Line(self.min_x, self.max_y, self.max_x, self.max_y),
            Line(self.min_x, self.min_y, self.min_x, self.max_y),
        ]

    def contains(self, point: Point, tolerance: float = 0.0) -> bool:
        return (
            self.min_x - tolerance <= point[0] <= self.max_x + tolerance
            and self.min_y - tolerance <= point[1] <= self.max_y + tolerance
        )

    def outcode(self, point: Point) -> int:
        code = 0
        if point[0] < self.min_x:
            code |= OUT_LEFT
        elif point[0] > self.max_x:
            code |= OUT_RIGHT
        if point[1] < self.min_y:
            code |= OUT_TOP
        elif point[1] > self.max_y:
            code |= OUT_BOTTOM
        return code

    def facing_sides(self, point: Point) -> List[Line]:
        """Sides that can be seen from ``point`` (none when it is inside)."""
        code = self.outcode(point)
        sides: List[Line] = []
        if code & OUT_BOTTOM:
            sides.append(Line(self.min_x, self.max_y, self.max_x, self.max_y))
        if code & OUT_TOP:
            sides.append(Line(self.min_x, self.min_y, self.max_x, self.min_y))
        if code & OUT_LEFT:
            sides.append(Line(self.min_x, self.min_y, self.min_x, self.max_y))
        if code & OUT_RIGHT:
            sides.append(Line(self.max_x, self.min_y, self.max_x, self.max_y))
        return sides

    def enlarged(self, delta: float) -> "Rect":
        return Rect(self.x - delta, self.y - delta, self.width + 2 * delta, self.height + 2 * delta)

    def intersection_line(self, line: Line) -> Optional[Line]:
        """Part of ``line`` lying inside the rectangle.

        Liang-Barsky clipping; returns ``None`` when the clipped part is
        shorter than a millimetre.
        """
        dx = line.x2 - line.x1
        dy = line.y2 - line.y1
        t0, t1 = 0.0, 1.0
        for p, q in (
            (-dx, line.x1 - self.min_x),
            (dx, self.max_x - line.x1),
            (-dy, line.y1 - self.min_y),
            (dy, self.max_y - line.y1),
        ):
            if p == 0.0:
                if q < 0.0:
                    return None
                continue
            r = q / p
            if p < 0.0:
                if r > t1:
                    return None
                t0 = max(t0, r)
            else:
                if r < t0:
                    return None
                t1 = min(t1, r)
        clipped = Line(
            line.x1 + t0 * dx,
            line.y1 + t0 * dy,
            line.x1 + t1 * dx,
            line.y1 + t1 * dy,
        )
        if clipped.length < 0.001:
            return None
        return clipped

    def intersects_line(self, line: Line) -> bool:
        if self.contains(line.p1) or self.contains(line.p2):
            return True
        return any(line.intersects(side) for side in self.sides())

    def __iter__(self) -> Iterator[float]:
        return iter((self.x, self.y, self.width, self.height))


def _orient(a: Point, b: Point, c: Point) -> int:
    val = (b[1] - a[1]) * (c[0] - b[0]) - (b[0] - a[0]) * (c[1] - b[1])
    if val > 0:
        return 1
    if val < 0:
        return 2
    return 0


def _on_segment(a: Point, b: Point, c: Point) -> bool:
    return min(a[0], c[0]) <= b[0] <= max(a[0], c[0]) and min(a[1], c[1]) <= b[1] <= max(a[1], c[1])


def segments_intersect(p1: Point, p2: Point, q1: Point, q2: Point) -> bool:
    o1 = _orient(p1, p2, q1)
    o2 = _orient(p1, p2, q2)
    o3 = _orient(q1, q2, p1)
    o4 = _orient(q1, q2, p2)

    if o1 != o2 and o3 != o4:
        return True
    if o1 == 0 and _on_segment(p1, q1, p2):
        return True
    if o2 == 0 and _on_segment(p1, q2, p2):
        return True
    if o3 == 0 and _on_segment(q1, p1, q2):
        return True
    if o4 == 0 and _on_segment(q1, p2, q2):
        return True
    return False


def _solve(first: Line, second: Line) -> Optional[float]:
    """Parameter along ``second`` where the two supporting lines cross."""
    dx1 = first.x2 - first.x1
    dy1 = first.y2 - first.y1
    dx2 = second.x2 - second.x1
    dy2 = second.y2 - second.y1
    det = dx2 * dy1 - dy2 * dx1
    if det == 0.0:
        return None
    return ((first.x1 - second.x1) * dy1 - (first.y1 - second.y1) * dx1) / det


def intersection_point(first: Line, second: Line) -> Optional[Point]:
    """Crossing of ``first``'s supporting line with the segment ``second``."""
    mu = _solve(first, second)
    if mu is None or not 0.0 <= mu <= 1.0:
        return None
    return (second.x1 + mu * (second.x2 - second.x1), second.y1 + mu * (second.y2 - second.y1))


def intersection_point_infinite(first: Line, second: Line) -> Optional[Point]:
    """Crossing of both lines extended to infinity, ``None`` when parallel."""
    mu = _solve(first, second)
    if mu is None:
        return None
    return (second.x1 + mu * (second.x2 - second.x1), second.y1 + mu * (second.y2 - second.y1))


def _point_in_triangle(p: Point, a: Point, b: Point, c: Point) -> bool:
    def cross(o: Point, u: Point, v: Point) -> float:
        return (u[0] - o[0]) * (v[1] - o[1]) - (u[1] - o[1]) * (v[0] - o[0])

    d1 = cross(a, b, p)
    d2 = cross(b, c, p)
    d3 = cross(c, a, p)
    has_neg = d1 < 0 or d2 < 0 or d3 < 0
    has_pos = d1 > 0 or d2 > 0 or d3 > 0
    return not (has_neg and has_pos)


def triangle_intersects_rect(a: Point, b: Point, c: Point, rect: Rect) -> bool:
    if any(rect.contains(p) for p in (a, b, c)):
        return True
    if any(_point_in_triangle(corner, a, b, c) for corner in rect.corners()):
        return True
    edges = (Line.between(a, b), Line.between(b, c), Line.between(c, a))
    return any(edge.intersects(side) for edge in edges for side in rect.sides())


__all__ = [
    "Point",
    "Line",
    "Rect",
    "OUT_LEFT",
    "OUT_TOP",
    "OUT_RIGHT",
    "OUT_BOTTOM",
    "distance",
    "segments_intersect",
    "intersection_point",
    "intersection_point_infinite",
    "triangle_intersects_rect",
]
