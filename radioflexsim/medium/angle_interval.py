"""Arcs of directions on the unit circle.

An :class:`AngleInterval` is the half-open arc ``[start, end)``; ``start`` is
kept in ``[0, 2π)`` and ``end - start`` (the measure) in ``[0, 2π]``, so
``end`` may exceed ``2π`` when the arc wraps around. Set operations work on
the unrolled representation: the other arc is shifted by ``-2π``, ``0`` and
``+2π`` and intersected/subtracted as plain real intervals.
"""

from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Iterable, List, Optional, Tuple

from .geometry import Line, Point, Rect

TWO_PI = 2.0 * math.pi

# Arcs narrower than this (radians) are treated as empty.
EMPTY_MEASURE = 1e-5

_Span = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class AngleInterval:
    start: float
    end: float

    def __post_init__(self) -> None:
        size = self.end - self.start
        if size > TWO_PI:
            size = TWO_PI
        elif size < 0.0:
            size = size % TWO_PI
        start = self.start % TWO_PI
        if start >= TWO_PI:
            start = 0.0
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "end", start + size)

    @classmethod
    def full(cls) -> "AngleInterval":
        return cls(0.0, TWO_PI)

    @property
    def size(self) -> float:
        return self.end - self.start

    def is_empty(self) -> bool:
        return self.size < EMPTY_MEASURE

    def is_full(self) -> bool:
        return self.size >= TWO_PI - EMPTY_MEASURE

    # ------------------------------------------------------------------
    # Unrolled helpers
    # ------------------------------------------------------------------
    def _shifted(self, other: "AngleInterval") -> List[_Span]:
        return [(other.start + k * TWO_PI, other.end + k * TWO_PI) for k in (-1, 0, 1)]

    def _wrap(self, spans: List[_Span]) -> List["AngleInterval"]:
        spans = sorted(s for s in spans if s[1] - s[0] > 0.0)
        merged: List[_Span] = []
        for lo, hi in spans:
            if merged and lo - merged[-1][1] <= 1e-12:
                merged[-1] = (merged[-1][0], max(hi, merged[-1][1]))
            else:
                merged.append((lo, hi))
        # pieces touching both ends of a full circle form a single arc
        if (
            self.is_full()
            and len(merged) > 1
            and abs(merged[0][0] - self.start) <= 1e-12
            and abs(merged[-1][1] - self.end) <= 1e-12
        ):
            first = merged.pop(0)
            last = merged.pop()
            merged.append((last[0], first[1] + TWO_PI))
        result = [AngleInterval(lo, hi) for lo, hi in merged]
        return [iv for iv in result if not iv.is_empty()]

    # ------------------------------------------------------------------
    # Set operations
    # ------------------------------------------------------------------
    def contains_angle(self, angle: float) -> bool:
        a = angle % TWO_PI
        if a < self.start:
            a += TWO_PI
        return self.start <= a < self.end or self.is_full()

    def contains(self, other: "AngleInterval") -> bool:
        if self.is_full():
            return True
        if other.size > self.size + EMPTY_MEASURE:
            return False
        return any(
            lo >= self.start - EMPTY_MEASURE and hi <= self.end + EMPTY_MEASURE
            for lo, hi in self._shifted(other)
        )

    def intersection(self, other: "AngleInterval") -> List["AngleInterval"]:
        """All arcs common to both intervals (at most two)."""
        if self.is_full():
            return [other] if not other.is_empty() else []
        if other.is_full():
            return [self] if not self.is_empty() else []
        spans = [
            (max(self.start, lo), min(self.end, hi))
            for lo, hi in self._shifted(other)
        ]
        return self._wrap(spans)

    def intersects(self, other: "AngleInterval") -> bool:
        return bool(self.intersection(other))

    def intersect_with(self, other: "AngleInterval") -> Optional["AngleInterval"]:
        """Common arc, or ``None``; the widest one when they overlap twice."""
        pieces = self.intersection(other)
        if not pieces:
            return None
        return max(pieces, key=lambda iv: iv.size)

    def subtract(self, other: "AngleInterval") -> List["AngleInterval"]:
        """What is left of this arc once ``other`` is removed (0 to 2 arcs)."""
        remaining: List[_Span] = [(self.start, self.end)]
        for lo, hi in self._shifted(other):
            nxt: List[_Span] = []
            for a, b in remaining:
                if hi <= a or lo >= b:
                    nxt.append((a, b))
                    continue
                if lo > a:
                    nxt.append((a, lo))
                if hi < b:
                    nxt.append((hi, b))
            remaining = nxt
        return self._wrap(remaining)

    @staticmethod
    def intersect_all(intervals: Iterable["AngleInterval"], other: "AngleInterval") -> List["AngleInterval"]:
        result: List[AngleInterval] = []
        for interval in intervals:
            result.extend(interval.intersection(other))
        return result

    @staticmethod
    def subtract_all(intervals: Iterable["AngleInterval"], other: "AngleInterval") -> List["AngleInterval"]:
        result: List[AngleInterval] = []
        for interval in intervals:
            result.extend(interval.subtract(other))
        return result

    # ------------------------------------------------------------------
    # Constructors from geometry
    # ------------------------------------------------------------------
    @classmethod
    def of_line(cls, source: Point, line: Line) -> "AngleInterval":
        """Directions under which ``line`` is seen from ``source``."""
        a1 = math.atan2(line.y1 - source[1], line.x1 - source[0])
        a2 = math.atan2(line.y2 - source[1], line.x2 - source[0])
        diff = (a2 - a1) % TWO_PI
        if diff <= math.pi:
            return cls(a1, a1 + diff)
        return cls(a2, a2 + (TWO_PI - diff))

    @classmethod
    def of_rectangle(cls, source: Point, rect: Rect) -> "AngleInterval":
        """Smallest arc covering the rectangle, full circle from inside."""
        if rect.contains(source):
            return cls.full()
        angles = sorted(
            math.atan2(y - source[1], x - source[0]) % TWO_PI for x, y in rect.corners()
        )
        best_gap = -1.0
        best_index = 0
        for i, angle in enumerate(angles):
            nxt = angles[(i + 1) % len(angles)]
            gap = (nxt - angle) % TWO_PI
            if gap > best_gap:
                best_gap = gap
                best_index = i
        start = angles[(best_index + 1) % len(angles)]
        return cls(start, start + (TWO_PI - best_gap))

    @staticmethod
    def directed_line(source: Point, angle: float, length: float) -> Line:
        return Line(
            source[0],
            source[1],
            source[0] + length * math.cos(angle),
            source[1] + length * math.sin(angle),
        )

    def __str__(self) -> str:
        return f"[{math.degrees(self.start):.1f}°, {math.degrees(self.end):.1f}°)"


__all__ = ["AngleInterval", "EMPTY_MEASURE", "TWO_PI"]
