"""Multipath tree and ray paths.

The tree is an arena: nodes live in a list, children reference their parent
by index. Nodes are appended breadth-first so iterating the arena in order
is a breadth-first walk.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional

from .geometry import Line, Point, distance


class RayType(Enum):
    ORIGIN = "origin"
    REFRACTION = "refraction"
    REFLECTION = "reflection"
    DIFFRACTION = "diffraction"
    DESTINATION = "destination"


@dataclass(slots=True)
class RayNode:
    type: RayType
    source: Point
    line: Optional[Line]
    parent: Optional[int]
    rays_left: int
    refractions_left: int
    reflections_left: int
    diffractions_left: int

    def child(self, type: RayType, source: Point, line: Optional[Line], parent: int) -> "RayNode":
        """Node spawned from this one; the overall and per-type limits shrink by one."""
        return RayNode(
            type,
            source,
            line,
            parent,
            self.rays_left - 1,
            self.refractions_left - (type is RayType.REFRACTION),
            self.reflections_left - (type is RayType.REFLECTION),
            self.diffractions_left - (type is RayType.DIFFRACTION),
        )


class RayTree:
    def __init__(self, root: RayNode) -> None:
        self.nodes: List[RayNode] = [root]

    def add(self, node: RayNode) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    @property
    def root(self) -> RayNode:
        return self.nodes[0]

    def parent_of(self, index: int) -> Optional[int]:
        return self.nodes[index].parent

    def breadth_first(self) -> Iterator[int]:
        return iter(range(len(self.nodes)))

    def __len__(self) -> int:
        return len(self.nodes)


@dataclass
class RayPath:
    """Polyline from the transmitter to the receiver.

    ``types[i]`` is the kind of event at ``points[i]`` and therefore the kind
    of the sub-path starting there.
    """

    points: List[Point] = field(default_factory=list)
    types: List[RayType] = field(default_factory=list)

    def add_point(self, point: Point, type: RayType) -> None:
        self.points.append(point)
        self.types.append(type)

    @property
    def sub_path_count(self) -> int:
        return max(0, len(self.points) - 1)

    def sub_path(self, index: int) -> Line:
        return Line.between(self.points[index], self.points[index + 1])

    def type(self, index: int) -> RayType:
        return self.types[index]

    @property
    def length(self) -> float:
        return sum(distance(a, b) for a, b in zip(self.points, self.points[1:]))

    def __str__(self) -> str:
        hops = ", ".join(
            f"{t.value}({p[0]:.2f}, {p[1]:.2f})" for p, t in zip(self.points, self.types)
        )
        return f"RayPath[{hops}]"


__all__ = ["RayType", "RayNode", "RayTree", "RayPath"]
