"""Bounded cache of visibility searches."""

from __future__ import annotations

from collections import OrderedDict
from threading import RLock
from typing import Callable, Hashable, List, Optional, Tuple

from .angle_interval import AngleInterval
from .geometry import Line, Point

VisibilityKey = Tuple[Point, Optional[AngleInterval], Optional[Line]]


class VisibilityCache:
    """Thread-safe LRU keyed by ``(source, interval, look_through)``.

    Lookup, computation and insertion happen under one lock, so a key is
    computed at most once even when several threads query the ray tracer.
    """

    def __init__(self, capacity: int = 30) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self.capacity = capacity
        self._lock = RLock()
        self._entries: "OrderedDict[Hashable, Tuple[Line, ...]]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get_or_compute(self, key: VisibilityKey, compute: Callable[[], List[Line]]) -> List[Line]:
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self.hits += 1
                return list(self._entries[key])
            self.misses += 1
            value = tuple(compute())
            self._entries[key] = value
            if len(self._entries) > self.capacity:
                self._entries.popitem(last=False)
            return list(value)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._entries)


__all__ = ["VisibilityCache", "VisibilityKey"]
