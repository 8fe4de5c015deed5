"""Record of one ongoing transmission and the radios it reaches."""

from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional

_connection_ids = itertools.count()


class Connection:
    """Source radio, destinations (with delay) and interfered radios.

    ``all_destinations`` keeps every radio the transmission was ever
    delivered to; a destination that gets interfered stays there and also
    appears in ``interfered``. ``destinations`` only lists the clean ones.
    """

    def __init__(self, source: Any, start_time: float = 0.0) -> None:
        self.id = next(_connection_ids)
        self.source = source
        self.start_time = start_time
        self._destinations: Dict[Any, float] = {}
        self._interfered: Dict[Any, None] = {}
        self._signals: Dict[Any, float] = {}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def add_destination(self, radio: Any, delay: float = 0.0, signal: float | None = None) -> None:
        self._destinations[radio] = float(delay)
        self._interfered.pop(radio, None)
        if signal is not None:
            self._signals[radio] = signal

    def remove_destination(self, radio: Any) -> None:
        self._destinations.pop(radio, None)
        self._interfered.pop(radio, None)
        self._signals.pop(radio, None)

    def add_interfered(self, radio: Any, signal: float | None = None) -> None:
        self._interfered[radio] = None
        if signal is not None:
            self._signals[radio] = signal

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def is_destination(self, radio: Any) -> bool:
        return radio in self._destinations

    def is_interfered(self, radio: Any) -> bool:
        return radio in self._interfered

    def is_clean_destination(self, radio: Any) -> bool:
        return radio in self._destinations and radio not in self._interfered

    @property
    def destinations(self) -> List[Any]:
        return [r for r in self._destinations if r not in self._interfered]

    @property
    def all_destinations(self) -> List[Any]:
        return list(self._destinations)

    @property
    def interfered(self) -> List[Any]:
        return list(self._interfered)

    @property
    def interfered_non_destinations(self) -> List[Any]:
        return [r for r in self._interfered if r not in self._destinations]

    def destination_delay(self, radio: Any) -> float:
        return self._destinations.get(radio, 0.0)

    def signal_strength(self, radio: Any) -> Optional[float]:
        return self._signals.get(radio)

    def involves(self, radio: Any) -> bool:
        return radio is self.source or radio in self._destinations or radio in self._interfered

    def __repr__(self) -> str:
        return (
            f"Connection(id={self.id}, source={getattr(self.source, 'id', self.source)}, "
            f"destinations={len(self.destinations)}, interfered={len(self._interfered)})"
        )


__all__ = ["Connection"]
