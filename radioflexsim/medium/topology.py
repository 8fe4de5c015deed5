"""Contract shared by the physical-layer models plugged into the engine.

A model decides, for a transmission starting at ``source``, what happens to
every other radio (:meth:`TopologyModel.classify`) and which strength each
radio currently senses (:meth:`TopologyModel.update_signal_strengths`). The
engine applies the side effects and keeps the connection bookkeeping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional

import numpy as np

if TYPE_CHECKING:  # pragma: no cover
    from .connection import Connection
    from .engine import ConnectionEngine

logger = logging.getLogger(__name__)

SS_NOTHING = -100.0
SS_STRONG = -10.0


class Outcome(Enum):
    DESTINATION = "destination"
    INTERFERED = "interfered"


@dataclass(slots=True)
class Classification:
    """What a new transmission does to one radio.

    ``interfere_reception`` asks the engine to interfere the radio's ongoing
    reception, ``collide_existing`` to mark it interfered in every
    connection delivering to it, and ``preempt_existing`` to drop it from
    those connections instead (capture).
    """

    radio: Any
    outcome: Outcome
    signal: Optional[float] = None
    delay: float = 0.0
    interfere_reception: bool = False
    collide_existing: bool = False
    preempt_existing: bool = False

    @property
    def is_destination(self) -> bool:
        return self.outcome is Outcome.DESTINATION


class CapturePolicy(Enum):
    """Arbitration when a candidate is already receiving another frame."""

    SYMMETRIC = "symmetric"
    PREAMBLE_WINDOW = "preamble_window"
    NONE = "none"


def channels_compatible(first: int, second: int) -> bool:
    """Radios interact when their channels match or one of them is ``-1``."""
    return first < 0 or second < 0 or first == second


def destination(radio: Any, signal: float | None = None, delay: float = 0.0) -> Classification:
    return Classification(radio, Outcome.DESTINATION, signal, delay)


def interfered(radio: Any, signal: float | None = None, **effects: bool) -> Classification:
    return Classification(radio, Outcome.INTERFERED, signal, **effects)


class TopologyModel(ABC):
    """Base class of the propagation models.

    Sub-classes implement :meth:`classify` and :meth:`neighbors`; the
    default refresh only needs the strength hooks.
    """

    name = "abstract"
    # raise interfered radios even when their channel differs
    interfere_across_channels = True
    interfere_on_refresh = True

    def __init__(self) -> None:
        self.engine: Optional["ConnectionEngine"] = None

    def attach(self, engine: "ConnectionEngine") -> None:
        self.engine = engine

    def detach(self) -> None:
        self.engine = None

    @property
    def rng(self) -> np.random.Generator:
        return self.engine.rng

    @property
    def now(self) -> float:
        return self.engine.queue.now

    @property
    def radios(self) -> List[Any]:
        return self.engine.radios if self.engine is not None else []

    # ------------------------------------------------------------------
    # Model contract
    # ------------------------------------------------------------------
    @abstractmethod
    def classify(self, source: Any) -> List[Classification]:
        """Fate of every radio touched by a transmission from ``source``."""

    @abstractmethod
    def neighbors(self, radio: Any) -> List[Any]:
        """Radios a transmission from ``radio`` may reach."""

    def on_radio_registered(self, radio: Any) -> None:
        pass

    def on_radio_unregistered(self, radio: Any) -> None:
        pass

    def on_radio_changed(self, radio: Any) -> None:
        pass

    def to_config(self) -> Dict[str, Any]:
        return {}

    def from_config(self, data: Dict[str, Any]) -> None:
        pass

    # ------------------------------------------------------------------
    # Signal strengths
    # ------------------------------------------------------------------
    def baseline(self, radio: Any) -> float:
        return self.engine.base_rssi(radio)

    def destination_strength(self, conn: "Connection", radio: Any) -> float:
        return SS_STRONG

    def interference_strength(self, conn: "Connection", radio: Any) -> float:
        return SS_STRONG

    def update_signal_strengths(self) -> None:
        engine = self.engine
        for radio in engine.radios:
            radio.set_current_signal_strength(self.baseline(radio))

        conns = engine.active_connections
        for conn in conns:
            source = conn.source
            send = engine.send_rssi(source)
            if source.current_signal_strength < send:
                source.set_current_signal_strength(send)
            for radio in conn.destinations:
                if not engine.is_registered(radio):
                    continue
                if not channels_compatible(source.channel, radio.channel):
                    continue
                strength = self.destination_strength(conn, radio)
                if radio.current_signal_strength < strength:
                    radio.set_current_signal_strength(strength)

        for conn in conns:
            source = conn.source
            for radio in conn.interfered:
                if not engine.is_registered(radio):
                    continue
                compatible = channels_compatible(source.channel, radio.channel)
                if compatible or self.interfere_across_channels:
                    strength = self.interference_strength(conn, radio)
                    if radio.current_signal_strength < strength:
                        radio.set_current_signal_strength(strength)
                if not compatible or not self.interfere_on_refresh:
                    continue
                if not radio.interfered:
                    logger.debug(f"Radio {radio.id} was not interfered, interfering it")
                    radio.interfere_any_reception()

    # ------------------------------------------------------------------
    # Capture arbitration
    # ------------------------------------------------------------------
    def arbitrate(
        self,
        policy: CapturePolicy,
        radio: Any,
        signal: float,
        received: bool = True,
        *,
        margin: float = 3.0,
        preamble_duration: float = 0.0,
    ) -> Optional[Classification]:
        """Classify a candidate that is already receiving.

        ``None`` means the new frame does not affect the radio at all.
        """
        old = radio.current_signal_strength
        if policy is CapturePolicy.NONE:
            return interfered(radio, signal, interfere_reception=True, collide_existing=True)

        if policy is CapturePolicy.SYMMETRIC:
            if old - margin > signal:
                # keep the old frame
                return interfered(radio, signal)
            if signal - margin > old:
                if received:
                    return Classification(
                        radio, Outcome.DESTINATION, signal,
                        interfere_reception=True, collide_existing=True,
                    )
                return interfered(radio, signal, interfere_reception=True, collide_existing=True)
            return interfered(radio, signal, interfere_reception=True, collide_existing=True)

        if signal < old - margin:
            return None
        current = self.engine.connection_to(radio) if self.engine is not None else None
        elapsed = self.now - current.start_time if current is not None else 0.0
        if elapsed >= preamble_duration:
            return interfered(radio, signal, interfere_reception=True, collide_existing=True)
        return Classification(radio, Outcome.DESTINATION, signal, preempt_existing=True)


__all__ = [
    "SS_NOTHING",
    "SS_STRONG",
    "Outcome",
    "Classification",
    "CapturePolicy",
    "TopologyModel",
    "channels_compatible",
    "destination",
    "interfered",
]
