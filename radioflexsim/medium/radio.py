"""Radio handles driven by the connection engine.

The engine never owns radios: embedders register handles exposing the
attributes and callbacks below. :class:`Radio` is a complete reference
implementation, used by the scenarios and the tests, that embedders may
subclass to hook their own reception logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import math
from typing import TYPE_CHECKING, Any, Optional, Tuple

from .triggers import EventTriggers

if TYPE_CHECKING:  # pragma: no cover
    from .event_queue import EventQueue

logger = logging.getLogger(__name__)


class RadioEvent(Enum):
    """Events published by radios (and re-published by the engine)."""

    UNKNOWN = "unknown"
    HW_OFF = "hw_off"
    HW_ON = "hw_on"
    RECEPTION_STARTED = "reception_started"
    RECEPTION_INTERFERED = "reception_interfered"
    RECEPTION_FINISHED = "reception_finished"
    TRANSMISSION_STARTED = "transmission_started"
    TRANSMISSION_FINISHED = "transmission_finished"
    PACKET_TRANSMITTED = "packet_transmitted"


class Radio:
    """Reference radio with the handle contract expected by the engine."""

    def __init__(
        self,
        radio_id: int,
        x: float = 0.0,
        y: float = 0.0,
        *,
        channel: int = -1,
        output_power: float = 0.0,
        output_power_indicator: int = 100,
        radio_on: bool = True,
        noise_level: float | None = None,
        direction: float = 0.0,
    ) -> None:
        self.id = radio_id
        self.position: Tuple[float, float] = (float(x), float(y))
        self.channel = channel
        self.output_power = output_power
        self.output_power_indicator = output_power_indicator
        self.radio_on = radio_on
        self.noise_level = noise_level
        self.direction = direction

        self.transmitting = False
        self.receiving = False
        self.interfered = False
        self.current_signal_strength = -100.0
        self.lqi = 0

        self.last_packet_transmitted: Any = None
        self.last_packet_received: Any = None
        self.last_event = RadioEvent.UNKNOWN

        self.event_triggers: EventTriggers[RadioEvent, "Radio"] = EventTriggers()

    # ------------------------------------------------------------------
    # Contract used by the engine
    # ------------------------------------------------------------------
    def set_current_signal_strength(self, dbm: float) -> None:
        self.current_signal_strength = dbm

    def set_lqi(self, lqi: int) -> None:
        self.lqi = lqi

    def set_received_packet(self, packet: Any) -> None:
        self.last_packet_received = packet

    def relative_gain(self, angle: float, distance: float) -> float:
        """Antenna gain (dB) towards ``angle``; omnidirectional by default."""
        return 0.0

    def interfere_any_reception(self) -> None:
        if not self.interfered:
            self.interfered = True
            self._fire(RadioEvent.RECEPTION_INTERFERED)

    def signal_reception_start(self) -> None:
        if not self.radio_on:
            return
        if self.transmitting:
            self.interfere_any_reception()
            return
        self.receiving = True
        self.interfered = False
        self.last_packet_received = None
        self._fire(RadioEvent.RECEPTION_STARTED)

    def signal_reception_end(self) -> None:
        self.receiving = False
        self.interfered = False
        self._fire(RadioEvent.RECEPTION_FINISHED)

    # ------------------------------------------------------------------
    # Embedder side
    # ------------------------------------------------------------------
    def start_transmission(self, packet: Any = None) -> bool:
        if self.transmitting:
            logger.warning(f"Radio {self.id} already transmitting, aborting new transmission")
            return False
        if not self.radio_on:
            logger.warning(f"Radio {self.id} is off, cannot transmit")
            return False
        self.transmitting = True
        self._fire(RadioEvent.TRANSMISSION_STARTED)
        if packet is not None:
            self.last_packet_transmitted = packet
            self._fire(RadioEvent.PACKET_TRANSMITTED)
        return True

    def finish_transmission(self) -> None:
        if not self.transmitting:
            return
        self.transmitting = False
        self._fire(RadioEvent.TRANSMISSION_FINISHED)

    def transmit(self, packet: Any, duration: float, queue: "EventQueue") -> bool:
        """Start a transmission now and schedule its end ``duration`` µs later."""
        if not self.start_transmission(packet):
            return False
        queue.schedule_in(duration, self.finish_transmission)
        return True

    def turn_on(self) -> None:
        if self.radio_on:
            return
        self.radio_on = True
        self._fire(RadioEvent.HW_ON)

    def turn_off(self) -> None:
        if not self.radio_on:
            return
        self.radio_on = False
        self.receiving = False
        self._fire(RadioEvent.HW_OFF)

    def set_channel(self, channel: int) -> None:
        self.channel = channel
        self._fire(RadioEvent.UNKNOWN)

    def set_position(self, x: float, y: float) -> None:
        self.position = (float(x), float(y))
        self._fire(RadioEvent.UNKNOWN)

    def set_noise_level(self, level: float | None) -> None:
        self.noise_level = level
        self._fire(RadioEvent.UNKNOWN)

    def distance_to(self, other: "Radio") -> float:
        return math.hypot(other.position[0] - self.position[0], other.position[1] - self.position[1])

    def _fire(self, event: RadioEvent) -> None:
        self.last_event = event
        self.event_triggers.trigger(event, self)

    def __repr__(self) -> str:
        return f"Radio(id={self.id}, pos=({self.position[0]:.2f}, {self.position[1]:.2f}), ch={self.channel})"


@dataclass(frozen=True, slots=True)
class TxPair:
    """Transmitter/receiver positions and gains for a channel computation."""

    from_x: float
    from_y: float
    to_x: float
    to_y: float
    tx_power: Optional[float] = None
    tx_gain: float = 0.0
    rx_gain: float = 0.0

    @classmethod
    def from_radios(cls, source: Radio, dest: Radio) -> "TxPair":
        sx, sy = source.position
        dx, dy = dest.position
        angle = math.atan2(dy - sy, dx - sx)
        dist = math.hypot(dx - sx, dy - sy)
        return cls(
            sx,
            sy,
            dx,
            dy,
            tx_power=source.output_power,
            tx_gain=source.relative_gain(source.direction + angle, dist),
            rx_gain=dest.relative_gain(dest.direction + angle + math.pi, dist),
        )

    @property
    def source(self) -> Tuple[float, float]:
        return (self.from_x, self.from_y)

    @property
    def dest(self) -> Tuple[float, float]:
        return (self.to_x, self.to_y)

    @property
    def distance(self) -> float:
        return math.hypot(self.to_x - self.from_x, self.to_y - self.from_y)

    @property
    def angle(self) -> float:
        return math.atan2(self.to_y - self.from_y, self.to_x - self.from_x)


__all__ = ["RadioEvent", "Radio", "TxPair"]
