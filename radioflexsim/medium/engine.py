"""Model-independent connection and interference state machine.

The engine listens to the events of every registered radio. When a radio
starts transmitting it asks the :class:`~.topology.TopologyModel` what happens
to every other radio, applies the side effects on ongoing receptions, opens a
:class:`~.connection.Connection` and notifies the destinations (immediately or
after their propagation delay). Signal strengths are refreshed after every
change.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Set, Tuple

import numpy as np
import pandas as pd

from ._random import SeedLike, ensure_rng
from .config import ConfigError
from .connection import Connection
from .event_queue import Event, EventQueue
from .radio import RadioEvent
from .topology import SS_NOTHING, SS_STRONG, Classification, TopologyModel
from .triggers import Change, EventTriggers, Subscription

logger = logging.getLogger(__name__)


class ConnectionEngine:
    """Radio medium driving registered radios through a topology model."""

    def __init__(
        self,
        model: TopologyModel,
        *,
        queue: EventQueue | None = None,
        rng: np.random.Generator | None = None,
        seed: SeedLike = 0,
    ) -> None:
        self.queue = queue if queue is not None else EventQueue()
        self.rng = ensure_rng(rng, seed)
        self.radios: List[Any] = []
        self._registered: Set[Any] = set()
        self._subscriptions: Dict[Any, Subscription] = {}
        self.active_connections: List[Connection] = []
        self.last_connection: Optional[Connection] = None

        self._base_rssi: Dict[Any, float] = {}
        self._send_rssi: Dict[Any, float] = {}

        self.frames_sent = 0
        self.frames_received = 0
        self.frames_interfered = 0
        self.connection_log: List[Dict[str, Any]] = []

        # pending delayed deliveries per destination radio
        self._pending: Dict[Any, List[Event]] = {}
        # (connection id, radio) pairs whose reception start was signalled
        self._started: Set[Tuple[int, Any]] = set()

        self.medium_triggers: EventTriggers[Change, Any] = EventTriggers()
        self.transmission_triggers: EventTriggers[RadioEvent, Optional[Connection]] = EventTriggers()

        self.model = model
        model.attach(self)

    @property
    def now(self) -> float:
        return self.queue.now

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def register(self, radio: Any) -> None:
        if radio is None:
            logger.warning("No radio to register")
            return
        if radio in self._registered:
            logger.warning(f"Radio {radio.id} already registered")
            return
        self.radios.append(radio)
        self._registered.add(radio)
        self._subscriptions[radio] = radio.event_triggers.subscribe(self._on_radio_event, owner=self)
        self.model.on_radio_registered(radio)
        self.medium_triggers.trigger(Change.ADD, radio)
        self.update_signal_strengths()

    def unregister(self, radio: Any) -> None:
        if radio not in self._registered:
            logger.warning(f"No radio to unregister: {radio}")
            return
        token = self._subscriptions.pop(radio, None)
        if token is not None:
            radio.event_triggers.unsubscribe(token)
        self.radios.remove(radio)
        self._registered.discard(radio)

        self._retract(radio)
        if self.connection_from(radio) is not None:
            self.on_transmission_finish(radio)
        for event in self._pending.pop(radio, []):
            event.cancel()
        self._started = {key for key in self._started if key[1] is not radio}
        if radio.receiving or radio.interfered:
            # no connection end will reach the radio once it is gone
            radio.signal_reception_end()

        self.model.on_radio_unregistered(radio)
        self.medium_triggers.trigger(Change.REMOVE, radio)
        self.update_signal_strengths()

    def is_registered(self, radio: Any) -> bool:
        return radio in self._registered

    def radio_by_id(self, radio_id: int) -> Any:
        for radio in self.radios:
            if radio.id == radio_id:
                return radio
        raise ConfigError(f"Unknown radio id {radio_id}")

    # ------------------------------------------------------------------
    # Radio events
    # ------------------------------------------------------------------
    def _on_radio_event(self, event: RadioEvent, radio: Any) -> None:
        if event in (
            RadioEvent.RECEPTION_STARTED,
            RadioEvent.RECEPTION_INTERFERED,
            RadioEvent.RECEPTION_FINISHED,
        ):
            return
        if event in (RadioEvent.UNKNOWN, RadioEvent.HW_ON):
            self.on_hardware_on(radio)
        elif event is RadioEvent.HW_OFF:
            self.on_hardware_off(radio)
        elif event is RadioEvent.TRANSMISSION_STARTED:
            self.on_transmission_start(radio)
        elif event is RadioEvent.TRANSMISSION_FINISHED:
            self.on_transmission_finish(radio)
        elif event is RadioEvent.PACKET_TRANSMITTED:
            self.on_packet_transmitted(radio)
        else:
            logger.error(f"Unsupported radio event: {event}")

    def on_transmission_start(self, source: Any) -> Connection:
        if source.receiving:
            # it won't receive the frame it was listening to
            source.interfere_any_reception()
            self.mark_interfered(source)

        conn = Connection(source, self.now)
        for item in self.model.classify(source):
            self._apply(conn, item)
        self.active_connections.append(conn)
        logger.debug(
            f"t={self.now:.1f}us radio {source.id} starts {conn.id}: "
            f"{len(conn.destinations)} destinations, {len(conn.interfered)} interfered"
        )

        for radio in conn.all_destinations:
            delay = conn.destination_delay(radio)
            if delay == 0:
                self._reception_start(conn, radio)
            else:
                self._schedule(radio, delay, lambda c=conn, r=radio: self._delayed_start(c, r))

        self.update_signal_strengths()
        self.last_connection = None
        self.transmission_triggers.trigger(RadioEvent.TRANSMISSION_STARTED, conn)
        return conn

    def _apply(self, conn: Connection, item: Classification) -> None:
        radio = item.radio
        if item.preempt_existing:
            for other in self.active_connections:
                if other.is_destination(radio):
                    other.remove_destination(radio)
                    self._started.discard((other.id, radio))
        if item.collide_existing:
            self.mark_interfered(radio)
        if item.interfere_reception:
            radio.interfere_any_reception()
        if item.is_destination:
            conn.add_destination(radio, item.delay, item.signal)
        else:
            conn.add_interfered(radio, item.signal)

    def on_transmission_finish(self, source: Any) -> Optional[Connection]:
        conn = self.connection_from(source)
        if conn is None:
            return None
        self.active_connections.remove(conn)
        self.last_connection = conn
        self.frames_sent += 1

        for radio in conn.all_destinations:
            if self._captured_elsewhere(radio, conn):
                self._started.discard((conn.id, radio))
                continue
            delay = conn.destination_delay(radio)
            if delay == 0:
                self._reception_end(conn, radio)
            else:
                self._schedule(radio, delay, lambda c=conn, r=radio: self._reception_end(c, r))

        self.frames_received += len(conn.destinations)
        self.frames_interfered += len(conn.interfered)
        for radio in conn.interfered_non_destinations:
            if radio.interfered and self.is_registered(radio):
                radio.signal_reception_end()

        self.connection_log.append(self._log_row(conn))
        self.update_signal_strengths()
        self.transmission_triggers.trigger(RadioEvent.TRANSMISSION_FINISHED, conn)
        return conn

    def on_packet_transmitted(self, source: Any) -> None:
        conn = self.connection_from(source)
        if conn is None:
            return
        packet = source.last_packet_transmitted
        if packet is None:
            logger.error(f"No radio packet to forward from radio {source.id}")
            return
        for radio in conn.all_destinations:
            delay = conn.destination_delay(radio)
            if delay == 0:
                radio.set_received_packet(packet)
            else:
                self._schedule(radio, delay, lambda r=radio, p=packet: r.set_received_packet(p))

    def on_hardware_off(self, radio: Any) -> None:
        if self.connection_from(radio) is not None:
            logger.error(f"Connection source turned off radio: {radio}")
        self._retract(radio)
        self.update_signal_strengths()

    def on_hardware_on(self, radio: Any) -> None:
        self.model.on_radio_changed(radio)
        self.update_signal_strengths()

    # ------------------------------------------------------------------
    # Delivery helpers
    # ------------------------------------------------------------------
    def _schedule(self, radio: Any, delay: float, callback) -> None:
        pending = self._pending.setdefault(radio, [])
        pending[:] = [e for e in pending if not e.cancelled and e.time >= self.now]
        pending.append(self.queue.schedule_in(delay, callback))

    def _reception_start(self, conn: Connection, radio: Any) -> None:
        self._started.add((conn.id, radio))
        radio.signal_reception_start()

    def _delayed_start(self, conn: Connection, radio: Any) -> None:
        if not self.is_registered(radio) or not conn.is_destination(radio):
            logger.debug(f"Dropping stale reception start of radio {radio.id} for {conn.id}")
            return
        self._reception_start(conn, radio)

    def _reception_end(self, conn: Connection, radio: Any) -> None:
        key = (conn.id, radio)
        if key not in self._started:
            return
        self._started.discard(key)
        if self.is_registered(radio):
            radio.signal_reception_end()

    def _captured_elsewhere(self, radio: Any, conn: Connection) -> bool:
        return any(
            other is not conn and other.is_clean_destination(radio)
            for other in self.active_connections
        )

    def mark_interfered(self, radio: Any) -> None:
        for conn in self.active_connections:
            if conn.is_destination(radio):
                conn.add_interfered(radio)

    def _retract(self, radio: Any) -> None:
        for conn in self.active_connections:
            if conn.is_destination(radio):
                conn.add_interfered(radio)
                if not radio.interfered:
                    radio.interfere_any_reception()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def connection_from(self, source: Any) -> Optional[Connection]:
        for conn in self.active_connections:
            if conn.source is source:
                return conn
        return None

    def connection_to(self, radio: Any) -> Optional[Connection]:
        """Live connection currently delivering cleanly to ``radio``."""
        for conn in self.active_connections:
            if conn.is_clean_destination(radio):
                return conn
        return None

    def neighbors(self, radio: Any) -> List[Any]:
        return self.model.neighbors(radio)

    def update_signal_strengths(self) -> None:
        self.model.update_signal_strengths()

    def notify_update(self) -> None:
        """Report a topology change to the medium observers."""
        self.medium_triggers.trigger(Change.UPDATE, None)

    # ------------------------------------------------------------------
    # RSSI settings
    # ------------------------------------------------------------------
    def base_rssi(self, radio: Any) -> float:
        return self._base_rssi.get(radio, SS_NOTHING)

    def set_base_rssi(self, radio: Any, rssi: float) -> None:
        self._base_rssi[radio] = float(rssi)
        self.update_signal_strengths()

    def send_rssi(self, radio: Any) -> float:
        return self._send_rssi.get(radio, SS_STRONG)

    def set_send_rssi(self, radio: Any, rssi: float) -> None:
        self._send_rssi[radio] = float(rssi)

    # ------------------------------------------------------------------
    # Log and snapshot
    # ------------------------------------------------------------------
    def _log_row(self, conn: Connection) -> Dict[str, Any]:
        return {
            "connection_id": conn.id,
            "source_id": conn.source.id,
            "start_time": conn.start_time,
            "end_time": self.now,
            "destinations": len(conn.destinations),
            "interfered": len(conn.interfered),
            "destination_ids": [r.id for r in conn.destinations],
            "interfered_ids": [r.id for r in conn.interfered],
        }

    def get_connections_dataframe(self) -> pd.DataFrame:
        """DataFrame pandas du journal des connexions terminées."""
        if not self.connection_log:
            return pd.DataFrame(
                columns=[
                    "connection_id",
                    "source_id",
                    "start_time",
                    "end_time",
                    "destinations",
                    "interfered",
                    "destination_ids",
                    "interfered_ids",
                ]
            )
        df = pd.DataFrame(self.connection_log)
        df["duration"] = df["end_time"] - df["start_time"]
        return df

    def to_config(self) -> Dict[str, Any]:
        return {
            "base_rssi": {r.id: v for r, v in self._base_rssi.items()},
            "send_rssi": {r.id: v for r, v in self._send_rssi.items()},
            "model": self.model.to_config(),
        }

    def from_config(self, data: Dict[str, Any]) -> None:
        try:
            base = {self.radio_by_id(int(k)): float(v) for k, v in (data.get("base_rssi") or {}).items()}
            send = {self.radio_by_id(int(k)): float(v) for k, v in (data.get("send_rssi") or {}).items()}
        except ConfigError:
            raise
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid RSSI configuration: {exc}") from exc
        # RSSI maps only change once the model accepted its part
        if "model" in data:
            self.model.from_config(data["model"] or {})
        self._base_rssi.update(base)
        self._send_rssi.update(send)
        self.update_signal_strengths()

    def __repr__(self) -> str:
        return (
            f"ConnectionEngine(model={self.model.name}, radios={len(self.radios)}, "
            f"active={len(self.active_connections)})"
        )


__all__ = ["ConnectionEngine"]
