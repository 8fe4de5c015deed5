"""Directed graph medium: explicit radio links with per-link properties."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Dict, List

from .config import ConfigError
from .topology import Classification, TopologyModel, channels_compatible, destination, interfered

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DestinationRadio:
    """Receiving end of an edge.

    ``ratio`` is the probability that a frame sent over the edge is received,
    ``delay`` the propagation delay in microseconds and ``channel`` restricts
    the edge to one radio channel (``-1`` = any).
    """

    radio: Any
    ratio: float = 1.0
    signal: float = -10.0
    lqi: int = 105
    delay: float = 0.0
    channel: int = -1

    def __post_init__(self) -> None:
        if not 0.0 <= self.ratio <= 1.0:
            raise ValueError("ratio must be within [0, 1]")
        if self.delay < 0:
            raise ValueError("delay must be >= 0")


@dataclass(eq=False, slots=True)
class Edge:
    source: Any
    dest: DestinationRadio

    def __str__(self) -> str:
        return f"Edge({self.source.id} -> {self.dest.radio.id}, ratio={self.dest.ratio})"


class GraphTopology(TopologyModel):
    """Radio medium where only configured edges carry frames.

    The adjacency index is rebuilt lazily from the edge list the first time
    it is needed after a change.
    """

    name = "graph"

    def __init__(self) -> None:
        super().__init__()
        self._edges: List[Edge] = []
        self._table: Dict[Any, List[DestinationRadio]] = {}
        self._dirty = True
        self.analysis_count = 0

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------
    def add_edge(self, source: Any, dest: Any | DestinationRadio, **props: Any) -> Edge:
        if not isinstance(dest, DestinationRadio):
            dest = DestinationRadio(dest, **props)
        edge = Edge(source, dest)
        self._edges.append(edge)
        self.request_edge_analysis()
        self._notify()
        return edge

    def remove_edge(self, edge: Edge) -> None:
        if edge not in self._edges:
            logger.error(f"Cannot remove edge: {edge}")
            return
        self._edges.remove(edge)
        self.request_edge_analysis()
        self._notify()

    def clear_edges(self) -> None:
        self._edges.clear()
        self.request_edge_analysis()
        self._notify()

    @property
    def edges(self) -> List[Edge]:
        return list(self._edges)

    def request_edge_analysis(self) -> None:
        self._dirty = True

    def needs_edge_analysis(self) -> bool:
        return self._dirty

    def _analyze_edges(self) -> None:
        table: Dict[Any, List[DestinationRadio]] = {}
        for edge in self._edges:
            table.setdefault(edge.source, []).append(edge.dest)
        self._table = table
        self._dirty = False
        self.analysis_count += 1
        logger.debug(f"Edge index rebuilt: {len(self._edges)} edges, {len(table)} sources")

    def potential_destinations(self, source: Any) -> List[DestinationRadio]:
        if self._dirty:
            self._analyze_edges()
        return list(self._table.get(source, ()))

    def _notify(self) -> None:
        if self.engine is not None:
            self.engine.notify_update()

    # ------------------------------------------------------------------
    # Model contract
    # ------------------------------------------------------------------
    def neighbors(self, radio: Any) -> List[Any]:
        return [d.radio for d in self.potential_destinations(radio)]

    def classify(self, source: Any) -> List[Classification]:
        result: List[Classification] = []
        for dest in self.potential_destinations(source):
            radio = dest.radio
            if radio is source:
                continue
            if dest.channel >= 0 and radio.channel >= 0 and dest.channel != radio.channel:
                # edge configured for another channel
                continue
            if not channels_compatible(source.channel, radio.channel):
                result.append(interfered(radio))
            elif not radio.radio_on or radio.interfered:
                result.append(interfered(radio))
            elif radio.receiving:
                result.append(interfered(radio, interfere_reception=True, collide_existing=True))
            elif dest.ratio < 1.0 and self.rng.random() > dest.ratio:
                result.append(interfered(radio))
            else:
                result.append(destination(radio, dest.signal, dest.delay))
        return result

    def update_signal_strengths(self) -> None:
        engine = self.engine
        for radio in engine.radios:
            radio.set_current_signal_strength(self.baseline(radio))

        for conn in engine.active_connections:
            send = engine.send_rssi(conn.source)
            if conn.source.current_signal_strength < send:
                conn.source.set_current_signal_strength(send)
            src_channel = conn.source.channel
            for dest in self.potential_destinations(conn.source):
                radio = dest.radio
                if not engine.is_registered(radio):
                    continue
                if src_channel >= 0:
                    if dest.channel >= 0 and src_channel != dest.channel:
                        continue
                    if radio.channel >= 0 and src_channel != radio.channel:
                        continue
                if radio.current_signal_strength < dest.signal:
                    radio.set_current_signal_strength(dest.signal)
                radio.set_lqi(dest.lqi)

    def on_radio_unregistered(self, radio: Any) -> None:
        for edge in self.edges:
            if edge.source is radio or edge.dest.radio is radio:
                self.remove_edge(edge)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def to_config(self) -> Dict[str, Any]:
        return {
            "edges": [
                {
                    "source": e.source.id,
                    "dest": e.dest.radio.id,
                    "ratio": e.dest.ratio,
                    "signal": e.dest.signal,
                    "lqi": e.dest.lqi,
                    "delay": e.dest.delay,
                    "channel": e.dest.channel,
                }
                for e in self._edges
            ]
        }

    def from_config(self, data: Dict[str, Any]) -> None:
        """Replace the edges with those of ``data['edges']``.

        Radios are referenced by id and must already be registered.
        """
        edges: List[Edge] = []
        for entry in data.get("edges") or []:
            try:
                source = self.engine.radio_by_id(int(entry["source"]))
                dest = DestinationRadio(
                    self.engine.radio_by_id(int(entry["dest"])),
                    ratio=float(entry.get("ratio", 1.0)),
                    signal=float(entry.get("signal", -10.0)),
                    lqi=int(entry.get("lqi", 105)),
                    delay=float(entry.get("delay", 0.0)),
                    channel=int(entry.get("channel", -1)),
                )
            except ConfigError:
                raise
            except (KeyError, TypeError, ValueError) as exc:
                raise ConfigError(f"Invalid edge {entry!r}: {exc}") from exc
            edges.append(Edge(source, dest))
        self._edges = edges
        self.request_edge_analysis()
        self._notify()


__all__ = ["DestinationRadio", "Edge", "GraphTopology"]
