"""Statistical medium: log-distance path loss with a logistic reception curve.

The received strength follows the log-distance model calibrated so that a
radio at ``transmitting_range`` sees exactly ``rx_sensitivity``::

    PL   = -rx_sensitivity + 10 * alpha * log10(d / transmitting_range)
    RSSI = tx_power - PL + N(0, awgn_sigma)

and the packet reception ratio is the logistic function of the RSSI centred
on ``rssi_inflection_point``. An optional slow random walk per link models
time variation of the path loss.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Tuple

import numpy as np

from .config import ConfigError
from .topology import (
    CapturePolicy,
    Classification,
    TopologyModel,
    channels_compatible,
    destination,
    interfered,
)

logger = logging.getLogger(__name__)

# distance used when two radios share the same position
MIN_DISTANCE = 0.01
TIME_VARIATION_STEP_US = 60 * 1_000_000

# snapshot keys and the values restored when a snapshot is rejected
CONFIG_DEFAULTS: Dict[str, Any] = {
    "transmitting_range": 20.0,
    "success_ratio_tx": 1.0,
    "rx_sensitivity": -100.0,
    "rssi_inflection_point": -92.0,
    "path_loss_exponent": 3.0,
    "awgn_sigma": 3.0,
    "enable_time_variation": False,
    "time_variation_min_pl_db": -10.0,
    "time_variation_max_pl_db": 10.0,
}


class StatisticalModel(TopologyModel):
    name = "logistic"
    interfere_across_channels = False
    interfere_on_refresh = False

    def __init__(
        self,
        *,
        success_ratio_tx: float = 1.0,
        rx_sensitivity: float = -100.0,
        rssi_inflection_point: float = -92.0,
        transmitting_range: float = 20.0,
        interference_range: float | None = None,
        path_loss_exponent: float = 3.0,
        awgn_sigma: float = 3.0,
        co_channel_rejection: float = -3.0,
        tx_power: float = 0.0,
        enable_time_variation: bool = False,
        time_variation_min_pl_db: float = -10.0,
        time_variation_max_pl_db: float = 10.0,
        time_variation_step: float = TIME_VARIATION_STEP_US,
        capture_policy: CapturePolicy = CapturePolicy.SYMMETRIC,
    ) -> None:
        super().__init__()
        if not 0.0 <= success_ratio_tx <= 1.0:
            raise ValueError("success_ratio_tx must be within [0, 1]")
        if transmitting_range <= 0:
            raise ValueError("transmitting_range must be > 0")
        if time_variation_min_pl_db > time_variation_max_pl_db:
            raise ValueError("time variation bounds are inverted")
        self.success_ratio_tx = success_ratio_tx
        self.rx_sensitivity = rx_sensitivity
        self.rssi_inflection_point = rssi_inflection_point
        self._transmitting_range = transmitting_range
        self.interference_range = interference_range if interference_range is not None else transmitting_range
        self.path_loss_exponent = path_loss_exponent
        self.awgn_sigma = awgn_sigma
        self.co_channel_rejection = co_channel_rejection
        self.tx_power = tx_power
        self.enable_time_variation = enable_time_variation
        self.time_variation_min_pl_db = time_variation_min_pl_db
        self.time_variation_max_pl_db = time_variation_max_pl_db
        self.time_variation_step = time_variation_step
        self.capture_policy = capture_policy

        self._neighbor_table: Dict[Any, List[Any]] = {}
        self._dirty = True
        # (source id, dest id) -> (path loss offset, time of last step)
        self._time_variation: Dict[Tuple[int, int], Tuple[float, float]] = {}

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    @property
    def transmitting_range(self) -> float:
        return self._transmitting_range

    @transmitting_range.setter
    def transmitting_range(self, value: float) -> None:
        if value <= 0:
            raise ValueError("transmitting_range must be > 0")
        self._transmitting_range = float(value)
        self.interference_range = float(value)
        self._dirty = True
        if self.engine is not None:
            self.engine.notify_update()

    # ------------------------------------------------------------------
    # Candidate graph
    # ------------------------------------------------------------------
    def _analyze(self) -> None:
        radios = list(self.radios)
        table: Dict[Any, List[Any]] = {r: [] for r in radios}
        if len(radios) > 1:
            pos = np.array([r.position for r in radios], dtype=float)
            dist = np.hypot(pos[:, None, 0] - pos[None, :, 0], pos[:, None, 1] - pos[None, :, 1])
            within = dist < self._transmitting_range
            np.fill_diagonal(within, False)
            for i, radio in enumerate(radios):
                table[radio] = [radios[j] for j in np.flatnonzero(within[i])]
        self._neighbor_table = table
        self._dirty = False
        logger.debug(f"Logistic neighbor graph rebuilt for {len(radios)} radios")

    def neighbors(self, radio: Any) -> List[Any]:
        if self._dirty:
            self._analyze()
        return list(self._neighbor_table.get(radio, ()))

    def on_radio_registered(self, radio: Any) -> None:
        self._dirty = True

    def on_radio_unregistered(self, radio: Any) -> None:
        self._dirty = True
        self._time_variation = {
            k: v for k, v in self._time_variation.items() if radio.id not in k
        }

    def on_radio_changed(self, radio: Any) -> None:
        self._dirty = True

    # ------------------------------------------------------------------
    # Propagation
    # ------------------------------------------------------------------
    def time_variation(self, source: Any, dest: Any) -> float:
        """Current path loss offset (dB) of the ``source -> dest`` link."""
        if not self.enable_time_variation:
            return 0.0
        now = self.now
        key = (source.id, dest.id)
        value, last = self._time_variation.get(key, (0.0, now))
        steps = int((now - last) // self.time_variation_step)
        for delta in self.rng.uniform(-1.0, 1.0, size=steps):
            value = min(max(value + delta, self.time_variation_min_pl_db), self.time_variation_max_pl_db)
        self._time_variation[key] = (value, last + steps * self.time_variation_step)
        return value

    def path_loss(self, source: Any, dest: Any) -> float:
        d = math.hypot(dest.position[0] - source.position[0], dest.position[1] - source.position[1])
        if d <= 0:
            d = MIN_DISTANCE
        pl = -self.rx_sensitivity + 10 * self.path_loss_exponent * math.log10(d / self._transmitting_range)
        return pl + self.time_variation(source, dest)

    def rssi(self, source: Any, dest: Any, noise: bool = True) -> float:
        value = self.tx_power - self.path_loss(source, dest)
        if noise and self.awgn_sigma > 0:
            value += self.rng.normal(0.0, self.awgn_sigma)
        return value

    def prr(self, rssi: float) -> float:
        return 1.0 / (1.0 + math.exp(-(rssi - self.rssi_inflection_point)))

    def tx_success_probability(self, source: Any) -> float:
        return self.success_ratio_tx

    def rx_success_probability(self, source: Any, dest: Any) -> float:
        """Reception ratio at the mean RSSI (no noise draw)."""
        return self.prr(self.rssi(source, dest, noise=False))

    def success_probability(self, source: Any, dest: Any) -> float:
        return self.tx_success_probability(source) * self.rx_success_probability(source, dest)

    # ------------------------------------------------------------------
    # Model contract
    # ------------------------------------------------------------------
    def classify(self, source: Any) -> List[Classification]:
        if self.success_ratio_tx < 1.0 and self.rng.random() > self.success_ratio_tx:
            logger.debug(f"Transmission of radio {source.id} failed at the source")
            return []

        result: List[Classification] = []
        for radio in self.neighbors(source):
            if not channels_compatible(source.channel, radio.channel):
                # dormant until the radio switches to the right channel
                result.append(interfered(radio))
                continue
            d = math.hypot(radio.position[0] - source.position[0], radio.position[1] - source.position[1])
            if d > self._transmitting_range:
                continue
            if not radio.radio_on:
                result.append(interfered(radio, interfere_reception=True))
            elif radio.interfered or radio.transmitting:
                result.append(interfered(radio))
            else:
                signal = self.rssi(source, radio)
                received = self.rng.random() < self.prr(signal)
                if radio.receiving:
                    item = self.arbitrate(
                        self.capture_policy,
                        radio,
                        signal,
                        received,
                        margin=-self.co_channel_rejection,
                    )
                    if item is not None:
                        result.append(item)
                elif received:
                    result.append(destination(radio, signal))
                else:
                    result.append(interfered(radio, signal))
        return result

    def destination_strength(self, conn, radio) -> float:
        stored = conn.signal_strength(radio)
        return stored if stored is not None else self.rssi(conn.source, radio, noise=False)

    def interference_strength(self, conn, radio) -> float:
        stored = conn.signal_strength(radio)
        return stored if stored is not None else self.rssi(conn.source, radio, noise=False)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def to_config(self) -> Dict[str, Any]:
        return {key: getattr(self, key) for key in CONFIG_DEFAULTS}

    def _apply_config(self, values: Dict[str, Any]) -> None:
        for key, value in values.items():
            if key != "transmitting_range":
                setattr(self, key, value)
        if "transmitting_range" in values:
            self.transmitting_range = values["transmitting_range"]

    def from_config(self, data: Dict[str, Any]) -> None:
        """Apply a snapshot produced by :meth:`to_config`.

        Every value is checked before any is applied. On an invalid value the
        model goes back to :data:`CONFIG_DEFAULTS` and :class:`ConfigError`
        is raised.
        """
        staged: Dict[str, Any] = {}
        try:
            for key, value in data.items():
                if key not in CONFIG_DEFAULTS:
                    logger.warning(f"Ignoring unknown logistic loss setting '{key}'")
                    continue
                try:
                    if key == "enable_time_variation":
                        value = value if isinstance(value, bool) else str(value).lower() == "true"
                    else:
                        value = float(value)
                except (TypeError, ValueError) as exc:
                    raise ConfigError(f"Invalid value for {key}: {value!r}") from exc
                if key == "success_ratio_tx" and not 0.0 <= value <= 1.0:
                    raise ConfigError("success_ratio_tx must be within [0, 1]")
                if key == "transmitting_range" and value <= 0:
                    raise ConfigError("transmitting_range must be > 0")
                staged[key] = value
            low = staged.get("time_variation_min_pl_db", self.time_variation_min_pl_db)
            high = staged.get("time_variation_max_pl_db", self.time_variation_max_pl_db)
            if low > high:
                raise ConfigError("time variation bounds are inverted")
        except ConfigError:
            logger.warning("Rejected logistic loss snapshot, restoring defaults")
            self._apply_config(CONFIG_DEFAULTS)
            raise
        self._apply_config(staged)


__all__ = ["StatisticalModel", "CONFIG_DEFAULTS", "MIN_DISTANCE", "TIME_VARIATION_STEP_US"]
