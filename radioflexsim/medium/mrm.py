"""Ray-tracing medium backed by :class:`~.channel_model.ChannelModel`.

Every radio within the optional cutoff range is a candidate. The channel
model gives the reception probability of the pair, a random draw decides
reception, and the capture parameters of the channel model select how a
receiver already busy with another frame is arbitrated.
"""

from __future__ import annotations

from dataclasses import replace
import logging
import math
from typing import Any, Dict, List, Optional

from .channel_model import ChannelModel, Parameter
from .config import ConfigError
from .radio import TxPair
from .topology import (
    CapturePolicy,
    Classification,
    TopologyModel,
    channels_compatible,
    destination,
    interfered,
)
from .triggers import Change

logger = logging.getLogger(__name__)


class RayTraceModel(TopologyModel):
    name = "mrm"

    def __init__(
        self,
        channel: ChannelModel | None = None,
        transmitting_range: float | None = None,
        capture_policy: CapturePolicy | None = None,
    ) -> None:
        super().__init__()
        self.channel = channel if channel is not None else ChannelModel()
        self.transmitting_range = transmitting_range
        self._fixed_policy = capture_policy
        self.capture_policy = self._policy_from_channel()
        self._subscription = self.channel.settings_triggers.subscribe(self._on_settings_changed, owner=self)

    def _policy_from_channel(self) -> CapturePolicy:
        if self._fixed_policy is not None:
            return self._fixed_policy
        if self.channel.parameter(Parameter.capture_effect):
            return CapturePolicy.PREAMBLE_WINDOW
        return CapturePolicy.NONE

    def _on_settings_changed(self, change: Change, param: Optional[Parameter]) -> None:
        self.capture_policy = self._policy_from_channel()
        if self.engine is None:
            return
        self.engine.update_signal_strengths()
        self.engine.notify_update()

    def detach(self) -> None:
        super().detach()
        self.channel.settings_triggers.unsubscribe_owner(self)

    # ------------------------------------------------------------------
    # Candidates
    # ------------------------------------------------------------------
    def _in_range(self, source: Any, radio: Any) -> bool:
        if self.transmitting_range is None:
            return True
        d = math.hypot(radio.position[0] - source.position[0], radio.position[1] - source.position[1])
        return d <= self.transmitting_range

    def neighbors(self, radio: Any) -> List[Any]:
        """Radios reachable through at least one ray path."""
        p = self.channel.parameters
        tree = self.channel.build_tree(
            radio.position,
            p[Parameter.rt_max_rays],
            p[Parameter.rt_max_refractions],
            p[Parameter.rt_max_reflections],
            p[Parameter.rt_max_diffractions],
        )
        return [
            other
            for other in self.radios
            if other is not radio
            and self._in_range(radio, other)
            and self.channel.connecting_paths(radio.position, other.position, tree)
        ]

    # ------------------------------------------------------------------
    # Model contract
    # ------------------------------------------------------------------
    def classify(self, source: Any) -> List[Classification]:
        channel = self.channel
        bg_noise = channel.parameter(Parameter.bg_noise_mean)
        capture = channel.parameter(Parameter.capture_effect)
        result: List[Classification] = []
        for radio in self.radios:
            if radio is source or not self._in_range(source, radio):
                continue
            if not channels_compatible(source.channel, radio.channel):
                result.append(interfered(radio))
                continue

            probability, signal = channel.probability(TxPair.from_radios(source, radio), -math.inf)
            if probability == 1.0 or self.rng.random() < probability:
                if not radio.radio_on:
                    result.append(interfered(radio, signal, interfere_reception=True))
                elif radio.interfered or radio.transmitting:
                    result.append(interfered(radio, signal))
                elif radio.receiving:
                    item = self.arbitrate(
                        self.capture_policy,
                        radio,
                        signal,
                        margin=channel.parameter(Parameter.capture_effect_signal_threshold),
                        preamble_duration=channel.parameter(Parameter.capture_effect_preamble_duration),
                    )
                    if item is not None:
                        result.append(item)
                else:
                    result.append(destination(radio, signal))
            elif signal > bg_noise and not capture:
                # not received but loud enough to disturb
                result.append(interfered(radio, signal, interfere_reception=True))
        return result

    def update_signal_strengths(self) -> None:
        engine = self.engine
        bg_noise = self.channel.parameter(Parameter.bg_noise_mean)
        for radio in engine.radios:
            radio.set_current_signal_strength(bg_noise)

        conns = engine.active_connections
        for conn in conns:
            source = conn.source
            for radio in conn.destinations:
                if not engine.is_registered(radio) or not channels_compatible(source.channel, radio.channel):
                    continue
                signal = conn.signal_strength(radio)
                if signal is not None and radio.current_signal_strength < signal:
                    radio.set_current_signal_strength(signal)

        for conn in conns:
            source = conn.source
            for radio in conn.interfered:
                if not engine.is_registered(radio) or not channels_compatible(source.channel, radio.channel):
                    continue
                signal = conn.signal_strength(radio)
                if signal is not None and radio.current_signal_strength < signal:
                    radio.set_current_signal_strength(signal)
                if not radio.interfered:
                    logger.debug(f"Radio {radio.id} was not interfered, interfering it")
                    radio.interfere_any_reception()

        for noise in engine.radios:
            if getattr(noise, "noise_level", None) is None:
                continue
            for radio in engine.radios:
                if radio is noise:
                    continue
                pair = replace(TxPair.from_radios(noise, radio), tx_power=noise.noise_level)
                signal = self.channel.received_signal_strength(pair)[0]
                if signal < bg_noise:
                    continue
                if radio.current_signal_strength < signal:
                    radio.set_current_signal_strength(signal)
                    if radio.receiving and not radio.interfered:
                        engine.mark_interfered(radio)
                        radio.interfere_any_reception()

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def to_config(self) -> Dict[str, Any]:
        config = self.channel.to_config()
        config["transmitting_range"] = self.transmitting_range
        return config

    def from_config(self, data: Dict[str, Any]) -> None:
        data = dict(data)
        transmitting_range = self.transmitting_range
        if "transmitting_range" in data:
            value = data.pop("transmitting_range")
            try:
                transmitting_range = None if value is None else float(value)
            except (TypeError, ValueError) as exc:
                self.channel.reset_parameters()
                self.transmitting_range = None
                raise ConfigError(f"Invalid transmitting_range: {value!r}") from exc
        self.transmitting_range = transmitting_range
        try:
            self.channel.from_config(data)
        except ConfigError:
            # the channel is back to its defaults, so is the cutoff
            self.transmitting_range = None
            raise


__all__ = ["RayTraceModel"]
