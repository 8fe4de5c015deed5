"""2D ray-tracing channel model with rectangular obstacles.

For a transmitter/receiver pair the model builds a tree of the obstacle sides
visible from the transmitter (and, recursively, from refraction, reflection
and diffraction points), extracts every ray path that actually reaches the
receiver, and combines the path gains with a simple Rician approach to get
the received signal strength, the SNR and the reception probability.

All tunables are exposed as :class:`Parameter` values. Changing one
invalidates the cached free-space constant and notifies the settings
triggers.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
import logging
import math
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from scipy.stats import norm

from ._random import SeedLike, ensure_rng
from .angle_interval import AngleInterval
from .config import ConfigError
from .geometry import (
    Line,
    Point,
    distance,
    intersection_point,
    intersection_point_infinite,
    triangle_intersects_rect,
)
from .obstacle_world import ObstacleWorld
from .radio import TxPair
from .ray_tree import RayNode, RayPath, RayTree, RayType
from .triggers import Change, EventTriggers
from .visibility_cache import VisibilityCache

logger = logging.getLogger(__name__)

C = 299792458.0  # m/s
SPEED_OF_LIGHT_M_PER_US = 300.0
# paths weaker than the best one by more than this (dB) are ignored
SIGNIFICANT_PATH_MARGIN_DB = 30.0
# half-width (rad) of the window searched by the direct path test
DIRECT_PATH_WINDOW = 0.1
MIN_HOP_LENGTH = 0.01
MAX_VISIBILITY_ITERATIONS = 10000


class Parameter(str, Enum):
    apply_random = "apply_random"
    snr_threshold = "snr_threshold"
    bg_noise_mean = "bg_noise_mean"
    bg_noise_var = "bg_noise_var"
    system_gain_mean = "system_gain_mean"
    system_gain_var = "system_gain_var"
    frequency = "frequency"
    tx_power = "tx_power"
    tx_with_gain = "tx_with_gain"
    rx_sensitivity = "rx_sensitivity"
    rx_with_gain = "rx_with_gain"
    rt_disallow_direct_path = "rt_disallow_direct_path"
    rt_ignore_non_direct = "rt_ignore_non_direct"
    rt_fspl_on_total_length = "rt_fspl_on_total_length"
    rt_max_rays = "rt_max_rays"
    rt_max_refractions = "rt_max_refractions"
    rt_max_reflections = "rt_max_reflections"
    rt_max_diffractions = "rt_max_diffractions"
    rt_use_scattering = "rt_use_scattering"
    rt_refrac_coefficient = "rt_refrac_coefficient"
    rt_reflec_coefficient = "rt_reflec_coefficient"
    rt_diffr_coefficient = "rt_diffr_coefficient"
    rt_scatt_coefficient = "rt_scatt_coefficient"
    obstacle_attenuation = "obstacle_attenuation"
    capture_effect = "capture_effect"
    capture_effect_preamble_duration = "capture_effect_preamble_duration"
    capture_effect_signal_threshold = "capture_effect_signal_threshold"

    @classmethod
    def from_name(cls, name: "str | Parameter") -> Optional["Parameter"]:
        """Parameter for ``name``, accepting legacy spellings; ``None`` if unknown."""
        if isinstance(name, cls):
            return name
        name = LEGACY_NAMES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            return None


LEGACY_NAMES = {
    "captureEffect": "capture_effect",
    "captureEffectPreambleDuration": "capture_effect_preamble_duration",
    "captureEffectSignalTreshold": "capture_effect_signal_threshold",
    "captureEffectSignalThreshold": "capture_effect_signal_threshold",
}

PARAMETER_DEFAULTS: Dict[Parameter, Any] = {
    Parameter.apply_random: False,
    Parameter.snr_threshold: 6.0,
    Parameter.bg_noise_mean: -100.0,
    Parameter.bg_noise_var: 1.0,
    Parameter.system_gain_mean: 0.0,
    Parameter.system_gain_var: 4.0,
    Parameter.frequency: 2400.0,
    Parameter.tx_power: 1.5,
    Parameter.tx_with_gain: True,
    Parameter.rx_sensitivity: -100.0,
    Parameter.rx_with_gain: False,
    Parameter.rt_disallow_direct_path: False,
    Parameter.rt_ignore_non_direct: False,
    Parameter.rt_fspl_on_total_length: True,
    Parameter.rt_max_rays: 1,
    Parameter.rt_max_refractions: 1,
    Parameter.rt_max_reflections: 1,
    Parameter.rt_max_diffractions: 0,
    Parameter.rt_use_scattering: False,
    Parameter.rt_refrac_coefficient: -3.0,
    Parameter.rt_reflec_coefficient: -5.0,
    Parameter.rt_diffr_coefficient: -10.0,
    Parameter.rt_scatt_coefficient: -20.0,
    Parameter.obstacle_attenuation: -3.0,
    Parameter.capture_effect: True,
    Parameter.capture_effect_preamble_duration: 64.0,
    Parameter.capture_effect_signal_threshold: 3.0,
}

PARAMETER_DESCRIPTIONS: Dict[Parameter, str] = {
    Parameter.apply_random: "(DEBUG) Apply random values",
    Parameter.snr_threshold: "SNR reception threshold (dB)",
    Parameter.bg_noise_mean: "Background noise mean (dBm)",
    Parameter.bg_noise_var: "Background noise variance (dB)",
    Parameter.system_gain_mean: "Extra system gain mean (dB)",
    Parameter.system_gain_var: "Extra system gain variance (dB)",
    Parameter.frequency: "Frequency (MHz)",
    Parameter.tx_power: "Default transmitter output power (dBm)",
    Parameter.tx_with_gain: "Directional antennas: with TX gain",
    Parameter.rx_sensitivity: "Receiver sensitivity (dBm)",
    Parameter.rx_with_gain: "Directional antennas: with RX gain",
    Parameter.rt_disallow_direct_path: "Disallow direct path",
    Parameter.rt_ignore_non_direct: "If existing: return only use direct path",
    Parameter.rt_fspl_on_total_length: "Use FSPL on total path lengths only",
    Parameter.rt_max_rays: "Max path rays",
    Parameter.rt_max_refractions: "Max refractions",
    Parameter.rt_max_reflections: "Max reflections",
    Parameter.rt_max_diffractions: "Max diffractions",
    Parameter.rt_use_scattering: "Use scattering",
    Parameter.rt_refrac_coefficient: "Refraction coefficient (dB)",
    Parameter.rt_reflec_coefficient: "Reflection coefficient (dB)",
    Parameter.rt_diffr_coefficient: "Diffraction coefficient (dB)",
    Parameter.rt_scatt_coefficient: "Scattering coefficient (dB)",
    Parameter.obstacle_attenuation: "Obstacle attenuation (dB/m)",
    Parameter.capture_effect: "Use capture effect",
    Parameter.capture_effect_preamble_duration: "Capture effect preamble (us)",
    Parameter.capture_effect_signal_threshold: "Capture effect threshold (dB)",
}


def _coerce(param: Parameter, value: Any) -> Any:
    """Convert ``value`` to the type of the parameter's default."""
    kind = type(PARAMETER_DEFAULTS[param])
    if kind is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("true", "false"):
            return value.strip().lower() == "true"
        raise ValueError(f"{param.value} expects a boolean, got {value!r}")
    if isinstance(value, bool):
        raise ValueError(f"{param.value} expects a number, got {value!r}")
    if kind is int:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{param.value} expects an integer, got {value!r}")
        return int(value)
    return float(value)


@dataclass
class TrackedSignalComponents:
    """Rays of one transmission and a printable breakdown of the computation."""

    components: List[Line] = field(default_factory=list)
    log: str = ""


@dataclass
class TransmissionData:
    signal_strength: float
    variance: float
    delay_spread: float
    rms_delay_spread: float
    paths: List[RayPath]


class ChannelModel:
    """Ray-tracing propagation engine and its parameter set."""

    def __init__(
        self,
        parameters: Dict[str, Any] | None = None,
        *,
        rng: np.random.Generator | None = None,
        seed: SeedLike = 0,
        cache_capacity: int = 30,
    ) -> None:
        self.rng = ensure_rng(rng, seed)
        self._parameters: Dict[Parameter, Any] = dict(PARAMETER_DEFAULTS)
        self.obstacles = ObstacleWorld()
        self.visibility_cache = VisibilityCache(cache_capacity)
        self.settings_triggers: EventTriggers[Change, Optional[Parameter]] = EventTriggers()
        self._fspl_constant: Optional[float] = None
        for name, value in (parameters or {}).items():
            self.set_parameter(name, value, notify=False)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def _param(self, name: "str | Parameter") -> Parameter:
        param = Parameter.from_name(name)
        if param is None:
            raise ConfigError(f"Unknown channel parameter '{name}'")
        return param

    def parameter(self, name: "str | Parameter") -> Any:
        return self._parameters[self._param(name)]

    def set_parameter(self, name: "str | Parameter", value: Any, notify: bool = True) -> None:
        param = self._param(name)
        try:
            self._parameters[param] = _coerce(param, value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(str(exc)) from exc
        self._fspl_constant = None
        if notify:
            self.notify_settings_changed(param)

    @property
    def parameters(self) -> Dict[Parameter, Any]:
        return dict(self._parameters)

    def notify_settings_changed(self, param: Optional[Parameter] = None) -> None:
        self.settings_triggers.trigger(Change.UPDATE, param)

    # ------------------------------------------------------------------
    # Obstacles
    # ------------------------------------------------------------------
    def add_rect_obstacle(self, x: float, y: float, width: float, height: float, notify: bool = True) -> None:
        self.obstacles.add_rect(x, y, width, height)
        self.visibility_cache.clear()
        if notify:
            self.notify_settings_changed()

    def remove_all_obstacles(self) -> None:
        self.obstacles.remove_all()
        self.visibility_cache.clear()
        self.notify_settings_changed()

    @property
    def obstacle_count(self) -> int:
        return len(self.obstacles)

    # ------------------------------------------------------------------
    # Free space
    # ------------------------------------------------------------------
    def fspl(self, distance_m: float) -> float:
        """Free-space path loss (dB, <= 0) from Friis' equation."""
        if self._fspl_constant is None:
            self._fspl_constant = -32.44 - 20 * math.log10(self.parameter(Parameter.frequency))
        if distance_m <= 0:
            return 0.0
        return min(0.0, self._fspl_constant - 20 * math.log10(distance_m / 1000.0))

    @property
    def wavelength(self) -> float:
        return C / (self.parameter(Parameter.frequency) * 1_000_000.0)

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------
    def visible_sides(
        self,
        source: Point,
        interval: AngleInterval | None = None,
        look_through: Line | None = None,
    ) -> List[Line]:
        """Obstacle sides visible from ``source``.

        ``interval`` restricts the search to some directions (all of them
        when ``None``). With ``look_through`` only the sides behind that line
        are returned, as if looking through it.
        """
        source = (float(source[0]), float(source[1]))
        key = (source, interval, look_through)
        return self.visibility_cache.get_or_compute(
            key, lambda: self._compute_visible_sides(source, interval, look_through)
        )

    def _beyond(self, source: Point, candidate: Line, look_through: Line | None) -> bool:
        if look_through is None:
            return True
        if candidate.almost_equals(look_through, 0.01):
            return False
        center = candidate.bounds().center
        return Line.between(center, source).intersects(look_through)

    def _compute_visible_sides(
        self,
        source: Point,
        interval: AngleInterval | None,
        look_through: Line | None,
    ) -> List[Line]:
        visible: List[Line] = []
        if look_through is not None:
            first = AngleInterval.of_line(source, look_through)
            if interval is not None:
                first = first.intersect_with(interval)
        else:
            first = interval if interval is not None else AngleInterval.full()
        unhandled: List[Optional[AngleInterval]] = [first]

        iterations = 0
        while unhandled:
            iterations += 1
            if iterations > MAX_VISIBILITY_ITERATIONS:
                logger.warning(f"Visibility search from {source} stopped after {iterations - 1} iterations")
                break
            current = unhandled[0]
            if current is None or current.is_empty():
                unhandled.pop(0)
                continue

            obstacles = self.obstacles.obstacles_in_interval(source, current)
            candidates = [side for rect in obstacles for side in rect.facing_sides(source)]

            cropped: List[Line] = []
            for candidate in candidates:
                if not self._beyond(source, candidate, look_through):
                    continue
                line_interval = AngleInterval.of_line(source, candidate)
                if current.contains(line_interval):
                    cropped.append(candidate)
                    continue
                overlap = line_interval.intersect_with(current)
                if overlap is None:
                    continue
                start = intersection_point_infinite(
                    candidate, AngleInterval.directed_line(source, overlap.start, 1.0)
                )
                end = intersection_point_infinite(
                    candidate, AngleInterval.directed_line(source, overlap.end, 1.0)
                )
                if start is None or end is None or distance(start, end) <= 0.001:
                    continue
                cropped.append(Line.between(start, end))

            if not cropped:
                unhandled.pop(0)
                continue

            progressed = False
            for candidate in cropped:
                cand_interval = AngleInterval.of_line(source, candidate).intersect_with(current)
                if cand_interval is None:
                    continue
                status, replacement = self._shadowing(source, candidate, cand_interval, cropped, current, unhandled)
                if status == "split":
                    unhandled = replacement
                    progressed = True
                    break
                if status == "visible":
                    unhandled = AngleInterval.subtract_all(
                        [iv for iv in unhandled if iv is not None], cand_interval
                    )
                    visible.append(candidate)
                    progressed = True
                    break
            if not progressed:
                # every candidate is shadowed by another one
                unhandled.pop(0)

        return visible

    def _shadowing(
        self,
        source: Point,
        candidate: Line,
        cand_interval: AngleInterval,
        cropped: List[Line],
        current: AngleInterval,
        unhandled: List[Optional[AngleInterval]],
    ) -> Tuple[str, List[Optional[AngleInterval]]]:
        """Whether ``candidate`` is ``visible``, ``shadowed`` or ``split``."""
        cand_total = distance(candidate.p1, source) + distance(candidate.p2, source)
        cand_far = max(distance(candidate.p1, source), distance(candidate.p2, source))
        for shadow in cropped:
            if shadow is candidate:
                continue
            bounds = shadow.bounds()
            area = bounds.enlarged(0.01 * max(bounds.width, bounds.height))
            shadow_near = min(distance(shadow.p1, source), distance(shadow.p2, source))
            if shadow_near > cand_far or not triangle_intersects_rect(source, candidate.p1, candidate.p2, area):
                continue
            shadow_interval = AngleInterval.of_line(source, shadow).intersect_with(current)
            if shadow_interval is None:
                continue

            if shadow_interval.contains(cand_interval):
                if cand_interval.contains(shadow_interval):
                    # same directions: the farther line is hidden
                    shadow_total = distance(shadow.p1, source) + distance(shadow.p2, source)
                    if cand_total > shadow_total:
                        return "shadowed", unhandled
                else:
                    return "shadowed", unhandled
            elif cand_interval.intersects(shadow_interval):
                kept = [iv for iv in unhandled if iv is not None]
                added: List[AngleInterval] = []
                covered = cand_interval.intersect_with(shadow_interval)
                if covered is not None:
                    added.extend(AngleInterval.intersect_all(kept, covered))
                for rest in cand_interval.subtract(shadow_interval):
                    added.extend(AngleInterval.intersect_all(kept, rest))
                remaining = AngleInterval.subtract_all(kept, cand_interval)
                remaining.extend(iv for iv in added if not iv.is_empty())
                return "split", remaining
        return "visible", unhandled

    def diffraction_sources(self, sides: List[Line]) -> List[Point]:
        points: List[Point] = []
        for side in sides:
            for point in (side.p1, side.p2):
                if self.obstacles.point_is_near_corner(point):
                    points.append(point)
        return points

    def is_direct_path(self, source: Point, dest: Point) -> bool:
        """No visible obstacle side between ``source`` and ``dest``.

        Not symmetric: only sides seen from ``source`` are considered, so an
        obstacle containing the source does not block.
        """
        angle = math.atan2(dest[1] - source[1], dest[0] - source[0])
        window = AngleInterval(angle - DIRECT_PATH_WINDOW, angle + DIRECT_PATH_WINDOW)
        segment = Line.between(source, dest)
        for side in self.visible_sides(source, window, None):
            if not side.intersects(segment):
                continue
            crossing = intersection_point_infinite(side, segment)
            if crossing is None:
                continue
            if distance(crossing, dest) > MIN_HOP_LENGTH and distance(crossing, source) > MIN_HOP_LENGTH:
                return False
        return True

    # ------------------------------------------------------------------
    # Ray tree and paths
    # ------------------------------------------------------------------
    def build_tree(
        self,
        origin: Point,
        max_rays: int,
        max_refractions: int,
        max_reflections: int,
        max_diffractions: int,
    ) -> RayTree:
        tree = RayTree(
            RayNode(
                RayType.ORIGIN,
                (float(origin[0]), float(origin[1])),
                None,
                None,
                max_rays,
                max_refractions,
                max_reflections,
                max_diffractions,
            )
        )
        queue = deque([0])
        while queue:
            index = queue.popleft()
            node = tree.nodes[index]
            if node.rays_left <= 0:
                continue
            sides = self.visible_sides(node.source, None, node.line)

            if node.refractions_left > 0:
                for side in sides:
                    queue.append(tree.add(node.child(RayType.REFRACTION, node.source, side, index)))

            if node.reflections_left > 0:
                for side in sides:
                    x, y = node.source
                    bounds = side.bounds()
                    if bounds.height > bounds.width:
                        x = 2 * side.x1 - x
                    else:
                        y = 2 * side.y1 - y
                    queue.append(tree.add(node.child(RayType.REFLECTION, (x, y), side, index)))

            if node.diffractions_left > 0:
                for point in self.diffraction_sources(sides):
                    queue.append(tree.add(node.child(RayType.DIFFRACTION, point, None, index)))
        return tree

    def connecting_paths(self, origin: Point, dest: Point, tree: RayTree) -> List[RayPath]:
        paths: List[RayPath] = []
        for index in tree.breadth_first():
            node = tree.nodes[index]
            before: Optional[Point] = None
            direct = False
            to_dest = Line.between(node.source, dest)

            if node.type is RayType.ORIGIN:
                before = node.source
                if not self.parameter(Parameter.rt_disallow_direct_path):
                    direct = self.is_direct_path(before, dest)
            elif node.type in (RayType.REFRACTION, RayType.REFLECTION) and to_dest.intersects(node.line):
                before = intersection_point(to_dest, node.line)
                if before is not None:
                    direct = self.is_direct_path(before, dest)
            elif node.type is RayType.DIFFRACTION:
                before = node.source
                direct = self.is_direct_path(before, dest)

            if not direct:
                continue
            path = self._trace_back(tree, index, before, origin, dest)
            if path is None:
                continue
            paths.append(path)
            if node.type is RayType.ORIGIN and self.parameter(Parameter.rt_ignore_non_direct):
                return paths
        return paths

    def _trace_back(
        self, tree: RayTree, index: int, before: Point, origin: Point, dest: Point
    ) -> Optional[RayPath]:
        node = tree.nodes[index]
        points: List[Point] = [dest, before]
        types: List[RayType] = [RayType.DESTINATION, node.type]
        last, newest = dest, before

        if node.type is not RayType.ORIGIN and distance(newest, last) < MIN_HOP_LENGTH:
            return None
        if node.type is RayType.DIFFRACTION and not self.is_direct_path(last, newest):
            return None

        current = node
        while current.type is not RayType.ORIGIN:
            index = tree.parent_of(index)
            current = tree.nodes[index]
            last = newest
            if current.type is RayType.ORIGIN:
                newest = origin
            elif current.type in (RayType.REFRACTION, RayType.REFLECTION):
                newest = intersection_point_infinite(Line.between(current.source, last), current.line)
            else:
                newest = current.source
            if newest is None or distance(newest, last) < MIN_HOP_LENGTH:
                return None
            points.append(newest)
            types.append(current.type)
            if current.type is RayType.DIFFRACTION and not self.is_direct_path(last, newest):
                return None

        points.reverse()
        types.reverse()
        return RayPath(points, types)

    # ------------------------------------------------------------------
    # Signal computations
    # ------------------------------------------------------------------
    def _path_gain(self, path: RayPath) -> Tuple[float, float]:
        """Gain (dB) and length (m) of one ray path."""
        p = self._parameters
        per_run = not p[Parameter.rt_fspl_on_total_length]
        gain = 0.0
        length = 0.0
        straight = 0.0
        for j in range(path.sub_path_count):
            sub = path.sub_path(j)
            kind = path.type(j)
            if kind is RayType.REFRACTION:
                gain += p[Parameter.rt_refrac_coefficient]
            elif kind in (RayType.REFLECTION, RayType.DIFFRACTION):
                gain += (
                    p[Parameter.rt_reflec_coefficient]
                    if kind is RayType.REFLECTION
                    else p[Parameter.rt_diffr_coefficient]
                )
                if per_run and straight > 0:
                    gain += self.fspl(straight)
                straight = 0.0
            straight += sub.length

            if kind is RayType.REFRACTION:
                # the ray crosses the obstacle it enters here
                for rect in self.obstacles.obstacles_near(sub.p1):
                    inside = rect.intersection_line(sub)
                    if inside is not None:
                        gain += p[Parameter.obstacle_attenuation] * inside.length
                        break
            length += sub.length

        if per_run and straight > 0:
            gain += self.fspl(straight)
        if not per_run:
            gain += self.fspl(length)
        return gain, length

    def _transmission_data(self, pair: TxPair, log: List[str] | None = None) -> TransmissionData:
        p = self._parameters
        source, dest = pair.source, pair.dest
        variance = 0.0

        tree = self.build_tree(
            source,
            p[Parameter.rt_max_rays],
            p[Parameter.rt_max_refractions],
            p[Parameter.rt_max_reflections],
            p[Parameter.rt_max_diffractions],
        )
        paths = self.connecting_paths(source, dest, tree)
        if log is not None:
            log.append("Signal components:")
            log.extend(f"* {path}" for path in paths)

        gains: List[float] = []
        lengths: List[float] = []
        for path in paths:
            g, l = self._path_gain(path)
            gains.append(g)
            lengths.append(l)

        spread = 0.0
        rms = 0.0
        weight = 0.0
        total = 0.0
        if gains:
            best = int(np.argmax(gains))
            wavelength = self.wavelength
            for g, l in zip(gains, lengths):
                diff = abs(l - lengths[best])
                phase = (diff % wavelength) / wavelength
                if g > gains[best] - SIGNIFICANT_PATH_MARGIN_DB:
                    spread = max(spread, diff)
                    weight += g * g
                    rms += (diff / SPEED_OF_LIGHT_M_PER_US) ** 2 * g * g
                    total += 10 ** (g / 10.0) * math.cos(2 * math.pi * phase)
                    if log is not None:
                        log.append(f"Signal component: {g:2.3f} dB, phase {2 * phase:2.3f} pi")
                elif log is not None:
                    log.append(f"(IGNORED) Signal component: {g:2.3f} dB, phase {2 * phase:2.3f} pi")
        spread /= SPEED_OF_LIGHT_M_PER_US
        rms = rms / weight if weight > 0 else 0.0
        total_gain = 10 * math.log10(abs(total)) if total != 0 else -math.inf
        if log is not None:
            log.append(f"Total path gain: {total_gain:2.3f} dB")
            log.append(f"Delay spread: {spread:2.3f}")
            log.append(f"RMS delay spread: {rms:2.3f}")

        output_power = pair.tx_power if pair.tx_power is not None else p[Parameter.tx_power]
        system_gain = p[Parameter.system_gain_mean]
        if p[Parameter.apply_random]:
            system_gain += math.sqrt(p[Parameter.system_gain_var]) * self.rng.standard_normal()
        else:
            variance += p[Parameter.system_gain_var]
        tx_gain = pair.tx_gain if p[Parameter.tx_with_gain] else 0.0

        received = output_power + system_gain + tx_gain + total_gain
        if log is not None:
            log.append(f"Received signal strength: {received:2.3f} dBm (variance {variance})")
        return TransmissionData(received, variance, spread, rms, paths)

    def received_signal_strength(self, pair: TxPair) -> Tuple[float, float]:
        """Mean and variance of the received signal strength (dBm)."""
        data = self._transmission_data(pair)
        return data.signal_strength, data.variance

    def _sinr(
        self,
        pair: TxPair,
        interference: float,
        log: List[str] | None = None,
        data: TransmissionData | None = None,
    ) -> Tuple[float, float, float]:
        p = self._parameters
        if data is None:
            data = self._transmission_data(pair, log)
        rss = data.signal_strength
        snr = rss
        variance = data.variance
        if p[Parameter.rx_with_gain]:
            snr += pair.rx_gain

        noise_var = p[Parameter.bg_noise_var]
        noise_mean = max(p[Parameter.bg_noise_mean], interference)
        if p[Parameter.apply_random]:
            noise_mean += math.sqrt(noise_var) * self.rng.standard_normal()
            noise_var = 0.0
        snr -= noise_mean
        variance += noise_var
        if log is not None:
            log.append(f"Received SNR: {snr:2.3f} dB (variance {variance})")
        return snr, variance, rss

    def sinr(self, pair: TxPair, interference: float = -math.inf) -> Tuple[float, float, float]:
        """SNR mean, SNR variance and received signal strength."""
        return self._sinr(pair, interference)

    def _probability(
        self,
        pair: TxPair,
        interference: float,
        log: List[str] | None = None,
        data: TransmissionData | None = None,
    ) -> Tuple[float, float]:
        snr, variance, rss = self._sinr(pair, interference, log, data)
        if math.isinf(rss) and rss < 0:
            return 0.0, rss
        threshold = self.parameter(Parameter.snr_threshold)
        sensitivity = self.parameter(Parameter.rx_sensitivity)
        if sensitivity > rss - snr and threshold < sensitivity + snr - rss:
            # weak signal: the receiver sensitivity dominates
            threshold = sensitivity + snr - rss
            if log is not None:
                log.append("Weak signal: increasing threshold")
        if variance == 0:
            return (0.0 if threshold - snr > 0 else 1.0), rss
        probability = float(norm.sf(threshold, loc=snr, scale=math.sqrt(variance)))
        if log is not None:
            log.append(f"Reception probability: {100 * probability:1.1f}%")
        return probability, rss

    def probability(self, pair: TxPair, interference: float = -math.inf) -> Tuple[float, float]:
        """Reception probability and received signal strength."""
        return self._probability(pair, interference)

    def delay_spread(self, pair: TxPair) -> Tuple[float, float]:
        """Delay spread and RMS delay spread (µs)."""
        data = self._transmission_data(pair)
        return data.delay_spread, data.rms_delay_spread

    def rms_delay_spread(self, pair: TxPair) -> float:
        return self.delay_spread(pair)[1]

    def rays_of_transmission(self, pair: TxPair) -> TrackedSignalComponents:
        log: List[str] = []
        data = self._transmission_data(pair, log)
        self._probability(pair, -math.inf, log, data)
        components = [path.sub_path(i) for path in data.paths for i in range(path.sub_path_count)]
        return TrackedSignalComponents(components, "\n".join(log))

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------
    def to_config(self) -> Dict[str, Any]:
        config: Dict[str, Any] = {
            param.value: value
            for param, value in self._parameters.items()
            if PARAMETER_DEFAULTS[param] != value
        }
        config["obstacles"] = self.obstacles.to_config()
        return config

    def from_config(self, data: Dict[str, Any]) -> None:
        """Apply a snapshot produced by :meth:`to_config`.

        Unknown keys are ignored with a warning. On an invalid value every
        parameter is reset to its default and :class:`ConfigError` is raised.
        """
        parameters = dict(self._parameters)
        obstacles: Optional[ObstacleWorld] = None
        try:
            for key, value in data.items():
                if key == "obstacles":
                    obstacles = ObstacleWorld.from_config(value or [])
                elif key == "wavelength":
                    frequency = C / float(value) / 1_000_000.0
                    parameters[Parameter.frequency] = frequency
                    logger.warning(f"Channel parameter converted from wavelength to frequency: {frequency:1.1f} MHz")
                elif key in ("tx_antenna_gain", "rx_antenna_gain"):
                    logger.warning(f"Channel parameter '{key}' was removed, ignoring it")
                else:
                    param = Parameter.from_name(key)
                    if param is None:
                        logger.warning(f"Ignoring unknown channel parameter '{key}'")
                        continue
                    parameters[param] = _coerce(param, value)
        except (TypeError, ValueError, ZeroDivisionError) as exc:
            self.reset_parameters()
            raise ConfigError(f"Invalid channel configuration: {exc}") from exc

        self._parameters = parameters
        if obstacles is not None:
            self.obstacles = obstacles
        self.visibility_cache.clear()
        self._fspl_constant = None
        self.notify_settings_changed()

    def reset_parameters(self) -> None:
        """Put every parameter back to its default value."""
        self._parameters = dict(PARAMETER_DEFAULTS)
        self.visibility_cache.clear()
        self._fspl_constant = None


__all__ = [
    "C",
    "ChannelModel",
    "LEGACY_NAMES",
    "PARAMETER_DEFAULTS",
    "PARAMETER_DESCRIPTIONS",
    "Parameter",
    "TrackedSignalComponents",
    "TransmissionData",
]
