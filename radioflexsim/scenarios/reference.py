"""Deterministic builders for the reference scenarios of the medium.

* ``logistic_pair``: two radios 5 m apart under the logistic model without
  noise; the reception ratio is ~1.
* ``capture``: A transmits to B, then C (much closer to B) transmits; B is
  captured by C and A's frame is interfered at B.
* ``wall``: two radios on each side of a 2 m thick wall under the ray-trace
  model; the only path is the refracted one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from ..medium import (
    CapturePolicy,
    ChannelModel,
    ConnectionEngine,
    EventQueue,
    Parameter,
    Radio,
    RayTraceModel,
    RngManager,
    StatisticalModel,
)

REFERENCE_SEED = 1


@dataclass
class ReferenceScenario:
    """Engine, its clock and the radios of a scenario keyed by name."""

    engine: ConnectionEngine
    radios: Dict[str, Radio] = field(default_factory=dict)

    @property
    def queue(self) -> EventQueue:
        return self.engine.queue

    def __getitem__(self, name: str) -> Radio:
        return self.radios[name]


@dataclass(frozen=True)
class WallParameters:
    """Geometry and attenuation of the wall scenario."""

    distance: float = 10.0
    wall_x: float = 4.0
    wall_thickness: float = 2.0
    wall_height: float = 10.0
    obstacle_attenuation: float = -3.0
    output_power: float = 0.0


def _engine(model, rngs: RngManager) -> ConnectionEngine:
    return ConnectionEngine(model, rng=rngs.stream("engine"))


def _register(engine: ConnectionEngine, radios: Dict[str, Radio]) -> ReferenceScenario:
    for radio in radios.values():
        engine.register(radio)
    return ReferenceScenario(engine, radios)


def build_logistic_pair(distance: float = 5.0, seed: int = REFERENCE_SEED) -> ReferenceScenario:
    model = StatisticalModel(transmitting_range=20.0, awgn_sigma=0.0)
    engine = _engine(model, RngManager(seed))
    return _register(engine, {"A": Radio(1, 0.0, 0.0), "B": Radio(2, distance, 0.0)})


def build_capture_scenario(
    seed: int = REFERENCE_SEED,
    capture_policy: CapturePolicy = CapturePolicy.SYMMETRIC,
) -> ReferenceScenario:
    model = StatisticalModel(transmitting_range=20.0, awgn_sigma=0.0, capture_policy=capture_policy)
    engine = _engine(model, RngManager(seed))
    radios = {
        "A": Radio(1, 0.0, 0.0),
        "B": Radio(2, 1.0, 0.0),
        "C": Radio(3, 1.25, 0.0),
    }
    return _register(engine, radios)


def run_capture_scenario(
    scenario: ReferenceScenario,
    a_duration: float = 4000.0,
    c_offset: float = 1000.0,
    c_duration: float = 1000.0,
) -> Tuple[object, object]:
    """A sends ``"from A"``; C sends ``"from C"`` ``c_offset`` µs later.

    Returns the connections opened by A and C.
    """
    queue = scenario.queue
    engine = scenario.engine
    scenario["A"].transmit("from A", a_duration, queue)
    conn_a = engine.connection_from(scenario["A"])
    queue.advance(queue.now + c_offset)
    scenario["C"].transmit("from C", c_duration, queue)
    conn_c = engine.connection_from(scenario["C"])
    queue.run()
    return conn_a, conn_c


def build_wall_scenario(
    params: WallParameters | None = None,
    seed: int = REFERENCE_SEED,
) -> ReferenceScenario:
    params = params or WallParameters()
    rngs = RngManager(seed)
    channel = ChannelModel(
        {
            Parameter.rt_max_rays: 1,
            Parameter.rt_max_reflections: 0,
            Parameter.rt_max_diffractions: 0,
            Parameter.rt_refrac_coefficient: 0.0,
            Parameter.obstacle_attenuation: params.obstacle_attenuation,
        },
        rng=rngs.stream("channel"),
    )
    channel.add_rect_obstacle(
        params.wall_x,
        -params.wall_height / 2.0,
        params.wall_thickness,
        params.wall_height,
        notify=False,
    )
    engine = _engine(RayTraceModel(channel), rngs)
    radios = {
        "A": Radio(1, 0.0, 0.0, output_power=params.output_power),
        "B": Radio(2, params.distance, 0.0, output_power=params.output_power),
    }
    return _register(engine, radios)


__all__ = [
    "REFERENCE_SEED",
    "ReferenceScenario",
    "WallParameters",
    "build_capture_scenario",
    "build_logistic_pair",
    "build_wall_scenario",
    "run_capture_scenario",
]
