"""Predefined scenarios for RadioFlexSim."""

from .reference import (
    REFERENCE_SEED,
    ReferenceScenario,
    WallParameters,
    build_capture_scenario,
    build_logistic_pair,
    build_wall_scenario,
    run_capture_scenario,
)

__all__ = [
    "REFERENCE_SEED",
    "ReferenceScenario",
    "WallParameters",
    "build_capture_scenario",
    "build_logistic_pair",
    "build_wall_scenario",
    "run_capture_scenario",
]
