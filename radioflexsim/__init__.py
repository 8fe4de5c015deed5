"""RadioFlexSim: radio medium and propagation models for network simulators."""

from .medium import ConnectionEngine, GraphTopology, RayTraceModel, StatisticalModel

__version__ = "1.0.0"

__all__ = ["ConnectionEngine", "GraphTopology", "RayTraceModel", "StatisticalModel", "__version__"]
