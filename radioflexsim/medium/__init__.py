# Initialisation du médium radio : moteur de connexions et modèles de propagation
from ._random import RngManager
from .angle_interval import AngleInterval
from .channel_model import (
    ChannelModel,
    Parameter,
    PARAMETER_DEFAULTS,
    PARAMETER_DESCRIPTIONS,
    TrackedSignalComponents,
)
from .config import ConfigError, load_snapshot, save_snapshot
from .connection import Connection
from .engine import ConnectionEngine
from .event_queue import Event, EventQueue
from .geometry import Line, Rect
from .graph_medium import DestinationRadio, Edge, GraphTopology
from .logistic_loss import StatisticalModel
from .mrm import RayTraceModel
from .obstacle_world import ObstacleWorld
from .radio import Radio, RadioEvent, TxPair
from .ray_tree import RayNode, RayPath, RayTree, RayType
from .topology import (
    SS_NOTHING,
    SS_STRONG,
    CapturePolicy,
    Classification,
    Outcome,
    TopologyModel,
)
from .triggers import Change, EventTriggers, Subscription
from .visibility_cache import VisibilityCache

__all__ = [
    "AngleInterval",
    "CapturePolicy",
    "Change",
    "ChannelModel",
    "Classification",
    "ConfigError",
    "Connection",
    "ConnectionEngine",
    "DestinationRadio",
    "Edge",
    "Event",
    "EventQueue",
    "EventTriggers",
    "GraphTopology",
    "Line",
    "ObstacleWorld",
    "Outcome",
    "PARAMETER_DEFAULTS",
    "PARAMETER_DESCRIPTIONS",
    "Parameter",
    "Radio",
    "RadioEvent",
    "RayNode",
    "RayPath",
    "RayTraceModel",
    "RayTree",
    "RngManager",
    "RayType",
    "Rect",
    "SS_NOTHING",
    "SS_STRONG",
    "StatisticalModel",
    "Subscription",
    "TopologyModel",
    "TrackedSignalComponents",
    "TxPair",
    "VisibilityCache",
    "load_snapshot",
    "save_snapshot",
]
