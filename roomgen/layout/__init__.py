"""Public layout package interface."""

from .cells import COMPASS, DIRECTIONS, ORIGIN, Cell, Direction, connection_key  # noqa: F401
from .config import LayoutConfig, LayoutConfigError, TierRule, resolve_config  # noqa: F401
from .pipeline import LayoutGenerator  # noqa: F401
from .result import Connection, GateInfo, LayoutResult, Room, Spawn  # noqa: F401

__all__ = [
    "Cell",
    "COMPASS",
    "DIRECTIONS",
    "Direction",
    "ORIGIN",
    "connection_key",
    "LayoutConfig",
    "LayoutConfigError",
    "TierRule",
    "resolve_config",
    "LayoutGenerator",
    "LayoutResult",
    "Room",
    "Connection",
    "GateInfo",
    "Spawn",
]
