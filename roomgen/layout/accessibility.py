"""Reachability before the key is found, and door-hop depths."""
from __future__ import annotations
from typing import Dict, Optional, Set

from .cells import ORIGIN, Cell, connection_key
from .connectivity import ConnectionGraph, bfs
from .locked import Gate


def accessible_cells(graph: ConnectionGraph, gate: Optional[Gate]) -> Set[Cell]:
    """Rooms reachable from the origin without walking through the gate."""
    if gate is None:
        return set(bfs(graph, ORIGIN))
    gate_key = connection_key(gate.locked, gate.unlocked)
    return set(bfs(graph, ORIGIN, allow=lambda a, b: connection_key(a, b) != gate_key))


def compute_depths(graph: ConnectionGraph) -> Dict[Cell, int]:
    return bfs(graph, ORIGIN)


__all__ = ["accessible_cells", "compute_depths"]
